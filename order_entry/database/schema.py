from pathlib import Path
import sqlite3
import sys

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CATALOG ======================== */

/* -------- units -------- */
CREATE TABLE IF NOT EXISTS uoms (
    uom_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    unit_name  TEXT UNIQUE NOT NULL,
    short_code TEXT
);

/* -------- products -------- */
CREATE TABLE IF NOT EXISTS products (
    product_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    code            TEXT UNIQUE,
    name            TEXT NOT NULL,
    scan_code       TEXT,
    base_uom_id     INTEGER,
    purchase_price  NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(purchase_price  AS REAL) >= 0),
    retail_price    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(retail_price    AS REAL) >= 0),
    wholesale_price NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(wholesale_price AS REAL) >= 0),
    special_price_1 NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(special_price_1 AS REAL) >= 0),
    special_price_2 NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(special_price_2 AS REAL) >= 0),
    allow_batches   INTEGER NOT NULL DEFAULT 0 CHECK (allow_batches IN (0,1)),
    is_active       INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
    FOREIGN KEY (base_uom_id) REFERENCES uoms(uom_id)
);
CREATE INDEX IF NOT EXISTS idx_products_scan_code ON products(scan_code);
CREATE INDEX IF NOT EXISTS idx_products_name ON products(name);

/* -------- multi-units (alternate sellable packagings) -------- */
CREATE TABLE IF NOT EXISTS product_multi_units (
    multi_unit_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id      INTEGER NOT NULL,
    uom_id          INTEGER NOT NULL,
    conversion      NUMERIC NOT NULL CHECK (CAST(conversion AS REAL) > 0),
    retail_price    NUMERIC NOT NULL DEFAULT 0,
    wholesale_price NUMERIC NOT NULL DEFAULT 0,
    special_price_1 NUMERIC NOT NULL DEFAULT 0,
    special_price_2 NUMERIC NOT NULL DEFAULT 0,
    scan_code       TEXT,
    FOREIGN KEY (product_id) REFERENCES products(product_id) ON DELETE CASCADE,
    FOREIGN KEY (uom_id)     REFERENCES uoms(uom_id)
);
CREATE INDEX IF NOT EXISTS idx_multi_units_product ON product_multi_units(product_id);
CREATE INDEX IF NOT EXISTS idx_multi_units_scan_code ON product_multi_units(scan_code);

/* ======================== STOCK ======================== */

/* -------- batches -------- */
CREATE TABLE IF NOT EXISTS product_batches (
    batch_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id      INTEGER NOT NULL,
    batch_number    TEXT NOT NULL,
    quantity        NUMERIC NOT NULL DEFAULT 0,
    purchase_price  NUMERIC NOT NULL DEFAULT 0,
    retail_price    NUMERIC NOT NULL DEFAULT 0,
    wholesale_price NUMERIC NOT NULL DEFAULT 0,
    expiry_date     DATE,
    UNIQUE(product_id, batch_number),
    FOREIGN KEY (product_id) REFERENCES products(product_id) ON DELETE CASCADE
);

/* -------- stock movements, always in base-unit pieces (signed) -------- */
CREATE TABLE IF NOT EXISTS inventory_transactions (
    transaction_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id       INTEGER NOT NULL,
    quantity         NUMERIC NOT NULL,
    transaction_type TEXT NOT NULL CHECK (transaction_type IN
                        ('opening','purchase','purchase_return','sale','sale_return','adjustment')),
    date             DATE NOT NULL DEFAULT CURRENT_DATE,
    notes            TEXT,
    FOREIGN KEY (product_id) REFERENCES products(product_id) ON DELETE RESTRICT
);
CREATE INDEX IF NOT EXISTS idx_inventory_tx_product ON inventory_transactions(product_id);

DROP VIEW IF EXISTS v_stock_on_hand;
CREATE VIEW v_stock_on_hand AS
SELECT p.product_id,
       COALESCE(SUM(CAST(t.quantity AS REAL)), 0.0) AS qty_in_base
FROM products p
LEFT JOIN inventory_transactions t ON t.product_id = p.product_id
GROUP BY p.product_id;
"""


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply the (idempotent) schema on an open connection."""
    conn.executescript(SQL)


def init_schema(db_path: Path | str = "order_entry.db") -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        apply_schema(conn)
        conn.commit()


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else Path(__file__).resolve().parents[1] / "data" / "order_entry.db"
    init_schema(target)
    print(f"✓ DB applied to {target}")
