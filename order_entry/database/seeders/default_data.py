"""
Demo catalog for a fresh database: a handful of products covering the
cases the entry grid distinguishes (multi-unit, batch-tracked with one or
several batches, legacy batches on an untracked product, no stock).

Safe to run repeatedly; does nothing once any product exists.
"""
import sqlite3

UOMS = [
    ("Piece", "PCS"),
    ("Box", "BOX"),
    ("Strip", "STP"),
]

# code, name, scan_code, base uom, purchase, retail, wholesale, special_1, special_2, allow_batches
PRODUCTS = [
    ("P001", "Mineral Water 500ml", "1000001", "Piece", 70, 100, 90, 85, 0, 0),
    ("P002", "Paracetamol 500mg", "1000002", "Strip", 8, 12, 11, 0, 0, 1),
    ("P003", "Hand Soap", "1000003", "Piece", 11, 20, 18, 0, 0, 0),
    ("P004", "Vitamin C 1000mg", "1000004", "Strip", 20, 32, 28, 0, 0, 1),
    ("P005", "Glass Cleaner", "1000005", "Piece", 15, 25, 22, 0, 0, 0),
]

# product code, uom, conversion, retail, wholesale, special_1, special_2, scan_code
MULTI_UNITS = [
    ("P001", "Box", 4, 380, 350, 0, 0, "2000001"),
]

# product code, batch_number, quantity, purchase, retail, wholesale, expiry
BATCHES = [
    ("P002", "PCM-2401", 5, 10, 15, 13, "2027-01-31"),
    ("P002", "PCM-2402", 7, 12, 16, 14, "2027-06-30"),
    ("P003", "HS-OLD-1", 5, 10, 20, 18, None),
    ("P003", "HS-OLD-2", 7, 12, 20, 18, None),
    ("P004", "VC-01", 3, 20, 30, 0, "2026-12-31"),
]

# product code, opening quantity in base pieces
OPENING_STOCK = [
    ("P001", 10),
    ("P002", 12),
    ("P003", 12),
    ("P004", 3),
    ("P005", 0),
]


def seed(conn: sqlite3.Connection) -> None:
    row = conn.execute("SELECT COUNT(*) AS n FROM products").fetchone()
    if row and row["n"]:
        return

    for unit_name, short_code in UOMS:
        conn.execute(
            "INSERT OR IGNORE INTO uoms(unit_name, short_code) VALUES (?, ?)",
            (unit_name, short_code),
        )
    uom_ids = {
        r["unit_name"]: int(r["uom_id"])
        for r in conn.execute("SELECT uom_id, unit_name FROM uoms")
    }

    product_ids = {}
    for code, name, scan, uom, purchase, retail, wholesale, sp1, sp2, batches in PRODUCTS:
        cur = conn.execute(
            """
            INSERT INTO products(code, name, scan_code, base_uom_id, purchase_price,
                                 retail_price, wholesale_price, special_price_1,
                                 special_price_2, allow_batches)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (code, name, scan, uom_ids[uom], purchase, retail, wholesale, sp1, sp2, batches),
        )
        product_ids[code] = int(cur.lastrowid)

    for code, uom, conversion, retail, wholesale, sp1, sp2, scan in MULTI_UNITS:
        conn.execute(
            """
            INSERT INTO product_multi_units(product_id, uom_id, conversion, retail_price,
                                            wholesale_price, special_price_1,
                                            special_price_2, scan_code)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (product_ids[code], uom_ids[uom], conversion, retail, wholesale, sp1, sp2, scan),
        )

    for code, number, qty, purchase, retail, wholesale, expiry in BATCHES:
        conn.execute(
            """
            INSERT INTO product_batches(product_id, batch_number, quantity, purchase_price,
                                        retail_price, wholesale_price, expiry_date)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (product_ids[code], number, qty, purchase, retail, wholesale, expiry),
        )

    for code, qty in OPENING_STOCK:
        if qty:
            conn.execute(
                "INSERT INTO inventory_transactions(product_id, quantity, transaction_type, notes) "
                "VALUES (?, ?, 'opening', 'Opening stock')",
                (product_ids[code], qty),
            )
    conn.commit()
