# database/__init__.py
from __future__ import annotations

import sqlite3

from ..config import DB_PATH
from ..constants import TABLE_SCHEMA_VERSION, SCHEMA_VERSION
from .schema import apply_schema
from .seeders.default_data import seed as seed_catalog


def _stamp_version(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}("
        "id INTEGER PRIMARY KEY CHECK (id=1), version TEXT NOT NULL);"
    )
    # first open wins; later opens keep the recorded version
    conn.execute(
        f"INSERT OR IGNORE INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, ?);",
        (SCHEMA_VERSION,),
    )


def get_connection(seed: bool = True) -> sqlite3.Connection:
    """
    Open the entry database at DB_PATH (rows as sqlite3.Row, WAL journal,
    foreign keys enforced). Catalog tables, batches, inventory transactions
    and the v_stock_on_hand view are created on first use; the demo catalog
    is added unless seed=False.
    """
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL;")
    apply_schema(conn)
    _stamp_version(conn)
    if seed:
        seed_catalog(conn)
    conn.commit()
    return conn


__all__ = [
    "get_connection",
]
