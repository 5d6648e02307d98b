# order_entry/database/repositories/batches_repo.py
from __future__ import annotations

from dataclasses import dataclass
import sqlite3


@dataclass
class Batch:
    batch_number: str
    quantity: float
    purchase_price: float = 0.0
    retail_price: float = 0.0
    wholesale_price: float = 0.0
    expiry_date: str | None = None
    batch_id: int | None = None
    product_id: int | None = None


class BatchesRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def list_for_product(self, product_id: int) -> list[Batch]:
        """All batches of a product, oldest expiry first (undated last)."""
        rows = self.conn.execute(
            """
            SELECT batch_id, product_id, batch_number,
                   CAST(quantity        AS REAL) AS quantity,
                   CAST(purchase_price  AS REAL) AS purchase_price,
                   CAST(retail_price    AS REAL) AS retail_price,
                   CAST(wholesale_price AS REAL) AS wholesale_price,
                   expiry_date
            FROM product_batches
            WHERE product_id = ?
            ORDER BY expiry_date IS NULL, expiry_date, batch_id
            """,
            (product_id,),
        ).fetchall()
        return [
            Batch(
                batch_id=int(r["batch_id"]),
                product_id=int(r["product_id"]),
                batch_number=r["batch_number"],
                quantity=float(r["quantity"] or 0),
                purchase_price=float(r["purchase_price"] or 0),
                retail_price=float(r["retail_price"] or 0),
                wholesale_price=float(r["wholesale_price"] or 0),
                expiry_date=r["expiry_date"],
            )
            for r in rows
        ]
