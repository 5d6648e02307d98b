from __future__ import annotations

"""
Repository for stock queries.

Stock is kept as signed movements in base-unit pieces (inventory_transactions);
v_stock_on_hand sums them per product.

Conventions:
- Quantities are cast to float in Python for consistent UI display.
- Date strings are ISO 'YYYY-MM-DD'.
"""

import sqlite3
from typing import Optional, Dict, List


class DomainError(Exception):
    """Domain-level error suitable for surfacing to the UI."""
    pass


_TX_TYPES = ("opening", "purchase", "purchase_return", "sale", "sale_return", "adjustment")


class InventoryRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        # Make sure rows are accessible as dicts
        self.conn.row_factory = sqlite3.Row

    def on_hand_base(self, product_id: int) -> float:
        """Current stock of a product in base-unit pieces (0.0 when unknown)."""
        row = self.conn.execute(
            "SELECT qty_in_base FROM v_stock_on_hand WHERE product_id = ?",
            (int(product_id),),
        ).fetchone()
        if row is None:
            return 0.0
        return self._to_float(row["qty_in_base"]) or 0.0

    def on_hand_map(self) -> Dict[int, float]:
        """{product_id: qty_in_base} for every product."""
        rows = self.conn.execute(
            "SELECT product_id, qty_in_base FROM v_stock_on_hand"
        ).fetchall()
        return {int(r["product_id"]): self._to_float(r["qty_in_base"]) or 0.0 for r in rows}

    def add_transaction(
        self,
        product_id: int,
        quantity: float,
        transaction_type: str = "adjustment",
        *,
        date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """
        Record a signed stock movement in base pieces.
        Raises DomainError on an unknown transaction type or zero quantity.
        """
        if transaction_type not in _TX_TYPES:
            raise DomainError(f"Unknown transaction type: {transaction_type!r}")
        qty = self._to_float(quantity)
        if not qty:
            raise DomainError("Quantity must be non-zero.")
        cur = self.conn.execute(
            """
            INSERT INTO inventory_transactions(product_id, quantity, transaction_type, date, notes)
            VALUES (?, ?, ?, COALESCE(?, CURRENT_DATE), ?)
            """,
            (int(product_id), qty, transaction_type, date, notes),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def transactions_for(self, product_id: int) -> List[Dict]:
        rows = self.conn.execute(
            """
            SELECT transaction_id, date, transaction_type,
                   CAST(quantity AS REAL) AS quantity, COALESCE(notes, '') AS notes
            FROM inventory_transactions
            WHERE product_id = ?
            ORDER BY DATE(date) DESC, transaction_id DESC
            """,
            (int(product_id),),
        ).fetchall()
        return [self._row_to_dict(r) for r in rows]

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _row_to_dict(r: sqlite3.Row | dict) -> Dict:
        return dict(r)

    @staticmethod
    def _to_float(x) -> Optional[float]:
        if x is None:
            return None
        try:
            return float(x)
        except (TypeError, ValueError):
            return None
