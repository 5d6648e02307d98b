# order_entry/database/repositories/products_repo.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Mapping, Union
import sqlite3


class DomainError(Exception):
    """Domain-level error the controller/UI can surface (toast/snackbar)."""
    pass


RawUnitRef = Union[int, str, Mapping, "UnitRef", None]


@dataclass(frozen=True)
class UnitRef:
    """
    A resolved unit reference.

    Catalog rows carry a unit either as a bare id or as an embedded record
    ({'uom_id': .., 'unit_name': ..}); `resolve` turns both into this one shape
    so nothing past the repository ever inspects the raw form.
    """
    unit_id: int | None
    name: str

    @classmethod
    def resolve(cls, raw: RawUnitRef, names: Mapping[int, str] | None = None) -> "UnitRef":
        if isinstance(raw, UnitRef):
            return raw
        if raw is None:
            return cls(None, "")
        if isinstance(raw, Mapping) or isinstance(raw, sqlite3.Row):
            d = dict(raw)
            uid = d.get("uom_id", d.get("unit_id", d.get("id")))
            uid = int(uid) if uid not in (None, "") else None
            name = d.get("unit_name") or d.get("name")
            if not name and names and uid is not None:
                name = names.get(uid)
            return cls(uid, str(name or ""))
        try:
            uid = int(raw)
        except (TypeError, ValueError):
            raise DomainError(f"Unrecognized unit reference: {raw!r}")
        return cls(uid, (names or {}).get(uid, ""))


@dataclass
class MultiUnit:
    multi_unit_id: int
    unit: UnitRef
    conversion: float
    retail_price: float = 0.0
    wholesale_price: float = 0.0
    special_price_1: float = 0.0
    special_price_2: float = 0.0
    scan_code: str | None = None


@dataclass
class Product:
    product_id: int
    code: str | None
    name: str
    base_unit: UnitRef
    purchase_price: float = 0.0
    retail_price: float = 0.0
    wholesale_price: float = 0.0
    special_price_1: float = 0.0
    special_price_2: float = 0.0
    scan_code: str | None = None
    allow_batches: bool = False
    multi_units: list[MultiUnit] = field(default_factory=list)

    def multi_unit(self, multi_unit_id: int | None) -> Optional[MultiUnit]:
        for mu in self.multi_units:
            if mu.multi_unit_id == multi_unit_id:
                return mu
        return None


_PRODUCT_SELECT = """
    SELECT p.product_id, p.code, p.name, p.scan_code,
           p.base_uom_id AS uom_id, u.unit_name,
           CAST(p.purchase_price  AS REAL) AS purchase_price,
           CAST(p.retail_price    AS REAL) AS retail_price,
           CAST(p.wholesale_price AS REAL) AS wholesale_price,
           CAST(p.special_price_1 AS REAL) AS special_price_1,
           CAST(p.special_price_2 AS REAL) AS special_price_2,
           p.allow_batches
    FROM products p
    LEFT JOIN uoms u ON u.uom_id = p.base_uom_id
"""


class ProductsRepo:
    """Read-only catalog lookups: by id, by code, by scan code and free-text search."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        # Use Row for named access
        self.conn.row_factory = sqlite3.Row

    # ---------------------------- Products ----------------------------

    def list_products(self) -> list[Product]:
        rows = self.conn.execute(
            _PRODUCT_SELECT + " WHERE p.is_active = 1 ORDER BY p.name"
        ).fetchall()
        return [self._build(r) for r in rows]

    def get(self, product_id: int) -> Product | None:
        r = self.conn.execute(
            _PRODUCT_SELECT + " WHERE p.product_id = ?", (product_id,)
        ).fetchone()
        return self._build(r) if r else None

    def get_by_code(self, code: str) -> Product | None:
        r = self.conn.execute(
            _PRODUCT_SELECT + " WHERE p.code = ?", ((code or "").strip(),)
        ).fetchone()
        return self._build(r) if r else None

    def find_by_scan_code(self, scan_code: str) -> tuple[Product, int | None] | None:
        """
        Resolve a scanned code to (product, matched multi_unit_id).

        The product's own scan code wins; otherwise a multi-unit scan code
        yields the owning product together with that multi-unit's id.
        """
        code = (scan_code or "").strip()
        if not code:
            return None
        r = self.conn.execute(
            _PRODUCT_SELECT + " WHERE p.scan_code = ? ORDER BY p.product_id LIMIT 1",
            (code,),
        ).fetchone()
        if r:
            return self._build(r), None
        mu = self.conn.execute(
            "SELECT multi_unit_id, product_id FROM product_multi_units "
            "WHERE scan_code = ? ORDER BY multi_unit_id LIMIT 1",
            (code,),
        ).fetchone()
        if not mu:
            return None
        product = self.get(int(mu["product_id"]))
        return (product, int(mu["multi_unit_id"])) if product else None

    def search(self, text: str, limit: int = 50) -> list[Product]:
        q = (text or "").strip()
        if not q:
            return []
        like = f"%{q}%"
        rows = self.conn.execute(
            _PRODUCT_SELECT
            + """
            WHERE p.is_active = 1
              AND (p.name LIKE ? OR p.code LIKE ? OR p.scan_code = ?)
            ORDER BY p.name
            LIMIT ?
            """,
            (like, like, q, int(limit)),
        ).fetchall()
        return [self._build(r) for r in rows]

    # ---------------------------- Multi-units ----------------------------

    def multi_units_for(self, product_id: int) -> list[MultiUnit]:
        rows = self.conn.execute(
            """
            SELECT m.multi_unit_id, m.uom_id, u.unit_name,
                   CAST(m.conversion      AS REAL) AS conversion,
                   CAST(m.retail_price    AS REAL) AS retail_price,
                   CAST(m.wholesale_price AS REAL) AS wholesale_price,
                   CAST(m.special_price_1 AS REAL) AS special_price_1,
                   CAST(m.special_price_2 AS REAL) AS special_price_2,
                   m.scan_code
            FROM product_multi_units m
            LEFT JOIN uoms u ON u.uom_id = m.uom_id
            WHERE m.product_id = ?
            ORDER BY m.multi_unit_id
            """,
            (product_id,),
        ).fetchall()
        return [
            MultiUnit(
                multi_unit_id=int(r["multi_unit_id"]),
                unit=UnitRef.resolve(r),
                conversion=float(r["conversion"]),
                retail_price=float(r["retail_price"] or 0),
                wholesale_price=float(r["wholesale_price"] or 0),
                special_price_1=float(r["special_price_1"] or 0),
                special_price_2=float(r["special_price_2"] or 0),
                scan_code=r["scan_code"],
            )
            for r in rows
        ]

    # ---------------------------- helpers ----------------------------

    def _build(self, r: sqlite3.Row) -> Product:
        pid = int(r["product_id"])
        return Product(
            product_id=pid,
            code=r["code"],
            name=r["name"],
            base_unit=UnitRef.resolve(r),
            purchase_price=float(r["purchase_price"] or 0),
            retail_price=float(r["retail_price"] or 0),
            wholesale_price=float(r["wholesale_price"] or 0),
            special_price_1=float(r["special_price_1"] or 0),
            special_price_2=float(r["special_price_2"] or 0),
            scan_code=r["scan_code"],
            allow_batches=bool(r["allow_batches"]),
            multi_units=self.multi_units_for(pid),
        )
