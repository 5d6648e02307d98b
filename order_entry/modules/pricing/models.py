"""
Value types shared by the pricing engine and the entry grid.

LineItem is the only mutable one: the document edits it field by field and
the row session snapshots/restores it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ...database.repositories.batches_repo import Batch
from ...database.repositories.products_repo import Product


class DomainError(Exception):
    """Domain-level error the controller/UI can surface (toast/snackbar)."""
    pass


class EditState(Enum):
    IDLE = "idle"
    EDITING = "editing"
    COMMITTED = "committed"


BASE_UNIT_KEY = "base"


@dataclass
class UnitOption:
    unit_id: int | None
    name: str
    conversion: float = 1.0
    is_multi_unit: bool = False
    multi_unit_id: int | None = None
    scan_code: str | None = None
    price: float = 0.0

    @property
    def key(self) -> str:
        """Stable per-product identity: a base unit and a multi-unit may share a uom."""
        return f"mu:{self.multi_unit_id}" if self.is_multi_unit else BASE_UNIT_KEY


# fields copied into / restored from a row snapshot
_SNAPSHOT_FIELDS = (
    "product",
    "unit_options",
    "unit_key",
    "batch",
    "quantity",
    "price",
    "purchase_price",
    "gross",
    "discount_percent",
    "discount_amount",
    "vat_amount",
    "total",
    "base_stock_pieces",
    "batch_max_pieces",
)


@dataclass
class LineItem:
    line_id: int
    product: Optional[Product] = None
    unit_options: list[UnitOption] = field(default_factory=list)
    unit_key: str | None = None
    batch: Optional[Batch] = None
    quantity: float = 0.0
    price: float = 0.0
    purchase_price: float = 0.0
    gross: float = 0.0
    discount_percent: float = 0.0
    discount_amount: float = 0.0
    vat_amount: float = 0.0
    total: float = 0.0
    base_stock_pieces: float = 0.0
    batch_max_pieces: float | None = None
    state: EditState = EditState.IDLE
    snapshot: dict | None = None
    request_token: int = 0

    # ---- derived ----

    @property
    def has_product(self) -> bool:
        return self.product is not None

    @property
    def product_id(self) -> int | None:
        return self.product.product_id if self.product else None

    @property
    def chosen_unit(self) -> UnitOption | None:
        for opt in self.unit_options:
            if opt.key == self.unit_key:
                return opt
        return None

    @property
    def conversion(self) -> float:
        unit = self.chosen_unit
        if unit is not None and unit.is_multi_unit and unit.conversion > 0:
            return float(unit.conversion)
        return 1.0

    @property
    def pieces(self) -> float:
        """Quantity expressed in base-unit pieces."""
        return float(self.quantity) * self.conversion

    @property
    def batch_number(self) -> str | None:
        return self.batch.batch_number if self.batch else None

    @property
    def net(self) -> float:
        return self.gross - self.discount_amount

    # ---- snapshot ----

    def capture(self) -> dict:
        values = {name: getattr(self, name) for name in _SNAPSHOT_FIELDS}
        values["unit_options"] = list(self.unit_options)
        return values

    def restore(self, values: dict) -> None:
        for name in _SNAPSHOT_FIELDS:
            setattr(self, name, values[name])
        self.unit_options = list(values["unit_options"])

    def reset(self) -> None:
        """Back to an empty row; identity, edit state and request token survive."""
        self.restore(LineItem(self.line_id).capture())


# -----------------------------
# Results handed back to the caller
# -----------------------------

STOCK_NOTICE_TEXT = "Qty not available"


@dataclass(frozen=True)
class StockNotice:
    """A quantity was clamped to what stock allows. Non-fatal."""
    line_id: int
    requested: float
    allowed: float
    message: str = STOCK_NOTICE_TEXT


@dataclass(frozen=True)
class CommitResult:
    ok: bool
    line_id: int
    field: str | None = None
    message: str = ""
    next_line_id: int | None = None


class SelectionStatus(Enum):
    APPLIED = "applied"
    NEEDS_BATCH = "needs_batch"
    REJECTED = "rejected"
    STALE = "stale"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SelectionOutcome:
    status: SelectionStatus
    line_id: int
    message: str = ""
    batches: tuple[Batch, ...] = ()

    @property
    def applied(self) -> bool:
        return self.status is SelectionStatus.APPLIED


@dataclass(frozen=True)
class DocumentTotals:
    gross: float = 0.0
    discount: float = 0.0
    vat: float = 0.0
    total: float = 0.0
    quantity: float = 0.0
    item_count: int = 0


@dataclass(frozen=True)
class Adjustments:
    """Header-level amounts applied after the line totals."""
    other_discount: float = 0.0
    other_charges: float = 0.0
    freight: float = 0.0
    round_off: float = 0.0

    @property
    def net(self) -> float:
        return self.other_charges + self.freight + self.round_off - self.other_discount


@dataclass(frozen=True)
class GrandTotal:
    sub_total: float
    adjustments_vat: float
    vat_total: float
    grand_total: float


@dataclass(frozen=True)
class ProductInfo:
    product_name: str
    purchase_rate: float
    price: float
    profit: float
    stock: float
    total_stock: float
    batch_number: str = ""
    expiry_date: str = ""
    pieces_per_unit: float | None = None
