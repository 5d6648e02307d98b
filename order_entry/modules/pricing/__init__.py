"""
Line-item pricing and stock allocation for the order-entry grid.

Screen-independent: the Qt form in modules.entry drives a LineDocument, and
tests drive it directly.
"""
from .calculator import compute_line, split_tax, LineAmounts
from .document import LineDocument
from .lookups import Lookups
from .models import (
    Adjustments,
    CommitResult,
    DocumentTotals,
    DomainError,
    EditState,
    GrandTotal,
    LineItem,
    ProductInfo,
    SelectionOutcome,
    SelectionStatus,
    StockNotice,
    UnitOption,
)
from .session import RowEditSession
from .stock import StockAllocator, StockCache

__all__ = [
    "compute_line",
    "split_tax",
    "LineAmounts",
    "LineDocument",
    "Lookups",
    "Adjustments",
    "CommitResult",
    "DocumentTotals",
    "DomainError",
    "EditState",
    "GrandTotal",
    "LineItem",
    "ProductInfo",
    "SelectionOutcome",
    "SelectionStatus",
    "StockNotice",
    "UnitOption",
    "RowEditSession",
    "StockAllocator",
    "StockCache",
]
