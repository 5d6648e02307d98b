"""
pricing/stock.py

Quantity caps against shared stock, and the short-lived per-product stock cache.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional

from ...constants import QTY_DECIMALS, STOCK_CACHE_TTL_SECONDS
from ...utils.helpers import round_down
from .models import LineItem

__all__ = ["StockAllocator", "StockCache"]

_log = logging.getLogger(__name__)


class StockAllocator:
    """
    Stateless: every call looks at the line and its siblings as they are now.

    A batch cap (batch_max_pieces) applies to its line alone. Without one,
    the product's base stock is shared by every line of that product.
    """

    @staticmethod
    def used_by_others(line: LineItem, lines: Iterable[LineItem]) -> float:
        if line.product_id is None:
            return 0.0
        return sum(
            other.pieces
            for other in lines
            if other.line_id != line.line_id and other.product_id == line.product_id
        )

    @classmethod
    def cap_pieces(cls, line: LineItem, lines: Iterable[LineItem]) -> float:
        if line.batch_max_pieces is not None:
            return float(line.batch_max_pieces)
        return float(line.base_stock_pieces) - cls.used_by_others(line, lines)

    @classmethod
    def max_quantity(cls, line: LineItem, lines: Iterable[LineItem]) -> float:
        """Largest quantity of the chosen unit, rounded down to QTY_DECIMALS."""
        cap = cls.cap_pieces(line, lines)
        return round_down(max(cap / line.conversion, 0.0), QTY_DECIMALS)

    @classmethod
    def clamp(cls, line: LineItem, lines: Iterable[LineItem], proposed: float) -> tuple[float, bool]:
        """Returns (quantity to keep, whether it was clamped)."""
        limit = cls.max_quantity(line, lines)
        if proposed > limit:
            return limit, True
        return proposed, False


class StockCache:
    """
    productId -> (value, fetched_at), valid for `ttl` seconds.

    `fetch` may raise; the error propagates and the previous entry, if any,
    is kept so the caller can still fall back on it via `peek(stale=True)`.
    """

    def __init__(
        self,
        fetch: Callable[[int], float],
        ttl: float = STOCK_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self._ttl = float(ttl)
        self._clock = clock
        self._entries: dict[int, tuple[float, float]] = {}

    def get(self, product_id: int) -> float:
        now = self._clock()
        entry = self._entries.get(product_id)
        if entry is not None and now - entry[1] < self._ttl:
            _log.debug("stock cache hit for product %s", product_id)
            return entry[0]
        _log.debug("stock cache miss for product %s", product_id)
        value = float(self._fetch(product_id))
        self._entries[product_id] = (value, now)
        return value

    def peek(self, product_id: int, stale: bool = False) -> Optional[float]:
        """Cached value without fetching; expired entries only when `stale`."""
        entry = self._entries.get(product_id)
        if entry is None:
            return None
        if not stale and self._clock() - entry[1] >= self._ttl:
            return None
        return entry[0]

    def invalidate(self, product_id: int | None = None) -> None:
        if product_id is None:
            self._entries.clear()
        else:
            self._entries.pop(product_id, None)
