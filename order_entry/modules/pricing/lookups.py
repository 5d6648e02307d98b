"""
pricing/lookups.py

Catalog, batch and stock reads as the engine sees them: a failed lookup is
logged and reads as "no data", never as an exception.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from ...database.repositories.batches_repo import BatchesRepo, Batch
from ...database.repositories.inventory_repo import InventoryRepo
from ...database.repositories.products_repo import ProductsRepo, Product, DomainError as CatalogError
from .stock import StockCache

__all__ = ["Lookups", "LOOKUP_ERRORS"]

_log = logging.getLogger(__name__)

LOOKUP_ERRORS = (sqlite3.Error, CatalogError)


class Lookups:
    def __init__(
        self,
        products: ProductsRepo,
        batches: BatchesRepo,
        inventory: InventoryRepo,
        stock_cache: Optional[StockCache] = None,
    ):
        self.products_repo = products
        self.batches_repo = batches
        self.inventory_repo = inventory
        self.stock_cache = stock_cache or StockCache(inventory.on_hand_base)

    @classmethod
    def from_connection(cls, conn: sqlite3.Connection, **kwargs) -> "Lookups":
        return cls(ProductsRepo(conn), BatchesRepo(conn), InventoryRepo(conn), **kwargs)

    # ---- catalog ----

    def products(self) -> list[Product]:
        try:
            return self.products_repo.list_products()
        except LOOKUP_ERRORS as e:
            _log.warning("product list lookup failed: %s", e, exc_info=True)
            return []

    def product(self, product_id: int) -> Optional[Product]:
        try:
            return self.products_repo.get(product_id)
        except LOOKUP_ERRORS as e:
            _log.warning("product lookup failed for id %s: %s", product_id, e, exc_info=True)
            return None

    def product_by_code(self, code: str) -> Optional[Product]:
        try:
            return self.products_repo.get_by_code(code)
        except LOOKUP_ERRORS as e:
            _log.warning("product lookup failed for code %r: %s", code, e, exc_info=True)
            return None

    def product_by_scan(self, scan_code: str) -> Optional[tuple[Product, int | None]]:
        try:
            return self.products_repo.find_by_scan_code(scan_code)
        except LOOKUP_ERRORS as e:
            _log.warning("scan lookup failed for %r: %s", scan_code, e, exc_info=True)
            return None

    def search(self, text: str, limit: int = 50) -> list[Product]:
        try:
            return self.products_repo.search(text, limit)
        except LOOKUP_ERRORS as e:
            _log.warning("product search failed for %r: %s", text, e, exc_info=True)
            return []

    # ---- batches ----

    def batches(self, product_id: int) -> list[Batch]:
        try:
            return self.batches_repo.list_for_product(product_id)
        except LOOKUP_ERRORS as e:
            _log.warning("batch lookup failed for product %s: %s", product_id, e, exc_info=True)
            return []

    # ---- stock ----

    def stock(self, product_id: int) -> float:
        """Base-unit pieces on hand; on failure the last known value, else 0."""
        try:
            return self.stock_cache.get(product_id)
        except LOOKUP_ERRORS as e:
            _log.warning("stock lookup failed for product %s: %s", product_id, e, exc_info=True)
            cached = self.stock_cache.peek(product_id, stale=True)
            return cached if cached is not None else 0.0

    def cached_stock(self, product_id: int) -> Optional[float]:
        return self.stock_cache.peek(product_id)
