# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from order_entry.database.repositories import (
        # Catalog
        ProductsRepo, Product, MultiUnit, UnitRef, ProductsDomainError,
        # Batches
        BatchesRepo, Batch,
        # Stock
        InventoryRepo, InventoryDomainError,
    )
"""

# ---------------- Catalog ------------------
from .products_repo import (
    ProductsRepo,
    Product,
    MultiUnit,
    UnitRef,
    DomainError as ProductsDomainError,
)

# ---------------- Batches ------------------
from .batches_repo import BatchesRepo, Batch

# ---------------- Inventory ----------------
from .inventory_repo import InventoryRepo, DomainError as InventoryDomainError

__all__ = [
    # products_repo
    "ProductsRepo",
    "Product",
    "MultiUnit",
    "UnitRef",
    "ProductsDomainError",
    # batches_repo
    "BatchesRepo",
    "Batch",
    # inventory_repo
    "InventoryRepo",
    "InventoryDomainError",
]
