"""
pricing/batches.py

Decides what happens with a product's batches on selection.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ...constants import MERGED_BATCH_NUMBER
from ...database.repositories.batches_repo import Batch
from ...database.repositories.products_repo import Product
from ...utils.helpers import round2

__all__ = ["BatchDecision", "BatchChoice", "merge_batches", "select_batch"]


class BatchDecision(Enum):
    NONE = "none"        # proceed without a batch
    AUTO = "auto"        # single batch, picked for the operator
    MERGED = "merged"    # untracked product with legacy batches
    CHOOSE = "choose"    # operator must pick one


@dataclass(frozen=True)
class BatchChoice:
    decision: BatchDecision
    batch: Optional[Batch] = None
    candidates: tuple[Batch, ...] = ()


def _mean(values: list[float]) -> float:
    return round2(sum(values) / len(values)) if values else 0.0


def merge_batches(batches: Sequence[Batch]) -> Optional[Batch]:
    """
    One synthetic batch standing for all of `batches`.

    Only positive-quantity batches take part, unless none is positive, in
    which case all of them do. Quantity is the sum and prices are the mean
    of that set.
    """
    if not batches:
        return None
    pool = [b for b in batches if b.quantity > 0] or list(batches)
    return Batch(
        batch_number=MERGED_BATCH_NUMBER,
        quantity=sum(b.quantity for b in pool),
        purchase_price=_mean([b.purchase_price for b in pool]),
        retail_price=_mean([b.retail_price for b in pool]),
        wholesale_price=_mean([b.wholesale_price for b in pool]),
        expiry_date=None,
        product_id=pool[0].product_id,
    )


def select_batch(product: Product, batches: Sequence[Batch]) -> BatchChoice:
    if not product.allow_batches:
        merged = merge_batches(batches)
        if merged is None:
            return BatchChoice(BatchDecision.NONE)
        return BatchChoice(BatchDecision.MERGED, merged)
    if len(batches) == 1:
        return BatchChoice(BatchDecision.AUTO, batches[0])
    if len(batches) > 1:
        return BatchChoice(BatchDecision.CHOOSE, candidates=tuple(batches))
    return BatchChoice(BatchDecision.NONE)
