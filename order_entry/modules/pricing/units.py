"""
pricing/units.py

Transactable units for a product: the base unit plus, for products that are
not batch-tracked, every multi-unit. Each option carries the price for the
active rate type.
"""
from __future__ import annotations

from typing import Optional

from ...constants import RATE_RETAIL, RATE_WHOLESALE, RATE_SPECIAL_1, RATE_SPECIAL_2
from ...database.repositories.batches_repo import Batch
from ...database.repositories.products_repo import Product, MultiUnit
from ...utils.helpers import round2
from .models import UnitOption, DomainError

__all__ = [
    "PRICE_FIELDS",
    "base_unit_price",
    "multi_unit_price",
    "build_unit_options",
    "pick_unit",
]

PRICE_FIELDS = {
    RATE_RETAIL: "retail_price",
    RATE_WHOLESALE: "wholesale_price",
    RATE_SPECIAL_1: "special_price_1",
    RATE_SPECIAL_2: "special_price_2",
}


def _price_field(rate_type: str) -> str:
    try:
        return PRICE_FIELDS[rate_type]
    except KeyError:
        raise DomainError(f"Unknown rate type: {rate_type!r}")


# -----------------------------
# Prices
# -----------------------------

def base_unit_price(product: Product, rate_type: str, batch: Optional[Batch] = None) -> float:
    """
    Price of one base unit.

    Preference: the batch's field for the rate type (batches only carry
    retail/wholesale), then the product's field, then the product's retail
    price when that field is unset, then 0.
    """
    name = _price_field(rate_type)
    if batch is not None:
        value = getattr(batch, name, None)
        if value:
            return round2(value)
    value = getattr(product, name)
    if value:
        return round2(value)
    return round2(product.retail_price or 0.0)


def multi_unit_price(mu: MultiUnit, rate_type: str) -> float:
    value = getattr(mu, _price_field(rate_type))
    return round2(value or mu.retail_price or mu.wholesale_price or 0.0)


# -----------------------------
# Options
# -----------------------------

def build_unit_options(
    product: Product,
    rate_type: str,
    batch: Optional[Batch] = None,
) -> list[UnitOption]:
    """Base unit first, then multi-units in catalog order."""
    options = [
        UnitOption(
            unit_id=product.base_unit.unit_id,
            name=product.base_unit.name or "Main",
            conversion=1.0,
            is_multi_unit=False,
            scan_code=product.scan_code,
            price=base_unit_price(product, rate_type, batch),
        )
    ]
    if product.allow_batches:
        return options
    for mu in product.multi_units:
        if mu.unit.unit_id is None:
            continue
        options.append(
            UnitOption(
                unit_id=mu.unit.unit_id,
                name=mu.unit.name or "Unit",
                conversion=float(mu.conversion),
                is_multi_unit=True,
                multi_unit_id=mu.multi_unit_id,
                scan_code=mu.scan_code,
                price=multi_unit_price(mu, rate_type),
            )
        )
    return options


def pick_unit(
    options: list[UnitOption],
    *,
    matched_multi_unit_id: int | None = None,
    scan_code: str | None = None,
) -> UnitOption | None:
    """
    Unit chosen on selection: an explicitly matched multi-unit, else the
    option whose scan code equals the scanned one (base unit checked first),
    else the first option.
    """
    if matched_multi_unit_id is not None:
        for opt in options:
            if opt.is_multi_unit and opt.multi_unit_id == matched_multi_unit_id:
                return opt
    code = (scan_code or "").strip()
    if code:
        for opt in options:
            if not opt.is_multi_unit and (opt.scan_code or "").strip() == code:
                return opt
        for opt in options:
            if opt.is_multi_unit and (opt.scan_code or "").strip() == code:
                return opt
    return options[0] if options else None
