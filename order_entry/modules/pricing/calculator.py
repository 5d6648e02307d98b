"""
pricing/calculator.py

Pure line arithmetic: gross, the two reciprocal discount forms, VAT split
and line total. Every result is rounded to 2 dp, half-up.

Do not import repos or Qt here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ...constants import VAT_RATE, TAX_INCLUSIVE, TAX_EXCLUSIVE
from ...utils.helpers import round2

__all__ = [
    "EDITED_PERCENT",
    "EDITED_AMOUNT",
    "LineAmounts",
    "gross_of",
    "discount_amount_from_percent",
    "discount_percent_from_amount",
    "split_tax",
    "compute_line",
]

EDITED_PERCENT = "percent"
EDITED_AMOUNT = "amount"


@dataclass(frozen=True)
class LineAmounts:
    gross: float
    discount_percent: float
    discount_amount: float
    net: float
    vat_amount: float
    total: float


# -----------------------------
# Core formulas
# -----------------------------

def gross_of(quantity: float, price: float) -> float:
    return round2(float(quantity) * float(price))


def discount_amount_from_percent(gross: float, percent: float) -> float:
    return round2(float(gross) * float(percent) / 100.0)


def discount_percent_from_amount(gross: float, amount: float) -> float:
    """Percent equivalent of an amount; 0 when there is nothing to discount."""
    if gross <= 0:
        return 0.0
    return round2(float(amount) / float(gross) * 100.0)


def split_tax(
    net: float,
    tax_mode: str,
    vat_applies: bool,
    rate: float = VAT_RATE,
) -> Tuple[float, float]:
    """
    Returns (vat_amount, total) for a net amount.

    inclusive: the VAT is already inside `net`, total == net.
    exclusive: VAT is added on top.
    """
    if not vat_applies:
        return 0.0, round2(net)
    if tax_mode == TAX_INCLUSIVE:
        return round2(net * rate / (100.0 + rate)), round2(net)
    if tax_mode == TAX_EXCLUSIVE:
        vat = round2(net * rate / 100.0)
        return vat, round2(net + vat)
    raise ValueError(f"Unknown tax mode: {tax_mode!r}")


# -----------------------------
# Whole line
# -----------------------------

def compute_line(
    quantity: float,
    price: float,
    *,
    discount_percent: float = 0.0,
    discount_amount: float = 0.0,
    edited: Optional[str] = None,
    tax_mode: str = TAX_INCLUSIVE,
    vat_applies: bool = True,
    rate: float = VAT_RATE,
) -> LineAmounts:
    """
    Recompute a line after one field changed.

    `edited` names the discount field the operator just typed into. The other
    form is derived from it. For any other edit (quantity, price, unit,
    tax settings) the discount amount carries over unchanged and the percent
    is left as it was.
    """
    gross = gross_of(quantity, price)
    pct = float(discount_percent or 0.0)
    amt = float(discount_amount or 0.0)
    if edited == EDITED_PERCENT:
        amt = discount_amount_from_percent(gross, pct)
    elif edited == EDITED_AMOUNT:
        pct = discount_percent_from_amount(gross, amt)
    net = round2(gross - amt)
    vat, total = split_tax(net, tax_mode, vat_applies, rate)
    return LineAmounts(
        gross=gross,
        discount_percent=round2(pct),
        discount_amount=round2(amt),
        net=net,
        vat_amount=vat,
        total=total,
    )
