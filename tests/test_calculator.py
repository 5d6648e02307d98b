import pytest

from order_entry.constants import TAX_EXCLUSIVE, TAX_INCLUSIVE
from order_entry.modules.pricing import compute_line, split_tax
from order_entry.modules.pricing.calculator import (
    EDITED_AMOUNT,
    EDITED_PERCENT,
    discount_amount_from_percent,
    discount_percent_from_amount,
    gross_of,
)
from order_entry.utils.helpers import round2


def test_ten_percent_off_inclusive():
    r = compute_line(2, 100, discount_percent=10, edited=EDITED_PERCENT, tax_mode=TAX_INCLUSIVE)
    assert r.gross == 200.00
    assert r.discount_amount == 20.00
    assert r.net == 180.00
    assert r.vat_amount == 8.57
    assert r.total == 180.00


def test_ten_percent_off_exclusive():
    r = compute_line(2, 100, discount_percent=10, edited=EDITED_PERCENT, tax_mode=TAX_EXCLUSIVE)
    assert r.vat_amount == 9.00
    assert r.total == 189.00


def test_vat_off_total_is_net():
    r = compute_line(3, 10, discount_amount=5, edited=EDITED_AMOUNT,
                     tax_mode=TAX_EXCLUSIVE, vat_applies=False)
    assert r.vat_amount == 0
    assert r.total == 25.00
    assert r.discount_percent == pytest.approx(16.67)


def test_non_discount_edit_keeps_amount():
    # quantity went from 2 to 4; the typed amount stays, percent is not re-derived
    r = compute_line(4, 100, discount_percent=10, discount_amount=20)
    assert r.gross == 400.00
    assert r.discount_amount == 20.00
    assert r.discount_percent == 10.00
    assert r.net == 380.00


def test_percent_from_amount_with_zero_gross():
    assert discount_percent_from_amount(0, 5) == 0.0
    r = compute_line(0, 100, discount_amount=5, edited=EDITED_AMOUNT)
    assert r.discount_percent == 0.0


@pytest.mark.parametrize("gross", [1, 7.5, 45.9, 120, 199.99])
@pytest.mark.parametrize("pct", [0, 2.5, 10, 33.33, 100])
def test_discount_forms_agree(gross, pct):
    amt = discount_amount_from_percent(gross, pct)
    back = discount_percent_from_amount(gross, amt)
    assert abs(discount_amount_from_percent(gross, back) - amt) <= 0.01 + 1e-9


def test_inclusive_vat_is_inside_total():
    vat, total = split_tax(105, TAX_INCLUSIVE, True)
    assert (vat, total) == (5.00, 105.00)


def test_exclusive_vat_added_on_top():
    vat, total = split_tax(100, TAX_EXCLUSIVE, True)
    assert (vat, total) == (5.00, 105.00)


def test_unknown_tax_mode_raises():
    with pytest.raises(ValueError):
        split_tax(10, "sideways", True)


def test_rounding_is_half_up():
    assert gross_of(1, 1.005) == 1.01
    assert round2(2.675) == 2.68
    assert round2(-1.005) == -1.01
