import pytest

from order_entry.utils.helpers import fmt_money, fmt_qty, round2, round_down, round_half_up
from order_entry.utils.validators import parse_numeric_input


@pytest.mark.parametrize("raw,expected", [
    ("", 0.0), ("-", 0.0), (".", 0.0), (".5", 0.5), ("1,250.75", 1250.75),
    (" 3 ", 3.0), ("abc", 0.0), (None, 0.0), ("-2", -2.0),
    ("nan", 0.0), ("inf", 0.0), ("-Infinity", 0.0), ("1e999", 0.0), ("1e3", 1000.0),
])
def test_parse_numeric_input(raw, expected):
    assert parse_numeric_input(raw) == expected


def test_round_down_truncates():
    assert round_down(2.99999, 4) == 2.9999
    assert round_down(10 / 3, 4) == 3.3333
    assert round_down(-1.23456, 2) == -1.23


def test_round_half_up_places():
    assert round_half_up(0.00005, 4) == 0.0001
    assert round_half_up(3.49999, 4) == 3.5


def test_formatting():
    assert fmt_money(1234.5) == "1,234.50"
    assert fmt_money("x") == "x"
    assert fmt_money("x", sentinel="N/A") == "N/A"
    with pytest.raises(ValueError):
        fmt_money("x", strict=True)
    assert fmt_qty(2.0) == "2"
    assert fmt_qty(0.3333) == "0.3333"


@pytest.mark.parametrize("bad", [float("inf"), float("-inf"), float("nan"), "1e999", "abc"])
def test_rounding_rejects_non_numbers(bad):
    with pytest.raises(ValueError):
        round2(bad)
    with pytest.raises(ValueError):
        round_down(bad, 4)
