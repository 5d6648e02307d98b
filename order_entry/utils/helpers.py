# utils/helpers.py
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, InvalidOperation
import logging
from typing import Union, Optional

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)


def _to_decimal(v: NumberLike) -> Decimal:
    # str() first so binary float noise (e.g. 1.005 -> 1.00499...) does not leak in
    try:
        d = Decimal(str(v))
    except InvalidOperation as e:
        raise ValueError(f"Could not parse {v!r} as a number.") from e
    if not d.is_finite():
        raise ValueError(f"{v!r} is not a finite number.")
    return d


def round2(v: NumberLike) -> float:
    """Round to 2 decimal places, half away from zero (1.005 -> 1.01)."""
    return round_half_up(v, 2)


def round_half_up(v: NumberLike, places: int) -> float:
    q = Decimal(1).scaleb(-places)
    try:
        return float(_to_decimal(v).quantize(q, rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"Could not round {v!r} to {places} places.") from e


def round_down(v: NumberLike, places: int) -> float:
    """
    Truncate toward zero at `places` decimals.

    Used for the maximum transactable quantity so a capped quantity never
    converts back to more pieces than are available.
    """
    q = Decimal(1).scaleb(-places)
    try:
        return float(_to_decimal(v).quantize(q, rounding=ROUND_DOWN))
    except InvalidOperation as e:
        raise ValueError(f"Could not round {v!r} to {places} places.") from e


def fmt_money(
    v: NumberLike,
    places: int = 2,
    *,
    strict: bool = False,
    sentinel: Optional[str] = None,
) -> str:
    """
    Format a number as money with thousands separators and a fixed number of decimals.

    Behavior on parse failure:
      - By default (strict=False, sentinel=None), returns str(v).
      - If `sentinel` is provided (e.g., "N/A"), returns that sentinel instead.
      - If `strict=True`, raises ValueError on parse failures.
    """
    try:
        x = float(v)
    except Exception as e:
        _log.debug("fmt_money: failed to parse %r as float: %s", v, e)
        if strict:
            raise ValueError(f"Could not parse {v!r} as a number.") from e
        return str(sentinel) if sentinel is not None else str(v)
    return f"{x:,.{places}f}"


def fmt_qty(v: NumberLike) -> str:
    """Compact quantity text: 2 -> '2', 2.5 -> '2.5', 0.3333 -> '0.3333'."""
    try:
        return f"{float(v):g}"
    except (TypeError, ValueError):
        return str(v)
