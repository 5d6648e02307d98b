# utils/validators.py
import math
import re


# ---- Numeric parsing ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)

    ok == False means parsing failed and value is None.
    """
    try:
        return True, float(x)
    except (TypeError, ValueError):
        return False, None


def parse_numeric_input(raw) -> float:
    """
    Lenient parse for text typed into a grid cell.

    Accepts partial input the operator may leave behind while typing:
    '' and '-' read as 0, '.5' reads as 0.5, thousands separators are ignored.
    Anything still unparseable reads as 0, as do 'nan', 'inf' and exponents
    that overflow a float.
    """
    if raw is None:
        return 0.0
    text = re.sub(r"[,\s]", "", str(raw))
    if text in ("", "-", ".", "-."):
        return 0.0
    if text.startswith("."):
        text = "0" + text
    ok, val = try_parse_float(text)
    if not ok or not math.isfinite(val):
        return 0.0
    return float(val)
