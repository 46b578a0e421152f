# utils/validators.py
import math


def non_empty(text) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)

    ok == False means parsing failed (or gave nan/inf) and value is None.
    """
    if isinstance(x, bool):
        return False, None
    try:
        value = float(x)
    except (TypeError, ValueError):
        return False, None
    if not math.isfinite(value):
        return False, None
    return True, value


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)


def is_positive_whole_number(x) -> bool:
    """
    True iff x parses to a whole number >= 1 (quantities: 3, 3.0 and "3" pass; 2.5 fails).
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 1 and float(val).is_integer())
