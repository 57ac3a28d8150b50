"""Expected value (EV) computation.

EV is the midpoint of a min/max commitment range weighted by a likelihood
percentage, rounded to whole dollars.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def safe_num(value: Any) -> float | None:
    """Coerce a raw field value to a finite number, or None.

    Integral values come back as int so they serialize without a trailing ".0".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def round_half_up(value: float) -> int:
    """Round to the nearest integer, exact .5 ties going away from zero.

    Works on the exact binary value, so 0.49999999999999994 rounds to 0.
    """
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def compute_ev(min_value: Any, max_value: Any, likelihood_pct: Any, zero_as_missing: bool = True) -> int:
    """Compute the rounded expected value from raw min, max and likelihood.

    Args:
        min_value: Lower bound of the range (any type; non-numeric means missing)
        max_value: Upper bound of the range
        likelihood_pct: Probability in percent, clamped to [0, 100]
        zero_as_missing: Treat a zero bound as unset when the other bound is positive

    Returns:
        round(midpoint * likelihood / 100)
    """
    lo = safe_num(min_value)
    hi = safe_num(max_value)

    if zero_as_missing:
        if lo == 0 and hi is not None and hi > 0:
            lo = None
        elif hi == 0 and lo is not None and lo > 0:
            hi = None

    if lo is not None and hi is not None:
        midpoint = (lo + hi) / 2
    elif lo is not None:
        midpoint = lo
    elif hi is not None:
        midpoint = hi
    else:
        midpoint = 0

    pct = safe_num(likelihood_pct)
    if pct is None:
        pct = 0
    probability = max(0, min(100, pct)) / 100

    return round_half_up(midpoint * probability)
