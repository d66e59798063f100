"""Generic feasibility formulas — stateless, no scenario knowledge."""

from __future__ import annotations

import math


def safe_num(value, default: float = 0.0) -> float:
    """Coerce any input to a finite float. Missing, non-numeric, NaN and inf -> default."""
    if value is None:
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(num):
        return default
    return num


def safe_div(numerator: float, denominator: float) -> float | None:
    """Ratio, or None when the denominator is zero or non-finite."""
    den = safe_num(denominator)
    if den == 0:
        return None
    return safe_num(numerator) / den


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, safe_num(value)))


def nonneg(value) -> float:
    """Nonnegative finite float (negative entries count as 0)."""
    return max(0.0, safe_num(value))


def inflation_factors(rate_y2: float, rate_y3: float) -> dict[str, float]:
    """Year multipliers from two fractional annual rates (0.08 = 8%).

    Y1 is always 1. Rates are not clamped: a rate <= -100% yields a
    nonpositive factor, which downstream treats as a valid multiplier.
    """
    f2 = 1.0 + safe_num(rate_y2)
    f3 = f2 * (1.0 + safe_num(rate_y3))
    return {"y1": 1.0, "y2": f2, "y3": f3}


def ceil_div(numerator: float, denominator: float) -> int | None:
    """Whole units needed to cover numerator at denominator per unit."""
    den = safe_num(denominator)
    if den <= 0:
        return None
    return int(math.ceil(safe_num(numerator) / den))
