"""Numeric helpers shared by the scoring and sizing modules."""

import math


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round to the given decimals with halves rounded up (0.5 -> 1, -2.5 -> -2).

    Python's round() uses banker's rounding, which makes score bands
    flicker on exact .5 values.

    Args:
        value: Number to round
        digits: Decimal places to keep

    Returns:
        Rounded value (int-valued float when digits == 0)
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def to_float(value: object) -> float:
    """
    Coerce a raw field value to float, defaulting to 0.0.

    Missing, empty, non-numeric and non-finite values all become 0.0.
    """
    if value is None or isinstance(value, bool):
        return float(value or 0)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0
