# datadash/utils/numeric.py
from __future__ import annotations

import math
from typing import Optional, Union

Number = Union[int, float]


def coerce_float(value) -> Optional[float]:
    """
    Best-effort float conversion that returns None when the value cannot be parsed
    or is not finite (NaN/inf never count as a number here).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def coerce_int(value) -> Optional[int]:
    """
    Integer conversion for ids: accepts ints and integral numeric strings/floats.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    num = coerce_float(value)
    if num is None or not num.is_integer():
        return None
    return int(num)


def safe_divide(numerator, denominator, default: float = 0.0) -> float:
    """
    Divide while guarding against None/zero denominators.
    """
    if numerator is None or denominator in (None, 0):
        return default
    return float(numerator) / float(denominator)


__all__ = ["coerce_float", "coerce_int", "safe_divide"]
