from __future__ import annotations

import math
from typing import Optional, Sequence

NEUTRAL_POSITION = 0.5


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def is_number(value) -> bool:
    """True for finite real numbers (bools excluded)."""
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except (TypeError, ValueError, OverflowError):
        return False


def normalize_position(value) -> float:
    """
    Clamp a raw tracking coordinate into [0, 1].

    Anything that is not a finite number (None, NaN, strings, ...) becomes the
    neutral default 0.5. Never raises.
    """
    if not is_number(value):
        return NEUTRAL_POSITION
    return clamp(float(value), 0.0, 1.0)


def map_range(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    """
    Linearly map `value` from [in_min, in_max] to [out_min, out_max].

    The input is clamped to the input range first. A degenerate input range maps
    everything to `out_min`.
    """
    if in_min == in_max:
        return out_min
    lo, hi = min(in_min, in_max), max(in_min, in_max)
    v = clamp(value, lo, hi)
    return (v - in_min) * (out_max - out_min) / (in_max - in_min) + out_min


def distance(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """Euclidean distance between two (x, y[, z]) points using x and y only."""
    if a is None or b is None or len(a) < 2 or len(b) < 2:
        return math.inf
    if not all(is_number(c) for c in (a[0], a[1], b[0], b[1])):
        return math.inf
    return math.hypot(a[0] - b[0], a[1] - b[1])


def db_to_gain(decibels: float) -> float:
    return 10.0 ** (decibels / 20.0)
