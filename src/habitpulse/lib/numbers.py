"""Rounding helpers shared by statistics code."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def round_one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def percent(part: int, whole: int) -> int:
    """``round(part / whole * 100)``, or 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


__all__ = ["percent", "round_half_up", "round_one_decimal"]
