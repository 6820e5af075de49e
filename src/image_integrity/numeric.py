"""Small numeric helpers shared by the scoring stages."""

from __future__ import annotations

import math


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going towards positive infinity."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Return *value* rounded half-up and clamped into the 0-100 score range."""
    return int(clamp(round_half_up(value), 0, 100))
