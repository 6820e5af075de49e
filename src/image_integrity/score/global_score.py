"""Global (color and tone) score between two normalised buffers."""

from __future__ import annotations

import logging

from ..features.color import build_histogram, histogram_distance
from ..io.models import PixelBuffer
from ..numeric import clamp, round_half_up

logger = logging.getLogger(__name__)


def score_from_distance(distance: float) -> int:
    """Map a histogram distance onto the 0-100 Global scale.

    The distance can reach 2.0, which the clamp saturates at 0; the scale is
    therefore only calibrated for distances up to 1.0.
    """
    return round_half_up(clamp(100.0 - distance * 100.0, 0.0, 100.0))


def global_distance(a: PixelBuffer, b: PixelBuffer) -> float:
    return histogram_distance(build_histogram(a), build_histogram(b))


def global_score(a: PixelBuffer, b: PixelBuffer) -> int:
    """Return the Global score of *b* relative to *a* (100 means no tonal change)."""
    distance = global_distance(a, b)
    score = score_from_distance(distance)
    logger.debug("Histogram distance %.4f -> global score %d", distance, score)
    return score
