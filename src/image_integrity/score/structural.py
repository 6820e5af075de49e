"""Structural (content and layout) score between two normalised buffers."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping

from ..features.edges import edge_preservation
from ..features.perceptual import buffer_hash_similarity
from ..features.shape import feature_preservation
from ..io.models import PixelBuffer
from ..numeric import clamp, clamp_score

logger = logging.getLogger(__name__)

STRUCTURAL_WEIGHTS: Dict[str, float] = {
    "hash_similarity": 0.4,
    "edge_preservation": 0.3,
    "feature_preservation": 0.3,
}

STRUCTURAL_ANALYSES: Dict[str, Callable[[PixelBuffer, PixelBuffer], int]] = {
    "hash_similarity": buffer_hash_similarity,
    "edge_preservation": edge_preservation,
    "feature_preservation": feature_preservation,
}


def combine_components(components: Mapping[str, float]) -> int:
    """Return the weighted structural score for the sub-analysis results.

    Each component is clamped to 0-100 before weighting and the rounded sum
    is clamped again.
    """
    missing = [key for key in STRUCTURAL_WEIGHTS if key not in components]
    if missing:
        raise KeyError(f"Missing structural components: {', '.join(missing)}")

    score = 0.0
    for key, weight in STRUCTURAL_WEIGHTS.items():
        score += weight * clamp(float(components[key]))
    return clamp_score(score)


def structural_components(a: PixelBuffer, b: PixelBuffer) -> Dict[str, int]:
    return {key: analysis(a, b) for key, analysis in STRUCTURAL_ANALYSES.items()}


def structural_score(a: PixelBuffer, b: PixelBuffer) -> int:
    """Return the Structural score of *b* relative to *a* (100 means unchanged)."""
    components = structural_components(a, b)
    score = combine_components(components)
    logger.debug("Structural components %s -> %d", components, score)
    return score
