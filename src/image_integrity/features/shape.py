"""Shape-driven feature extraction helpers."""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from ..io.models import FeaturePoint, PixelBuffer
from ..numeric import round_half_up
from .color import luminance_millis

MAX_FEATURES = 100
FEATURE_THRESHOLD = 50.0
FEATURE_MATCH_FRACTION = 0.1
_MARGIN = 2
_WINDOW = np.ones((2 * _MARGIN + 1, 2 * _MARGIN + 1), dtype=np.uint8)


def local_contrast(buffer: PixelBuffer) -> np.ndarray:
    """Return the largest absolute luminance difference to the 5x5 neighbourhood.

    Pixels closer than two pixels to any border have no full neighbourhood
    and are reported as 0.
    """
    lum = luminance_millis(buffer).astype(np.float64)
    contrast = np.zeros(lum.shape, dtype=np.float64)
    if buffer.width <= 2 * _MARGIN or buffer.height <= 2 * _MARGIN:
        return contrast

    local_max = cv2.dilate(lum, _WINDOW)
    local_min = cv2.erode(lum, _WINDOW)
    spread = np.maximum(local_max - lum, lum - local_min)
    inner = slice(_MARGIN, -_MARGIN)
    contrast[inner, inner] = spread[inner, inner] / 1000.0
    return contrast


def detect_features(buffer: PixelBuffer, max_features: int = MAX_FEATURES) -> list[FeaturePoint]:
    """Return up to *max_features* corner-like points, strongest first.

    Ties keep row-major scan order.
    """
    if max_features <= 0:
        return []

    contrast = local_contrast(buffer)
    ys, xs = np.nonzero(contrast > FEATURE_THRESHOLD)
    if ys.size == 0:
        return []

    strengths = contrast[ys, xs] / 255.0
    order = np.argsort(-strengths, kind="stable")[:max_features]
    return [
        FeaturePoint(
            x=float(xs[idx]) / buffer.width,
            y=float(ys[idx]) / buffer.height,
            strength=float(strengths[idx]),
        )
        for idx in order
    ]


def feature_preservation_from_sets(
    source_features: Sequence[FeaturePoint],
    derived_features: Sequence[FeaturePoint],
    width: int,
    height: int,
) -> int:
    """Return the share of source features with a derived feature nearby.

    Positions are compared in normalised coordinates against a radius of
    ``FEATURE_MATCH_FRACTION * min(width, height)``.
    """
    if not source_features:
        return 100
    if not derived_features:
        return 0

    radius = FEATURE_MATCH_FRACTION * min(width, height)
    src = np.array([(f.x, f.y) for f in source_features], dtype=np.float64)
    dst = np.array([(f.x, f.y) for f in derived_features], dtype=np.float64)
    deltas = src[:, None, :] - dst[None, :, :]
    distances = np.sqrt((deltas ** 2).sum(axis=2))
    matched = int(np.count_nonzero((distances < radius).any(axis=1)))
    return round_half_up(matched / len(source_features) * 100)


def feature_preservation(source: PixelBuffer, derived: PixelBuffer) -> int:
    return feature_preservation_from_sets(
        detect_features(source), detect_features(derived), source.width, source.height
    )
