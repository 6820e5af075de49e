"""Sobel edge maps and the edge-preservation measure."""

from __future__ import annotations

import cv2
import numpy as np

from ..io.models import PixelBuffer
from ..numeric import round_half_up
from .color import luminance_millis

EDGE_THRESHOLD = 0.5
EDGE_MATCH_TOLERANCE = 0.3


def edge_map(buffer: PixelBuffer) -> np.ndarray:
    """Return per-pixel gradient magnitude in [0, 1] with a zeroed border ring.

    Gradients come from 3x3 Sobel kernels on luminance and are scaled by
    1/255 before clamping.
    """
    lum = luminance_millis(buffer).astype(np.float64)
    edges = np.zeros(lum.shape, dtype=np.float64)
    if buffer.width < 3 or buffer.height < 3:
        return edges

    grad_x = cv2.Sobel(lum, cv2.CV_64F, 1, 0, ksize=3)
    grad_y = cv2.Sobel(lum, cv2.CV_64F, 0, 1, ksize=3)
    magnitude = np.sqrt(grad_x * grad_x + grad_y * grad_y) / (255.0 * 1000.0)
    edges[1:-1, 1:-1] = np.minimum(1.0, magnitude[1:-1, 1:-1])
    return edges


def edge_preservation_from_maps(source_edges: np.ndarray, derived_edges: np.ndarray) -> int:
    """Return the share of source edge pixels still present in *derived_edges*."""
    if source_edges.shape != derived_edges.shape:
        raise ValueError("Edge maps must have identical shapes")

    is_edge = source_edges > EDGE_THRESHOLD
    total_edges = int(np.count_nonzero(is_edge))
    if total_edges == 0:
        return 100

    matching = np.abs(source_edges - derived_edges) < EDGE_MATCH_TOLERANCE
    matching_edges = int(np.count_nonzero(is_edge & matching))
    return round_half_up(matching_edges / total_edges * 100)


def edge_preservation(source: PixelBuffer, derived: PixelBuffer) -> int:
    return edge_preservation_from_maps(edge_map(source), edge_map(derived))
