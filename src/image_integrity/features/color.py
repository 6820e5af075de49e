"""Color histogram utilities."""

from __future__ import annotations

import cv2
import numpy as np

from ..io.models import HISTOGRAM_CHANNELS, Histogram, PixelBuffer

_BINS = 256


def luminance_millis(buffer: PixelBuffer) -> np.ndarray:
    """Return luminance ``0.299R + 0.587G + 0.114B`` scaled by 1000 as exact integers."""
    rgb = buffer.pixels[:, :, :3].astype(np.int64)
    return rgb[:, :, 0] * 299 + rgb[:, :, 1] * 587 + rgb[:, :, 2] * 114


def luminance_u8(buffer: PixelBuffer) -> np.ndarray:
    """Return luminance rounded half-up into ``uint8``."""
    rounded = (luminance_millis(buffer) + 500) // 1000
    return np.clip(rounded, 0, 255).astype(np.uint8)


def _channel_histogram(plane: np.ndarray, total: int) -> np.ndarray:
    hist = cv2.calcHist([np.ascontiguousarray(plane)], [0], None, [_BINS], [0, _BINS])
    return hist.flatten().astype(np.float64) / float(total)


def build_histogram(buffer: PixelBuffer) -> Histogram:
    """Return per-channel histograms of *buffer* normalised by pixel count."""
    total = buffer.pixel_count
    pixels = buffer.pixels
    return Histogram(
        red=_channel_histogram(pixels[:, :, 0], total),
        green=_channel_histogram(pixels[:, :, 1], total),
        blue=_channel_histogram(pixels[:, :, 2], total),
        luminance=_channel_histogram(luminance_u8(buffer), total),
    )


def histogram_distance(a: Histogram, b: Histogram) -> float:
    """Return the mean per-channel L1 distance between *a* and *b*.

    Each channel contributes a value in [0, 2], so the result lies in [0, 2].
    """
    total = 0.0
    for name in HISTOGRAM_CHANNELS:
        total += float(np.abs(getattr(a, name) - getattr(b, name)).sum())
    return total / len(HISTOGRAM_CHANNELS)
