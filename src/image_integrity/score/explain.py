"""Human-readable interpretation of Global and Structural scores."""

from __future__ import annotations

from typing import Sequence, Tuple

BAND_THRESHOLDS: Tuple[int, int, int, int] = (95, 85, 70, 50)

GLOBAL_BAND_TEXT: Tuple[str, ...] = (
    "Minimal color/tone adjustments detected.",
    "Light color/tone adjustments detected.",
    "Moderate color/tone adjustments detected.",
    "Significant color/tone adjustments detected.",
    "Heavy color/tone adjustments detected.",
)

STRUCTURAL_BAND_TEXT: Tuple[str, ...] = (
    "Original content fully preserved.",
    "Minor content modifications detected.",
    "Some content manipulation detected.",
    "Moderate content manipulation detected.",
    "Significant content manipulation or compositing detected.",
)


def band_index(score: int, thresholds: Sequence[int] = BAND_THRESHOLDS) -> int:
    """Return the index of the first threshold *score* meets, or ``len(thresholds)``."""
    for index, threshold in enumerate(thresholds):
        if score >= threshold:
            return index
    return len(thresholds)


def describe_global(score: int) -> str:
    return GLOBAL_BAND_TEXT[band_index(score)]


def describe_structural(score: int) -> str:
    return STRUCTURAL_BAND_TEXT[band_index(score)]


def generate_explanation(global_score: int, structural_score: int) -> str:
    return f"{describe_global(global_score)} {describe_structural(structural_score)}"


def composite_label(global_score: int, structural_score: int) -> str:
    return f"G{global_score}/S{structural_score}"
