"""Image Integrity Index: Global and Structural similarity of an edit to its source."""

from __future__ import annotations

from .errors import (
    ImageTooLargeError,
    IntegrityError,
    InvalidDimensionsError,
    LoadError,
    ScoringTimeoutError,
    UnsupportedFormatError,
)
from .io.models import ComponentScores, PixelBuffer, ReportMetadata, ScoreReport
from .score.engine import (
    compute_integrity_score,
    compute_integrity_score_from_paths,
    score_buffers,
)

__all__ = [
    "ComponentScores",
    "ImageTooLargeError",
    "IntegrityError",
    "InvalidDimensionsError",
    "LoadError",
    "PixelBuffer",
    "ReportMetadata",
    "ScoreReport",
    "ScoringTimeoutError",
    "UnsupportedFormatError",
    "compute_integrity_score",
    "compute_integrity_score_from_paths",
    "score_buffers",
]

__version__ = "0.1.0"
