"""Data models shared across the integrity scoring pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple

import numpy as np

from ..errors import InvalidDimensionsError

HISTOGRAM_CHANNELS: Tuple[str, ...] = ("red", "green", "blue", "luminance")


@dataclass(frozen=True, slots=True, eq=False)
class PixelBuffer:
    """Read-only RGBA pixels of shape ``(height, width, 4)``."""

    width: int
    height: int
    pixels: np.ndarray
    name: str = ""

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionsError(self.name or "<buffer>", self.width, self.height)

        pixels = np.array(self.pixels, dtype=np.uint8, copy=True, order="C")
        if pixels.shape != (self.height, self.width, 4):
            raise ValueError(
                f"Pixel array shape {pixels.shape} does not match "
                f"{self.width}x{self.height} RGBA"
            )
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_array(cls, array: np.ndarray, name: str = "") -> "PixelBuffer":
        """Build a buffer from an ``(H, W, 4)`` array, or ``(H, W, 3)`` RGB with opaque alpha."""
        array = np.asarray(array, dtype=np.uint8)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError("Expected an (H, W, 3) or (H, W, 4) uint8 array")
        height, width = int(array.shape[0]), int(array.shape[1])
        if array.shape[2] == 3 and height and width:
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        return cls(width=width, height=height, pixels=array, name=name)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def tobytes(self) -> bytes:
        """Return the interleaved RGBA samples, ``width * height * 4`` bytes long."""
        return self.pixels.tobytes()


@dataclass(frozen=True, slots=True, eq=False)
class Histogram:
    """Normalised 256-bucket histograms for R, G, B and luminance."""

    red: np.ndarray
    green: np.ndarray
    blue: np.ndarray
    luminance: np.ndarray

    def channels(self) -> Iterator[Tuple[str, np.ndarray]]:
        for name in HISTOGRAM_CHANNELS:
            yield name, getattr(self, name)


@dataclass(frozen=True, slots=True)
class FeaturePoint:
    """A corner-like location with normalised position and strength."""

    x: float
    y: float
    strength: float


@dataclass(slots=True)
class ComponentScores:
    """Intermediate measurements behind the two headline scores."""

    histogram_distance: float
    hash_similarity: int
    edge_preservation: int
    feature_preservation: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "histogram_distance": self.histogram_distance,
            "hash_similarity": self.hash_similarity,
            "edge_preservation": self.edge_preservation,
            "feature_preservation": self.feature_preservation,
        }


@dataclass(slots=True)
class ReportMetadata:
    """Names of the compared images and when the comparison ran."""

    source_name: str
    derived_name: str
    timestamp: str


@dataclass(slots=True)
class ScoreReport:
    """Result of a single integrity scoring call."""

    global_score: int
    structural_score: int
    composite_label: str
    explanation: str
    metadata: ReportMetadata
    components: ComponentScores | None = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the report in its published JSON shape."""
        payload: Dict[str, Any] = {
            "global": self.global_score,
            "structural": self.structural_score,
            "score": self.composite_label,
            "explanation": self.explanation,
            "metadata": {
                "sourceFile": self.metadata.source_name,
                "finalFile": self.metadata.derived_name,
                "timestamp": self.metadata.timestamp,
            },
        }
        if self.components is not None:
            payload["components"] = self.components.as_dict()
        return payload
