"""Typed errors raised by the image integrity pipeline."""

from __future__ import annotations


class IntegrityError(Exception):
    """Base class for every error surfaced by the scoring pipeline."""


class LoadError(IntegrityError):
    """Raised when image bytes cannot be read or decoded."""

    def __init__(self, name: str, reason: str | None = None) -> None:
        message = f"Failed to load image: {name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.name = name
        self.reason = reason


class InvalidDimensionsError(IntegrityError):
    """Raised when a decoded image has zero width or height."""

    def __init__(self, name: str, width: int, height: int) -> None:
        super().__init__(f"Image {name} has invalid dimensions {width}x{height}")
        self.name = name
        self.width = width
        self.height = height


class UnsupportedFormatError(IntegrityError):
    """Raised by acquisition when a container type is not accepted."""

    def __init__(self, name: str, detected: str | None = None) -> None:
        super().__init__(
            f"Unsupported image format for {name}: {detected or 'unknown'}"
        )
        self.name = name
        self.detected = detected


class ImageTooLargeError(IntegrityError):
    """Raised by acquisition when a payload exceeds the byte ceiling."""

    def __init__(self, name: str, size: int, limit: int) -> None:
        super().__init__(f"Image {name} is {size} bytes, above the {limit} byte limit")
        self.name = name
        self.size = size
        self.limit = limit


class ScoringTimeoutError(IntegrityError):
    """Raised when a scoring call does not finish within its timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Scoring did not finish within {timeout:.2f}s")
        self.timeout = timeout
