"""Decode encoded images into pixel buffers and bring pairs to a common size."""

from __future__ import annotations

import logging
from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from ..errors import InvalidDimensionsError, LoadError
from ..io.models import PixelBuffer

logger = logging.getLogger(__name__)


def _resample_filter() -> int:
    resample_attr = getattr(Image, "Resampling", None)
    resample_filter = getattr(resample_attr, "BILINEAR", None) if resample_attr else None
    if resample_filter is None:
        resample_filter = Image.BILINEAR
    return resample_filter


def to_pixel_buffer(img: Image.Image, name: str = "") -> PixelBuffer:
    """Return a read-only RGBA buffer holding the pixels of *img*.

    Integer modes (``I``, ``I;16`` and friends, as produced by 16-bit PNGs)
    are reduced to 8-bit gray by dropping the low byte.
    """
    width, height = img.size
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(name or "<image>", width, height)

    if img.mode.startswith("I"):
        samples = np.asarray(img).astype(np.int64) >> 8
        img = Image.fromarray(np.clip(samples, 0, 255).astype(np.uint8))
    rgba = img.convert("RGBA") if img.mode != "RGBA" else img
    return PixelBuffer(width=width, height=height, pixels=np.asarray(rgba), name=name)


def decode_image(image_bytes: bytes, name: str) -> PixelBuffer:
    """Decode *image_bytes* into an RGBA buffer, raising ``LoadError`` on failure."""
    if not image_bytes:
        raise LoadError(name, "empty payload")

    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.load()
            buffer = to_pixel_buffer(img, name)
    except (UnidentifiedImageError, DecompressionBombError) as exc:
        raise LoadError(name, str(exc)) from exc
    except (OSError, SyntaxError, ValueError, EOFError) as exc:
        raise LoadError(name, f"corrupt image data: {exc}") from exc

    logger.debug("Decoded %s as %dx%d", name, buffer.width, buffer.height)
    return buffer


def resample(buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """Return *buffer* resized to *width* x *height* with the shared filter.

    A fresh image is allocated per call, so the result never shares memory
    with *buffer*.
    """
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(buffer.name or "<buffer>", width, height)

    if (width, height) == buffer.size:
        return PixelBuffer(width=width, height=height, pixels=buffer.pixels, name=buffer.name)

    scratch = Image.fromarray(np.array(buffer.pixels))
    try:
        resized = scratch.resize((width, height), _resample_filter())
        try:
            return PixelBuffer(
                width=width, height=height, pixels=np.asarray(resized), name=buffer.name
            )
        finally:
            resized.close()
    finally:
        scratch.close()


def normalize(source: PixelBuffer, derived: PixelBuffer) -> tuple[PixelBuffer, PixelBuffer]:
    """Resize both buffers to the smaller width and the smaller height.

    Images are only ever downscaled; upscaling would invent detail and bias
    the structural comparison.
    """
    width = min(source.width, derived.width)
    height = min(source.height, derived.height)
    if (width, height) != source.size or (width, height) != derived.size:
        logger.debug(
            "Normalising %s (%dx%d) and %s (%dx%d) to %dx%d",
            source.name,
            source.width,
            source.height,
            derived.name,
            derived.width,
            derived.height,
            width,
            height,
        )
    return resample(source, width, height), resample(derived, width, height)


def load_pair(
    source_bytes: bytes, derived_bytes: bytes, source_name: str, derived_name: str
) -> tuple[PixelBuffer, PixelBuffer]:
    """Decode and normalise a source/derived pair in one step."""
    source = decode_image(source_bytes, source_name)
    derived = decode_image(derived_bytes, derived_name)
    return normalize(source, derived)
