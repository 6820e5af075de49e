"""Container and size checks applied before images reach the scoring core."""

from __future__ import annotations

import io
import logging
from dataclasses import replace
from typing import Any

from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from ..errors import ImageTooLargeError, UnsupportedFormatError
from .fetch import DEFAULT_MAX_BYTES, ImageSource

logger = logging.getLogger(__name__)

ImageInfo = dict[str, Any]

ACCEPTED_FORMATS = frozenset({"JPEG", "PNG", "TIFF", "BMP", "WEBP", "GIF"})
# Multi-picture JPEGs (stereo and Ultra HDR captures) decode through their first frame.
FORMAT_ALIASES = {"MPO": "JPEG"}

ACCEPTED_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "tif", "tiff", "bmp", "webp", "gif"}
)
ACCEPTED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/tiff",
        "image/bmp",
        "image/webp",
        "image/gif",
    }
)


def sniff_image_info(image_bytes: bytes) -> ImageInfo | None:
    """Inspect the header of *image_bytes* and return basic metadata if recognised.

    Only the container header is parsed; pixel data is not decoded.
    """
    if not image_bytes:
        return None
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            width, height = image.size
            fmt = FORMAT_ALIASES.get(image.format or "", image.format)
            return {
                "width": width,
                "height": height,
                "has_alpha": _has_alpha_channel(image),
                "mime": Image.MIME.get(fmt or ""),
                "format": fmt,
            }
    except (UnidentifiedImageError, DecompressionBombError, OSError, SyntaxError, ValueError):
        logger.debug("Unable to sniff image metadata", exc_info=True)
    return None


def extension_of(name: str) -> str | None:
    filename = name.rsplit("/", 1)[-1]
    if "." not in filename:
        return None
    ext = filename.rsplit(".", 1)[-1].lower()
    return ext or None


def validate_image_source(
    source: ImageSource, max_bytes: int = DEFAULT_MAX_BYTES
) -> ImageSource:
    """Check *source* against the byte ceiling and the accepted containers.

    Returns the source with its MIME type filled in from the sniffed header
    when one was recognised. Raises ``ImageTooLargeError`` or
    ``UnsupportedFormatError``.
    """
    size = len(source.data)
    if size > max_bytes:
        raise ImageTooLargeError(source.name, size, max_bytes)

    info = sniff_image_info(source.data)
    if info is not None:
        detected = info.get("format")
        if detected not in ACCEPTED_FORMATS:
            raise UnsupportedFormatError(source.name, detected)
        mime = info.get("mime") or source.mime
        return replace(source, mime=mime) if mime != source.mime else source

    # Unrecognised headers still pass when the name or MIME type claims an
    # accepted container; the decoder then reports the payload as corrupt.
    ext = extension_of(source.name)
    if ext in ACCEPTED_EXTENSIONS or (source.mime or "") in ACCEPTED_MIME_TYPES:
        return source
    raise UnsupportedFormatError(source.name, ext or source.mime)


def _has_alpha_channel(image: Image.Image) -> bool:
    bands = image.getbands()
    if not bands:
        return False
    if "A" in bands:
        return True
    if image.mode in {"P", "L"}:
        return image.info.get("transparency") is not None
    return False
