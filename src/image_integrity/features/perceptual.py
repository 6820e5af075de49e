"""Perceptual hash of an image's coarse luminance layout."""

from __future__ import annotations

from typing import Union

import imagehash
import numpy as np

from ..extract.normalize import resample
from ..io.models import PixelBuffer
from ..numeric import clamp_score
from .color import luminance_millis

HASH_SIZE = 8

# Hashes may also be given in their hex form, ``str(hash)``.
HashLike = Union[imagehash.ImageHash, str]


def average_luminance_hash(buffer: PixelBuffer, hash_size: int = HASH_SIZE) -> imagehash.ImageHash:
    """Return a ``hash_size**2``-bit hash, one bit per reduced-grid cell.

    The buffer is reduced with the same filter used for normalisation; a bit
    is set when the cell's luminance is strictly above the grid mean.
    """
    if hash_size <= 0:
        raise ValueError("hash_size must be a positive integer")

    # Integer luminance keeps the comparison with the mean exact.
    grid = luminance_millis(resample(buffer, hash_size, hash_size))
    bits = grid * grid.size > grid.sum()
    return imagehash.ImageHash(np.asarray(bits, dtype=bool))


def hamming_distance(h1: HashLike, h2: HashLike) -> int:
    """Return the number of differing bits between two hashes (objects or hex strings)."""
    hash_1 = _coerce_hash(h1)
    hash_2 = _coerce_hash(h2)
    if hash_1.hash.shape != hash_2.hash.shape:
        raise ValueError("Hashes must have the same length")
    return int(hash_1 - hash_2)


def hash_similarity(h1: HashLike, h2: HashLike) -> int:
    """Return ``100 * (1 - hamming / bits)`` rounded and clamped to 0-100.

    Either argument may be an ``ImageHash`` or its hex string, so hashes
    persisted from an earlier run can be compared with fresh ones.
    """
    bits = _coerce_hash(h1).hash.size
    distance = hamming_distance(h1, h2)
    return clamp_score(100 - (distance / bits * 100))


def buffer_hash_similarity(a: PixelBuffer, b: PixelBuffer) -> int:
    return hash_similarity(average_luminance_hash(a), average_luminance_hash(b))


def _coerce_hash(value: HashLike) -> imagehash.ImageHash:
    if isinstance(value, imagehash.ImageHash):
        return value
    if not isinstance(value, str):
        raise TypeError("Hash values must be ImageHash instances or hex strings")
    stripped = value.strip().lower()
    stripped = stripped[2:] if stripped.startswith("0x") else stripped
    return imagehash.hex_to_hash(stripped)
