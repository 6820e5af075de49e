from io import BytesIO

import numpy as np
import pytest
from PIL import Image, ImageDraw

BACKGROUND = 40
PATCH_BOX = (150, 100, 250, 200)
CIRCLE_BOX = (124, 74, 276, 226)


def _encode(array: np.ndarray, fmt: str = "PNG") -> bytes:
    buffer = BytesIO()
    Image.fromarray(np.asarray(array, dtype=np.uint8)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def encode_png():
    return _encode


@pytest.fixture
def solid():
    def _solid(width: int, height: int, value: int = 128) -> np.ndarray:
        return np.full((height, width, 3), value, dtype=np.uint8)

    return _solid


@pytest.fixture
def gradient():
    """256x64 gray ramp where column x has value x, optionally brightened."""

    def _gradient(offset: int = 0) -> np.ndarray:
        ramp = np.clip(np.arange(256, dtype=np.int32) + offset, 0, 255).astype(np.uint8)
        plane = np.tile(ramp, (64, 1))
        return np.stack([plane, plane, plane], axis=2)

    return _gradient


@pytest.fixture
def patch_scene():
    """400x300 dark background with a 100x100 black/white checkerboard in the middle."""
    scene = np.full((300, 400, 3), BACKGROUND, dtype=np.uint8)
    left, top, right, bottom = PATCH_BOX
    ys, xs = np.mgrid[top:bottom, left:right]
    checker = (((ys // 10) + (xs // 10)) % 2 * 255).astype(np.uint8)
    scene[top:bottom, left:right] = checker[:, :, None]
    return scene


@pytest.fixture
def with_circle():
    """Return a copy of an array with a filled circle covering ~15% of 400x300."""

    def _with_circle(array: np.ndarray, fill=(220, 40, 40)) -> np.ndarray:
        img = Image.fromarray(array.copy())
        ImageDraw.Draw(img).ellipse(CIRCLE_BOX, fill=tuple(fill))
        return np.asarray(img).copy()

    return _with_circle


@pytest.fixture
def encode_png16():
    """Encode a 2-D uint16 array as a 16-bit grayscale PNG."""

    def _encode16(array: np.ndarray) -> bytes:
        buffer = BytesIO()
        Image.fromarray(np.asarray(array, dtype=np.uint16)).save(buffer, format="PNG")
        return buffer.getvalue()

    return _encode16
