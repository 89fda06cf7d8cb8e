"""
Shared pytest fixtures for profile picture rotator tests.
"""

from io import BytesIO
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def make_photo(width: int = 96, height: int = 80, white_background: bool = False) -> bytes:
    """
    Create an encoded PNG test photo.

    The default photo is a colorful gradient so every pixel filter changes it.
    With ``white_background`` a dark square "subject" sits on pure white.
    """
    if white_background:
        pixels = np.full((height, width, 3), 255, dtype=np.uint8)
        pixels[height // 4: 3 * height // 4, width // 4: 3 * width // 4] = (40, 60, 90)
    else:
        ys, xs = np.mgrid[0:height, 0:width]
        pixels = np.stack([
            (xs * 255 // max(width - 1, 1)),
            (ys * 255 // max(height - 1, 1)),
            ((xs + ys) * 127 // max(width + height - 2, 1)) + 64,
        ], axis=-1).astype(np.uint8)

    buffer = BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def photo_bytes() -> bytes:
    """Colorful gradient base photo."""
    return make_photo()


@pytest.fixture
def white_background_photo() -> bytes:
    """Dark subject on a white background."""
    return make_photo(white_background=True)


class FakeTime:
    """Manual clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()
