"""Shared helpers for building small in-memory images."""

from pathlib import Path

import pytest
from PIL import Image

from src.frameops.pixels import PixelBuffer


def solid(width, height, color=(200, 40, 10), alpha=255):
    return PixelBuffer.filled(width, height, color, alpha)


def gradient(width, height):
    """Buffer whose pixels all differ, so misplaced blits are visible."""

    data = bytearray()
    for y in range(height):
        for x in range(width):
            data += bytes(((x * 7) % 256, (y * 11) % 256, (x + y) % 256, 255))
    return PixelBuffer(width, height, bytes(data))


@pytest.fixture
def write_image(tmp_path):
    """Write a solid RGB image to ``tmp_path`` and return its path."""

    def _write(name, size=(40, 20), color=(255, 0, 0), **save_params) -> Path:
        path = tmp_path / name
        Image.new("RGB", size, color).save(path, **save_params)
        return path

    return _write
