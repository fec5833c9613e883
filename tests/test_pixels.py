import pytest
from PIL import Image

from src.frameops.pixels import PillowSurface, PixelBuffer

from conftest import gradient, solid


def test_buffer_length_must_match_size():
    with pytest.raises(ValueError):
        PixelBuffer(2, 2, b"\x00" * 15)
    with pytest.raises(ValueError):
        PixelBuffer(-1, 2, b"")


def test_empty_sentinel():
    empty = PixelBuffer.empty()
    assert empty.is_empty
    assert empty.size == (0, 0)
    assert empty.to_image().size == (0, 0)


def test_from_image_converts_to_rgba():
    buf = PixelBuffer.from_image(Image.new("RGB", (3, 2), (1, 2, 3)))
    assert buf.size == (3, 2)
    assert buf.pixel(2, 1) == (1, 2, 3, 255)


def test_image_round_trip_preserves_bytes():
    buf = gradient(5, 4)
    assert PixelBuffer.from_image(buf.to_image()) == buf


def test_crop_copies_region():
    buf = gradient(5, 4)
    region = buf.crop(1, 2, 3, 2)
    assert region.size == (3, 2)
    assert region.pixel(0, 0) == buf.pixel(1, 2)
    assert region.pixel(2, 1) == buf.pixel(3, 3)
    with pytest.raises(ValueError):
        buf.crop(4, 0, 2, 1)


def test_surface_fill_and_blit():
    surface = PillowSurface.allocate(6, 4, (9, 9, 9))
    surface.fill_region(0, 0, 2, 2, (255, 255, 255))
    surface.blit(solid(2, 2, (1, 2, 3), alpha=0), 4, 2)
    out = surface.read()
    assert out.pixel(1, 1) == (255, 255, 255, 255)
    assert out.pixel(3, 3) == (9, 9, 9, 255)
    # blits replace pixels, alpha included
    assert out.pixel(5, 3) == (1, 2, 3, 0)


def test_surface_fill_resets_everything():
    surface = PillowSurface(3, 3)
    surface.blit(gradient(3, 3), 0, 0)
    surface.fill((7, 7, 7))
    assert surface.read() == solid(3, 3, (7, 7, 7))
