"""In-memory RGBA rasters and the surface used to composite them.

``PixelBuffer`` is the unit every transform reads and writes. Compositing
(allocating a filled canvas, blitting one buffer onto another, reading the
result back) goes through ``CompositingSurface`` so the transforms do not
depend on a particular drawing backend. ``PillowSurface`` is the backend used
by the project.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

from PIL import Image

RGB = Tuple[int, int, int]

CHANNELS = 4


@dataclass(frozen=True)
class PixelBuffer:
    """Row-major RGBA raster with 8 bits per channel.

    Attributes
    ----------
    width, height
        Dimensions in pixels. Both are positive except for the empty
        sentinel returned by :meth:`empty`.
    data
        ``width * height * 4`` bytes.
    """

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Negative buffer size: {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise ValueError(
                f"Buffer of {self.width}x{self.height} needs {expected} bytes, "
                f"got {len(self.data)}"
            )

    @classmethod
    def empty(cls) -> "PixelBuffer":
        """Zero-size sentinel for a collaborator that could not provide a size."""

        return cls(0, 0, b"")

    @classmethod
    def filled(cls, width: int, height: int, color: RGB, alpha: int = 255) -> "PixelBuffer":
        pixel = bytes((color[0], color[1], color[2], alpha))
        return cls(width, height, pixel * (width * height))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Copy a Pillow image into a new buffer, converting to RGBA."""

        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        width, height = rgba.size
        return cls(width, height, rgba.tobytes())

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_image(self) -> Image.Image:
        """Return a Pillow RGBA image holding a copy of the pixel data."""

        if self.is_empty:
            return Image.new("RGBA", self.size)
        return Image.frombytes("RGBA", self.size, self.data)

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        offset = (y * self.width + x) * CHANNELS
        r, g, b, a = self.data[offset : offset + CHANNELS]
        return r, g, b, a

    def crop(self, x: int, y: int, width: int, height: int) -> "PixelBuffer":
        """Copy the ``width`` x ``height`` region whose top-left corner is ``(x, y)``."""

        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise ValueError(
                f"Region {width}x{height}+{x}+{y} is outside "
                f"{self.width}x{self.height} buffer"
            )
        stride = self.width * CHANNELS
        rows = []
        for row in range(y, y + height):
            start = row * stride + x * CHANNELS
            rows.append(self.data[start : start + width * CHANNELS])
        return PixelBuffer(width, height, b"".join(rows))


class CompositingSurface(Protocol):
    """Drawing capability the transforms write into.

    A surface is allocated at a fixed size, may be filled and blitted any
    number of times, and is read back as a new ``PixelBuffer``.
    """

    width: int
    height: int

    def fill(self, color: RGB) -> None: ...

    def fill_region(self, x: int, y: int, width: int, height: int, color: RGB) -> None: ...

    def blit(self, source: PixelBuffer, x: int, y: int) -> None: ...

    def read(self) -> PixelBuffer: ...


class PillowSurface:
    """``CompositingSurface`` backed by a Pillow RGBA image.

    Blitting replaces destination pixels, alpha included, rather than
    blending, so a blitted region reads back byte-for-byte.
    """

    def __init__(self, width: int, height: int, color: RGB = (0, 0, 0)) -> None:
        self.width = width
        self.height = height
        self._image = Image.new("RGBA", (width, height), tuple(color) + (255,))

    @classmethod
    def allocate(cls, width: int, height: int, color: RGB) -> "PillowSurface":
        return cls(width, height, color)

    def fill(self, color: RGB) -> None:
        self.fill_region(0, 0, self.width, self.height, color)

    def fill_region(self, x: int, y: int, width: int, height: int, color: RGB) -> None:
        self._image.paste(tuple(color) + (255,), (x, y, x + width, y + height))

    def blit(self, source: PixelBuffer, x: int, y: int) -> None:
        if source.is_empty:
            return
        self._image.paste(source.to_image(), (x, y))

    def read(self) -> PixelBuffer:
        return PixelBuffer.from_image(self._image)
