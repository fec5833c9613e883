"""Pixel transforms.

Each transform takes a ``PixelBuffer`` and an options value and returns a new
buffer; inputs are never modified. Colors arrive as hex strings and are parsed
here with :func:`hex_to_rgb`.
"""

from __future__ import annotations

import re

import numpy as np

from .errors import EmptyImage, InvalidColor
from .geometry import (
    BorderSpec,
    CanvasSpec,
    Insets,
    adapted_size,
    border_insets,
    canvas_letterbox_insets,
)
from .pixels import CHANNELS, RGB, PillowSurface, PixelBuffer

_HEX_COLOR = re.compile(r"[0-9a-f]{6}", re.IGNORECASE)


def hex_to_rgb(hex_color: str) -> RGB:
    """Parse ``#RRGGBB`` or ``RRGGBB`` (any case) into an ``(r, g, b)`` tuple.

    Raises
    ------
    InvalidColor
        If the value is not exactly six hex digits after an optional ``#``.
    """

    if not isinstance(hex_color, str):
        raise InvalidColor(f"Invalid hex color: {hex_color!r}")
    color = hex_color[1:] if hex_color.startswith("#") else hex_color
    if not _HEX_COLOR.fullmatch(color):
        raise InvalidColor(f"Invalid hex color: {hex_color!r}")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def to_grayscale(buf: PixelBuffer) -> PixelBuffer:
    """Replace R, G and B with their floored mean; alpha is kept."""

    if buf.is_empty:
        return buf
    arr = np.frombuffer(buf.data, dtype=np.uint8).reshape(buf.height, buf.width, CHANNELS)
    out = arr.copy()
    gray = (arr[..., :3].astype(np.uint16).sum(axis=2) // 3).astype(np.uint8)
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    return PixelBuffer(buf.width, buf.height, out.tobytes())


def _pad(buf: PixelBuffer, insets: Insets) -> PixelBuffer:
    color = hex_to_rgb(insets.color)
    surface = PillowSurface.allocate(
        buf.width + insets.inset_w, buf.height + insets.inset_h, color
    )
    surface.blit(buf, insets.offset_x, insets.offset_y)
    return surface.read()


def add_border(buf: PixelBuffer, spec: BorderSpec) -> PixelBuffer:
    """Surround ``buf`` with a solid border described by ``spec``.

    The color is validated even when the border turns out to be empty, so a
    misconfigured run fails on its first image rather than later.
    """

    hex_to_rgb(spec.color)
    insets = border_insets(spec, buf.width, buf.height)
    if insets.is_noop:
        return buf
    return _pad(buf, insets)


def add_canvas_letterbox(buf: PixelBuffer, spec: CanvasSpec) -> PixelBuffer:
    """Pad one axis of ``buf`` symmetrically to reach ``spec``'s aspect ratio."""

    hex_to_rgb(spec.color)
    if buf.is_empty:
        raise EmptyImage("Cannot letterbox an empty image")
    insets = canvas_letterbox_insets(spec, buf.width, buf.height)
    if insets is None:
        return buf
    return _pad(buf, insets)


def resize_buffer(
    buf: PixelBuffer, width: int, height: int, resample: int
) -> PixelBuffer:
    """Resample ``buf`` to exactly ``width`` x ``height``."""

    if buf.is_empty:
        raise EmptyImage("Cannot resize an empty image")
    if (width, height) == buf.size:
        return buf
    image = buf.to_image().resize((width, height), resample)
    return PixelBuffer.from_image(image)


def fit_within(buf: PixelBuffer, max_w: int, max_h: int, resample: int) -> PixelBuffer:
    """Resize to :func:`adapted_size` of the bounding box, upscaling if needed."""

    if buf.is_empty:
        raise EmptyImage("Cannot resize an empty image")
    width, height = adapted_size(max_w, max_h, buf.width, buf.height).to_pixels()
    return resize_buffer(buf, width, height, resample)
