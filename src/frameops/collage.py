"""Collage assembly.

Members are normalized to a shared extent on the axis perpendicular to the
stacking direction, then blitted in input order onto a canvas filled with the
gap color. Vertical collages are left-aligned and horizontal collages are
top-aligned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from PIL import Image

from .errors import EmptyImage, InsufficientImages
from .geometry import (
    Orientation,
    clamp_size,
    collage_canvas_size,
    collage_member_size,
)
from .pixels import PillowSurface, PixelBuffer
from .transforms import hex_to_rgb, resize_buffer


@dataclass(frozen=True)
class CollageLayout:
    """How a collage is laid out.

    Attributes
    ----------
    orientation
        Stacking direction.
    gap_px
        Space between consecutive members, in pixels.
    canvas_color
        Hex color of the gaps.
    max_dimension_px
        Shared extent of every member on the perpendicular axis. ``0`` uses
        the smallest member so no image is upscaled past its native size.
    """

    orientation: Orientation = Orientation.VERTICAL
    gap_px: float = 0
    canvas_color: str = "#ffffff"
    max_dimension_px: int = 0


def _check_members(images: Sequence[PixelBuffer]) -> None:
    if len(images) < 2:
        raise InsufficientImages(f"A collage needs at least 2 images, got {len(images)}")
    for index, image in enumerate(images):
        if image.is_empty:
            raise EmptyImage(f"Collage image {index} is {image.width}x{image.height}")


def normalize_for_collage(
    images: Sequence[PixelBuffer],
    layout: CollageLayout,
    resample: int = Image.LANCZOS,
) -> List[PixelBuffer]:
    """Resize every member to the layout's shared extent, keeping each ratio."""

    _check_members(images)
    clamp = clamp_size([image.size for image in images], layout.max_dimension_px)
    resized = []
    for image in images:
        width, height = collage_member_size(
            layout.orientation, clamp, image.width, image.height
        )
        resized.append(resize_buffer(image, width, height, resample))
    return resized


def assemble_collage(
    images: Sequence[PixelBuffer],
    layout: CollageLayout,
    resample: int = Image.LANCZOS,
) -> PixelBuffer:
    """Composite ``images`` into one buffer along ``layout.orientation``.

    Raises
    ------
    InsufficientImages
        Fewer than two images.
    EmptyImage
        Any image with a zero dimension.
    """

    color = hex_to_rgb(layout.canvas_color)
    if layout.gap_px < 0:
        raise ValueError(f"Gap must not be negative: {layout.gap_px}")
    members = normalize_for_collage(images, layout, resample=resample)
    gap = int(round(layout.gap_px))

    width, height = collage_canvas_size(
        layout.orientation, [m.size for m in members], gap, len(members)
    )
    surface = PillowSurface.allocate(width, height, color)

    offset = 0
    for member in members:
        if layout.orientation is Orientation.VERTICAL:
            surface.blit(member, 0, offset)
            offset += member.height + gap
        else:
            surface.blit(member, offset, 0)
            offset += member.width + gap
    return surface.read()
