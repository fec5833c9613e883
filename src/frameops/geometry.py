"""Size and offset math for framing and collages.

Every function here is pure: it takes dimensions and option values and returns
new dimensions, insets or offsets. Nothing in this module touches pixels.

Sizes returned by :func:`adapted_size` and :func:`collage_metrics` are exact
floats; pixel-level callers round them with :meth:`Size.to_pixels`. Insets are
already whole pixels.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .errors import EmptyImage, InvalidRatio

Dimensions = Tuple[int, int]


class Orientation(str, Enum):
    """Axis along which collage members are stacked."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    def to_pixels(self) -> Dimensions:
        """Round to whole pixels, never collapsing an axis to zero."""

        return max(1, int(round(self.width))), max(1, int(round(self.height)))


@dataclass(frozen=True)
class BorderSpec:
    """Border around an image.

    Attributes
    ----------
    width_px
        Border thickness on each side, in pixels. Takes precedence over
        ``percent_of_image`` when positive.
    percent_of_image
        Total border added to each axis as a percentage of that axis.
    color
        Hex color, ``#RRGGBB`` or ``RRGGBB``.
    """

    width_px: Optional[int] = None
    percent_of_image: Optional[float] = None
    color: str = "#ffffff"


@dataclass(frozen=True)
class CanvasSpec:
    """Target aspect ratio ``ratio_x:ratio_y`` reached by padding with ``color``."""

    ratio_x: float
    ratio_y: float
    color: str = "#ffffff"


@dataclass(frozen=True)
class Insets:
    """Padding added around an image.

    ``inset_w`` and ``inset_h`` are the totals added to each axis; the image
    sits at ``(offset_x, offset_y)`` inside the padded result.
    """

    inset_w: int
    inset_h: int
    color: str

    @property
    def offset_x(self) -> int:
        return self.inset_w // 2

    @property
    def offset_y(self) -> int:
        return self.inset_h // 2

    @property
    def is_noop(self) -> bool:
        return self.inset_w == 0 and self.inset_h == 0


@dataclass(frozen=True)
class CollageMetrics:
    """Aggregate collage lengths before and after members are rescaled.

    ``vertical_*`` describe a vertical stack where every member has width
    ``vertical_width``; ``horizontal_*`` a horizontal row where every member
    has height ``horizontal_height``. ``native_*`` are sums over the unscaled
    images.
    """

    vertical_height_sum: float
    vertical_width: float
    horizontal_height: float
    horizontal_width_sum: float
    native_height_sum: int
    native_width_sum: int


def aspect_ratio(width: float, height: float) -> float:
    """Compute aspect ratio as width / height."""

    if width <= 0 or height <= 0:
        raise EmptyImage(f"Image size must be positive, got {width}x{height}")
    return float(width) / float(height)


def adapted_size(max_w: float, max_h: float, img_w: float, img_h: float) -> Size:
    """Scale an image into a bounding box while preserving its aspect ratio.

    Landscape images (ratio above 1) take the full ``max_w`` and a proportional
    height; square and portrait images take the full ``max_h`` and a
    proportional width.

    Parameters
    ----------
    max_w, max_h
        Bounding box. Only the axis selected by the image's orientation is
        clamped.
    img_w, img_h
        Native image size, both positive.

    Returns
    -------
    Size
        Exact (unrounded) target size.
    """

    if max_w <= 0 or max_h <= 0:
        raise ValueError(f"Bounds must be positive, got {max_w}x{max_h}")
    ratio = aspect_ratio(img_w, img_h)
    if ratio > 1:
        return Size(float(max_w), max_w / ratio)
    return Size(max_h * ratio, float(max_h))


def border_insets(spec: BorderSpec, image_w: int, image_h: int) -> Insets:
    """Total padding a border adds to each axis.

    A pixel width is doubled so each side receives the full nominal thickness.
    A percentage is taken of each axis separately. Without either value the
    border is a no-op.
    """

    if spec.width_px is not None and spec.width_px > 0:
        total = int(spec.width_px) * 2
        return Insets(total, total, spec.color)
    if spec.percent_of_image is not None and spec.percent_of_image > 0:
        inset_w = int(round(image_w * spec.percent_of_image / 100))
        inset_h = int(round(image_h * spec.percent_of_image / 100))
        return Insets(inset_w, inset_h, spec.color)
    return Insets(0, 0, spec.color)


def validate_ratio(ratio_x: float, ratio_y: float) -> None:
    """Reject ratios that cannot describe a shape.

    A single zero component is the accepted "leave unchanged" value and passes.
    """

    if ratio_x < 0 or ratio_y < 0:
        raise InvalidRatio(f"Ratio components must not be negative: {ratio_x}:{ratio_y}")
    if ratio_x == 0 and ratio_y == 0:
        raise InvalidRatio("Ratio components are both zero")


def canvas_letterbox_insets(
    spec: CanvasSpec, image_w: int, image_h: int
) -> Optional[Insets]:
    """Padding that brings an image to ``spec``'s aspect ratio without cropping.

    Exactly one axis is padded: height when the target is narrower than the
    image, width when it is wider. Returns ``None`` when the ratio is zero or
    negative on either axis, or when the image already has the target ratio to
    within one pixel.
    """

    if spec.ratio_x <= 0 or spec.ratio_y <= 0:
        return None
    current = aspect_ratio(image_w, image_h)
    target = spec.ratio_x / spec.ratio_y
    if target == current:
        return None

    if target < current:
        new_h = int(round(image_w / target))
        inset_h = new_h - image_h
        if inset_h <= 0:
            return None
        return Insets(0, inset_h, spec.color)

    new_w = int(round(image_h * target))
    inset_w = new_w - image_w
    if inset_w <= 0:
        return None
    return Insets(inset_w, 0, spec.color)


def content_width_for_final(final_width: int, border_widths: Sequence[int]) -> int:
    """Width an image needs so that adding the pixel borders yields ``final_width``."""

    width = final_width - sum(2 * w for w in border_widths if w > 0)
    if width <= 0:
        raise ValueError(
            f"Borders totalling {final_width - width}px do not fit in {final_width}px"
        )
    return width


def _check_sizes(sizes: Sequence[Dimensions]) -> None:
    if not sizes:
        raise ValueError("At least one image size is required")
    for width, height in sizes:
        if width <= 0 or height <= 0:
            raise EmptyImage(f"Image size must be positive, got {width}x{height}")


def collage_minimum_size(sizes: Sequence[Dimensions]) -> Dimensions:
    """Smallest width and smallest height across the set, taken independently."""

    _check_sizes(sizes)
    return min(w for w, _ in sizes), min(h for _, h in sizes)


def clamp_size(sizes: Sequence[Dimensions], max_size: int) -> Dimensions:
    """Per-axis clamp for collage members; ``0`` derives it from the smallest member."""

    if max_size == 0:
        return collage_minimum_size(sizes)
    if max_size < 0:
        raise ValueError(f"Maximum collage size must not be negative: {max_size}")
    return max_size, max_size


def collage_member_size(
    orientation: Orientation, clamp: Dimensions, image_w: int, image_h: int
) -> Dimensions:
    """Target size of one collage member.

    Vertical stacks share the clamp width, horizontal rows share the clamp
    height; the other axis follows the member's own aspect ratio, truncated to
    whole pixels.
    """

    ratio = aspect_ratio(image_w, image_h)
    if orientation is Orientation.VERTICAL:
        width = clamp[0]
        return width, max(1, int(width / ratio))
    height = clamp[1]
    return max(1, int(height * ratio)), height


def collage_canvas_size(
    orientation: Orientation,
    sizes: Sequence[Dimensions],
    gap_px: int,
    count: Optional[int] = None,
) -> Dimensions:
    """Canvas that holds ``sizes`` stacked along ``orientation``.

    Gaps go only between members: ``count - 1`` of them.
    """

    _check_sizes(sizes)
    if count is None:
        count = len(sizes)
    gaps = gap_px * max(count - 1, 0)
    if orientation is Orientation.VERTICAL:
        return min(w for w, _ in sizes), sum(h for _, h in sizes) + gaps
    return sum(w for w, _ in sizes) + gaps, min(h for _, h in sizes)


def collage_metrics(sizes: Sequence[Dimensions], max_size: int) -> CollageMetrics:
    clamp_w, clamp_h = clamp_size(sizes, max_size)
    vertical_height_sum = 0.0
    horizontal_width_sum = 0.0
    for width, height in sizes:
        ratio = aspect_ratio(width, height)
        vertical_height_sum += clamp_w / ratio
        horizontal_width_sum += clamp_h * ratio
    return CollageMetrics(
        vertical_height_sum=vertical_height_sum,
        vertical_width=float(clamp_w),
        horizontal_height=float(clamp_h),
        horizontal_width_sum=horizontal_width_sum,
        native_height_sum=sum(h for _, h in sizes),
        native_width_sum=sum(w for w, _ in sizes),
    )


def resized_gap(
    gap_px: float,
    orientation: Orientation,
    sizes: Sequence[Dimensions],
    max_size: int,
) -> float:
    """Scale a nominal gap by the same factor the collage length was scaled."""

    metrics = collage_metrics(sizes, max_size)
    if orientation is Orientation.VERTICAL:
        return gap_px * metrics.vertical_height_sum / metrics.native_height_sum
    return gap_px * metrics.horizontal_width_sum / metrics.native_width_sum


def gap_from_percent(
    orientation: Orientation,
    sizes: Sequence[Dimensions],
    max_size: int,
    percent: float,
) -> float:
    """Gap in pixels given as a percentage of the rescaled collage length."""

    if percent < 0:
        raise ValueError(f"Gap percentage must not be negative: {percent}")
    metrics = collage_metrics(sizes, max_size)
    if orientation is Orientation.VERTICAL:
        return metrics.vertical_height_sum * percent / 100
    return metrics.horizontal_width_sum * percent / 100
