"""Batch workflows built on the framing engine.

A run is described by one ``RunConfig`` value: the ordered processing steps
plus output and concurrency settings. ``process_batch`` applies it to every
input image, isolating per-image failures; ``build_collage`` decodes a set of
images and writes a single composite.

Steps can also be read from a recipe file, one step per line, using the same
grammar as the command line::

    # thin black frame, wide white frame, then pad to 9:16
    add-border -w 2 -c black
    add-border -w 40 -c white
    set-aspect-ratio -x 9 -y 16 -c white
"""

from __future__ import annotations

import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import click

from config import CONFIG, NAMED_COLORS, Behavior

from .collage import CollageLayout, assemble_collage
from .errors import EmptyImage, FrameOpsError, OutputConflict, RecipeError
from .geometry import (
    BorderSpec,
    CanvasSpec,
    content_width_for_final,
    gap_from_percent,
    resized_gap,
)
from .io_utils import decode_many, format_for, map_resample, save_buffer
from .pixels import PixelBuffer
from .transforms import (
    add_border,
    add_canvas_letterbox,
    fit_within,
    resize_buffer,
    to_grayscale,
)

logger = logging.getLogger(__name__)


def resolve_color(value: str) -> str:
    """Translate a named color to hex; other values pass through unchanged."""

    return NAMED_COLORS.get(value.strip().lower(), value.strip())


@dataclass(frozen=True)
class Step(ABC):
    """One processing step applied to a buffer."""

    @abstractmethod
    def apply(self, buf: PixelBuffer, resample: int) -> PixelBuffer:
        ...


@dataclass(frozen=True)
class Grayscale(Step):
    def apply(self, buf: PixelBuffer, resample: int) -> PixelBuffer:
        return to_grayscale(buf)


@dataclass(frozen=True)
class Border(Step):
    spec: BorderSpec

    def apply(self, buf: PixelBuffer, resample: int) -> PixelBuffer:
        return add_border(buf, self.spec)


@dataclass(frozen=True)
class Canvas(Step):
    spec: CanvasSpec

    def apply(self, buf: PixelBuffer, resample: int) -> PixelBuffer:
        return add_canvas_letterbox(buf, self.spec)


@dataclass(frozen=True)
class FitSize(Step):
    """Resize into a ``width`` x ``height`` box, keeping the aspect ratio."""

    width: int
    height: int

    def apply(self, buf: PixelBuffer, resample: int) -> PixelBuffer:
        return fit_within(buf, self.width, self.height, resample)


@dataclass(frozen=True)
class FitWidth(Step):
    """Resize to an exact width, height following the aspect ratio."""

    width: int

    def apply(self, buf: PixelBuffer, resample: int) -> PixelBuffer:
        if buf.is_empty:
            raise EmptyImage("Cannot resize an empty image")
        height = max(1, int(round(self.width * buf.height / buf.width)))
        return resize_buffer(buf, self.width, height, resample)


def plan_final_width(steps: Sequence[Step], final_width: int) -> List[Step]:
    """Insert the resize that makes the pixel borders after it end at ``final_width``.

    The resize goes after the last ``FitSize`` so an earlier fit cannot undo
    it. Only pixel borders are counted: percent borders and aspect-ratio
    canvases after the resize can still change the width, which is logged.
    """

    steps = list(steps)
    at = 0
    for index, step in enumerate(steps):
        if isinstance(step, FitSize):
            at = index + 1
    tail = steps[at:]
    borders = [
        s.spec.width_px
        for s in tail
        if isinstance(s, Border) and s.spec.width_px is not None
    ]
    if any(
        isinstance(s, Canvas) or (isinstance(s, Border) and s.spec.width_px is None)
        for s in tail
    ):
        logger.warning(
            "Final width %d may not be exact: a percent border or aspect ratio follows the resize",
            final_width,
        )
    return steps[:at] + [FitWidth(content_width_for_final(final_width, borders))] + tail


@dataclass(frozen=True)
class RunConfig:
    """Everything one batch run needs.

    Attributes
    ----------
    steps
        Processing steps, applied in order.
    output_dir
        Directory receiving one output per input.
    output_format
        'png', 'jpg' or 'webp'.
    output_suffix
        Appended to each input stem.
    overwrite
        Replace existing outputs instead of skipping them.
    keep_metadata
        Carry EXIF from each input to its output.
    resample
        Resampling method name.
    workers
        Concurrent decodes.
    decode_timeout
        Seconds allowed per decode, or None.
    fail_fast
        Stop at the first failed image.
    """

    steps: Tuple[Step, ...] = ()
    output_dir: Path = CONFIG.paths.output_dir
    output_format: str = CONFIG.behavior.output_format
    output_suffix: str = CONFIG.behavior.output_suffix
    overwrite: bool = CONFIG.behavior.overwrite
    keep_metadata: bool = CONFIG.behavior.keep_metadata
    resample: str = CONFIG.behavior.resample
    workers: int = CONFIG.behavior.workers
    decode_timeout: Optional[float] = CONFIG.behavior.decode_timeout
    fail_fast: bool = CONFIG.behavior.fail_fast

    @classmethod
    def from_behavior(cls, behavior: Behavior, **overrides) -> "RunConfig":
        base = cls(
            output_format=behavior.output_format,
            output_suffix=behavior.output_suffix,
            overwrite=behavior.overwrite,
            keep_metadata=behavior.keep_metadata,
            resample=behavior.resample,
            workers=behavior.workers,
            decode_timeout=behavior.decode_timeout,
            fail_fast=behavior.fail_fast,
        )
        return replace(base, **overrides)

    def output_path(self, source: Path, root: Optional[Path] = None) -> Path:
        """Where ``source`` is written; a source under ``root`` keeps its subfolders."""

        ext = self.output_format.lower().lstrip(".")
        name = f"{source.stem}{self.output_suffix}.{ext}"
        folder = Path(self.output_dir)
        if root is not None:
            try:
                folder = folder / Path(source).parent.relative_to(root)
            except ValueError:
                pass
        return folder / name


def apply_steps(buf: PixelBuffer, steps: Sequence[Step], resample: int) -> PixelBuffer:
    for step in steps:
        buf = step.apply(buf, resample)
    return buf


@dataclass
class BatchResult:
    written: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _chunks(items: Sequence[Tuple[Path, Path]], size: int):
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _render_one(item, dest: Path, config: RunConfig, resample: int) -> PixelBuffer:
    if isinstance(item, Exception):
        raise item
    buf, exif = item
    out = apply_steps(buf, config.steps, resample)
    save_buffer(out, dest, keep_metadata=config.keep_metadata, original_exif=exif)
    return out


def process_batch(
    paths: Sequence[Path], config: RunConfig, root: Optional[Path] = None
) -> BatchResult:
    """Apply ``config.steps`` to every image in ``paths`` and write the results.

    Sources under ``root`` are written to the same relative folder below
    ``config.output_dir``. Two sources that still map to one output file
    (``x.jpg`` and ``x.png``, say) are not both written: the later one fails
    with ``OutputConflict``.

    Images are decoded ``config.workers`` at a time. A failing image is logged
    and recorded in the result without affecting the others, unless
    ``config.fail_fast`` is set, in which case its error is raised.
    """

    format_for(config.output_format)
    resample = map_resample(config.resample)
    result = BatchResult()

    def fail(src: Path, exc: Exception) -> None:
        if config.fail_fast:
            raise exc
        logger.error("Failed to process %s: %s", src, exc)
        result.failed.append((src, exc))

    todo = []
    claimed = {}
    for src in paths:
        dest = config.output_path(src, root)
        key = dest.resolve()
        if key in claimed:
            fail(src, OutputConflict(f"{src} and {claimed[key]} would both be written to {dest}"))
            continue
        claimed[key] = src
        if dest.exists() and not config.overwrite:
            logger.info("Skipping %s: %s exists", src.name, dest)
            result.skipped.append(src)
            continue
        todo.append((src, dest))

    for chunk in _chunks(todo, max(1, config.workers)):
        sources = [src for src, _ in chunk]
        decoded = decode_many(sources, workers=config.workers, timeout=config.decode_timeout)
        for (src, dest), item in zip(chunk, decoded):
            try:
                out = _render_one(item, dest, config, resample)
            except (FrameOpsError, OSError) as exc:
                fail(src, exc)
                continue
            logger.info("%s -> %s (%dx%d)", src.name, dest, out.width, out.height)
            result.written.append(dest)
    return result


def build_collage(
    paths: Sequence[Path],
    layout: CollageLayout,
    dest: Path,
    resample: str = CONFIG.behavior.resample,
    workers: int = CONFIG.behavior.workers,
    decode_timeout: Optional[float] = None,
    gap_percent: Optional[float] = None,
    scale_gap: bool = False,
) -> PixelBuffer:
    """Decode ``paths``, assemble them with ``layout`` and write ``dest``.

    Any decode failure aborts the collage. With ``gap_percent`` the gap is
    that share of the collage length; with ``scale_gap`` the nominal gap is
    scaled along with the images.
    """

    decoded = decode_many(paths, workers=workers, timeout=decode_timeout)
    images = []
    for item in decoded:
        if isinstance(item, Exception):
            raise item
        images.append(item[0])

    sizes = [image.size for image in images]
    if len(images) >= 2 and all(w > 0 and h > 0 for w, h in sizes):
        if gap_percent is not None:
            gap = gap_from_percent(layout.orientation, sizes, layout.max_dimension_px, gap_percent)
            layout = replace(layout, gap_px=gap)
        elif scale_gap:
            gap = resized_gap(layout.gap_px, layout.orientation, sizes, layout.max_dimension_px)
            layout = replace(layout, gap_px=gap)

    out = assemble_collage(images, layout, resample=map_resample(resample))
    save_buffer(out, dest, keep_metadata=False)
    logger.info(
        "Composed %d-image %s collage (%dx%d) -> %s",
        len(images),
        layout.orientation.value,
        out.width,
        out.height,
        dest,
    )
    return out


# Recipe grammar. Each command returns the step it describes.


@click.group(name="recipe")
def _recipe() -> None:
    pass


@_recipe.command(name="add-border")
@click.option("-w", "--width", type=int, default=None, help="Border width in pixels")
@click.option("-p", "--percent", type=float, default=None, help="Border as % of image")
@click.option("-c", "--color", type=str, default=CONFIG.colors.border)
def _recipe_border(width: Optional[int], percent: Optional[float], color: str) -> Step:
    return Border(BorderSpec(width_px=width, percent_of_image=percent, color=resolve_color(color)))


@_recipe.command(name="set-aspect-ratio")
@click.option("-x", "ratio_x", type=float, required=True, help="X value of the aspect ratio")
@click.option("-y", "ratio_y", type=float, required=True, help="Y value of the aspect ratio")
@click.option("-c", "--color", type=str, default=CONFIG.colors.canvas)
def _recipe_canvas(ratio_x: float, ratio_y: float, color: str) -> Step:
    return Canvas(CanvasSpec(ratio_x, ratio_y, resolve_color(color)))


@_recipe.command(name="size")
@click.option("-w", "--width", type=click.IntRange(min=1), required=True, help="Width in pixels")
@click.option("-h", "--height", type=click.IntRange(min=1), required=True, help="Height in pixels")
def _recipe_size(width: int, height: int) -> Step:
    return FitSize(width, height)


@_recipe.command(name="grayscale")
def _recipe_grayscale() -> Step:
    return Grayscale()


def parse_recipe_line(line: str) -> Optional[Step]:
    """Parse one recipe line; blank lines and ``#`` comments give ``None``."""

    text = line.strip()
    if not text or text.startswith("#"):
        return None
    try:
        args = shlex.split(text)
        step = _recipe.main(args, prog_name="recipe", standalone_mode=False)
    except (click.ClickException, ValueError) as exc:
        message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
        raise RecipeError(f"Invalid recipe line {text!r}: {message}") from exc
    if not isinstance(step, Step):
        raise RecipeError(f"Invalid recipe line {text!r}")
    return step


def load_recipe(path: Path) -> List[Step]:
    """Read the steps of a recipe file, in order."""

    steps = []
    for number, line in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), 1):
        try:
            step = parse_recipe_line(line)
        except RecipeError as exc:
            raise RecipeError(f"{path}:{number}: {exc}") from exc
        if step is not None:
            steps.append(step)
    return steps


def describe(steps: Sequence[Step]) -> List[str]:
    """One human-readable line per step, for the run summary."""

    lines = []
    for step in steps:
        if isinstance(step, Border):
            spec = step.spec
            amount = (
                f"{spec.width_px}px"
                if spec.width_px
                else f"{spec.percent_of_image or 0:g}%"
            )
            lines.append(f"border {amount} {spec.color}")
        elif isinstance(step, Canvas):
            lines.append(f"aspect ratio {step.spec.ratio_x:g}:{step.spec.ratio_y:g} {step.spec.color}")
        elif isinstance(step, FitSize):
            lines.append(f"fit {step.width}x{step.height}")
        elif isinstance(step, FitWidth):
            lines.append(f"width {step.width}")
        elif isinstance(step, Grayscale):
            lines.append("grayscale")
    return lines
