"""CLI for framing images to fixed aspect ratios.

Commands:
  - process: Resize, border, grayscale and letterbox every image in a path
  - collage: Stack several images into one vertical or horizontal collage
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click
from config import CONFIG
from src.frameops.collage import CollageLayout
from src.frameops.errors import FrameOpsError, InvalidColor, InvalidRatio
from src.frameops.geometry import BorderSpec, CanvasSpec, Orientation, validate_ratio
from src.frameops.io_utils import iter_image_paths
from src.frameops.pipeline import (
    Border,
    Canvas,
    FitSize,
    Grayscale,
    RunConfig,
    Step,
    build_collage,
    describe,
    load_recipe,
    plan_final_width,
    process_batch,
    resolve_color,
)
from src.frameops.transforms import hex_to_rgb

logger = logging.getLogger(__name__)

RESAMPLE_CHOICES = ["nearest", "bilinear", "bicubic", "lanczos"]


def _parse_color(value: str, param_hint: Optional[str] = None) -> str:
    color = resolve_color(value)
    try:
        hex_to_rgb(color)
    except InvalidColor as exc:
        raise click.BadParameter(str(exc), param_hint=param_hint) from exc
    return color


def _color(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return _parse_color(value)


def _resolve_ratio(ratio: str) -> Tuple[float, float]:
    if ratio in CONFIG.ratio_presets:
        return CONFIG.ratio_presets[ratio]
    try:
        x, y = ratio.split(":")
        return float(x), float(y)
    except ValueError:
        choices = ", ".join(CONFIG.ratio_presets.keys())
        raise click.BadParameter(
            f"Unknown ratio '{ratio}'. Use X:Y or one of: {choices}", param_hint="--ratio"
        )


def _canvas_step(ratio: str, color: str) -> Optional[Step]:
    ratio_x, ratio_y = _resolve_ratio(ratio)
    try:
        validate_ratio(ratio_x, ratio_y)
    except InvalidRatio as exc:
        logger.warning("Ignoring aspect ratio: %s", exc)
        return None
    return Canvas(CanvasSpec(ratio_x, ratio_y, color))


def _check_step_colors(steps: List[Step]) -> None:
    for step in steps:
        if isinstance(step, (Border, Canvas)):
            try:
                hex_to_rgb(step.spec.color)
            except InvalidColor as exc:
                raise click.BadParameter(str(exc), param_hint="--recipe") from exc
        if isinstance(step, Canvas):
            try:
                validate_ratio(step.spec.ratio_x, step.spec.ratio_y)
            except InvalidRatio as exc:
                logger.warning("Recipe aspect ratio will be skipped: %s", exc)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every decoded and written file")
def cli(verbose: bool) -> None:
    """Image framing toolkit."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="process")
@click.argument("input_path", type=click.Path(path_type=Path, exists=True))
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path),
    required=True,
    help="Output directory",
)
@click.option(
    "--size",
    "size",
    type=(click.IntRange(min=1), click.IntRange(min=1)),
    default=None,
    help="Fit into WIDTH HEIGHT first",
)
@click.option(
    "--final-width",
    type=click.IntRange(min=1),
    default=None,
    help="Resize so the image is exactly this wide once pixel borders are added",
)
@click.option("--grayscale/--no-grayscale", default=False)
@click.option(
    "--border",
    "borders",
    type=int,
    multiple=True,
    help="Border width in pixels per side; repeat to stack borders",
)
@click.option(
    "--border-color",
    "border_colors",
    type=str,
    multiple=True,
    help="Color of the matching --border, then of --border-percent (defaults to white)",
)
@click.option("--border-percent", type=float, default=None, help="Border as % of image size")
@click.option("--ratio", type=str, default=None, help="Target aspect ratio, e.g. 9:16")
@click.option("--canvas-color", type=str, default=CONFIG.colors.canvas, callback=_color)
@click.option(
    "--recipe",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="File with one step per line; replaces the step options",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["png", "jpg", "webp"], case_sensitive=False),
    default=CONFIG.behavior.output_format,
)
@click.option("--suffix", type=str, default=CONFIG.behavior.output_suffix)
@click.option("--overwrite/--no-overwrite", default=CONFIG.behavior.overwrite)
@click.option("--keep-metadata/--no-keep-metadata", default=CONFIG.behavior.keep_metadata)
@click.option(
    "--resample",
    type=click.Choice(RESAMPLE_CHOICES, case_sensitive=False),
    default=CONFIG.behavior.resample,
)
@click.option("--workers", type=click.IntRange(min=1), default=CONFIG.behavior.workers)
@click.option("--decode-timeout", type=float, default=CONFIG.behavior.decode_timeout)
@click.option("--fail-fast/--keep-going", default=CONFIG.behavior.fail_fast)
def cmd_process(
    input_path: Path,
    output_dir: Path,
    size: Optional[Tuple[int, int]],
    final_width: Optional[int],
    grayscale: bool,
    borders: Tuple[int, ...],
    border_colors: Tuple[str, ...],
    border_percent: Optional[float],
    ratio: Optional[str],
    canvas_color: str,
    recipe: Optional[Path],
    output_format: str,
    suffix: str,
    overwrite: bool,
    keep_metadata: bool,
    resample: str,
    workers: int,
    decode_timeout: Optional[float],
    fail_fast: bool,
) -> None:
    """Frame every image in INPUT_PATH and write the results to the output dir.

    Images found in subfolders of INPUT_PATH are written to the same subfolders
    of the output dir.
    """

    if recipe is not None:
        try:
            steps = load_recipe(recipe)
        except FrameOpsError as exc:
            raise click.BadParameter(str(exc), param_hint="--recipe") from exc
        _check_step_colors(steps)
    else:
        if len(border_colors) > len(borders) + (border_percent is not None):
            raise click.BadParameter(
                "More --border-color values than --border values", param_hint="--border-color"
            )
        steps = []
        if size is not None:
            steps.append(FitSize(*size))
        if grayscale:
            steps.append(Grayscale())
        for index, width in enumerate(borders):
            raw = border_colors[index] if index < len(border_colors) else CONFIG.colors.border
            color = _parse_color(raw, "--border-color")
            steps.append(Border(BorderSpec(width_px=width, color=color)))
        if border_percent is not None:
            slot = len(borders)
            raw = border_colors[slot] if slot < len(border_colors) else CONFIG.colors.border
            color = _parse_color(raw, "--border-color")
            steps.append(Border(BorderSpec(percent_of_image=border_percent, color=color)))
        if ratio is not None:
            canvas = _canvas_step(ratio, canvas_color)
            if canvas is not None:
                steps.append(canvas)

    if final_width is not None:
        try:
            steps = plan_final_width(steps, final_width)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--final-width") from exc

    if not steps:
        raise click.UsageError("Nothing to do: give at least one step option or --recipe")

    config = RunConfig.from_behavior(
        CONFIG.behavior,
        steps=tuple(steps),
        output_dir=output_dir,
        output_format=output_format.lower(),
        output_suffix=suffix,
        overwrite=overwrite,
        keep_metadata=keep_metadata,
        resample=resample,
        workers=workers,
        decode_timeout=decode_timeout,
        fail_fast=fail_fast,
    )
    for line in describe(config.steps):
        logger.info("Step: %s", line)

    paths = list(iter_image_paths(input_path))
    if not paths:
        raise click.ClickException(f"No images found in: {input_path}")
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        result = process_batch(paths, config, root=input_path if input_path.is_dir() else None)
    except (FrameOpsError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"{len(result.written)} written, {len(result.skipped)} skipped, "
        f"{len(result.failed)} failed"
    )
    if not result.ok:
        raise click.ClickException(
            "Failed: " + ", ".join(str(path) for path, _ in result.failed)
        )


@cli.command(name="collage")
@click.argument(
    "inputs", nargs=-1, required=True, type=click.Path(path_type=Path, exists=True, dir_okay=False)
)
@click.option("--output", type=click.Path(path_type=Path), required=True, help="Output file")
@click.option(
    "--orientation",
    type=click.Choice([o.value for o in Orientation], case_sensitive=False),
    default=Orientation.VERTICAL.value,
)
@click.option(
    "--max-size",
    type=click.IntRange(min=0),
    default=0,
    help="Shared member width (vertical) or height (horizontal); 0 uses the smallest image",
)
@click.option("--gap", type=click.FloatRange(min=0), default=0, help="Gap between images in pixels")
@click.option(
    "--gap-percent",
    type=click.FloatRange(min=0),
    default=None,
    help="Gap as % of the collage length; overrides --gap",
)
@click.option("--scale-gap/--no-scale-gap", default=False, help="Scale --gap with the images")
@click.option("--gap-color", type=str, default=CONFIG.colors.collage_gap, callback=_color)
@click.option(
    "--resample",
    type=click.Choice(RESAMPLE_CHOICES, case_sensitive=False),
    default=CONFIG.behavior.resample,
)
@click.option("--workers", type=click.IntRange(min=1), default=CONFIG.behavior.workers)
@click.option("--decode-timeout", type=float, default=CONFIG.behavior.decode_timeout)
def cmd_collage(
    inputs: Tuple[Path, ...],
    output: Path,
    orientation: str,
    max_size: int,
    gap: float,
    gap_percent: Optional[float],
    scale_gap: bool,
    gap_color: str,
    resample: str,
    workers: int,
    decode_timeout: Optional[float],
) -> None:
    """Combine INPUTS, in order, into a single collage image."""

    layout = CollageLayout(
        orientation=Orientation(orientation.lower()),
        gap_px=gap,
        canvas_color=gap_color,
        max_dimension_px=max_size,
    )
    try:
        out = build_collage(
            list(inputs),
            layout,
            output,
            resample=resample,
            workers=workers,
            decode_timeout=decode_timeout,
            gap_percent=gap_percent,
            scale_gap=scale_gap,
        )
    except (FrameOpsError, OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Wrote {output} ({out.width}x{out.height})")


if __name__ == "__main__":
    cli()
