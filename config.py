"""Global defaults for the framing and collage toolkit.

This module centralizes defaults for:
- locating input images and writing outputs
- named aspect ratios for social-media frames
- border, canvas and collage colors
- batch behavior (overwrite, metadata, concurrency)

Values here are defaults only. Each run builds its own ``RunConfig``
(see ``src.frameops.pipeline``) from these defaults and the CLI flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple


# Supported file extensions for images
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff")


# Named aspect ratios (x, y) accepted wherever a ratio label is expected.
RATIO_PRESETS: Dict[str, Tuple[int, int]] = {
    "1:1": (1, 1),
    # Portraits
    "4:5": (4, 5),
    "3:4": (3, 4),
    "2:3": (2, 3),
    "9:16": (9, 16),
    # Landscapes
    "5:4": (5, 4),
    "4:3": (4, 3),
    "3:2": (3, 2),
    "16:9": (16, 9),
}


# Color names the command line translates to hex before parsing.
NAMED_COLORS: Dict[str, str] = {
    "white": "#ffffff",
    "black": "#000000",
}


RESAMPLE_METHOD = "lanczos"  # one of {nearest, bilinear, bicubic, lanczos}


@dataclass
class Paths:
    """I/O locations.

    Attributes
    ----------
    input_path
        Path to a single image or a directory containing images.
    output_dir
        Directory where processed images will be written.
    """

    input_path: Path = Path("./data/input")
    output_dir: Path = Path("./data/output")


@dataclass
class Colors:
    """Default colors, as hex strings."""

    border: str = "#ffffff"
    canvas: str = "#ffffff"
    collage_gap: str = "#ffffff"


@dataclass
class Behavior:
    """Processing behavior toggles.

    Attributes
    ----------
    overwrite
        Whether to overwrite files in the output directory.
    keep_metadata
        If True, carry EXIF metadata from each source into its output.
    resample
        Resampling method for resizing operations. One of: 'nearest', 'bilinear',
        'bicubic', 'lanczos'.
    output_format
        Format of written images: 'png', 'jpg' or 'webp'.
    output_suffix
        Appended to each source file stem to form the output name.
    workers
        Threads used to decode images concurrently.
    decode_timeout
        Seconds to wait for a single decode; None waits indefinitely.
    fail_fast
        Abort a batch on its first failed image instead of skipping it.
    """

    overwrite: bool = False
    keep_metadata: bool = True
    resample: str = RESAMPLE_METHOD
    output_format: str = "png"
    output_suffix: str = ""
    workers: int = 4
    decode_timeout: Optional[float] = None
    fail_fast: bool = False


@dataclass
class ProjectConfig:
    """Top-level configuration container.

    Attributes
    ----------
    paths
        Input/output locations.
    colors
        Default border, canvas and collage gap colors.
    behavior
        Execution-time toggles.
    ratio_presets
        Mapping from ratio label to ``(x, y)``.
    """

    paths: Paths = field(default_factory=Paths)
    colors: Colors = field(default_factory=Colors)
    behavior: Behavior = field(default_factory=Behavior)
    ratio_presets: Dict[str, Tuple[int, int]] = field(
        default_factory=lambda: dict(RATIO_PRESETS)
    )


# Default config instance read by the CLI; never mutated at run time
CONFIG = ProjectConfig()
