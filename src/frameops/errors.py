"""Exceptions raised by the framing engine and its I/O helpers."""

from __future__ import annotations


class FrameOpsError(Exception):
    """Base class for every error raised by ``frameops``."""


class DecodeError(FrameOpsError, OSError):
    """A source image could not be read or decoded."""


class InvalidColor(FrameOpsError, ValueError):
    """A color string is not a 6-digit hex value."""


class InvalidRatio(FrameOpsError, ValueError):
    """An aspect ratio is negative or has both components set to zero."""


class InsufficientImages(FrameOpsError, ValueError):
    """A collage was requested with fewer than two images."""


class EmptyImage(FrameOpsError, ValueError):
    """An image has zero width or zero height."""


class RecipeError(FrameOpsError, ValueError):
    """A recipe line could not be parsed into a processing step."""


class OutputConflict(FrameOpsError, ValueError):
    """Two sources in one batch would be written to the same output file."""
