"""Exceptions raised by the puzzle backend.

Illegal moves are deliberately absent: an illegal click is a no-op, not
an error.
"""

from __future__ import annotations


class PuzzleError(Exception):
    """Base class for every recoverable backend failure."""


class ImageLoadError(PuzzleError):
    """The source image could not be fetched or decoded."""


class RenderError(PuzzleError):
    """A tile could not be cropped, scaled, or encoded."""


class GenerationError(PuzzleError):
    """The remote image generator produced no usable image."""
