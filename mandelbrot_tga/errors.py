"""Exceptions raised by the rendering core."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .partition import Chunk


class MandelbrotError(Exception):
    """Base class for every error raised by :mod:`mandelbrot_tga`."""


class InvalidWorkerCount(MandelbrotError, ValueError):
    """The worker count cannot partition the image columns."""

    def __init__(self, workers: object, width: int) -> None:
        self.workers = workers
        self.width = width
        super().__init__(f"worker count must be an integer between 1 and {width}, got {workers!r}")


class RenderFailed(MandelbrotError, RuntimeError):
    """A chunk task raised before it finished writing its columns."""

    def __init__(self, chunk: "Chunk", cause: BaseException) -> None:
        self.chunk = chunk
        self.cause = cause
        super().__init__(f"chunk {chunk.index} [{chunk.start}, {chunk.end}) failed: {cause!r}")


class EncodeFailed(MandelbrotError, OSError):
    """Writing the encoded image to its destination failed."""

    def __init__(self, cause: OSError, path: Optional[Path] = None) -> None:
        self.cause = cause
        self.path = path
        target = f" to {path}" if path is not None else ""
        super().__init__(f"could not write image{target}: {cause}")
