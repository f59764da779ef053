"""Column partitioning and pixel-to-plane mapping."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .errors import InvalidWorkerCount

if TYPE_CHECKING:
    from .renderer import Viewport


@dataclass(frozen=True)
class Chunk:
    """Half-open range ``[start, end)`` of pixel columns owned by one worker."""

    index: int
    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start

    def columns(self) -> range:
        return range(self.start, self.end)


def partition_columns(width: int, workers: int) -> list[Chunk]:
    """Split ``[0, width)`` into ``workers`` contiguous chunks.

    Every chunk gets ``width // workers`` columns and the last one also takes
    the remainder, so the chunks cover each column exactly once.
    """

    if isinstance(workers, bool) or not isinstance(workers, numbers.Integral):
        raise InvalidWorkerCount(workers, width)
    workers = int(workers)
    if workers < 1 or workers > width:
        raise InvalidWorkerCount(workers, width)

    size = width // workers
    chunks = [Chunk(index=i, start=i * size, end=(i + 1) * size) for i in range(workers - 1)]
    chunks.append(Chunk(index=workers - 1, start=(workers - 1) * size, end=width))
    return chunks


def pixel_to_complex(viewport: "Viewport", width: int, height: int, x: int, y: int) -> complex:
    real = viewport.left + x * (viewport.right - viewport.left) / width
    imag = viewport.top + y * (viewport.bottom - viewport.top) / height
    return complex(real, imag)


def sample_grid(viewport: "Viewport", width: int, height: int, chunk: Chunk) -> tuple[np.ndarray, np.ndarray]:
    """Return the real and imaginary planes sampled by ``chunk``.

    Both planes have shape ``(height, chunk.width)`` and hold exactly the
    values :func:`pixel_to_complex` produces for the same pixels.
    """

    cols = np.arange(chunk.start, chunk.end, dtype=np.float64)
    rows = np.arange(height, dtype=np.float64)
    real = np.float64(viewport.left) + cols * np.float64(viewport.right - viewport.left) / np.float64(width)
    imag = np.float64(viewport.top) + rows * np.float64(viewport.bottom - viewport.top) / np.float64(height)
    re_plane, im_plane = np.meshgrid(real, imag)
    return re_plane, im_plane
