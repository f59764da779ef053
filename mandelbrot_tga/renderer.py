"""Rendering primitives for Mandelbrot frames."""

from __future__ import annotations

import numbers
import time
import warnings
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from .errors import RenderFailed
from .partition import Chunk, partition_columns, sample_grid

ESCAPE_RADIUS = 2.0
MAX_ITERATIONS = 1000
WIDTH = 1280
HEIGHT = 960
# Outside the 24-bit range, so it never collides with a real color.
UNRENDERED = 0xFF000000

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Viewport:
    """Rectangular region of the complex plane mapped onto the image."""

    left: float = -2.0
    right: float = 1.0
    top: float = 1.125
    bottom: float = -1.125

    def __post_init__(self) -> None:
        if not self.left < self.right:
            raise ValueError(f"viewport left ({self.left}) must be smaller than right ({self.right})")
        if not self.bottom < self.top:
            raise ValueError(f"viewport bottom ({self.bottom}) must be smaller than top ({self.top})")


@dataclass(frozen=True)
class ColorPair:
    """Packed ``0xRRGGBB`` colors for points inside and outside the set."""

    inside: int = 0x000000
    outside: int = 0xFFFFFF

    def __post_init__(self) -> None:
        for name in ("inside", "outside"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFFFF:
                raise ValueError(f"{name} color {value:#x} is not a 24-bit RGB value")


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a single render of the Mandelbrot set."""

    viewport: Viewport = field(default_factory=Viewport)
    colors: ColorPair = field(default_factory=ColorPair)
    max_iterations: int = MAX_ITERATIONS

    def __post_init__(self) -> None:
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, numbers.Integral):
            raise ValueError(f"max_iterations must be an integer, got {self.max_iterations!r}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")


class ImageBuffer:
    """Fixed-size grid of packed RGB cells shared by the chunk workers.

    Workers only ever receive views onto their own columns; the partitioner
    guarantees those views never overlap, so no locking is needed.
    """

    def __init__(self, width: int = WIDTH, height: int = HEIGHT) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._pixels = np.full((height, width), UNRENDERED, dtype=np.uint32)

    @property
    def shape(self) -> tuple[int, int]:
        return self._pixels.shape

    def reset(self) -> None:
        self._pixels.fill(UNRENDERED)

    def column_view(self, chunk: Chunk) -> np.ndarray:
        return self._pixels[:, chunk.start:chunk.end]

    def unrendered_count(self) -> int:
        return int(np.count_nonzero(self._pixels == UNRENDERED))

    def is_complete(self) -> bool:
        return self.unrendered_count() == 0

    def snapshot(self) -> np.ndarray:
        """Read-only view of the cells, valid until the buffer is rendered again."""

        view = self._pixels.view()
        view.setflags(write=False)
        return view


@dataclass(frozen=True)
class RenderResult:
    """Container for a completed render and its timing."""

    image: np.ndarray
    elapsed_ms: float
    workers: int
    chunks: tuple[Chunk, ...]


def in_set(c: complex, max_iterations: int = MAX_ITERATIONS) -> bool:
    """Return ``True`` if ``c`` does not escape within ``max_iterations`` steps."""

    z = 0j
    for _ in range(max_iterations):
        z = z * z + c
        if abs(z) >= ESCAPE_RADIUS:
            return False
    return True


def _escape_step(zr: np.ndarray, zi: np.ndarray, cr: np.ndarray, ci: np.ndarray, active: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Perform a single Mandelbrot iteration for points that have not escaped."""

    zr_new = (zr * zr - zi * zi) + cr
    zi_new = (2.0 * zr * zi) + ci
    zr = np.where(active, zr_new, zr)
    zi = np.where(active, zi_new, zi)
    active = np.logical_and(active, np.hypot(zr, zi) < ESCAPE_RADIUS)
    return zr, zi, active


def _escape_run(cr: np.ndarray, ci: np.ndarray, max_iterations: int) -> np.ndarray:
    """Iterate a block of points and return the mask of those still bounded."""

    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)
    active = np.ones(cr.shape, dtype=bool)

    for _ in range(max_iterations):
        if not active.any():
            break
        zr, zi, active = _escape_step(zr, zi, cr, ci, active)

    return active


def render_chunk(params: RenderParameters, buffer: ImageBuffer, chunk: Chunk) -> Chunk:
    """Classify every pixel in ``chunk`` and write its color into ``buffer``."""

    cr, ci = sample_grid(params.viewport, buffer.width, buffer.height, chunk)
    inside = _escape_run(cr, ci, params.max_iterations)
    target = buffer.column_view(chunk)
    target[...] = np.where(inside, np.uint32(params.colors.inside), np.uint32(params.colors.outside))
    return chunk


def _report_progress(progress: ProgressCallback, completed: int, total: int) -> None:
    try:
        progress(completed, total)
    except Exception as exc:
        warnings.warn(f"Progress callback failed after chunk {completed} of {total}: {exc!r}", RuntimeWarning, stacklevel=3)


def render_frame(
    params: RenderParameters,
    buffer: ImageBuffer,
    *,
    workers: int = 1,
    progress: Optional[ProgressCallback] = None,
) -> RenderResult:
    """Render ``params`` into ``buffer`` using one thread per column chunk.

    Returns only once every chunk task has finished. If any task raises, the
    tasks that have not started are cancelled, the running ones are waited
    for, and :class:`RenderFailed` is raised for the lowest failing chunk.
    """

    chunks = partition_columns(buffer.width, workers)
    buffer.reset()

    failures: dict[int, BaseException] = {}
    completed = 0
    start = time.perf_counter()

    with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="mandelbrot-chunk") as executor:
        futures: dict[Future, Chunk] = {
            executor.submit(render_chunk, params, buffer, chunk): chunk for chunk in chunks
        }
        for future in as_completed(futures):
            chunk = futures[future]
            if future.cancelled():
                continue
            error = future.exception()
            if error is not None:
                failures[chunk.index] = error
                for pending in futures:
                    pending.cancel()
                continue
            completed += 1
            if progress is not None:
                _report_progress(progress, completed, len(chunks))

    elapsed_ms = (time.perf_counter() - start) * 1000.0

    if failures:
        index = min(failures)
        raise RenderFailed(chunks[index], failures[index]) from failures[index]

    return RenderResult(
        image=buffer.snapshot(),
        elapsed_ms=elapsed_ms,
        workers=len(chunks),
        chunks=tuple(chunks),
    )
