"""Public API for parallel Mandelbrot rendering and TGA output."""

from .colors import PALETTE, color_name, format_hex, parse_color
from .encoder import TgaHeader, encode_image, read_image, write_image
from .errors import EncodeFailed, InvalidWorkerCount, MandelbrotError, RenderFailed
from .partition import Chunk, partition_columns, pixel_to_complex
from .renderer import (
    HEIGHT,
    MAX_ITERATIONS,
    WIDTH,
    ColorPair,
    ImageBuffer,
    RenderParameters,
    RenderResult,
    Viewport,
    in_set,
    render_chunk,
    render_frame,
)

__all__ = [
    "HEIGHT",
    "MAX_ITERATIONS",
    "PALETTE",
    "WIDTH",
    "Chunk",
    "ColorPair",
    "EncodeFailed",
    "ImageBuffer",
    "InvalidWorkerCount",
    "MandelbrotError",
    "RenderFailed",
    "RenderParameters",
    "RenderResult",
    "TgaHeader",
    "Viewport",
    "color_name",
    "encode_image",
    "format_hex",
    "in_set",
    "parse_color",
    "partition_columns",
    "pixel_to_complex",
    "read_image",
    "render_chunk",
    "render_frame",
    "write_image",
]
