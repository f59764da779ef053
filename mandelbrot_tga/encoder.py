"""Uncompressed 24-bit TGA serialization."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from .errors import EncodeFailed

HEADER_SIZE = 18
TRUECOLOR = 2
BITS_PER_PIXEL = 24
MAX_DIMENSION = 0xFFFF

# id length, color-map type, image type, color-map spec (first entry, length,
# entry size), x origin, y origin, width, height, bits per pixel, descriptor
_HEADER_FORMAT = "<BBBHHBHHHHBB"


@dataclass(frozen=True)
class TgaHeader:
    """The fixed 18-byte header of an uncompressed true-color TGA file."""

    width: int
    height: int
    id_length: int = 0
    color_map_type: int = 0
    image_type: int = TRUECOLOR
    color_map_first_entry: int = 0
    color_map_length: int = 0
    color_map_entry_size: int = 0
    x_origin: int = 0
    y_origin: int = 0
    bits_per_pixel: int = BITS_PER_PIXEL
    descriptor: int = 0

    def __post_init__(self) -> None:
        for name in ("width", "height", "color_map_first_entry", "color_map_length", "x_origin", "y_origin"):
            value = getattr(self, name)
            if not 0 <= value <= MAX_DIMENSION:
                raise ValueError(f"TGA header field {name} must fit in 16 bits, got {value}")
        for name in ("id_length", "color_map_type", "image_type", "color_map_entry_size", "bits_per_pixel", "descriptor"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"TGA header field {name} must fit in 8 bits, got {value}")

    def pack(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.id_length,
            self.color_map_type,
            self.image_type,
            self.color_map_first_entry,
            self.color_map_length,
            self.color_map_entry_size,
            self.x_origin,
            self.y_origin,
            self.width,
            self.height,
            self.bits_per_pixel,
            self.descriptor,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "TgaHeader":
        if len(data) < HEADER_SIZE:
            raise ValueError(f"TGA header needs {HEADER_SIZE} bytes, got {len(data)}")
        (
            id_length,
            color_map_type,
            image_type,
            first_entry,
            map_length,
            entry_size,
            x_origin,
            y_origin,
            width,
            height,
            bits_per_pixel,
            descriptor,
        ) = struct.unpack(_HEADER_FORMAT, data[:HEADER_SIZE])
        if image_type != TRUECOLOR or bits_per_pixel != BITS_PER_PIXEL:
            raise ValueError(f"unsupported TGA image type {image_type} with {bits_per_pixel} bits per pixel")
        return cls(
            width=width,
            height=height,
            id_length=id_length,
            color_map_type=color_map_type,
            image_type=image_type,
            color_map_first_entry=first_entry,
            color_map_length=map_length,
            color_map_entry_size=entry_size,
            x_origin=x_origin,
            y_origin=y_origin,
            bits_per_pixel=bits_per_pixel,
            descriptor=descriptor,
        )


def _pixel_bytes(pixels: np.ndarray) -> bytes:
    # Little-endian 0x00RRGGBB is stored as B, G, R, 0; drop the padding byte.
    packed = np.ascontiguousarray(pixels, dtype="<u4")
    return packed.view(np.uint8).reshape(packed.shape + (4,))[..., :3].tobytes()


def encode_image(pixels: np.ndarray) -> bytes:
    """Serialize a ``(height, width)`` array of packed RGB values."""

    if pixels.ndim != 2:
        raise ValueError(f"expected a 2-D pixel grid, got shape {pixels.shape}")
    height, width = pixels.shape
    if not (0 < width <= MAX_DIMENSION and 0 < height <= MAX_DIMENSION):
        raise ValueError(f"TGA dimensions must be between 1 and {MAX_DIMENSION}, got {width}x{height}")
    if not np.issubdtype(pixels.dtype, np.integer):
        raise ValueError(f"expected integer pixels, got dtype {pixels.dtype}")
    if np.any(pixels < 0) or np.any(pixels > 0xFFFFFF):
        raise ValueError("image contains unrendered or out-of-range pixels")

    return TgaHeader(width=width, height=height).pack() + _pixel_bytes(pixels)


def write_image(path: Union[str, Path], pixels: np.ndarray) -> Path:
    """Encode ``pixels`` and write them to ``path``."""

    output_path = Path(path)
    data = encode_image(pixels)
    try:
        with open(output_path, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise EncodeFailed(exc, output_path) from exc
    return output_path


def read_image(data: bytes) -> tuple[TgaHeader, np.ndarray]:
    """Parse bytes written by :func:`encode_image` back into packed pixels."""

    header = TgaHeader.unpack(data)
    offset = HEADER_SIZE + header.id_length
    expected = header.width * header.height * 3
    body = data[offset:offset + expected]
    if len(body) != expected:
        raise ValueError(f"TGA pixel data truncated: expected {expected} bytes, got {len(body)}")

    bgr = np.frombuffer(body, dtype=np.uint8).reshape(header.height, header.width, 3).astype(np.uint32)
    pixels = bgr[..., 0] | (bgr[..., 1] << 8) | (bgr[..., 2] << 16)
    return header, pixels
