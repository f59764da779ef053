"""Named colors and hex parsing for the two-color palette."""

from __future__ import annotations

PALETTE = {
    "white": 0xFFFFFF,
    "black": 0x000000,
    "red": 0xFF0000,
    "orange": 0xFFA500,
    "yellow": 0xFFFF00,
    "green": 0x00FF00,
    "blue": 0x0000FF,
    "indigo": 0x4B0082,
    "violet": 0x8F00FF,
}


def parse_color(text: str) -> int:
    """Parse a palette name, ``#RRGGBB`` or ``0xRRGGBB`` into a packed value."""

    value = text.strip().lower()
    if value in PALETTE:
        return PALETTE[value]

    if value.startswith("#"):
        digits = value[1:]
    elif value.startswith("0x"):
        digits = value[2:]
    else:
        raise ValueError(f"unknown color '{text}'; use one of {', '.join(PALETTE)} or #RRGGBB")

    if len(digits) != 6:
        raise ValueError("hex colors must be in the form #RRGGBB.")
    try:
        return int(digits, 16)
    except ValueError as exc:
        raise ValueError("hex colors must contain only hexadecimal digits.") from exc


def format_hex(value: int) -> str:
    return f"#{value:06X}"


def color_name(value: int) -> str:
    for name, packed in PALETTE.items():
        if packed == value:
            return name.capitalize()
    return format_hex(value)
