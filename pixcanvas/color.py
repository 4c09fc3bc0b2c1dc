from __future__ import annotations

import re

from .errors import ColorParseError
from .named_colors import NAMED_COLORS


Color = tuple[int, int, int, int]

_HEX_DIGITS = re.compile(r"[0-9a-f]+")
_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def bytes_to_color(r: int, g: int, b: int, a: int) -> int:
    """Pack four channel values into a big-endian ``0xRRGGBBAA`` integer."""
    return (
        (_to_byte(r) << 24)
        | (_to_byte(g) << 16)
        | (_to_byte(b) << 8)
        | _to_byte(a)
    )


def color_to_bytes(rgba: int) -> Color:
    rgba &= 0xFFFFFFFF
    return ((rgba >> 24) & 0xFF, (rgba >> 16) & 0xFF, (rgba >> 8) & 0xFF, rgba & 0xFF)


def with_alpha(rgba: int, alpha: float) -> int:
    """Replace the alpha byte of ``rgba`` with ``alpha`` (0-255, clamped)."""
    return (rgba & 0xFFFFFF00) | _to_byte(alpha)


def scale_alpha(rgba: int, coverage: float) -> int:
    return with_alpha(rgba, (rgba & 0xFF) * coverage)


def parse_color(value: str) -> int:
    if not isinstance(value, str):
        raise ColorParseError(f"colour must be a string, got {type(value).__name__}")
    text = value.strip().lower()
    if not text:
        raise ColorParseError("colour string is empty")
    if text in NAMED_COLORS:
        return NAMED_COLORS[text]
    if text.startswith("#"):
        return _parse_hex(text[1:], value)
    if text.startswith("rgba(") or text.startswith("rgb("):
        return _parse_functional(text, value)
    raise ColorParseError(f"unrecognised colour: {value!r}")


def _parse_hex(hex_value: str, original: str) -> int:
    if not _HEX_DIGITS.fullmatch(hex_value):
        raise ColorParseError(f"invalid hex colour: {original!r}")
    if len(hex_value) in (3, 4):
        channels = [int(digit * 2, 16) for digit in hex_value]
        if len(channels) == 3:
            channels.append(255)
        return bytes_to_color(*channels)
    if len(hex_value) == 6:
        return (int(hex_value, 16) << 8) | 0xFF
    if len(hex_value) == 8:
        return int(hex_value, 16)
    raise ColorParseError(f"hex colour must have 3, 4, 6 or 8 digits: {original!r}")


def _parse_functional(text: str, original: str) -> int:
    if not text.endswith(")"):
        raise ColorParseError(f"unterminated colour function: {original!r}")
    name, _, body = text[:-1].partition("(")
    parts = [p.strip() for p in body.split(",")]
    expected = 4 if name == "rgba" else 3
    if len(parts) != expected:
        raise ColorParseError(f"{name}() takes {expected} components: {original!r}")
    if not all(_NUMBER.fullmatch(p) for p in parts):
        raise ColorParseError(f"non-numeric colour component: {original!r}")
    channels = [float(p) for p in parts[:3]]
    alpha = float(parts[3]) if expected == 4 else 1.0
    if any(c < 0 or c > 255 for c in channels) or alpha < 0 or alpha > 1:
        raise ColorParseError(f"colour component out of range: {original!r}")
    r, g, b = channels
    return bytes_to_color(r, g, b, alpha * 255)


def _to_byte(value: float) -> int:
    return max(0, min(255, int(value + 0.5)))
