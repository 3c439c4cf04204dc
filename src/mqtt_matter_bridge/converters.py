"""Brightness and colour conversions between MQTT payloads and Matter attributes.

MQTT devices usually report brightness as 0-255 and colour as an ``RRGGBB``
hex string. Matter level control uses 0-254 and colour control carries hue
and saturation as 0-254 bytes (360 degrees / 100 percent scaled to a byte).

Nothing in here raises on bad input. Parsers return ``None`` and callers log
and drop the message that carried it.
"""

from __future__ import annotations

import math
import re
from typing import NamedTuple

__all__ = [
    "HSV",
    "RGB",
    "brightness_to_level",
    "encode_color_hex",
    "hex_to_hsv",
    "hsv_to_hex",
    "hsv_to_rgb",
    "level_to_brightness",
    "parse_brightness",
    "parse_color_hex",
    "rgb_to_hsv",
]

BRIGHTNESS_MAX = 255
LEVEL_MAX = 254
CHANNEL_MAX = 255
HSV_MAX = 254

_HEX_COLOR_RE = re.compile(r"^([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
# ASCII digits only; a fractional part is truncated
_BRIGHTNESS_RE = re.compile(r"^\s*([+-]?[0-9]+)(?:\.[0-9]*)?\s*$", re.ASCII)


class RGB(NamedTuple):
    """RGB colour, channels 0-255."""

    r: int
    g: int
    b: int


class HSV(NamedTuple):
    """Matter-range HSV colour, every component 0-254."""

    hue: int
    saturation: int
    value: int


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_away(value: float) -> int:
    # int(round()) would round half to even
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def brightness_to_level(brightness: int) -> int:
    """MQTT brightness (0-255) to Matter level (0-254).

    Saturating, not rescaled: 255 and 254 both map to 254.
    """
    clamped = _clamp(brightness, 0, BRIGHTNESS_MAX)
    return int(min(clamped, LEVEL_MAX))


def level_to_brightness(level: int) -> int:
    """Matter level (0-254) to MQTT brightness."""
    return int(_clamp(level, 0, LEVEL_MAX))


def parse_brightness(payload: str) -> int | None:
    """Parse a decimal brightness payload, None unless it lands in 0-255.

    ``"12.5"`` reads as 12. Underscores, exponents and non-ASCII digits are
    rejected.
    """
    match = _BRIGHTNESS_RE.match(payload)
    if match is None:
        return None
    brightness = int(match.group(1))
    if not 0 <= brightness <= BRIGHTNESS_MAX:
        return None
    return brightness


def parse_color_hex(rgb_hex: str, prefix: str | None = None) -> RGB | None:
    """Parse ``RRGGBB`` (optionally preceded by ``prefix``) into an RGB triple."""
    hex_str = rgb_hex
    if prefix and hex_str.startswith(prefix):
        hex_str = hex_str[len(prefix) :]

    match = _HEX_COLOR_RE.match(hex_str)
    if match is None:
        return None
    r, g, b = (int(channel, 16) for channel in match.groups())
    return RGB(r, g, b)


def encode_color_hex(rgb: RGB, prefix: str | None = None) -> str:
    """Encode an RGB triple as lowercase ``RRGGBB``, prefixed when ``prefix`` is given."""
    channels = (int(_clamp(_round_half_away(channel), 0, CHANNEL_MAX)) for channel in rgb)
    hex_str = "".join(f"{channel:02x}" for channel in channels)
    return f"{prefix}{hex_str}" if prefix else hex_str


def rgb_to_hsv(rgb: RGB) -> HSV:
    """Convert 0-255 RGB to Matter-range HSV. Greys get hue 0."""
    r = rgb.r / CHANNEL_MAX
    g = rgb.g / CHANNEL_MAX
    b = rgb.b / CHANNEL_MAX

    max_c = max(r, g, b)
    min_c = min(r, g, b)
    delta = max_c - min_c

    hue = 0.0
    if delta != 0:
        if max_c == r:
            hue = ((g - b) / delta + (6 if g < b else 0)) / 6
        elif max_c == g:
            hue = ((b - r) / delta + 2) / 6
        else:
            hue = ((r - g) / delta + 4) / 6

    saturation = 0.0 if max_c == 0 else delta / max_c

    return HSV(
        hue=_round_half_away(hue * HSV_MAX),
        saturation=_round_half_away(saturation * HSV_MAX),
        value=_round_half_away(max_c * HSV_MAX),
    )


def hsv_to_rgb(hsv: HSV) -> RGB:
    """Convert Matter-range HSV back to 0-255 RGB."""
    h = _clamp(hsv.hue, 0, HSV_MAX) / HSV_MAX
    s = _clamp(hsv.saturation, 0, HSV_MAX) / HSV_MAX
    v = _clamp(hsv.value, 0, HSV_MAX) / HSV_MAX

    sector = math.floor(h * 6)
    f = h * 6 - sector
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)

    match sector % 6:
        case 0:
            r, g, b = v, t, p
        case 1:
            r, g, b = q, v, p
        case 2:
            r, g, b = p, v, t
        case 3:
            r, g, b = p, q, v
        case 4:
            r, g, b = t, p, v
        case _:
            r, g, b = v, p, q

    return RGB(
        r=_round_half_away(r * CHANNEL_MAX),
        g=_round_half_away(g * CHANNEL_MAX),
        b=_round_half_away(b * CHANNEL_MAX),
    )


def hex_to_hsv(rgb_hex: str, prefix: str | None = None) -> HSV | None:
    """``parse_color_hex`` followed by ``rgb_to_hsv``."""
    rgb = parse_color_hex(rgb_hex, prefix)
    if rgb is None:
        return None
    return rgb_to_hsv(rgb)


def hsv_to_hex(hsv: HSV, prefix: str | None = None) -> str:
    """``hsv_to_rgb`` followed by ``encode_color_hex``."""
    return encode_color_hex(hsv_to_rgb(hsv), prefix)
