# skyring/core/color.py
"""
Stop colour transform.

Baseline colours live in constants.BASE_COLORS. With second-order factors
applied, each stop's colour is moved in HSL space:

    saturation  −= cloud·22 + turbidity·12,   += ozone·6          → [8, 98]
    lightness   −= cloud·20 + turbidity·12 + humidity·8 + light_pollution·14,
                += altitude·6                                      → [2, 96]
    hue         += light_pollution·12 + turbidity·4   (dusk class & night anchors)
                −= turbidity·5                        (everything else)

Channel rounding is half-up; output is always lowercase "#rrggbb".
"""
from __future__ import annotations

import math
from typing import Tuple

from skyring.core.constants import BASE_COLORS, NIGHT_TINT_STOPS
from skyring.core.models import SkySecondOrderFactors

__all__ = [
    "hex_to_rgb",
    "rgb_to_hex",
    "rgb_to_hsl",
    "hsl_to_rgb",
    "transform_color",
    "stop_color",
]

RGB = Tuple[int, int, int]
HSL = Tuple[float, float, float]

_SATURATION_RANGE = (8.0, 98.0)
_LIGHTNESS_RANGE = (2.0, 96.0)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _round(x: float) -> int:
    return int(math.floor(x + 0.5))


def hex_to_rgb(hex_str: str) -> RGB:
    """'#rgb' or '#rrggbb' (leading '#' optional) → (r, g, b)."""
    s = hex_str.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(c * 2 for c in s)
    value = int(s, 16)
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def rgb_to_hex(rgb: Tuple[float, float, float]) -> str:
    return "#" + "".join(f"{int(_clamp(_round(c), 0, 255)):02x}" for c in rgb)


def rgb_to_hsl(rgb: Tuple[float, float, float]) -> HSL:
    """(r, g, b) in 0..255 → (h degrees [0, 360), s %, l %)."""
    r, g, b = (c / 255.0 for c in rgb)
    hi, lo = max(r, g, b), min(r, g, b)
    delta = hi - lo
    light = (hi + lo) / 2.0
    hue = 0.0
    sat = 0.0
    if delta != 0:
        sat = delta / (1.0 - abs(2.0 * light - 1.0))
        if hi == r:
            hue = math.fmod((g - b) / delta, 6.0)
        elif hi == g:
            hue = (b - r) / delta + 2.0
        else:
            hue = (r - g) / delta + 4.0
    return (hue * 60.0) % 360.0, sat * 100.0, light * 100.0


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1.0
    if t > 1:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 0.5:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


def hsl_to_rgb(hsl: HSL) -> RGB:
    h = (hsl[0] % 360.0) / 360.0
    s = _clamp(hsl[1] / 100.0, 0.0, 1.0)
    l = _clamp(hsl[2] / 100.0, 0.0, 1.0)
    if s == 0:
        grey = _round(l * 255.0)
        return grey, grey, grey
    q = l * (1.0 + s) if l < 0.5 else l + s - l * s
    p = 2.0 * l - q
    return (
        _round(_hue_to_channel(p, q, h + 1.0 / 3.0) * 255.0),
        _round(_hue_to_channel(p, q, h) * 255.0),
        _round(_hue_to_channel(p, q, h - 1.0 / 3.0) * 255.0),
    )


def transform_color(name: str, f: SkySecondOrderFactors) -> str:
    """Baseline colour of stop `name` adjusted for the factor vector."""
    hue, sat, light = rgb_to_hsl(hex_to_rgb(BASE_COLORS[name]))

    sat = sat - f.cloud_fraction * 22 - f.turbidity * 12 + f.ozone_factor * 6
    light = (
        light
        - f.cloud_fraction * 20
        - f.turbidity * 12
        - f.humidity * 8
        + f.altitude * 6
        - f.light_pollution * 14
    )
    if name in NIGHT_TINT_STOPS:
        hue += f.light_pollution * 12 + f.turbidity * 4
    else:
        hue -= f.turbidity * 5

    sat = _clamp(sat, *_SATURATION_RANGE)
    light = _clamp(light, *_LIGHTNESS_RANGE)
    return rgb_to_hex(hsl_to_rgb((hue, sat, light)))


def stop_color(name: str, f: SkySecondOrderFactors, apply_second_order: bool = True) -> str:
    if not apply_second_order:
        return BASE_COLORS[name]
    return transform_color(name, f)
