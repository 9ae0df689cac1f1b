# skyring/core/shift.py
"""
Second-order time shift per stop (integer minutes in [-18, 18]).

Perceptual approximation, not a physical derivation: a heavier atmosphere
(cloud, haze, humidity, ozone) lengthens apparent dawn and shortens apparent
dusk; altitude works the other way.

    dawn:  round(clamp( cloud·10 + humidity·3 + turbidity·6 + ozone·2 − altitude·8))
    dusk:  round(clamp(−cloud·10 − humidity·2 − turbidity·6 − ozone·2 + altitude·8))

Fixed stops (both midnights, solar noon) and astronomical_night never move.
"""
from __future__ import annotations

import math

from skyring.core.constants import MAX_SHIFT_MINUTES, classify_stop
from skyring.core.models import SkySecondOrderFactors

__all__ = ["stop_shift_minutes"]


def _bounded_minutes(raw: float) -> int:
    clamped = max(-MAX_SHIFT_MINUTES, min(MAX_SHIFT_MINUTES, raw))
    # half-up, so +0.5 → 1 and −0.5 → 0
    return int(math.floor(clamped + 0.5))


def stop_shift_minutes(name: str, f: SkySecondOrderFactors) -> int:
    kind = classify_stop(name)
    if kind == "dawn":
        return _bounded_minutes(
            f.cloud_fraction * 10
            + f.humidity * 3
            + f.turbidity * 6
            + f.ozone_factor * 2
            - f.altitude * 8
        )
    if kind == "dusk":
        return _bounded_minutes(
            -f.cloud_fraction * 10
            - f.humidity * 2
            - f.turbidity * 6
            - f.ozone_factor * 2
            + f.altitude * 8
        )
    return 0
