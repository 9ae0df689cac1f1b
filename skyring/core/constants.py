# skyring/core/constants.py
# -*- coding: utf-8 -*-
"""
Sky ring: core constants & small helpers

Purpose
-------
Single source of truth for:
- the canonical 17-stop order of the 24-hour ring
- second-order factor names and the neutral factor vector
- baseline stop colours and fallback day fractions
- stop classification (fixed / dawn-class / dusk-class / night tint)
- time constants and tiny angle helpers (normalize/offset → angle)

Design
------
- Pure-Python, no external dependencies.
- Tables are immutable (tuples, frozensets, MappingProxyType); nothing here
  is mutated at runtime, so the module is safe to share across threads.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Final, Literal, Mapping, Tuple

__all__ = [
    # time
    "MINUTES_PER_DAY", "MS_PER_MINUTE", "MS_PER_DAY",
    # stops
    "STOP_ORDER", "START_STOP", "END_STOP", "BASE_COLORS", "DEFAULT_STOP_FRACTIONS",
    "FIXED_STOPS", "DAWN_STOPS", "DUSK_STOPS", "NIGHT_TINT_STOPS",
    "StopClass", "classify_stop",
    # factors
    "FACTOR_NAMES", "NEUTRAL_FACTORS",
    # diagnostics vocabulary
    "INTERPOLATION_MODE", "POLAR_FALLBACK_REASON", "OVERRIDE_NOTE",
    # shift bounds
    "MAX_SHIFT_MINUTES",
    # helpers
    "normalize_degrees", "normalize_radians", "angle_for_time_offset",
]

# ── time constants ───────────────────────────────────────────────────────────
MINUTES_PER_DAY: Final[int] = 24 * 60
MS_PER_MINUTE: Final[int] = 60 * 1000
MS_PER_DAY: Final[int] = MINUTES_PER_DAY * MS_PER_MINUTE
_SECONDS_PER_DAY: Final[int] = 24 * 60 * 60

# ── canonical stops ──────────────────────────────────────────────────────────
STOP_ORDER: Tuple[str, ...] = (
    "local_midnight_start",
    "astronomical_night",
    "astronomical_dawn",
    "nautical_dawn",
    "civil_dawn",
    "sunrise",
    "morning_golden_hour",
    "mid_morning",
    "solar_noon",
    "mid_afternoon",
    "afternoon_golden_hour",
    "sunset",
    "civil_dusk",
    "nautical_dusk",
    "astronomical_dusk",
    "late_night",
    "local_midnight_end",
)
START_STOP: Final[str] = STOP_ORDER[0]
END_STOP: Final[str] = STOP_ORDER[-1]

BASE_COLORS: Mapping[str, str] = MappingProxyType({
    "local_midnight_start": "#05070f",
    "astronomical_night": "#071022",
    "astronomical_dawn": "#12264a",
    "nautical_dawn": "#1f3f6f",
    "civil_dawn": "#f58d62",
    "sunrise": "#ffb06e",
    "morning_golden_hour": "#ffd28b",
    "mid_morning": "#8ec5ff",
    "solar_noon": "#5ea8ff",
    "mid_afternoon": "#7bb7ff",
    "afternoon_golden_hour": "#ffbe74",
    "sunset": "#ff8a5b",
    "civil_dusk": "#8a5aa9",
    "nautical_dusk": "#3d3f78",
    "astronomical_dusk": "#1a2348",
    "late_night": "#0b1030",
    "local_midnight_end": "#05070f",
})

# Fraction of the local day used when a solar event has no real solution.
DEFAULT_STOP_FRACTIONS: Mapping[str, float] = MappingProxyType({
    "local_midnight_start": 0.0,
    "astronomical_night": 0.08,
    "astronomical_dawn": 0.18,
    "nautical_dawn": 0.22,
    "civil_dawn": 0.25,
    "sunrise": 0.27,
    "morning_golden_hour": 0.31,
    "mid_morning": 0.38,
    "solar_noon": 0.5,
    "mid_afternoon": 0.62,
    "afternoon_golden_hour": 0.69,
    "sunset": 0.73,
    "civil_dusk": 0.75,
    "nautical_dusk": 0.78,
    "astronomical_dusk": 0.82,
    "late_night": 0.92,
    "local_midnight_end": 1.0,
})

FIXED_STOPS: frozenset[str] = frozenset({"local_midnight_start", "solar_noon", "local_midnight_end"})
DAWN_STOPS: frozenset[str] = frozenset({
    "astronomical_dawn", "nautical_dawn", "civil_dawn",
    "sunrise", "morning_golden_hour", "mid_morning",
})
DUSK_STOPS: frozenset[str] = frozenset({
    "mid_afternoon", "afternoon_golden_hour", "sunset",
    "civil_dusk", "nautical_dusk", "astronomical_dusk", "late_night",
})
# Stops whose hue drifts warm under light pollution (dusk class + night anchors).
NIGHT_TINT_STOPS: frozenset[str] = DUSK_STOPS | frozenset({
    "astronomical_night", "local_midnight_start", "local_midnight_end",
})

StopClass = Literal["fixed", "dawn", "dusk", "neutral"]


def classify_stop(name: str) -> StopClass:
    """Shift class of a stop. `astronomical_night` is neither fixed nor dawn/dusk."""
    if name in FIXED_STOPS:
        return "fixed"
    if name in DAWN_STOPS:
        return "dawn"
    if name in DUSK_STOPS:
        return "dusk"
    return "neutral"


# ── second-order factors ─────────────────────────────────────────────────────
FACTOR_NAMES: Tuple[str, ...] = (
    "altitude",
    "turbidity",
    "humidity",
    "cloud_fraction",
    "ozone_factor",
    "light_pollution",
)

NEUTRAL_FACTORS: Mapping[str, float] = MappingProxyType({
    "altitude": 0.0,
    "turbidity": 0.5,
    "humidity": 0.5,
    "cloud_fraction": 0.3,
    "ozone_factor": 0.5,
    "light_pollution": 0.5,
})

MAX_SHIFT_MINUTES: Final[int] = 18

# ── diagnostics vocabulary ───────────────────────────────────────────────────
INTERPOLATION_MODE: Final[str] = "hourly_linear"
POLAR_FALLBACK_REASON: Final[str] = "polar_conditions_imputed_events"
OVERRIDE_NOTE: Final[str] = "manual override"


# ── tiny helpers ─────────────────────────────────────────────────────────────
def normalize_degrees(deg: float) -> float:
    """Wrap to [-180, 180)."""
    return (float(deg) + 180.0) % 360.0 - 180.0


def normalize_radians(rad: float) -> float:
    """Wrap to [-π, π)."""
    return (float(rad) + math.pi) % (2.0 * math.pi) - math.pi


def angle_for_time_offset(seconds: float, unit: Literal["deg", "rad"] = "deg") -> float:
    """Clock-face angle for a time offset (a full day is one turn)."""
    deg = normalize_degrees((float(seconds) / _SECONDS_PER_DAY) * 360.0)
    if unit == "deg":
        return deg
    return normalize_radians(math.radians(deg))
