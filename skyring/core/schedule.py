# skyring/core/schedule.py
from __future__ import annotations

"""
Stop schedule builder: baseline minute-of-day for each of the 17 ring stops.

What this module guarantees:
- Every stop gets a value, solved or not. An event without a real solution
  falls back to DEFAULT_STOP_FRACTIONS[name] × 1440 and flags the schedule as
  polar-imputed.
- Derived stops are placed relative to their anchors:
      astronomical_night     = mid(0, astronomical_dawn)
      morning_golden_hour    = sunrise + 60
      mid_morning            = mid(morning_golden_hour, solar_noon)
      mid_afternoon          = mid(solar_noon, afternoon_golden_hour)
      afternoon_golden_hour  = sunset − 60
      late_night             = mid(astronomical_dusk, 1440)
- Monotonic repair: walking STOP_ORDER each value is clamped to
  [previous + 1, 1440]. Near the poles events compress, cross or invert, and
  the ring ordering must hold regardless; this pass is what makes it hold.
- Anchors are pinned last: local_midnight_start = 0, local_midnight_end = 1440.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple
import logging

from skyring.core.constants import (
    DEFAULT_STOP_FRACTIONS,
    END_STOP,
    MINUTES_PER_DAY,
    MS_PER_MINUTE,
    START_STOP,
    STOP_ORDER,
)
from skyring.core.models import Coordinates
from skyring.core.solar import SolarEvents, compute_solar_events

__all__ = ["BaselineSchedule", "build_baseline_schedule", "schedule_from_events"]

log = logging.getLogger(__name__)

_GOLDEN_HOUR_MINUTES = 60.0


@dataclass(frozen=True)
class BaselineSchedule:
    minutes_by_stop: Mapping[str, float]
    polar_condition_imputed: bool
    unsolved_events: Tuple[str, ...] = ()

    def minutes(self, name: str) -> float:
        return self.minutes_by_stop[name]


def _fallback(name: str) -> float:
    return DEFAULT_STOP_FRACTIONS[name] * MINUTES_PER_DAY


def _mid(a: float, b: float) -> float:
    return (a + b) / 2.0


def _minutes_or_fallback(event_ms: Optional[float], day_start_ms: float, name: str) -> float:
    if event_ms is None:
        return _fallback(name)
    return (event_ms - day_start_ms) / MS_PER_MINUTE


def _repair_monotonic(raw: Mapping[str, float]) -> Dict[str, float]:
    bounded: Dict[str, float] = {}
    previous = float("-inf")
    for name in STOP_ORDER:
        value = min(max(raw[name], previous + 1.0), float(MINUTES_PER_DAY))
        bounded[name] = value
        previous = value
    bounded[START_STOP] = 0.0
    bounded[END_STOP] = float(MINUTES_PER_DAY)
    return bounded


def schedule_from_events(events: SolarEvents, day_start_ms: float) -> BaselineSchedule:
    """Map solved (or missing) solar events onto the 17-stop baseline."""
    ev = events.as_dict()
    m = {
        name: _minutes_or_fallback(ev[name], day_start_ms, name)
        for name in (
            "solar_noon", "sunrise", "sunset",
            "civil_dawn", "civil_dusk",
            "nautical_dawn", "nautical_dusk",
            "astronomical_dawn", "astronomical_dusk",
        )
    }
    morning_golden = m["sunrise"] + _GOLDEN_HOUR_MINUTES
    afternoon_golden = m["sunset"] - _GOLDEN_HOUR_MINUTES

    raw = {
        "local_midnight_start": 0.0,
        "astronomical_night": _mid(0.0, m["astronomical_dawn"]),
        "astronomical_dawn": m["astronomical_dawn"],
        "nautical_dawn": m["nautical_dawn"],
        "civil_dawn": m["civil_dawn"],
        "sunrise": m["sunrise"],
        "morning_golden_hour": morning_golden,
        "mid_morning": _mid(morning_golden, m["solar_noon"]),
        "solar_noon": m["solar_noon"],
        "mid_afternoon": _mid(m["solar_noon"], afternoon_golden),
        "afternoon_golden_hour": afternoon_golden,
        "sunset": m["sunset"],
        "civil_dusk": m["civil_dusk"],
        "nautical_dusk": m["nautical_dusk"],
        "astronomical_dusk": m["astronomical_dusk"],
        "late_night": _mid(m["astronomical_dusk"], float(MINUTES_PER_DAY)),
        "local_midnight_end": float(MINUTES_PER_DAY),
    }

    unsolved = tuple(events.unsolved())
    if unsolved:
        log.debug("solar events without solution: %s", ", ".join(unsolved))

    return BaselineSchedule(
        minutes_by_stop=MappingProxyType(_repair_monotonic(raw)),
        polar_condition_imputed=bool(unsolved),
        unsolved_events=unsolved,
    )


def build_baseline_schedule(day_start_ms: float, coords: Coordinates) -> BaselineSchedule:
    """Solve the day's solar events and turn them into the baseline schedule."""
    return schedule_from_events(compute_solar_events(day_start_ms, coords), day_start_ms)
