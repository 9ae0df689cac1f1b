# skyring/core/local_day.py
from __future__ import annotations
"""
Local day resolver: UTC bounds of the zone's civil day containing an instant.

- Zone offsets via zoneinfo (no fixed-offset assumptions).
- Local midnight found by a bounded fixed point: treat the wall-clock fields
  as UTC, subtract the offset observed at the guess, repeat. On DST-transition
  days the offset at the first guess can differ from the offset at the answer,
  hence the second pass.
- Iteration cap and epsilon are named constants; do not tune them per call.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo

__all__ = [
    "LocalDay",
    "MAX_OFFSET_ITERATIONS",
    "CONVERGENCE_EPSILON_MS",
    "resolve_local_day",
    "zone_offset_seconds",
    "zoned_time_to_utc_ms",
    "utc_ms",
]

MAX_OFFSET_ITERATIONS = 4
CONVERGENCE_EPSILON_MS = 1000

_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class LocalDay:
    day_start_ms: int
    day_end_ms: int
    current_minutes: float  # minutes since local midnight at the instant


def _fields_as_utc_ms(y: int, mo: int, d: int, h: int = 0, mi: int = 0, s: int = 0) -> int:
    return (datetime(y, mo, d, h, mi, s) - _EPOCH) // _ONE_MS


def _zoned_fields(at_ms: float, tz_name: str) -> Tuple[int, int, int, int, int, int]:
    local = datetime.fromtimestamp(at_ms / 1000.0, tz=ZoneInfo(tz_name))
    return local.year, local.month, local.day, local.hour, local.minute, local.second


def zone_offset_seconds(tz_name: str, at_ms: float) -> int:
    """UTC offset (seconds east) in force at the instant."""
    local = datetime.fromtimestamp(at_ms / 1000.0, tz=ZoneInfo(tz_name))
    off = local.utcoffset()
    return int(off.total_seconds()) if off is not None else 0


def zoned_time_to_utc_ms(
    y: int, mo: int, d: int, h: int, mi: int, s: int, tz_name: str
) -> int:
    """Wall-clock fields in `tz_name` → UTC epoch ms (bounded fixed point)."""
    naive_ms = _fields_as_utc_ms(y, mo, d, h, mi, s)
    guess = naive_ms
    for _ in range(MAX_OFFSET_ITERATIONS):
        nxt = naive_ms - zone_offset_seconds(tz_name, guess) * 1000
        if abs(nxt - guess) <= CONVERGENCE_EPSILON_MS:
            return nxt
        guess = nxt
    return guess


def resolve_local_day(at_ms: float, tz_name: str) -> LocalDay:
    """
    Bounds of the local calendar day containing `at_ms` in `tz_name`.

    `day_end_ms` is the next day's local midnight, so a DST day spans 23 h or
    25 h of UTC. Unknown zone names raise `ZoneInfoNotFoundError`; callers
    validate zone names before reaching this core.
    """
    y, mo, d, h, mi, s = _zoned_fields(at_ms, tz_name)
    day_start = zoned_time_to_utc_ms(y, mo, d, 0, 0, 0, tz_name)
    nxt: date = date(y, mo, d) + timedelta(days=1)
    day_end = zoned_time_to_utc_ms(nxt.year, nxt.month, nxt.day, 0, 0, 0, tz_name)
    return LocalDay(
        day_start_ms=day_start,
        day_end_ms=day_end,
        current_minutes=h * 60 + mi + s / 60.0,
    )


def utc_ms(dt: datetime) -> int:
    """Epoch ms of an aware datetime (naive values are read as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt.astimezone(timezone.utc).replace(tzinfo=None) - _EPOCH) // _ONE_MS
