# skyring/core/sky.py
# -*- coding: utf-8 -*-
"""
24-hour sky ring orchestrator.

compute_sky_24h(coords, environment, at_ms, options=None) -> Sky24hResult

Sequence
--------
1. local day of `at_ms` in `environment.timezone`
2. baseline schedule (solar events → 17 stops, monotonic, polar flag)
3. per stop: sample + merge factors at the baseline instant, shift (when
   second-order is on), final minute-of-day, angle, colour
4. the 15 middle stops re-sorted by final minute (stable); start first, end last
5. diagnostics merged with overrides and the polar flag
6. ring rotation so that "now" sits at the top

Pure and deterministic: same inputs → structurally identical result.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional

from skyring.core.color import stop_color
from skyring.core.constants import (
    END_STOP,
    MINUTES_PER_DAY,
    MS_PER_DAY,
    MS_PER_MINUTE,
    START_STOP,
    STOP_ORDER,
    angle_for_time_offset,
)
from skyring.core.diagnostics import merge_diagnostics
from skyring.core.factors import interpolate_factors, merge_factors
from skyring.core.local_day import LocalDay, resolve_local_day
from skyring.core.models import (
    Coordinates,
    Sky24hResult,
    SkyColorStop,
    SkyComputationOptions,
    SkyEnvironment,
)
from skyring.core.schedule import build_baseline_schedule
from skyring.core.shift import stop_shift_minutes

__all__ = ["compute_sky_24h", "stop_angle_deg", "ring_rotation_deg"]

log = logging.getLogger(__name__)


def stop_angle_deg(minutes_of_day: float) -> float:
    """Clockwise angle from local midnight; the end anchor (1440) maps to 0."""
    if minutes_of_day == MINUTES_PER_DAY:
        minutes_of_day = 0.0
    return (minutes_of_day / MINUTES_PER_DAY * 360.0) % 360.0


def ring_rotation_deg(current_minutes: float) -> float:
    """Rotation in (−180, 180] that brings the current minute to the top."""
    deg = angle_for_time_offset(-current_minutes * 60.0)
    return 180.0 if deg == -180.0 else deg + 0.0


def _final_minutes(name: str, baseline: float, shift: int) -> float:
    if name == START_STOP:
        return 0.0
    if name == END_STOP:
        return float(MINUTES_PER_DAY)
    return (baseline + shift) % MINUTES_PER_DAY


def _build_stop(
    name: str,
    baseline: float,
    day: LocalDay,
    environment: SkyEnvironment,
    options: SkyComputationOptions,
) -> SkyColorStop:
    if name == END_STOP:
        sample_ms = day.day_start_ms + MS_PER_DAY
    else:
        sample_ms = day.day_start_ms + baseline * MS_PER_MINUTE

    factors = merge_factors(
        interpolate_factors(environment.samples, sample_ms), options.factor_overrides
    )
    shift = stop_shift_minutes(name, factors) if options.apply_second_order else 0
    minutes = _final_minutes(name, baseline, shift)
    timestamp = day.day_end_ms if name == END_STOP else day.day_start_ms + minutes * MS_PER_MINUTE

    return SkyColorStop(
        name=name,
        timestamp_ms=timestamp,
        minutes_of_day=minutes,
        angle_deg=stop_angle_deg(minutes),
        color_hex=stop_color(name, factors, options.apply_second_order),
        shift_minutes=shift,
        factors=factors,
    )


def _ordered(stops: List[SkyColorStop]) -> List[SkyColorStop]:
    by_name = {s.name: s for s in stops}
    middle = sorted(
        (s for s in stops if s.name not in (START_STOP, END_STOP)),
        key=lambda s: s.minutes_of_day,
    )
    return [by_name[START_STOP], *middle, by_name[END_STOP]]


def compute_sky_24h(
    coords: Coordinates,
    environment: SkyEnvironment,
    at_ms: float,
    options: Optional[SkyComputationOptions] = None,
) -> Sky24hResult:
    """
    Colour stops and ring rotation for the local day containing `at_ms`.

    Degraded inputs never raise: unsolvable solar events fall back to default
    fractions, empty samples to neutral factors, out-of-range overrides are
    clamped. `diagnostics` records all of it.
    """
    opts = options or SkyComputationOptions()
    day = resolve_local_day(at_ms, environment.timezone)
    schedule = build_baseline_schedule(day.day_start_ms, coords)

    stops = [
        _build_stop(name, schedule.minutes(name), day, environment, opts)
        for name in STOP_ORDER
    ]

    rotation_deg = ring_rotation_deg(day.current_minutes)
    diagnostics = merge_diagnostics(
        environment.diagnostics, opts.factor_overrides, schedule.polar_condition_imputed
    )

    log.debug(
        "sky-24h lat=%.4f long=%.4f tz=%s at=%d second_order=%s rotation=%.3f",
        coords.lat, coords.long, environment.timezone, int(at_ms),
        opts.apply_second_order, rotation_deg,
    )
    if schedule.polar_condition_imputed:
        log.info(
            "polar conditions at lat=%.4f long=%.4f; imputed %s",
            coords.lat, coords.long, ", ".join(schedule.unsolved_events),
        )

    return Sky24hResult(
        timestamp_ms=at_ms,
        timezone=environment.timezone,
        rotation_deg=rotation_deg,
        rotation_rad=rotation_deg * math.pi / 180.0,
        stops=tuple(_ordered(stops)),
        diagnostics=diagnostics,
    )
