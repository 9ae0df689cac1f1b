# skyring/core/solar.py
# -*- coding: utf-8 -*-
"""
Solar event calculator (closed-form, low precision).

Pipeline per local day:
    days since J2000 → Julian cycle → approximate transit
    → solar mean anomaly → ecliptic longitude (3-term equation of centre)
    → declination (fixed obliquity 23.4397°) → transit (solar noon)
    → hour angle per altitude threshold → rise/set instants

Accuracy is about a minute at mid latitudes, which is all a 24-hour colour
ring needs. The hour-angle solve has no real solution when the sun never
reaches the threshold altitude (polar day / polar night); such events are
returned as None and never as a sentinel timestamp.

Public API:
    compute_solar_events(day_start_ms, coords) -> SolarEvents
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Final, List, Optional, Tuple
import math

from skyring.core.constants import MS_PER_DAY
from skyring.core.models import Coordinates

__all__ = [
    "SolarEvents",
    "EVENT_THRESHOLDS_DEG",
    "compute_solar_events",
    "hour_angle",
]

_RAD: Final[float] = math.pi / 180.0
_J1970: Final[float] = 2_440_588.0
_J2000: Final[float] = 2_451_545.0
_OBLIQUITY: Final[float] = 23.4397 * _RAD
_PERIHELION: Final[float] = 102.9372 * _RAD
_J0: Final[float] = 0.0009  # transit epoch correction (days)

# (dawn field, dusk field) → sun altitude threshold in degrees
EVENT_THRESHOLDS_DEG: Final[Tuple[Tuple[str, str, float], ...]] = (
    ("sunrise", "sunset", -0.833),
    ("civil_dawn", "civil_dusk", -6.0),
    ("nautical_dawn", "nautical_dusk", -12.0),
    ("astronomical_dawn", "astronomical_dusk", -18.0),
)


@dataclass(frozen=True)
class SolarEvents:
    """UTC epoch ms of each event for one local day; None = no real solution."""

    solar_noon: Optional[float] = None
    sunrise: Optional[float] = None
    sunset: Optional[float] = None
    civil_dawn: Optional[float] = None
    civil_dusk: Optional[float] = None
    nautical_dawn: Optional[float] = None
    nautical_dusk: Optional[float] = None
    astronomical_dawn: Optional[float] = None
    astronomical_dusk: Optional[float] = None

    def unsolved(self) -> List[str]:
        """Names of the rise/set sub-events that have no solution (solar noon excluded)."""
        return [
            f.name for f in fields(self)
            if f.name != "solar_noon" and getattr(self, f.name) is None
        ]

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ───────────────────────────── Julian helpers ─────────────────────────────

def _round_half_up(x: float) -> float:
    return math.floor(x + 0.5)


def _to_julian(ms: float) -> float:
    return ms / MS_PER_DAY - 0.5 + _J1970


def _from_julian(jd: float) -> float:
    return (jd + 0.5 - _J1970) * MS_PER_DAY


def _to_days(ms: float) -> float:
    return _to_julian(ms) - _J2000


# ───────────────────────────── Solar geometry ─────────────────────────────

def _solar_mean_anomaly(days: float) -> float:
    return _RAD * (357.5291 + 0.98560028 * days)


def _ecliptic_longitude(m: float) -> float:
    c = _RAD * (1.9148 * math.sin(m) + 0.02 * math.sin(2 * m) + 0.0003 * math.sin(3 * m))
    return m + c + _PERIHELION + math.pi


def _declination(lon: float) -> float:
    # ecliptic latitude of the sun is taken as 0
    return math.asin(math.sin(_OBLIQUITY) * math.sin(lon))


def _julian_cycle(days: float, lw: float) -> float:
    return _round_half_up(days - _J0 - lw / (2 * math.pi))


def _approx_transit(ht: float, lw: float, n: float) -> float:
    return _J0 + (ht + lw) / (2 * math.pi) + n


def _solar_transit_j(ds: float, m: float, lon: float) -> float:
    return _J2000 + ds + 0.0053 * math.sin(m) - 0.0069 * math.sin(2 * lon)


def hour_angle(altitude: float, phi: float, dec: float) -> Optional[float]:
    """
    Hour angle (radians) at which the sun crosses `altitude`, or None.

    Solves cos(H) = (sin(h) − sin(φ)·sin(δ)) / (cos(φ)·cos(δ)); a ratio outside
    [−1, 1] (or non-finite) means the sun never crosses that altitude today.
    """
    den = math.cos(phi) * math.cos(dec)
    if den == 0.0:
        return None
    x = (math.sin(altitude) - math.sin(phi) * math.sin(dec)) / den
    if not math.isfinite(x) or x < -1.0 or x > 1.0:
        return None
    return math.acos(x)


def _normalize_to_day(ms: float, day_start_ms: float) -> float:
    return day_start_ms + (ms - day_start_ms) % MS_PER_DAY


# ───────────────────────────── Public API ─────────────────────────────

def compute_solar_events(day_start_ms: float, coords: Coordinates) -> SolarEvents:
    """
    Solar noon and the four rise/set pairs for the day starting at `day_start_ms`.

    Every solved instant is folded into [day_start, day_start + 24 h). Dawn-class
    instants that land after solar noon move back a day and dusk-class instants
    that land before it move forward a day, so dawn ≤ noon ≤ dusk always holds.
    """
    lw = -float(coords.long) * _RAD
    phi = float(coords.lat) * _RAD
    n = _julian_cycle(_to_days(day_start_ms), lw)
    ds = _approx_transit(0.0, lw, n)
    m = _solar_mean_anomaly(ds)
    lon = _ecliptic_longitude(m)
    dec = _declination(lon)
    noon = _normalize_to_day(_from_julian(_solar_transit_j(ds, m, lon)), day_start_ms)

    def _event(alt_deg: float, rise: bool) -> Optional[float]:
        w = hour_angle(alt_deg * _RAD, phi, dec)
        if w is None:
            return None
        a = _approx_transit(-w if rise else w, lw, n)
        return _normalize_to_day(_from_julian(_solar_transit_j(a, m, lon)), day_start_ms)

    out: Dict[str, Optional[float]] = {"solar_noon": noon}
    for dawn_name, dusk_name, alt_deg in EVENT_THRESHOLDS_DEG:
        dawn = _event(alt_deg, True)
        if dawn is not None and dawn > noon:
            dawn -= MS_PER_DAY
        dusk = _event(alt_deg, False)
        if dusk is not None and dusk < noon:
            dusk += MS_PER_DAY
        out[dawn_name] = dawn
        out[dusk_name] = dusk

    return SolarEvents(**out)
