# skyring/core/environment.py
"""
Environment assembly: raw readings → SkyEnvironment (pure, no I/O).

Inputs follow the Open-Meteo hourly layout (parallel arrays keyed by a local
"YYYY-MM-DDTHH:MM" time column), an elevation in metres and a reverse-geocode
place type. Fetching them is someone else's job; this module only normalises,
merges and scores.

Normalisers (missing/non-finite → neutral default, result clamped to [0, 1]):
    altitude         (m + 100) / 4100        default 0.15
    turbidity        pm10 / 80               default 0.5
    humidity         rh / 100                default 0.5
    cloud_fraction   cloud_cover / 100       default 0.3
    ozone_factor     (o3 − 40) / 120         default 0.5
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Set, Tuple

from skyring.core.constants import FACTOR_NAMES, NEUTRAL_FACTORS
from skyring.core.factors import clamp01
from skyring.core.local_day import zoned_time_to_utc_ms
from skyring.core.models import (
    Coordinates,
    ProviderQuality,
    SkyEnvironment,
    SkyFactorDiagnostics,
    SkyFactorSample,
    SkyFactorSummary,
    SkySecondOrderFactors,
)

__all__ = [
    "LOCATION_GRANULARITIES",
    "FACTOR_CONFIDENCE",
    "FALLBACK_CONFIDENCE",
    "HOURLY_DATA_MISSING",
    "SECOND_ORDER_DISABLED",
    "normalize_altitude_meters",
    "normalize_turbidity",
    "normalize_humidity",
    "normalize_cloud_fraction",
    "normalize_ozone",
    "parse_location_granularity",
    "light_pollution_for_granularity",
    "parse_local_hour",
    "build_environment",
    "fallback_environment",
    "SkyEnvironmentProvider",
    "FallbackEnvironmentProvider",
]

log = logging.getLogger(__name__)

HOURLY_DATA_MISSING = "hourly_data_missing"
SECOND_ORDER_DISABLED = "second_order_disabled"
FALLBACK_CONFIDENCE = 0.4

LOCATION_GRANULARITIES: Tuple[str, ...] = (
    "country", "state", "region", "county", "municipality",
    "city", "town", "village", "suburb", "hamlet",
    "city_district", "neighbourhood", "unknown",
)

_GRANULARITY_ALIASES = {
    "province": "state",
    "state_district": "state",
    "district": "region",
    "neighborhood": "neighbourhood",
}

_LIGHT_POLLUTION = {
    "city": 0.82, "city_district": 0.82,
    "suburb": 0.74, "neighbourhood": 0.74,
    "town": 0.68, "municipality": 0.68,
    "village": 0.55,
    "hamlet": 0.45,
    "county": 0.5, "region": 0.5,
    "state": 0.48,
    "country": 0.42,
}

# factor → (confidence when live, confidence when fallback)
FACTOR_CONFIDENCE: Dict[str, Tuple[float, float]] = {
    "altitude": (0.9, 0.4),
    "turbidity": (0.75, 0.35),
    "humidity": (0.85, 0.45),
    "cloud_fraction": (0.85, 0.45),
    "ozone_factor": (0.7, 0.35),
    "light_pollution": (0.65, 0.4),
}

_LOCAL_HOUR_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2})$")


# ───────────────────────────── normalisers ─────────────────────────────

def _finite(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


def normalize_altitude_meters(elevation_m: Any) -> float:
    x = _finite(elevation_m)
    return 0.15 if x is None else clamp01((x + 100.0) / 4100.0)


def normalize_turbidity(pm10: Any) -> float:
    x = _finite(pm10)
    return 0.5 if x is None else clamp01(x / 80.0)


def normalize_humidity(relative_humidity: Any) -> float:
    x = _finite(relative_humidity)
    return 0.5 if x is None else clamp01(x / 100.0)


def normalize_cloud_fraction(cloud_cover: Any) -> float:
    x = _finite(cloud_cover)
    return 0.3 if x is None else clamp01(x / 100.0)


def normalize_ozone(ozone: Any) -> float:
    x = _finite(ozone)
    return 0.5 if x is None else clamp01((x - 40.0) / 120.0)


def parse_location_granularity(value: Optional[str]) -> str:
    """Reverse-geocode place type → one of LOCATION_GRANULARITIES."""
    if not value:
        return "unknown"
    token = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    token = _GRANULARITY_ALIASES.get(token, token)
    return token if token in LOCATION_GRANULARITIES else "unknown"


def light_pollution_for_granularity(granularity: str) -> float:
    return _LIGHT_POLLUTION.get(granularity, 0.5)


def parse_local_hour(value: str, timezone: str) -> Optional[int]:
    """'YYYY-MM-DDTHH:MM' wall-clock in `timezone` → UTC epoch ms, or None."""
    m = _LOCAL_HOUR_RE.match(str(value).strip())
    if not m:
        return None
    y, mo, d, h, mi = (int(g) for g in m.groups())
    try:
        return zoned_time_to_utc_ms(y, mo, d, h, mi, 0, timezone)
    except ValueError:
        # e.g. month 13; the regex only checks digit counts
        return None


# ───────────────────────────── assembly ─────────────────────────────

def _column(block: Optional[Mapping[str, Any]], key: str) -> List[Any]:
    if not block:
        return []
    if not isinstance(block, Mapping):
        raise TypeError(f"hourly block must be an object, got {type(block).__name__}")
    col = block.get(key)
    if col is None:
        return []
    if isinstance(col, (str, bytes)) or not isinstance(col, Sequence):
        raise TypeError(f"hourly column {key!r} must be a list")
    return list(col)


def _index_by_time(
    block: Optional[Mapping[str, Any]],
    timezone: str,
    keys: Sequence[str],
) -> Dict[int, Dict[str, Any]]:
    times = _column(block, "time")
    columns = {k: _column(block, k) for k in keys}
    out: Dict[int, Dict[str, Any]] = {}
    for i, raw in enumerate(times):
        if not raw:
            continue
        ts = parse_local_hour(raw, timezone)
        if ts is None:
            continue
        out[ts] = {k: (col[i] if i < len(col) else None) for k, col in columns.items()}
    return out


def _average(values: Iterable[float]) -> float:
    vals = list(values)
    return sum(vals) / len(vals) if vals else 0.0


def _provider_quality(live: Set[str]) -> ProviderQuality:
    n = sum(1 for name in FACTOR_NAMES if name in live)
    if n == len(FACTOR_NAMES):
        return "live"
    if n == 0:
        return "fallback"
    return "mixed"


def _diagnostics(
    values: Mapping[str, float], live: Set[str], reasons: Sequence[str]
) -> SkyFactorDiagnostics:
    factors = {}
    for name in FACTOR_NAMES:
        live_conf, fallback_conf = FACTOR_CONFIDENCE[name]
        is_live = name in live
        factors[name] = SkyFactorSummary(
            value=clamp01(values[name]),
            source="live" if is_live else "fallback",
            confidence=clamp01(live_conf if is_live else fallback_conf),
        )
    return SkyFactorDiagnostics(
        factors=factors,
        provider_quality=_provider_quality(live),
        degraded=len(reasons) > 0,
        fallback_reasons=tuple(reasons),
    )


def build_environment(
    timezone: str,
    at_ms: float,
    weather: Optional[Mapping[str, Any]] = None,
    air: Optional[Mapping[str, Any]] = None,
    elevation_m: Any = None,
    granularity: Optional[str] = None,
    fallback_reasons: Sequence[str] = (),
) -> SkyEnvironment:
    """
    Merge hourly weather/air readings into a time-sorted SkyEnvironment.

    `weather` carries `time`, `relative_humidity_2m`, `cloud_cover`; `air`
    carries `time`, `pm10`, `ozone`. With no usable hour at all a single
    sample is placed at `at_ms` and "hourly_data_missing" is recorded.

    A block that is not an object, or a column that is not a list, raises
    TypeError.
    """
    reasons = list(fallback_reasons)
    weather_by_time = _index_by_time(weather, timezone, ("relative_humidity_2m", "cloud_cover"))
    air_by_time = _index_by_time(air, timezone, ("pm10", "ozone"))

    times: Set[int] = set(weather_by_time) | set(air_by_time)
    if not times:
        times.add(int(at_ms))
        reasons.append(HOURLY_DATA_MISSING)

    gran = parse_location_granularity(granularity)
    altitude = normalize_altitude_meters(elevation_m)
    light_pollution = light_pollution_for_granularity(gran)

    samples = []
    for ts in sorted(times):
        w = weather_by_time.get(ts, {})
        a = air_by_time.get(ts, {})
        samples.append(SkyFactorSample(
            timestamp_ms=ts,
            factors=SkySecondOrderFactors(
                altitude=altitude,
                turbidity=normalize_turbidity(a.get("pm10")),
                humidity=normalize_humidity(w.get("relative_humidity_2m")),
                cloud_fraction=normalize_cloud_fraction(w.get("cloud_cover")),
                ozone_factor=normalize_ozone(a.get("ozone")),
                light_pollution=light_pollution,
            ),
        ))

    live: Set[str] = set()
    if _finite(elevation_m) is not None:
        live.add("altitude")
    if weather_by_time:
        live.update(("humidity", "cloud_fraction"))
    if air_by_time:
        live.update(("turbidity", "ozone_factor"))
    if gran != "unknown":
        live.add("light_pollution")

    values = {name: _average(s.factors.get(name) for s in samples) for name in FACTOR_NAMES}
    env = SkyEnvironment(
        timezone=timezone,
        samples=tuple(samples),
        diagnostics=_diagnostics(values, live, reasons),
    )
    log.debug(
        "environment tz=%s samples=%d quality=%s reasons=%s",
        timezone, len(samples), env.diagnostics.provider_quality, reasons,
    )
    return env


def fallback_environment(
    timezone: str, at_ms: float, reason: str = SECOND_ORDER_DISABLED
) -> SkyEnvironment:
    """One neutral sample at `at_ms`; every factor reported as fallback."""
    neutral = SkySecondOrderFactors(**NEUTRAL_FACTORS)
    return SkyEnvironment(
        timezone=timezone,
        samples=(SkyFactorSample(timestamp_ms=at_ms, factors=neutral),),
        diagnostics=SkyFactorDiagnostics(
            factors={
                name: SkyFactorSummary(
                    value=NEUTRAL_FACTORS[name], source="fallback", confidence=FALLBACK_CONFIDENCE
                )
                for name in FACTOR_NAMES
            },
            provider_quality="fallback",
            degraded=True,
            fallback_reasons=(reason,),
        ),
    )


# ───────────────────────────── providers ─────────────────────────────

class SkyEnvironmentProvider(Protocol):
    def resolve(self, coords: Coordinates, at_ms: float, timezone: str) -> SkyEnvironment:
        ...


class FallbackEnvironmentProvider:
    """Provider that never touches the network; always neutral factors."""

    def __init__(self, reason: str = SECOND_ORDER_DISABLED):
        self.reason = reason

    def resolve(self, coords: Coordinates, at_ms: float, timezone: str) -> SkyEnvironment:
        return fallback_environment(timezone, at_ms, self.reason)
