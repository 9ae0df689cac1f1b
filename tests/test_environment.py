# tests/test_environment.py
from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from skyring.core.constants import FACTOR_NAMES, NEUTRAL_FACTORS
from skyring.core.environment import (
    FallbackEnvironmentProvider,
    build_environment,
    fallback_environment,
    light_pollution_for_granularity,
    normalize_altitude_meters,
    normalize_cloud_fraction,
    normalize_humidity,
    normalize_ozone,
    normalize_turbidity,
    parse_local_hour,
    parse_location_granularity,
)
from skyring.core.local_day import utc_ms
from skyring.core.models import Coordinates

AT = utc_ms(datetime(2026, 6, 21, 12, tzinfo=timezone.utc))

WEATHER = {
    "time": ["2026-06-21T01:00", "2026-06-21T00:00"],
    "relative_humidity_2m": [70, 50],
    "cloud_cover": [20, 10],
}
AIR = {
    "time": ["2026-06-21T00:00", "2026-06-21T01:00"],
    "pm10": [40, 80],
    "ozone": [100, 160],
}


# ───────────────────────── normalisers ─────────────────────────

def test_normalisers_scale_and_clamp():
    assert normalize_altitude_meters(-100) == 0.0
    assert normalize_altitude_meters(1950) == pytest.approx(0.5)
    assert normalize_altitude_meters(9000) == 1.0
    assert normalize_turbidity(40) == pytest.approx(0.5)
    assert normalize_turbidity(400) == 1.0
    assert normalize_humidity(55) == pytest.approx(0.55)
    assert normalize_cloud_fraction(-5) == 0.0
    assert normalize_ozone(100) == pytest.approx(0.5)
    assert normalize_ozone(10) == 0.0


@pytest.mark.parametrize(
    "fn, default",
    [
        (normalize_altitude_meters, 0.15),
        (normalize_turbidity, 0.5),
        (normalize_humidity, 0.5),
        (normalize_cloud_fraction, 0.3),
        (normalize_ozone, 0.5),
    ],
)
def test_normalisers_default_on_missing(fn, default):
    assert fn(None) == default
    assert fn(math.nan) == default
    assert fn("n/a") == default


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("City", "city"),
        ("city district", "city_district"),
        ("Province", "state"),
        ("state-district", "state"),
        ("district", "region"),
        ("neighborhood", "neighbourhood"),
        ("planet", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_granularity_parsing(raw, expected):
    assert parse_location_granularity(raw) == expected


def test_light_pollution_table():
    assert light_pollution_for_granularity("city") == 0.82
    assert light_pollution_for_granularity("suburb") == 0.74
    assert light_pollution_for_granularity("hamlet") == 0.45
    assert light_pollution_for_granularity("country") == 0.42
    assert light_pollution_for_granularity("unknown") == 0.5


def test_parse_local_hour():
    assert parse_local_hour("2026-06-21T00:00", "UTC") == utc_ms(datetime(2026, 6, 21, tzinfo=timezone.utc))
    assert parse_local_hour("2026-06-21T02:00", "Europe/Paris") == utc_ms(datetime(2026, 6, 21, tzinfo=timezone.utc))
    assert parse_local_hour("2026-13-01T00:00", "UTC") is None
    assert parse_local_hour("21/06/2026 00:00", "UTC") is None


# ───────────────────────── assembly ─────────────────────────

def test_full_readings_are_live_and_time_sorted():
    env = build_environment(
        "Europe/Paris", AT, weather=WEATHER, air=AIR, elevation_m=35, granularity="city"
    )
    ts = [s.timestamp_ms for s in env.samples]
    assert ts == sorted(ts) and len(ts) == 2
    assert ts[0] == utc_ms(datetime(2026, 6, 20, 22, tzinfo=timezone.utc))

    first = env.samples[0].factors
    assert first.humidity == pytest.approx(0.5)
    assert first.cloud_fraction == pytest.approx(0.1)
    assert first.turbidity == pytest.approx(0.5)
    assert first.light_pollution == 0.82

    diag = env.diagnostics
    assert diag.provider_quality == "live"
    assert diag.degraded is False
    assert diag.fallback_reasons == ()
    assert diag.factors["humidity"].value == pytest.approx(0.6)
    assert diag.factors["altitude"].confidence == 0.9
    assert all(diag.factors[n].source == "live" for n in FACTOR_NAMES)


def test_weather_only_is_mixed():
    env = build_environment("UTC", AT, weather=WEATHER, fallback_reasons=["air_quality_provider_unavailable"])
    diag = env.diagnostics
    assert diag.provider_quality == "mixed"
    assert diag.degraded is True
    assert diag.factors["humidity"].source == "live"
    assert diag.factors["turbidity"].source == "fallback"
    assert diag.factors["turbidity"].confidence == 0.35
    assert diag.factors["altitude"].value == pytest.approx(0.15)


def test_no_hourly_data_places_one_sample_at_instant():
    env = build_environment("UTC", AT)
    assert len(env.samples) == 1
    assert env.samples[0].timestamp_ms == AT
    assert env.diagnostics.fallback_reasons == ("hourly_data_missing",)
    assert env.diagnostics.provider_quality == "fallback"
    assert env.diagnostics.degraded is True


def test_fallback_environment_is_neutral():
    env = fallback_environment("Asia/Tokyo", AT)
    assert env.timezone == "Asia/Tokyo"
    assert env.samples[0].factors.to_dict() == dict(NEUTRAL_FACTORS)
    assert env.diagnostics.degraded is True
    assert env.diagnostics.fallback_reasons == ("second_order_disabled",)
    assert {s.confidence for s in env.diagnostics.factors.values()} == {0.4}


def test_fallback_provider_uses_its_reason():
    provider = FallbackEnvironmentProvider(reason="live_providers_disabled")
    env = provider.resolve(Coordinates(lat=0, long=0), AT, "UTC")
    assert env.diagnostics.fallback_reasons == ("live_providers_disabled",)


@pytest.mark.parametrize(
    "weather",
    [5, "humid", {"time": "2026-06-21T00:00"}, {"time": ["2026-06-21T00:00"], "cloud_cover": 40}],
)
def test_malformed_blocks_raise_type_error(weather):
    with pytest.raises(TypeError):
        build_environment("UTC", AT, weather=weather)
