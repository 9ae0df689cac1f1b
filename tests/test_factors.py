# tests/test_factors.py
from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from skyring.core.constants import FACTOR_NAMES, NEUTRAL_FACTORS
from skyring.core.factors import clamp01, interpolate_factors, merge_factors
from skyring.core.models import SkyFactorSample

from _builders import factors


def _sample(ts, **kw):
    return SkyFactorSample(timestamp_ms=ts, factors=factors(**kw))


@pytest.mark.parametrize(
    "raw, expected",
    [(0.25, 0.25), (-1, 0.0), (2, 1.0), (math.nan, 0.0), (math.inf, 0.0), (-math.inf, 0.0), ("x", 0.0), (None, 0.0)],
)
def test_clamp01(raw, expected):
    assert clamp01(raw) == expected


def test_empty_samples_give_neutral_vector():
    assert interpolate_factors([], 123).to_dict() == dict(NEUTRAL_FACTORS)


def test_outside_range_returns_nearest_sample():
    samples = [_sample(1000, humidity=0.2), _sample(2000, humidity=0.8)]
    assert interpolate_factors(samples, 0).humidity == 0.2
    assert interpolate_factors(samples, 1000).humidity == 0.2
    assert interpolate_factors(samples, 2000).humidity == 0.8
    assert interpolate_factors(samples, 9999).humidity == 0.8


def test_linear_between_bracketing_pair_regardless_of_input_order():
    samples = [
        _sample(3000, altitude=1.0, cloud_fraction=0.0),
        _sample(1000, altitude=0.0, cloud_fraction=1.0),
        _sample(2000, altitude=0.5, cloud_fraction=0.5),
    ]
    got = interpolate_factors(samples, 2500)
    assert got.altitude == pytest.approx(0.75)
    assert got.cloud_fraction == pytest.approx(0.25)


def test_single_sample_is_constant():
    s = _sample(5000, turbidity=0.4, ozone_factor=0.6)
    for t in (0, 5000, 10_000):
        assert interpolate_factors([s], t) == s.factors


@given(
    a=st.floats(0, 1), b=st.floats(0, 1),
    t=st.integers(min_value=-1000, max_value=5000),
)
def test_interpolated_values_stay_between_endpoints(a, b, t):
    got = interpolate_factors([_sample(0, humidity=a), _sample(4000, humidity=b)], t).humidity
    assert min(a, b) - 1e-12 <= got <= max(a, b) + 1e-12


def test_merge_overrides_win_and_clamp():
    base = factors(altitude=0.2, humidity=0.4, cloud_fraction=0.3)
    merged = merge_factors(base, {"cloud_fraction": 2, "humidity": -1, "altitude": None})
    assert merged.cloud_fraction == 1.0
    assert merged.humidity == 0.0
    assert merged.altitude == 0.2


def test_merge_without_overrides_clamps_base():
    base = factors(altitude=1.5, turbidity=math.nan)
    merged = merge_factors(base)
    assert merged.altitude == 1.0
    assert merged.turbidity == 0.0
    assert set(merged.to_dict()) == set(FACTOR_NAMES)
