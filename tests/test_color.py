# tests/test_color.py
from __future__ import annotations

import re

import pytest
from hypothesis import given, strategies as st

from skyring.core.color import (
    hex_to_rgb,
    hsl_to_rgb,
    rgb_to_hex,
    rgb_to_hsl,
    stop_color,
    transform_color,
)
from skyring.core.constants import BASE_COLORS, FACTOR_NAMES, STOP_ORDER
from skyring.core.models import SkySecondOrderFactors

from _builders import factors, luminance

HEX_RE = re.compile(r"^#[0-9a-f]{6}$")

unit_factors = st.builds(
    SkySecondOrderFactors,
    **{name: st.floats(min_value=0, max_value=1) for name in FACTOR_NAMES},
)


def test_hex_parsing_accepts_short_and_long_forms():
    assert hex_to_rgb("#abc") == (170, 187, 204)
    assert hex_to_rgb("05070f") == (5, 7, 15)
    assert hex_to_rgb("#FFB06E") == (255, 176, 110)


def test_rgb_to_hex_clamps_and_lowercases():
    assert rgb_to_hex((255, 0, 16)) == "#ff0010"
    assert rgb_to_hex((300, -4, 127.5)) == "#ff0080"


def test_primary_hsl_conversions():
    assert rgb_to_hsl((255, 0, 0)) == pytest.approx((0.0, 100.0, 50.0))
    assert rgb_to_hsl((0, 0, 255)) == pytest.approx((240.0, 100.0, 50.0))
    assert hsl_to_rgb((0.0, 100.0, 50.0)) == (255, 0, 0)
    assert hsl_to_rgb((120.0, 100.0, 50.0)) == (0, 255, 0)
    assert hsl_to_rgb((480.0, 100.0, 50.0)) == (0, 255, 0)


def test_grey_rounds_half_up():
    assert hsl_to_rgb((0.0, 0.0, 50.0)) == (128, 128, 128)


def test_magenta_hue_wraps_positive():
    h, s, l = rgb_to_hsl((255, 0, 128))
    assert 300.0 < h < 360.0


@pytest.mark.parametrize("name", STOP_ORDER)
def test_transform_output_is_lowercase_hex(name):
    assert HEX_RE.match(transform_color(name, factors(cloud_fraction=0.5, light_pollution=0.5)))


@given(unit_factors)
def test_transform_keeps_saturation_and_lightness_in_band(f):
    for name in ("solar_noon", "sunset", "astronomical_night"):
        out = transform_color(name, f)
        assert HEX_RE.match(out)
        _, s, l = rgb_to_hsl(hex_to_rgb(out))
        # channel rounding moves HSL a little off the clamp edges
        assert 1.0 <= l <= 97.0


def test_cloud_darkens_noon():
    clear = transform_color("solar_noon", factors())
    cloudy = transform_color("solar_noon", factors(cloud_fraction=1, turbidity=1))
    assert luminance(cloudy) < luminance(clear)


def test_stop_color_without_second_order_is_base():
    for name in STOP_ORDER:
        assert stop_color(name, factors(cloud_fraction=1), apply_second_order=False) == BASE_COLORS[name]
