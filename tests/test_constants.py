# tests/test_constants.py
from __future__ import annotations

import math

import pytest

from skyring.core.constants import angle_for_time_offset, normalize_degrees, normalize_radians

HOUR_S = 3600


def test_zero_offset_is_zero_angle():
    assert angle_for_time_offset(0) == 0.0
    assert angle_for_time_offset(0, "rad") == 0.0


@pytest.mark.parametrize(
    "seconds, deg",
    [
        (6 * HOUR_S, 90.0),
        (-6 * HOUR_S, -90.0),
        (15 * HOUR_S, -135.0),
        (-15 * HOUR_S, 135.0),
        (24 * HOUR_S, 0.0),
    ],
)
def test_offsets_map_to_wrapped_degrees(seconds, deg):
    assert angle_for_time_offset(seconds) == pytest.approx(deg)


def test_radians_stay_in_half_open_range():
    rad = angle_for_time_offset(6 * HOUR_S, "rad")
    assert rad == pytest.approx(math.pi / 2, abs=1e-10)
    assert -math.pi <= rad < math.pi


def test_degree_boundaries_wrap_to_minus_180():
    assert normalize_degrees(180) == -180.0
    assert normalize_degrees(-180) == -180.0
    assert normalize_degrees(540) == -180.0


def test_radian_boundaries():
    assert normalize_radians(math.pi) == pytest.approx(-math.pi, abs=1e-10)
    assert normalize_radians(-math.pi) == pytest.approx(-math.pi, abs=1e-10)
    # float error on 3π can land either side of the seam
    assert abs(normalize_radians(3 * math.pi)) == pytest.approx(math.pi, abs=1e-10)
