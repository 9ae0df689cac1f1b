# skyring/core/factors.py
"""
Second-order factor sampling.

interpolate_factors(samples, target_ms)
    Irregular, unordered samples → one factor vector at `target_ms`.
    Empty → NEUTRAL_FACTORS; before the first / after the last sample → that
    sample; otherwise per-dimension linear interpolation between the
    bracketing pair, each result clamped to [0, 1].

merge_factors(base, overrides)
    Caller overrides win; every dimension is clamped (non-finite → 0).
"""
from __future__ import annotations

import math
from typing import Mapping, Optional, Sequence

from skyring.core.constants import FACTOR_NAMES, NEUTRAL_FACTORS
from skyring.core.models import SkyFactorSample, SkySecondOrderFactors

__all__ = ["clamp01", "neutral_factors", "interpolate_factors", "merge_factors"]


def clamp01(value: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v):
        return 0.0
    return max(0.0, min(1.0, v))


def neutral_factors() -> SkySecondOrderFactors:
    return SkySecondOrderFactors(**NEUTRAL_FACTORS)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def interpolate_factors(
    samples: Sequence[SkyFactorSample], target_ms: float
) -> SkySecondOrderFactors:
    if not samples:
        return neutral_factors()

    ordered = sorted(samples, key=lambda s: s.timestamp_ms)
    first, last = ordered[0], ordered[-1]
    if target_ms <= first.timestamp_ms:
        return first.factors
    if target_ms >= last.timestamp_ms:
        return last.factors

    for left, right in zip(ordered, ordered[1:]):
        if target_ms <= right.timestamp_ms:
            span = right.timestamp_ms - left.timestamp_ms
            t = 0.0 if span <= 0 else min(1.0, max(0.0, (target_ms - left.timestamp_ms) / span))
            return SkySecondOrderFactors(**{
                name: clamp01(_lerp(left.factors.get(name), right.factors.get(name), t))
                for name in FACTOR_NAMES
            })

    return last.factors  # unreachable: target is strictly inside the sample range


def merge_factors(
    base: SkySecondOrderFactors, overrides: Optional[Mapping[str, float]] = None
) -> SkySecondOrderFactors:
    overrides = overrides or {}
    return SkySecondOrderFactors(**{
        name: clamp01(overrides[name] if overrides.get(name) is not None else base.get(name))
        for name in FACTOR_NAMES
    })
