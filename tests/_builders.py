# tests/_builders.py
from __future__ import annotations

"""Shared builders for environments and factor vectors."""

from typing import Iterable, Optional, Tuple

from skyring.core.constants import FACTOR_NAMES
from skyring.core.models import (
    SkyEnvironment,
    SkyFactorDiagnostics,
    SkyFactorSample,
    SkyFactorSummary,
    SkySecondOrderFactors,
)


def factors(**kw: float) -> SkySecondOrderFactors:
    """Factor vector; unspecified dimensions are 0."""
    return SkySecondOrderFactors(**{name: float(kw.get(name, 0.0)) for name in FACTOR_NAMES})


def live_diagnostics() -> SkyFactorDiagnostics:
    values = {
        "altitude": (0.2, 0.9),
        "turbidity": (0.3, 0.8),
        "humidity": (0.4, 0.8),
        "cloud_fraction": (0.3, 0.8),
        "ozone_factor": (0.5, 0.7),
        "light_pollution": (0.6, 0.7),
    }
    return SkyFactorDiagnostics(
        factors={
            name: SkyFactorSummary(value=v, source="live", confidence=c)
            for name, (v, c) in values.items()
        },
        provider_quality="live",
        degraded=False,
        fallback_reasons=(),
    )


def environment(
    timezone: str,
    samples: Iterable[Tuple[float, SkySecondOrderFactors]],
    diagnostics: Optional[SkyFactorDiagnostics] = None,
) -> SkyEnvironment:
    return SkyEnvironment(
        timezone=timezone,
        samples=tuple(SkyFactorSample(timestamp_ms=ts, factors=f) for ts, f in samples),
        diagnostics=diagnostics or live_diagnostics(),
    )


def luminance(hex_str: str) -> float:
    value = int(hex_str.lstrip("#"), 16)
    r, g, b = (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF
    return 0.2126 * r + 0.7152 * g + 0.0722 * b
