# skyring/core/diagnostics.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Mapping, Optional

from skyring.core.constants import (
    FACTOR_NAMES,
    INTERPOLATION_MODE,
    OVERRIDE_NOTE,
    POLAR_FALLBACK_REASON,
)
from skyring.core.factors import clamp01
from skyring.core.models import SkyFactorDiagnostics, SkyFactorSummary

__all__ = ["merge_diagnostics"]


def merge_diagnostics(
    upstream: SkyFactorDiagnostics,
    overrides: Optional[Mapping[str, float]],
    polar_condition_imputed: bool,
) -> SkyFactorDiagnostics:
    """
    Fold caller overrides and the polar flag into the environment's diagnostics.

    Overridden factors are reported as source="override", confidence 1, with
    "manual override" appended to any existing notes. Provider quality is left
    as the upstream reported it. The input object is never mutated.
    """
    factors: Dict[str, SkyFactorSummary] = dict(upstream.factors)
    for name in FACTOR_NAMES:
        value = (overrides or {}).get(name)
        if value is None:
            continue
        prior = factors.get(name)
        factors[name] = SkyFactorSummary(
            value=clamp01(value),
            source="override",
            confidence=1.0,
            notes=(*(prior.notes if prior is not None else ()), OVERRIDE_NOTE),
        )

    reasons = tuple(upstream.fallback_reasons)
    if polar_condition_imputed:
        reasons += (POLAR_FALLBACK_REASON,)

    return replace(
        upstream,
        factors=factors,
        degraded=bool(upstream.degraded or polar_condition_imputed),
        fallback_reasons=reasons,
        interpolation=INTERPOLATION_MODE,
        polar_condition_imputed=polar_condition_imputed,
    )
