# skyring/core/models.py
"""
Data model for the sky ring: explicit shapes between input, compute and the
JSON edge.

Every type is a frozen dataclass. Result types expose `to_dict()` returning the
camelCase JSON payload verbatim; input types expose `from_dict()` so the HTTP
layer can accept the same shape back.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

from skyring.core.constants import FACTOR_NAMES, INTERPOLATION_MODE

__all__ = [
    "Coordinates",
    "SkySecondOrderFactors",
    "SkyFactorSample",
    "SkyFactorSummary",
    "SkyFactorDiagnostics",
    "SkyEnvironment",
    "SkyColorStop",
    "Sky24hResult",
    "SkyComputationOptions",
    "FactorSource",
    "ProviderQuality",
]

FactorSource = Literal["live", "fallback", "override"]
ProviderQuality = Literal["live", "mixed", "fallback"]


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _pick(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _as_float(v: Any, default: float = 0.0) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        return default
    return x if math.isfinite(x) else default


@dataclass(frozen=True)
class Coordinates:
    lat: float   # degrees, north positive
    long: float  # degrees, east positive

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "long": self.long}


@dataclass(frozen=True)
class SkySecondOrderFactors:
    """Six atmospheric/observational scalars, nominally in [0, 1]."""

    altitude: float
    turbidity: float
    humidity: float
    cloud_fraction: float
    ozone_factor: float
    light_pollution: float

    def get(self, name: str) -> float:
        return float(getattr(self, name))

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in FACTOR_NAMES}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SkySecondOrderFactors":
        data = _require_mapping(data, "factors")
        missing = [n for n in FACTOR_NAMES if n not in data]
        if missing:
            raise KeyError(f"missing factor(s): {', '.join(missing)}")
        return cls(**{n: _as_float(data[n]) for n in FACTOR_NAMES})


@dataclass(frozen=True)
class SkyFactorSample:
    timestamp_ms: float
    factors: SkySecondOrderFactors

    def to_dict(self) -> Dict[str, Any]:
        return {"timestampMs": self.timestamp_ms, "factors": self.factors.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkyFactorSample":
        data = _require_mapping(data, "sample")
        return cls(
            timestamp_ms=float(_pick(data, "timestampMs", "timestamp_ms")),
            factors=SkySecondOrderFactors.from_mapping(data["factors"]),
        )


@dataclass(frozen=True)
class SkyFactorSummary:
    value: float
    source: FactorSource
    confidence: float
    notes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "notes", tuple(self.notes))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "source": self.source,
            "confidence": self.confidence,
            "notes": list(self.notes),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkyFactorSummary":
        data = _require_mapping(data, "factor summary")
        source = str(data.get("source", "fallback"))
        if source not in ("live", "fallback", "override"):
            source = "fallback"
        return cls(
            value=_as_float(data.get("value")),
            source=source,  # type: ignore[arg-type]
            confidence=_as_float(data.get("confidence")),
            notes=tuple(str(n) for n in (data.get("notes") or ())),
        )


@dataclass(frozen=True)
class SkyFactorDiagnostics:
    factors: Dict[str, SkyFactorSummary]
    provider_quality: ProviderQuality
    degraded: bool
    fallback_reasons: Tuple[str, ...] = ()
    interpolation: str = INTERPOLATION_MODE
    polar_condition_imputed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "factors": {name: s.to_dict() for name, s in self.factors.items()},
            "providerQuality": self.provider_quality,
            "degraded": self.degraded,
            "fallbackReasons": list(self.fallback_reasons),
            "interpolation": self.interpolation,
            "polarConditionImputed": self.polar_condition_imputed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkyFactorDiagnostics":
        data = _require_mapping(data, "diagnostics")
        raw_factors = _require_mapping(data.get("factors") or {}, "diagnostics.factors")
        quality = str(_pick(data, "providerQuality", "provider_quality", "fallback"))
        if quality not in ("live", "mixed", "fallback"):
            quality = "fallback"
        return cls(
            factors={str(k): SkyFactorSummary.from_dict(v) for k, v in raw_factors.items()},
            provider_quality=quality,  # type: ignore[arg-type]
            degraded=bool(data.get("degraded", False)),
            fallback_reasons=tuple(str(r) for r in (_pick(data, "fallbackReasons", "fallback_reasons") or ())),
            interpolation=str(data.get("interpolation") or INTERPOLATION_MODE),
            polar_condition_imputed=bool(_pick(data, "polarConditionImputed", "polar_condition_imputed", False)),
        )


@dataclass(frozen=True)
class SkyEnvironment:
    """Atmospheric context resolved upstream for one location and day."""

    timezone: str
    samples: Tuple[SkyFactorSample, ...]
    diagnostics: SkyFactorDiagnostics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timezone": self.timezone,
            "samples": [s.to_dict() for s in self.samples],
            "diagnostics": self.diagnostics.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkyEnvironment":
        data = _require_mapping(data, "environment")
        return cls(
            timezone=str(data["timezone"]),
            samples=tuple(SkyFactorSample.from_dict(s) for s in (data.get("samples") or ())),
            diagnostics=SkyFactorDiagnostics.from_dict(data.get("diagnostics") or {}),
        )


@dataclass(frozen=True)
class SkyColorStop:
    name: str
    timestamp_ms: float
    minutes_of_day: float
    angle_deg: float
    color_hex: str
    shift_minutes: int
    factors: SkySecondOrderFactors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "timestampMs": self.timestamp_ms,
            "minutesOfDay": self.minutes_of_day,
            "angleDeg": self.angle_deg,
            "colorHex": self.color_hex,
            "shiftMinutes": self.shift_minutes,
            "factors": self.factors.to_dict(),
        }


@dataclass(frozen=True)
class Sky24hResult:
    timestamp_ms: float
    timezone: str
    rotation_deg: float
    rotation_rad: float
    stops: Tuple[SkyColorStop, ...]
    diagnostics: SkyFactorDiagnostics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestampMs": self.timestamp_ms,
            "timezone": self.timezone,
            "rotationDeg": self.rotation_deg,
            "rotationRad": self.rotation_rad,
            "stops": [s.to_dict() for s in self.stops],
            "diagnostics": self.diagnostics.to_dict(),
        }

    def stop(self, name: str) -> Optional[SkyColorStop]:
        for s in self.stops:
            if s.name == name:
                return s
        return None


@dataclass(frozen=True)
class SkyComputationOptions:
    factor_overrides: Dict[str, float] = field(default_factory=dict)
    apply_second_order: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SkyComputationOptions":
        if not data:
            return cls()
        raw = _pick(data, "factorOverrides", "factor_overrides") or {}
        overrides: Dict[str, float] = {}
        for name in FACTOR_NAMES:
            if name in raw and raw[name] is not None:
                try:
                    overrides[name] = float(raw[name])
                except (TypeError, ValueError):
                    # non-numeric overrides clamp like non-finite ones
                    overrides[name] = math.nan
        apply = _pick(data, "applySecondOrder", "apply_second_order", True)
        return cls(factor_overrides=overrides, apply_second_order=bool(apply))

