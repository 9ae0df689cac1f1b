# skyring/core/validators.py
from __future__ import annotations

import math
import time
from typing import Any, Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from skyring.core.models import Coordinates

# ───────────────────────── errors ─────────────────────────

class ValidationError(ValueError):
    """Bad request input; `code` is the stable machine-readable identifier."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {"error": {"code": self.code, "message": self.message}}


# ───────────────────────── helpers ─────────────────────────

def _as_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


def now_ms() -> int:
    return int(time.time() * 1000)


# ───────────────────────── parsers ─────────────────────────

def parse_coordinates(lat: Any, long: Any) -> Coordinates:
    if lat is None or long is None or lat == "" or long == "":
        raise ValidationError("invalid_coordinates", "lat and long are required.")
    lat_f, long_f = _as_float(lat), _as_float(long)
    if lat_f is None or long_f is None:
        raise ValidationError("invalid_coordinates", "Coordinates must be valid numbers.")
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= long_f <= 180.0):
        raise ValidationError(
            "invalid_coordinates",
            "Coordinates must include lat in [-90, 90] and long in [-180, 180].",
        )
    return Coordinates(lat=lat_f, long=long_f)


def parse_timestamp(at: Any, default: Optional[int] = None) -> int:
    """Unix epoch milliseconds, truncated toward zero. Missing → `default` (or now)."""
    if at is None or at == "":
        return now_ms() if default is None else int(default)
    x = _as_float(at)
    if x is None:
        raise ValidationError(
            "invalid_timestamp", "at must be a finite Unix epoch value in milliseconds."
        )
    return int(x)


def parse_timezone(tz: Any, default: str = "UTC") -> str:
    name = str(tz).strip() if tz not in (None, "") else default
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise ValidationError(
            "invalid_timezone", f"tz must be a valid IANA zone like 'Europe/Paris', got {name!r}."
        ) from None
    return name


_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


def parse_bool(val: Any, default: bool, field: str = "secondOrder") -> bool:
    if val is None or val == "":
        return default
    if isinstance(val, bool):
        return val
    s = str(val).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValidationError(f"invalid_{_snake(field)}", f"{field} must be a boolean.")


def parse_factor_overrides(raw: Any) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError("invalid_factor_overrides", "factorOverrides must be an object.")
    return dict(raw)


def require_object(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("invalid_payload", "JSON object body is required.")
    return payload


def _snake(name: str) -> str:
    return "".join("_" + c.lower() if c.isupper() else c for c in name)
