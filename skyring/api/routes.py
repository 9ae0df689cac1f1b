# skyring/api/routes.py
"""
Sky ring: API routes
- Sky ring: GET/POST /api/sky-24h
- Ops: /api/health, /api/config

Notes:
- Input validation lives in skyring.core.validators; ValidationError bubbles
  to the app's error handler, which renders {"error": {"code", "message"}}.
- Atmospheric factors come from the app's configured environment provider
  (neutral fallback by default). POST callers can instead ship a full
  environment or raw hourly readings.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from flask import Blueprint, current_app, jsonify, request

from skyring.core.environment import SkyEnvironmentProvider, build_environment
from skyring.core.models import Coordinates, SkyComputationOptions, SkyEnvironment
from skyring.core.sky import compute_sky_24h
from skyring.core.validators import (
    ValidationError,
    parse_bool,
    parse_coordinates,
    parse_factor_overrides,
    parse_timestamp,
    parse_timezone,
    require_object,
)
from skyring.utils.config import load_config
from skyring.utils.metrics import MET_DEGRADED, MET_POLAR_IMPUTED
from skyring.utils.ratelimit import rate_limit
from skyring.version import VERSION

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)

PROVIDER_EXTENSION = "skyring.provider"

# ── per-endpoint rate-limit caps (calls per minute, env-overridable) ───────────
_RL_DEFAULTS = load_config().rate_limits
RL_SKY = int(_RL_DEFAULTS.sky_per_min)
RL_HEALTH = int(os.getenv("SKYRING_RL_HEALTH_PER_MIN", _RL_DEFAULTS.health_per_min))


# ───────────────────────── helpers ─────────────────────────
def _sky_cfg() -> Mapping[str, Any]:
    cfg = getattr(current_app, "cfg", None) or {}
    return cfg.get("sky") or {}


def _provider() -> SkyEnvironmentProvider:
    return current_app.extensions[PROVIDER_EXTENSION]


def _environment_from_body(body: Mapping[str, Any], coords: Coordinates, at_ms: int, tz: str) -> SkyEnvironment:
    raw_env = body.get("environment")
    if raw_env is not None:
        if not isinstance(raw_env, Mapping):
            raise ValidationError("invalid_environment", "environment must be an object.")
        try:
            env = SkyEnvironment.from_dict({"timezone": tz, **raw_env})
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValidationError("invalid_environment", f"environment is malformed: {e}") from None
        parse_timezone(env.timezone)
        return env

    hourly = body.get("hourly")
    if hourly is not None:
        if not isinstance(hourly, Mapping):
            raise ValidationError("invalid_hourly", "hourly must be an object with weather/air blocks.")
        try:
            return build_environment(
                tz,
                at_ms,
                weather=hourly.get("weather"),
                air=hourly.get("air"),
                elevation_m=body.get("elevationM", body.get("elevation_m")),
                granularity=body.get("granularity"),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ValidationError("invalid_hourly", f"hourly readings are malformed: {e}") from None

    return _provider().resolve(coords, at_ms, tz)


def _respond(coords: Coordinates, env: SkyEnvironment, at_ms: int, opts: SkyComputationOptions):
    result = compute_sky_24h(coords, env, at_ms, opts)
    diag = result.diagnostics
    if diag.polar_condition_imputed:
        MET_POLAR_IMPUTED.inc()
    if diag.degraded:
        MET_DEGRADED.labels(provider_quality=diag.provider_quality).inc()
    return jsonify({"result": result.to_dict()}), 200


# ───────────────────────── health / ops ─────────────────────────
@api.get("/api/health")
@rate_limit(RL_HEALTH)
def health():
    return jsonify({"ok": True, "status": "up", "version": VERSION}), 200


@api.get("/api/config")
@rate_limit(RL_HEALTH)
def config_info():
    sky = _sky_cfg()
    return jsonify(
        {
            "ok": True,
            "secondOrderDefault": bool(sky.get("second_order_default", True)),
            "defaultTimezone": sky.get("default_timezone", "UTC"),
            "provider": type(_provider()).__name__,
            "rateLimitsPerMinute": {"sky": RL_SKY, "health": RL_HEALTH},
            "version": VERSION,
        }
    ), 200


# ───────────────────────── sky ring ─────────────────────────
@api.get("/api/sky-24h")
@rate_limit(RL_SKY)
def sky_24h_get():
    sky = _sky_cfg()
    args = request.args
    coords = parse_coordinates(args.get("lat"), args.get("long"))
    at_ms = parse_timestamp(args.get("at"))
    tz = parse_timezone(args.get("tz"), sky.get("default_timezone", "UTC"))
    second_order = parse_bool(args.get("secondOrder"), bool(sky.get("second_order_default", True)))

    env = _provider().resolve(coords, at_ms, tz)
    return _respond(coords, env, at_ms, SkyComputationOptions(apply_second_order=second_order))


@api.post("/api/sky-24h")
@rate_limit(RL_SKY)
def sky_24h_post():
    sky = _sky_cfg()
    payload = request.get_json(silent=True)
    if payload is None and request.get_data(cache=True):
        raise ValidationError("invalid_json", "Request body must be valid JSON.")
    body = require_object(payload)

    coords = parse_coordinates(body.get("lat"), body.get("long"))
    at_ms = parse_timestamp(body.get("at"))
    tz = parse_timezone(body.get("tz") or body.get("timezone"), sky.get("default_timezone", "UTC"))
    second_order = parse_bool(body.get("secondOrder"), bool(sky.get("second_order_default", True)))
    overrides = parse_factor_overrides(body.get("factorOverrides"))

    env = _environment_from_body(body, coords, at_ms, tz)
    opts = SkyComputationOptions.from_dict(
        {"factorOverrides": overrides, "applySecondOrder": second_order}
    )
    log.debug("sky-24h POST overrides=%s env_samples=%d", sorted(opts.factor_overrides), len(env.samples))
    return _respond(coords, env, at_ms, opts)
