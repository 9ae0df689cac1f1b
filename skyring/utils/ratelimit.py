# skyring/utils/ratelimit.py
from __future__ import annotations

"""
In-process token-bucket rate limiter for the Flask views.

- One bucket per client IP + endpoint (pluggable key function)
- Thread-safe per process via RLock
- X-RateLimit-* headers on every limited response, Retry-After on 429
- 429 body uses the API's error shape: {"error": {"code", "message"}}
- Env toggles (read per request so tests and operators can flip them):
    SKYRING_RL_DISABLE    -> disable limiter entirely
    SKYRING_RL_ALLOWLIST  -> comma-separated client ids/IPs to skip
"""

import logging
import math
import os
import time
from dataclasses import dataclass
from functools import wraps
from threading import RLock
from typing import Any, Callable, Dict, Optional, Set

from flask import jsonify, make_response, request

__all__ = ["rate_limit", "endpoint_key", "reset_buckets"]

log = logging.getLogger(__name__)

_buckets: Dict[str, "Bucket"] = {}
_lock = RLock()
_IDLE_EVICT_SECONDS = 180.0


def _disabled() -> bool:
    return os.getenv("SKYRING_RL_DISABLE", "0").strip().lower() in ("1", "true", "yes", "on")


def _allowlist() -> Set[str]:
    return {s.strip() for s in os.getenv("SKYRING_RL_ALLOWLIST", "").split(",") if s.strip()}


# ───────────────────────── key functions ─────────────────────────
def _client_ip(req) -> str:
    xff = req.headers.get("X-Forwarded-For", "")
    return (xff.split(",")[0].strip() if xff else "") or (req.remote_addr or "anon")


def endpoint_key(req) -> str:
    """Client IP scoped to the route."""
    return f"{_client_ip(req)}:{(req.endpoint or req.path) or '*'}"


# ───────────────────────── bucket ─────────────────────────
@dataclass
class Bucket:
    tokens: float
    capacity: float
    rate: float      # tokens per second
    ts: float        # last refill (monotonic)
    limit: int       # advertised per-minute limit


def _refill(b: Bucket, now: float) -> None:
    if now > b.ts:
        b.tokens = min(b.capacity, b.tokens + (now - b.ts) * b.rate)
        b.ts = now


def _evict_idle(now: float) -> None:
    stale = [
        k for k, b in _buckets.items()
        if b.tokens >= b.capacity and (now - b.ts) > _IDLE_EVICT_SECONDS
    ]
    for k in stale:
        _buckets.pop(k, None)


def reset_buckets() -> None:
    with _lock:
        _buckets.clear()


def _policy(limit: int, capacity: float) -> str:
    return f"{limit};w=60;burst={int(capacity)}"


# ───────────────────────── decorator ─────────────────────────
def rate_limit(
    max_per_minute: int,
    key_fn: Optional[Callable[[Any], str]] = None,
    *,
    burst: Optional[int] = None,
    cost: float = 1.0,
):
    """
    Limit a view to `max_per_minute` steady calls per bucket, `burst` at once.

    Over the limit the view is not called and a 429 JSON error is returned
    with Retry-After set to the seconds until enough tokens are back.
    """
    if max_per_minute <= 0:
        raise ValueError("max_per_minute must be > 0")

    limit = int(max_per_minute)
    capacity = float(burst if burst is not None else max(limit, 1))
    rate = limit / 60.0

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if _disabled() or request.method in ("HEAD", "OPTIONS"):
                return f(*args, **kwargs)

            key = str((key_fn or endpoint_key)(request))
            allow = _allowlist()
            if key in allow or key.split(":", 1)[0] in allow:
                return f(*args, **kwargs)

            now = time.monotonic()
            with _lock:
                _evict_idle(now)
                b = _buckets.get(key)
                if b is None:
                    b = Bucket(tokens=capacity, capacity=capacity, rate=rate, ts=now, limit=limit)
                    _buckets[key] = b
                else:
                    _refill(b, now)

                if b.tokens + 1e-12 < cost:
                    retry_after = max(1, math.ceil((cost - b.tokens) / b.rate))
                    log.info("rate limited key=%s retry_after=%ss", key, retry_after)
                    resp = make_response(jsonify({
                        "error": {
                            "code": "rate_limited",
                            "message": f"Too many requests; retry in {retry_after}s.",
                        }
                    }), 429)
                    resp.headers["Retry-After"] = str(retry_after)
                    resp.headers["X-RateLimit-Limit"] = str(limit)
                    resp.headers["X-RateLimit-Remaining"] = "0"
                    resp.headers["X-RateLimit-Policy"] = _policy(limit, capacity)
                    return resp

                b.tokens -= cost
                remaining = max(0, int(b.tokens))

            resp = make_response(f(*args, **kwargs))
            resp.headers.setdefault("X-RateLimit-Limit", str(limit))
            resp.headers["X-RateLimit-Remaining"] = str(remaining)
            resp.headers.setdefault("X-RateLimit-Policy", _policy(limit, capacity))
            return resp

        return wrapper

    return decorator
