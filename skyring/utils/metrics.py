# skyring/utils/metrics.py
from __future__ import annotations

from typing import Final

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest

__all__ = [
    "MET_REQUESTS",
    "REQ_LATENCY",
    "MET_POLAR_IMPUTED",
    "MET_DEGRADED",
    "GAUGE_APP_UP",
    "CONTENT_TYPE_LATEST",
    "render_latest",
]

# Names are part of the dashboard contract; keep them stable.
MET_REQUESTS: Final = Counter("skyring_requests_total", "API requests", ["route", "method"])
REQ_LATENCY: Final = Histogram("skyring_request_seconds", "API request latency", ["route"])
MET_POLAR_IMPUTED: Final = Counter(
    "skyring_polar_imputed_total", "Sky rings computed with imputed solar events"
)
MET_DEGRADED: Final = Counter(
    "skyring_degraded_total", "Sky rings served with degraded diagnostics", ["provider_quality"]
)
GAUGE_APP_UP: Final = Gauge("skyring_app_up", "1 if app is running")


def render_latest() -> bytes:
    return generate_latest(REGISTRY)
