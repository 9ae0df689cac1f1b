# skyring/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from skyring.api.routes import PROVIDER_EXTENSION, api as _routes_bp
from skyring.core.environment import FallbackEnvironmentProvider, SkyEnvironmentProvider
from skyring.core.validators import ValidationError
from skyring.utils.config import load_config
from skyring.utils.metrics import (
    CONTENT_TYPE_LATEST,
    GAUGE_APP_UP,
    MET_DEGRADED,
    MET_POLAR_IMPUTED,
    MET_REQUESTS,
    REQ_LATENCY,
    render_latest,
)
from skyring.version import VERSION

# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
        logging.getLogger("skyring").handlers = gerr.handlers
        logging.getLogger("skyring").setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())


def _error_body(code: str, message: str):
    return jsonify({"error": {"code": code, "message": message}})


def _register_errors(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        app.logger.info("400 %s at %s %s: %s", e.code, request.method, request.path, e.message)
        return _error_body(e.code, e.message), 400

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        app.logger.warning("HTTP %s at %s %s: %s", e.code, request.method, request.path, e.description)
        code = (e.name or "http_error").lower().replace(" ", "_")
        return _error_body(code, e.description or e.name), e.code

    @app.errorhandler(Exception)
    def _any(e: Exception):
        tb = traceback.format_exc()
        app.logger.error("UNHANDLED %s at %s %s\n%s", type(e).__name__, request.method, request.path, tb)
        return _error_body("internal_error", "Unexpected server error."), 500


# ───────────────────────── health & metrics ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(ok=True, service="skyring", health="/health"), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok"), 200


def _metrics_auth_ok() -> bool:
    auth = request.authorization
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    return bool(
        auth and auth.type == "basic" and auth.username == user and auth.password == pw and user and pw
    )


def _route_label() -> str:
    rule = request.url_rule
    return rule.rule if rule is not None else "<unmatched>"


def _register_metrics(app: Flask) -> None:
    for route in ("/api/sky-24h", "/api/health", "/health", "/metrics"):
        MET_REQUESTS.labels(route=route, method="GET").inc(0)
        REQ_LATENCY.labels(route=route).observe(0.0)
    MET_REQUESTS.labels(route="/api/sky-24h", method="POST").inc(0)
    MET_POLAR_IMPUTED.inc(0)
    for quality in ("live", "mixed", "fallback"):
        MET_DEGRADED.labels(provider_quality=quality).inc(0)
    GAUGE_APP_UP.set(1.0)

    @app.before_request
    def _before():
        request.environ["skyring.t0"] = perf_counter()

    @app.after_request
    def _after(resp):
        t0 = request.environ.get("skyring.t0")
        route = _route_label()
        MET_REQUESTS.labels(route=route, method=request.method).inc()
        if t0 is not None:
            REQ_LATENCY.labels(route=route).observe(perf_counter() - t0)
        return resp

    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(render_latest(), mimetype=CONTENT_TYPE_LATEST)


def _register_cors(app: Flask) -> None:
    allowed_origin = os.environ.get("CORS_ALLOW_ORIGIN") or "*"
    CORS(
        app,
        resources={r"/api/.*": {"origins": allowed_origin}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )


# ───────────────────────── app factory ─────────────────────────
def create_app(
    config_path: Optional[str] = None,
    provider: Optional[SkyEnvironmentProvider] = None,
) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False  # type: ignore[attr-defined]
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    app.cfg = load_config(config_path)  # type: ignore[attr-defined]
    app.extensions[PROVIDER_EXTENSION] = provider or FallbackEnvironmentProvider(
        reason=app.cfg.sky.fallback_reason  # type: ignore[attr-defined]
    )

    _register_metrics(app)
    _register_health(app)
    _register_errors(app)
    _register_cors(app)
    app.register_blueprint(_routes_bp)

    @app.get("/favicon.ico")
    def _noop_favicon():
        return ("", 204)

    app.logger.info(
        "App initialized; version=%s provider=%s second_order_default=%s",
        VERSION,
        type(app.extensions[PROVIDER_EXTENSION]).__name__,
        app.cfg.sky.second_order_default,  # type: ignore[attr-defined]
    )
    return app


# ───────────────────────── app instance ─────────────────────────
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))
