"""Flask application configuration and middleware setup."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from flask import Flask, g, jsonify, request
from prometheus_client import Counter, Histogram
from werkzeug.exceptions import HTTPException

from core import get_logger
from core.clock import to_iso
from core.exceptions import AccessClosedError, RsvpError

if TYPE_CHECKING:
    from config import Config

logger = get_logger(__name__)

# Prometheus metrics
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2),
)
REQUEST_ERRORS = Counter(
    "http_request_errors_total",
    "Total number of 5xx responses",
    ["method", "path"],
)


def _route_label() -> str:
    return getattr(request.url_rule, "rule", None) or "unmatched"


def configure_app(app: Flask, config: Config, testing: bool = False) -> None:
    """Configure Flask application settings.

    Args:
        app: Flask application instance
        config: Application configuration
        testing: Whether running in testing mode
    """
    app.config.update(
        SECRET_KEY=config.secret_key,
        MAX_CONTENT_LENGTH=64 * 1024,
        TESTING=testing,
        APP_CONFIG=config,
    )
    app.json.sort_keys = False

    if config.environment == "production":
        if config.secret_key == "change-me-in-production":
            app.logger.warning("SECRET_KEY is left at its default value")
        if not config.admin_token:
            app.logger.warning("ADMIN_TOKEN is not set; organizer endpoints are disabled")
        if not config.cron_secret:
            app.logger.warning("CRON_SECRET is not set; cron endpoints are disabled")


def setup_security_headers(app: Flask) -> None:
    @app.after_request
    def add_security_headers(response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "same-origin")
        response.headers.setdefault("Cache-Control", "no-store")
        return response


def setup_metrics(app: Flask) -> None:
    """Setup Prometheus metrics middleware.

    Args:
        app: Flask application instance
    """
    @app.before_request
    def before_metrics():
        g._metrics_start = time.perf_counter()

    @app.after_request
    def after_metrics(response):
        start = g.pop("_metrics_start", None)
        path = _route_label()
        if start is not None:
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(time.perf_counter() - start)
        if response.status_code >= 500:
            REQUEST_ERRORS.labels(method=request.method, path=path).inc()
        return response


def setup_error_handlers(app: Flask) -> None:
    """Translate domain errors to JSON responses.

    Rejected operations carry their own status code; anything unexpected is
    logged with its traceback and answered with a generic 500.
    """
    @app.errorhandler(RsvpError)
    def rsvp_error(error: RsvpError):
        body = {"error": error.message}
        if isinstance(error, AccessClosedError) and error.next_open is not None:
            body["nextOpenTime"] = to_iso(error.next_open)
        return jsonify(body), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return jsonify({"error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        logger.error(f"Unhandled error on {request.method} {request.path}: {error}", exc_info=error)
        return jsonify({"error": "Internal server error"}), 500
