"""Health check blueprint."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from core.clock import to_iso
from web.context import get_services

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health_check():
    config = current_app.config["APP_CONFIG"]
    clock = get_services().rsvp.clock
    return jsonify({
        "status": "ok",
        "environment": config.environment,
        "time": to_iso(clock.now()),
    })
