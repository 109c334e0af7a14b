"""Route registration for the Flask app."""

from __future__ import annotations

from flask import Flask

from .admin import admin_bp
from .cron import cron_bp
from .health import health_bp
from .rsvp import rsvp_bp


def register_routes(app: Flask) -> None:
    app.register_blueprint(rsvp_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(cron_bp)
    app.register_blueprint(health_bp)
