"""Flask application factory."""

from __future__ import annotations

from typing import Optional

from flask import Flask
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config import Config
from core.clock import Clock
from database.storage import KeyValueStore, SQLiteKeyValueStore
from services.registry import build_services
from web.context import EXTENSION_KEY
from web.middleware import (
    configure_app,
    setup_error_handlers,
    setup_metrics,
    setup_security_headers,
)
from web.routes import register_routes


def create_app(
    config: Config,
    store: Optional[KeyValueStore] = None,
    clock: Optional[Clock] = None,
    testing: bool = False
) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Application configuration
        store: Key-value store; defaults to SQLite at ``config.database_path``
        clock: Time source; defaults to the system clock
        testing: Whether running in testing mode

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    configure_app(app, config, testing)
    setup_security_headers(app)
    setup_metrics(app)
    setup_error_handlers(app)

    if store is None:
        store = SQLiteKeyValueStore(config.database_path)
    app.extensions[EXTENSION_KEY] = build_services(store, config, clock)

    register_routes(app)

    @app.route("/metrics")
    def metrics():
        """Expose Prometheus metrics."""
        return generate_latest(), 200, {"Content-Type": CONTENT_TYPE_LATEST}

    return app
