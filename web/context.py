"""Access to the per-app service registry from request handlers."""

from __future__ import annotations

from typing import Any, Dict

from flask import current_app, request

from core.exceptions import ValidationError
from services.registry import ServiceRegistry

EXTENSION_KEY = "rsvp_services"


def get_services() -> ServiceRegistry:
    return current_app.extensions[EXTENSION_KEY]


def json_body() -> Dict[str, Any]:
    """Request JSON object, or an empty dict for a missing body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
