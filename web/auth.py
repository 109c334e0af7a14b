"""Bearer-token checks for organizer and cron endpoints.

Organizer sessions and magic links live outside this service; callers
present a shared token instead.
"""

from __future__ import annotations

import hmac
from functools import wraps
from typing import Optional

from flask import current_app, jsonify, request

from core import get_logger

logger = get_logger(__name__)


def bearer_token() -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def token_matches(expected: str, supplied: Optional[str]) -> bool:
    # An unset token disables the endpoint rather than leaving it open
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.encode(), supplied.encode())


def require_token(config_attr: str):
    """Reject requests whose bearer token differs from ``config.<config_attr>``.

    Args:
        config_attr: Name of the Config field holding the expected token
    """
    def decorator(view):
        @wraps(view)
        async def wrapper(*args, **kwargs):
            config = current_app.config["APP_CONFIG"]
            if not token_matches(getattr(config, config_attr), bearer_token()):
                logger.warning(f"Unauthorized request to {request.path}")
                return jsonify({"error": "Unauthorized"}), 401
            return await view(*args, **kwargs)
        return wrapper
    return decorator
