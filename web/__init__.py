"""Flask adapter exposing the RSVP services over HTTP."""

from .app import create_app

__all__ = ["create_app"]
