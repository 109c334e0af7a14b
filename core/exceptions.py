"""Application-wide exception classes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class ApplicationError(Exception):
    """Base exception for all application errors."""
    pass


class ConfigurationError(ApplicationError):
    """Raised when configuration is invalid."""
    pass


class StorageError(ApplicationError):
    """Raised when the key-value store fails to read or write."""
    pass


class RsvpError(ApplicationError):
    """Base exception for rejected RSVP operations.

    Every rejected precondition maps to exactly one subclass so the web layer
    can translate it to a status code without inspecting messages.
    """

    status_code = 400
    default_message = "Request rejected"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RsvpError):
    """Raised when required input is missing or empty."""
    default_message = "Invalid input"


class AccessClosedError(RsvpError):
    """Raised when the access window is closed."""

    status_code = 403
    default_message = "RSVP is closed"

    def __init__(
        self,
        message: Optional[str] = None,
        next_open: Optional[datetime] = None
    ) -> None:
        super().__init__(message)
        self.next_open = next_open


class DuplicateDeviceError(RsvpError):
    """Raised when the device already has an active signup."""
    default_message = "You've already signed up from this device!"


class DuplicateNameError(RsvpError):
    """Raised when the name is already on the list."""
    default_message = "This name is already on the list!"


class NotFoundError(RsvpError):
    """Raised when a participant id is unknown."""
    status_code = 404
    default_message = "Person not found"


class ForbiddenError(RsvpError):
    """Raised when a device tries to remove someone else's signup."""
    status_code = 403
    default_message = "You can only remove your own signup"


class NotPrivilegedError(RsvpError):
    """Raised when a non-whitelisted participant attempts a member action."""
    default_message = "Only members can snooze"


class NotOnMainListError(RsvpError):
    """Raised when the participant is not on the main list."""
    status_code = 404
    default_message = "You are not currently on the main list"


class NotSnoozedError(RsvpError):
    """Raised when there is no snooze entry for the current period."""
    default_message = "You are not currently snoozed"


class AuthenticationError(RsvpError):
    """Raised when a snooze code or password is wrong."""
    status_code = 401
    default_message = "Invalid snooze code"
