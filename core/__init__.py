"""Core application components."""

from core.logger import setup_logger, get_logger
from core.clock import Clock, SystemClock, FixedClock
from core.constants import (
    DAY_NAMES,
    RsvpDefaults,
    AccessDefaults,
    EmailDefaults,
    SnoozeDefaults,
    ListType,
    Recurrence,
    OrgKey,
)
from core.exceptions import (
    ApplicationError,
    ConfigurationError,
    StorageError,
    RsvpError,
    ValidationError,
    AccessClosedError,
    DuplicateDeviceError,
    DuplicateNameError,
    NotFoundError,
    ForbiddenError,
    NotPrivilegedError,
    NotOnMainListError,
    NotSnoozedError,
    AuthenticationError,
)

__all__ = [
    # Logging
    'setup_logger',
    'get_logger',
    # Clock
    'Clock',
    'SystemClock',
    'FixedClock',
    # Constants
    'DAY_NAMES',
    'RsvpDefaults',
    'AccessDefaults',
    'EmailDefaults',
    'SnoozeDefaults',
    'ListType',
    'Recurrence',
    'OrgKey',
    # Exceptions
    'ApplicationError',
    'ConfigurationError',
    'StorageError',
    'RsvpError',
    'ValidationError',
    'AccessClosedError',
    'DuplicateDeviceError',
    'DuplicateNameError',
    'NotFoundError',
    'ForbiddenError',
    'NotPrivilegedError',
    'NotOnMainListError',
    'NotSnoozedError',
    'AuthenticationError',
]
