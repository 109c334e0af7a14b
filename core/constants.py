"""Application-wide constants and configuration values."""

from __future__ import annotations

from enum import Enum


DAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)
DAY_ABBREVIATIONS = ("SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT")

MINUTES_PER_DAY = 24 * 60
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY


class RsvpDefaults:
    """Default values for RSVP lists."""
    MAIN_LIST_LIMIT = 30
    ARCHIVE_LIMIT = 12
    DROPOUT_LOG_LIMIT = 50
    EMAIL_LOG_LIMIT = 50
    UNKNOWN_PERIOD = "unknown"


class AccessDefaults:
    """Default access window: Thursday 12:00 until Friday 10:00."""
    TIMEZONE = "Africa/Lagos"
    START_DAY = 4
    START_HOUR = 12
    START_MINUTE = 0
    END_DAY = 5
    END_HOUR = 10
    END_MINUTE = 0


class EmailDefaults:
    """Default values for the roster email schedule."""
    # Tolerates hourly cron ticks after the window closes
    GRACE_MINUTES = 70
    SUBJECT = "Weekly RSVP List - {{week}}"
    BODY = "Please find attached the RSVP list for this week.\n\nTotal participants: {{count}}"


class SnoozeDefaults:
    """Snooze code generation settings."""
    CODE_LENGTH = 6
    # No 0/O or 1/I to keep codes readable
    CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class ListType(str, Enum):
    """Which list a participant ended up on."""
    MAIN = "main"
    WAITLIST = "waitlist"


class Recurrence(str, Enum):
    """Event cadence."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class OrgKey(str, Enum):
    """Organization-scoped storage key suffixes."""
    RSVP_DATA = "rsvp-data"
    SETTINGS = "settings"
    WHITELIST = "whitelist"
    ARCHIVE = "archive"
    LAST_RESET = "last-reset"
    LAST_EMAIL = "last-email"
    SNOOZED = "snoozed"
    EMAIL_STATUS = "email-status"
    EMAIL_LOG = "email-log"
    DROPOUT_LOG = "dropout-log"
