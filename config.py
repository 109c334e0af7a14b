"""Application configuration module.

Reads settings from environment variables with sane defaults. Per-organization
behaviour (capacity, access window, email) lives in stored org settings; this
module only carries deployment-level knobs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv
from werkzeug.security import generate_password_hash

from core.constants import AccessDefaults, EmailDefaults, RsvpDefaults
from core.exceptions import ConfigurationError

# Load environment variables from .env file when present
load_dotenv()


def _get_bool(name: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    """Get integer from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.getenv(name, default)


def _get_list(name: str) -> Tuple[str, ...]:
    """Get comma-separated values from environment variable."""
    return tuple(item.strip() for item in os.getenv(name, "").split(",") if item.strip())


@dataclass(frozen=True)
class Config:
    environment: str
    debug: bool
    web_host: str
    web_port: int
    secret_key: str
    database_path: str
    log_folder: str
    log_level: str
    default_timezone: str
    default_main_list_limit: int
    archive_limit: int
    dropout_log_limit: int
    email_grace_minutes: int
    # werkzeug hash of the shared legacy member password; None disables it
    member_password_hash: Optional[str]
    admin_token: str
    cron_secret: str
    # Orgs the in-process scheduler rolls over; empty leaves it to external cron
    scheduled_org_ids: Tuple[str, ...]
    scheduler_interval_seconds: int


def load_config() -> Config:
    """Load application configuration from environment variables.

    Returns:
        Config: Application configuration with validated values

    Raises:
        ConfigurationError: If a numeric setting is out of range
    """
    member_password = _get_str("MEMBER_PASSWORD", "")
    config = Config(
        environment=_get_str("ENVIRONMENT", "development"),
        debug=_get_bool("DEBUG", False),
        web_host=_get_str("WEB_HOST", "0.0.0.0"),
        web_port=_get_int("WEB_PORT", 5000),
        secret_key=_get_str("SECRET_KEY", "change-me-in-production"),
        database_path=_get_str("DATABASE_PATH", "data/playday.sqlite"),
        log_folder=_get_str("LOG_FOLDER", "logs"),
        log_level=_get_str("LOG_LEVEL", "INFO"),
        default_timezone=_get_str("DEFAULT_TIMEZONE", AccessDefaults.TIMEZONE),
        default_main_list_limit=_get_int("MAIN_LIST_LIMIT", RsvpDefaults.MAIN_LIST_LIMIT),
        archive_limit=_get_int("ARCHIVE_LIMIT", RsvpDefaults.ARCHIVE_LIMIT),
        dropout_log_limit=_get_int("DROPOUT_LOG_LIMIT", RsvpDefaults.DROPOUT_LOG_LIMIT),
        email_grace_minutes=_get_int("EMAIL_GRACE_MINUTES", EmailDefaults.GRACE_MINUTES),
        member_password_hash=generate_password_hash(member_password) if member_password else None,
        admin_token=_get_str("ADMIN_TOKEN", ""),
        cron_secret=_get_str("CRON_SECRET", ""),
        scheduled_org_ids=_get_list("SCHEDULED_ORG_IDS"),
        scheduler_interval_seconds=_get_int("SCHEDULER_INTERVAL_SECONDS", 300),
    )
    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    """Reject configurations the services cannot work with."""
    if config.default_main_list_limit < 1:
        raise ConfigurationError("MAIN_LIST_LIMIT must be at least 1")
    if config.archive_limit < 1:
        raise ConfigurationError("ARCHIVE_LIMIT must be at least 1")
    if config.dropout_log_limit < 1:
        raise ConfigurationError("DROPOUT_LOG_LIMIT must be at least 1")
    if config.email_grace_minutes < 0:
        raise ConfigurationError("EMAIL_GRACE_MINUTES cannot be negative")
    if config.scheduler_interval_seconds < 1:
        raise ConfigurationError("SCHEDULER_INTERVAL_SECONDS must be at least 1")
