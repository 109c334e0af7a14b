"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from werkzeug.security import generate_password_hash

from config import Config
from core.clock import FixedClock
from database.storage import InMemoryStore
from services.registry import build_services

ORG_ID = "sunday-frisbee"
MEMBER_PASSWORD = "letmein"

# Thursday 16 Oct 2025, 13:00 in Lagos: inside the default Thu 12:00 - Fri 10:00 window
OPEN_INSTANT = datetime(2025, 10, 16, 12, 0, tzinfo=timezone.utc)
# Friday 17 Oct 2025, 10:30 in Lagos: half an hour after the window closed
CLOSED_INSTANT = datetime(2025, 10, 17, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def app_config():
    """Configuration with test tokens and the default Lagos timezone."""
    return Config(
        environment="test",
        debug=False,
        web_host="127.0.0.1",
        web_port=5000,
        secret_key="test-secret",
        database_path="data/test.sqlite",
        log_folder="logs",
        log_level="DEBUG",
        default_timezone="Africa/Lagos",
        default_main_list_limit=30,
        archive_limit=12,
        dropout_log_limit=50,
        email_grace_minutes=70,
        member_password_hash=generate_password_hash(MEMBER_PASSWORD),
        admin_token="admin-token",
        cron_secret="cron-secret",
        scheduled_org_ids=(),
        scheduler_interval_seconds=300,
    )


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def fixed_clock():
    """Clock pinned inside the default access window."""
    return FixedClock(OPEN_INSTANT)


@pytest.fixture
def services(memory_store, fixed_clock, app_config):
    return build_services(memory_store, app_config, fixed_clock)


@pytest.fixture
def repo(services):
    return services.rsvp.repository(ORG_ID)
