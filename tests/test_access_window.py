"""Tests for access window evaluation."""

from datetime import datetime, timezone

import pytest

from core.constants import Recurrence
from database.models import AccessPeriod, GameInfo, OrgSettings
from services.access_window import (
    access_period_from_game,
    evaluate_access,
    minutes_until_close,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def lagos_settings(**period):
    return OrgSettings(access_period=AccessPeriod(timezone="Africa/Lagos", **period))


def test_disabled_window_is_always_open():
    """Disabled access period never blocks signups."""
    settings = OrgSettings(access_period=AccessPeriod(enabled=False))
    status = evaluate_access(settings, utc(2025, 10, 15, 3, 0))

    assert status.is_open
    assert status.message is None
    assert status.next_open is None
    assert status.close_time is None


def test_default_window_open_on_thursday_afternoon():
    """Thu 13:00 Lagos is inside Thu 12:00 - Fri 10:00."""
    status = evaluate_access(lagos_settings(), utc(2025, 10, 16, 12, 0))

    assert status.is_open
    assert status.next_open is None
    assert status.close_time == utc(2025, 10, 17, 9, 0)


def test_default_window_closed_midweek():
    """Wednesday is closed; next open is Thursday noon local."""
    status = evaluate_access(lagos_settings(), utc(2025, 10, 15, 9, 0))

    assert not status.is_open
    assert status.message == "RSVP is closed. Opens Thursday at 12:00 PM"
    assert status.next_open == utc(2025, 10, 16, 11, 0)
    # Most recent close was the previous Friday
    assert status.close_time == utc(2025, 10, 10, 9, 0)


def test_close_time_is_todays_close_just_after_closing():
    status = evaluate_access(lagos_settings(), utc(2025, 10, 17, 9, 30))

    assert not status.is_open
    assert status.close_time == utc(2025, 10, 17, 9, 0)


def test_end_instant_is_exclusive():
    status = evaluate_access(lagos_settings(), utc(2025, 10, 17, 9, 0))
    assert not status.is_open


def test_wrapping_window():
    """Fri 18:00 -> Mon 09:00 is open on Saturday night and closed on Tuesday."""
    settings = lagos_settings(
        start_day=5, start_hour=18, start_minute=0,
        end_day=1, end_hour=9, end_minute=0,
    )

    saturday = evaluate_access(settings, utc(2025, 10, 18, 2, 0))
    assert saturday.is_open

    tuesday = evaluate_access(settings, utc(2025, 10, 21, 9, 0))
    assert not tuesday.is_open
    assert tuesday.message == "RSVP is closed. Opens Friday at 6:00 PM"
    assert tuesday.next_open == utc(2025, 10, 24, 17, 0)


def test_next_open_rolls_a_week_when_start_passed_today():
    """Closed later on the start day means next week's start."""
    settings = lagos_settings(end_day=4, end_hour=12, end_minute=30)
    status = evaluate_access(settings, utc(2025, 10, 16, 12, 0))

    assert not status.is_open
    assert status.next_open == utc(2025, 10, 23, 11, 0)


def test_next_open_respects_daylight_saving_change():
    """Next open lands on local 10:00 after New York falls back."""
    settings = OrgSettings(access_period=AccessPeriod(
        timezone="America/New_York",
        start_day=0, start_hour=10, start_minute=0,
        end_day=0, end_hour=12, end_minute=0,
    ))
    # Saturday 1 Nov 2025, noon EDT
    status = evaluate_access(settings, utc(2025, 11, 1, 16, 0))

    assert not status.is_open
    # Sunday 2 Nov 2025, 10:00 EST
    assert status.next_open == utc(2025, 11, 2, 15, 0)


def test_minutes_until_close():
    settings = lagos_settings()

    assert minutes_until_close(settings, utc(2025, 10, 16, 12, 0)) == 21 * 60
    assert minutes_until_close(settings, utc(2025, 10, 15, 12, 0)) is None


class TestMonthlyWindow:
    """First Saturday of the month, window Thu 12:00 - Fri 10:00 before it."""

    @pytest.fixture
    def settings(self):
        return OrgSettings(
            access_period=AccessPeriod(timezone="Africa/Lagos"),
            game_info=GameInfo(
                enabled=True,
                recurrence=Recurrence.MONTHLY,
                game_day=6,
                monthly_occurrence=1,
            ),
        )

    def test_open_in_game_week(self, settings):
        # Thursday 30 Oct 2025; game is Saturday 1 Nov
        status = evaluate_access(settings, utc(2025, 10, 30, 12, 0))

        assert status.is_open
        assert status.close_time == utc(2025, 10, 31, 9, 0)

    def test_closed_outside_game_week(self, settings):
        # Thursday 16 Oct 2025 matches the weekly pattern but not the game week
        status = evaluate_access(settings, utc(2025, 10, 16, 12, 0))

        assert not status.is_open
        assert status.message == "RSVP is closed. Opens for the 1st Saturday of the month"
        assert status.next_open == utc(2025, 10, 30, 11, 0)
        assert status.close_time == utc(2025, 10, 3, 9, 0)

    def test_last_occurrence_label(self, settings):
        game = GameInfo(enabled=True, recurrence=Recurrence.MONTHLY, game_day=6, monthly_occurrence="last")
        status = evaluate_access(OrgSettings(access_period=settings.access_period, game_info=game),
                                 utc(2025, 10, 16, 12, 0))

        assert not status.is_open
        assert status.message == "RSVP is closed. Opens for the last Saturday of the month"
        # Last Saturday of October is the 25th
        assert status.next_open == utc(2025, 10, 23, 11, 0)


def test_access_period_from_game_wraps_around_game_day():
    """Opens an hour after Sunday's game, closes two hours before the next one."""
    game = GameInfo(enabled=True, game_day=0, start_hour=17, start_minute=0, end_hour=19, end_minute=0)
    period = access_period_from_game(game, "Africa/Lagos", open_after_end_minutes=60,
                                     close_before_start_minutes=120)

    assert (period.start_day, period.start_hour, period.start_minute) == (0, 20, 0)
    assert (period.end_day, period.end_hour, period.end_minute) == (0, 15, 0)
    assert period.enabled
    assert period.timezone == "Africa/Lagos"
