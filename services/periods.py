"""Stable identifiers for the current recurrence cycle.

A period runs from local midnight after one game day up to the end of the
next game day. Ids are equality keys only; nothing parses them back.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta

from core.constants import DAY_ABBREVIATIONS, Recurrence
from database.models import GameInfo, OrgSettings
from utils.timeutils import add_months, at_time, local_wall_clock, nth_weekday_of_month, sunday_weekday


def current_period_id(settings: OrgSettings, now: datetime) -> str:
    """Period id for ``now`` using the org's cadence and timezone."""
    if settings.game_info.recurrence is Recurrence.MONTHLY:
        return monthly_period_id(settings.game_info, now, settings.timezone)
    return weekly_period_id(settings.game_info.game_day, now, settings.timezone)


def week_token(day: date) -> str:
    """``YYYY-Www`` with weeks counted from Sunday-aligned week one."""
    jan_first = date(day.year, 1, 1)
    days = (day - jan_first).days
    week = math.ceil((days + sunday_weekday(jan_first) + 1) / 7)
    return f"{day.year}-W{week:02d}"


def weekly_period_id(game_day: int, now: datetime, timezone: str) -> str:
    today = local_wall_clock(now, timezone).date()
    reset_day = (game_day + 1) % 7

    days_since_reset = (sunday_weekday(today) - reset_day) % 7
    period_start = today - timedelta(days=days_since_reset)
    game_date = period_start + timedelta(days=6)

    return week_token(game_date)


def monthly_period_id(game: GameInfo, now: datetime, timezone: str) -> str:
    local = local_wall_clock(now, timezone)

    game_date = None
    for delta in range(-1, 15):
        y, m = add_months(local.year, local.month, delta)
        candidate = nth_weekday_of_month(y, m, game.game_day, game.monthly_occurrence)
        if candidate is None:
            continue
        reset_at = at_time(candidate + timedelta(days=1), 0, 0)
        if local < reset_at:
            game_date = candidate
            break

    if game_date is None:
        raise ValueError(f"No occurrence {game.monthly_occurrence} of day {game.game_day} found")

    occurrence = "L" if game.monthly_occurrence == "last" else str(game.monthly_occurrence)
    return f"{game_date.year}-M{game_date.month:02d}-{occurrence}{DAY_ABBREVIATIONS[game.game_day]}"
