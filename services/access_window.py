"""Recurring access window evaluation for weekly and monthly events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from core.clock import to_iso
from core.constants import DAY_NAMES, Recurrence
from database.models import AccessPeriod, GameInfo, OrgSettings
from utils.timeutils import (
    add_months,
    at_time,
    format_clock,
    local_wall_clock,
    nth_weekday_of_month,
    occurrence_label,
    shift_week_time,
    sunday_weekday,
    to_utc,
    week_minutes,
)


@dataclass(frozen=True)
class AccessStatus:
    """Outcome of evaluating the access window at one instant.

    ``next_open`` is only set while closed. ``close_time`` is the upcoming
    close while open and the most recent close while closed.
    """

    is_open: bool
    message: Optional[str] = None
    next_open: Optional[datetime] = None
    close_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isOpen": self.is_open,
            "message": self.message,
            "nextOpenTime": to_iso(self.next_open) if self.next_open else None,
            "closeTime": to_iso(self.close_time) if self.close_time else None,
        }


def evaluate_access(settings: OrgSettings, now: datetime) -> AccessStatus:
    """Decide whether signups are allowed at ``now``."""
    if not settings.access_period.enabled:
        return AccessStatus(is_open=True)

    if settings.game_info.recurrence is Recurrence.MONTHLY:
        return monthly_status(settings.access_period, settings.game_info, now)

    return weekly_status(settings.access_period, now)


def _passed(hour: int, minute: int, target_hour: int, target_minute: int) -> bool:
    return (hour, minute) >= (target_hour, target_minute)


def weekly_status(period: AccessPeriod, now: datetime) -> AccessStatus:
    local = local_wall_clock(now, period.timezone)
    current_day = sunday_weekday(local.date())

    current_mins = week_minutes(current_day, local.hour, local.minute)
    start_mins = week_minutes(period.start_day, period.start_hour, period.start_minute)
    end_mins = week_minutes(period.end_day, period.end_hour, period.end_minute)

    if start_mins <= end_mins:
        is_open = start_mins <= current_mins < end_mins
    else:
        # Window wraps past Saturday midnight
        is_open = current_mins >= start_mins or current_mins < end_mins

    message = None
    next_open = None
    if not is_open:
        message = (
            f"RSVP is closed. Opens {DAY_NAMES[period.start_day]} at "
            f"{format_clock(period.start_hour, period.start_minute)}"
        )
        days_until = period.start_day - current_day
        if days_until < 0 or (
            days_until == 0
            and _passed(local.hour, local.minute, period.start_hour, period.start_minute)
        ):
            days_until += 7
        target = at_time(local.date() + timedelta(days=days_until), period.start_hour, period.start_minute)
        next_open = to_utc(target, period.timezone)

    days_to_close = period.end_day - current_day
    if is_open:
        if days_to_close < 0:
            days_to_close += 7
        if days_to_close == 0 and _passed(local.hour, local.minute, period.end_hour, period.end_minute):
            days_to_close += 7
    else:
        if days_to_close > 0:
            days_to_close -= 7
        if days_to_close == 0 and not _passed(local.hour, local.minute, period.end_hour, period.end_minute):
            days_to_close -= 7
    close_local = at_time(local.date() + timedelta(days=days_to_close), period.end_hour, period.end_minute)

    return AccessStatus(
        is_open=is_open,
        message=message,
        next_open=next_open,
        close_time=to_utc(close_local, period.timezone),
    )


def _day_offset(day: int, game_day: int) -> int:
    """Days from the game day back to ``day`` within the preceding week."""
    offset = day - game_day
    if offset > 0:
        offset -= 7
    return offset


def monthly_window(period: AccessPeriod, game_day: int, game_date: date) -> Tuple[datetime, datetime]:
    """Local open/close datetimes of the window leading up to ``game_date``."""
    open_at = at_time(
        game_date + timedelta(days=_day_offset(period.start_day, game_day)),
        period.start_hour,
        period.start_minute,
    )
    close_at = at_time(
        game_date + timedelta(days=_day_offset(period.end_day, game_day)),
        period.end_hour,
        period.end_minute,
    )
    if open_at > close_at:
        close_at += timedelta(days=7)
    return open_at, close_at


def _monthly_game_dates(game: GameInfo, year: int, month: int, offsets: range) -> List[date]:
    dates = []
    for delta in offsets:
        y, m = add_months(year, month, delta)
        found = nth_weekday_of_month(y, m, game.game_day, game.monthly_occurrence)
        if found is not None:
            dates.append(found)
    return dates


def monthly_status(period: AccessPeriod, game: GameInfo, now: datetime) -> AccessStatus:
    """The window is only live in the week holding the month's game date."""
    local = local_wall_clock(now, period.timezone)
    candidates = _monthly_game_dates(game, local.year, local.month, range(-1, 2))

    most_recent_close: Optional[datetime] = None
    for game_date in candidates:
        open_at, close_at = monthly_window(period, game.game_day, game_date)
        if open_at <= local < close_at:
            return AccessStatus(is_open=True, close_time=to_utc(close_at, period.timezone))
        if close_at <= local and (most_recent_close is None or close_at > most_recent_close):
            most_recent_close = close_at

    next_open_local: Optional[datetime] = None
    for game_date in candidates:
        open_at, _ = monthly_window(period, game.game_day, game_date)
        if open_at > local:
            next_open_local = open_at
            break

    if next_open_local is None:
        for game_date in _monthly_game_dates(game, local.year, local.month, range(2, 3)):
            next_open_local, _ = monthly_window(period, game.game_day, game_date)

    message = (
        f"RSVP is closed. Opens for the {occurrence_label(game.monthly_occurrence)} "
        f"{DAY_NAMES[game.game_day]} of the month"
    )
    return AccessStatus(
        is_open=False,
        message=message,
        next_open=to_utc(next_open_local, period.timezone) if next_open_local else None,
        close_time=to_utc(most_recent_close, period.timezone) if most_recent_close else None,
    )


def minutes_until_close(settings: OrgSettings, now: datetime) -> Optional[int]:
    """Whole minutes left in an open window, or None when closed or unbounded."""
    status = evaluate_access(settings, now)
    if not status.is_open or status.close_time is None:
        return None
    return int((status.close_time - now).total_seconds() // 60)


def access_period_from_game(
    game: GameInfo,
    timezone: str,
    open_after_end_minutes: int = 0,
    close_before_start_minutes: int = 0
) -> AccessPeriod:
    """Derive a weekly window anchored on the game time.

    The window opens ``open_after_end_minutes`` after the game ends and
    closes ``close_before_start_minutes`` before the next game starts.
    """
    start_day, start_hour, start_minute = shift_week_time(
        game.game_day, game.end_hour, game.end_minute, open_after_end_minutes
    )
    end_day, end_hour, end_minute = shift_week_time(
        game.game_day, game.start_hour, game.start_minute, -close_before_start_minutes
    )
    return AccessPeriod(
        enabled=True,
        start_day=start_day,
        start_hour=start_hour,
        start_minute=start_minute,
        end_day=end_day,
        end_hour=end_hour,
        end_minute=end_minute,
        timezone=timezone,
    )
