"""Calendar and wall-clock helpers shared by the window and period logic.

Days of the week are numbered 0=Sunday .. 6=Saturday throughout, which is
what organizers configure and what stored settings contain.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.constants import MINUTES_PER_DAY, MINUTES_PER_WEEK
from core.exceptions import ConfigurationError

Occurrence = Union[int, str]

OCCURRENCE_LABELS = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 5: "5th", "last": "last"}


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: {name}") from e


def sunday_weekday(day: date) -> int:
    """Weekday number with Sunday as 0."""
    return (day.weekday() + 1) % 7


def local_wall_clock(instant: datetime, zone_name: str) -> datetime:
    """Naive local date/time of ``instant`` in the given zone."""
    return instant.astimezone(get_zone(zone_name)).replace(tzinfo=None)


def to_utc(local: datetime, zone_name: str) -> datetime:
    """Absolute UTC instant of a naive local wall-clock time in the zone."""
    return local.replace(tzinfo=get_zone(zone_name)).astimezone(timezone.utc)


def at_time(day: date, hour: int, minute: int) -> datetime:
    return datetime.combine(day, time(hour, minute))


def week_minutes(day: int, hour: int, minute: int) -> int:
    """Minutes since Sunday 00:00 on the week-local clock."""
    return day * MINUTES_PER_DAY + hour * 60 + minute


def shift_week_time(day: int, hour: int, minute: int, delta_minutes: int) -> Tuple[int, int, int]:
    """Add a signed minute offset to a week-local time.

    Minutes carry into hours, hours into days, and Saturday wraps to Sunday
    (and the reverse for negative offsets): Friday 23:59 plus one minute is
    Saturday 00:00.
    """
    total = (week_minutes(day, hour, minute) + delta_minutes) % MINUTES_PER_WEEK
    new_day, rest = divmod(total, MINUTES_PER_DAY)
    new_hour, new_minute = divmod(rest, 60)
    return new_day, new_hour, new_minute


def format_clock(hour: int, minute: int) -> str:
    """12-hour clock label, e.g. ``12:00 PM`` or ``9:05 AM``."""
    display_hour = hour % 12 or 12
    suffix = "AM" if hour < 12 else "PM"
    return f"{display_hour}:{minute:02d} {suffix}"


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Shift a (year, month) pair, month being 1..12."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def nth_weekday_of_month(year: int, month: int, weekday: int, n: Occurrence) -> Optional[date]:
    """Date of the n-th (1-based) or ``"last"`` given weekday in a month.

    Returns None when the month has no such occurrence, e.g. a fifth
    Saturday in most months.
    """
    days_in_month = calendar.monthrange(year, month)[1]
    if n == "last":
        last = date(year, month, days_in_month)
        return last - timedelta(days=(sunday_weekday(last) - weekday) % 7)

    first = date(year, month, 1)
    day_of_month = 1 + (weekday - sunday_weekday(first)) % 7 + (int(n) - 1) * 7
    if day_of_month > days_in_month:
        return None
    return date(year, month, day_of_month)


def occurrence_label(n: Occurrence) -> str:
    return OCCURRENCE_LABELS.get(n, str(n))
