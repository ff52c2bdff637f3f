"""
Calendar arithmetic for grace-day bookkeeping.

Two week conventions live here and are deliberately kept apart:
- ISO-8601 numbering (Monday start, Thursday decides the year) keys the quota ledger.
- Sunday-to-Saturday boundaries decide when the quota visibly resets.
They disagree near year boundaries and on Sundays.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from gracestreak.core.config import settings
from gracestreak.models.grace_day import WeekInfo

CalendarDay = Union[date, str]
Clock = Callable[[], date]

ONE_DAY = timedelta(days=1)


def as_day(value: CalendarDay) -> date:
    """Accept a date or a YYYY-MM-DD string. Invalid strings raise ValueError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def system_clock() -> date:
    return datetime.now(ZoneInfo(settings.STREAK_TIMEZONE)).date()


def today(clock: Optional[Clock] = None) -> date:
    return (clock or system_clock)()


def yesterday(clock: Optional[Clock] = None) -> date:
    return today(clock) - ONE_DAY


def days_ago(days: int, clock: Optional[Clock] = None) -> date:
    return today(clock) - timedelta(days=days)


def iso_week_info(day: CalendarDay) -> Tuple[int, int]:
    """Return (week_number, year) per ISO-8601.

    The week is found via its Thursday; the week-numbering year is the
    Thursday's calendar year.
    """
    d = as_day(day)
    thursday = d - timedelta(days=d.weekday()) + timedelta(days=3)
    jan_first = date(thursday.year, 1, 1)
    first_thursday = jan_first + timedelta(days=(3 - jan_first.weekday()) % 7)
    week_number = 1 + round((thursday - first_thursday).days / 7)
    return week_number, thursday.year


def week_boundaries(day: CalendarDay) -> Tuple[date, date]:
    """Return (sunday, saturday) of the Sunday-start week containing the day."""
    d = as_day(day)
    sunday = d - timedelta(days=day_of_week(d))
    return sunday, sunday + timedelta(days=6)


def week_info(day: CalendarDay) -> WeekInfo:
    week_number, year = iso_week_info(day)
    start_date, end_date = week_boundaries(day)
    return WeekInfo(week_number=week_number, year=year, start_date=start_date, end_date=end_date)


def is_same_week(first: CalendarDay, second: CalendarDay) -> bool:
    """True when both days share an ISO week."""
    return iso_week_info(first) == iso_week_info(second)


def days_between(first: CalendarDay, second: CalendarDay) -> int:
    """Absolute number of days between two calendar days."""
    return abs((as_day(second) - as_day(first)).days)


def is_next_day(later: CalendarDay, earlier: CalendarDay) -> bool:
    """True when `later` is exactly one day after `earlier`."""
    return (as_day(later) - as_day(earlier)).days == 1


def day_of_week(day: CalendarDay) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (as_day(day).weekday() + 1) % 7


def is_weekend(day: CalendarDay) -> bool:
    return day_of_week(day) in (0, 6)


def weekend_day_name(day: CalendarDay) -> Optional[str]:
    dow = day_of_week(day)
    if dow == 0:
        return "Sunday"
    if dow == 6:
        return "Saturday"
    return None


def is_weekend_paused(day: CalendarDay, weekend_pause_enabled: bool) -> bool:
    return weekend_pause_enabled and is_weekend(day)
