"""
Grace-day ledger: weekly quota accounting over the usage history.

All functions are pure. They take a GraceDayState and return derived values
or a new GraceDayState; nothing here persists.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from typing import Iterable, Optional, Tuple

from gracestreak.core.config import settings
from gracestreak.features.grace_days.calendar import (
    CalendarDay,
    Clock,
    ONE_DAY,
    as_day,
    iso_week_info,
    today as current_day,
    week_boundaries,
)
from gracestreak.models.grace_day import (
    GraceDayAvailability,
    GraceDayState,
    GraceDayUsage,
)

QUOTA_WEEK_ISO = "iso"
QUOTA_WEEK_SUNDAY = "sunday"


def quota_week_key(day: CalendarDay, quota_week: Optional[str] = None) -> Tuple[int, int]:
    """Return the (week_number, year) bucket a day's grace usage counts against.

    "iso" buckets by the day's own ISO week. "sunday" buckets the whole
    Sunday-to-Saturday window under the ISO week of its Monday, so the quota
    resets on the same Sunday reported by check_availability.
    """
    mode = quota_week or settings.GRACE_QUOTA_WEEK
    if mode == QUOTA_WEEK_SUNDAY:
        sunday, _ = week_boundaries(day)
        return iso_week_info(sunday + ONE_DAY)
    if mode != QUOTA_WEEK_ISO:
        raise ValueError(f"Unknown quota week mode: {mode!r}")
    return iso_week_info(day)


def grace_days_used_in_week(
    usage_history: Iterable[GraceDayUsage],
    reference_date: CalendarDay,
    *,
    quota_week: Optional[str] = None,
) -> int:
    week_number, year = quota_week_key(reference_date, quota_week)
    return sum(1 for usage in usage_history if usage.week_number == week_number and usage.year == year)


def check_availability(
    state: GraceDayState,
    reference_date: Optional[CalendarDay] = None,
    *,
    clock: Optional[Clock] = None,
    quota_week: Optional[str] = None,
) -> GraceDayAvailability:
    """Report whether a grace day can be spent in the reference date's quota week."""
    ref = as_day(reference_date) if reference_date is not None else current_day(clock)
    used_this_week = grace_days_used_in_week(state.usage_history, ref, quota_week=quota_week)
    remaining = max(0, state.max_per_week - used_this_week)

    _, saturday = week_boundaries(ref)
    resets_on = saturday + ONE_DAY

    return GraceDayAvailability(
        is_available=state.enabled and remaining > 0,
        used_this_week=used_this_week,
        max_per_week=state.max_per_week,
        remaining=remaining,
        resets_on=resets_on,
        days_until_reset=(resets_on - ref).days,
    )


def is_date_protected(state: GraceDayState, day: CalendarDay) -> bool:
    target = as_day(day)
    return any(usage.missed_date == target for usage in state.usage_history)


def consume_grace_day(
    state: GraceDayState,
    missed_date: CalendarDay,
    streak_at_use: int,
    *,
    today: Optional[CalendarDay] = None,
    clock: Optional[Clock] = None,
    quota_week: Optional[str] = None,
) -> GraceDayState:
    """Return a new state with one more usage recorded against today's quota week.

    Callers are expected to have checked can_protect_gap first; this function
    does not re-validate the quota or the gap.
    """
    used_on = as_day(today) if today is not None else current_day(clock)
    week_number, year = quota_week_key(used_on, quota_week)
    usage = GraceDayUsage(
        used_on=used_on,
        week_number=week_number,
        year=year,
        missed_date=as_day(missed_date),
        streak_at_use=streak_at_use,
    )
    return replace(state, usage_history=state.usage_history + (usage,))


def cleanup_old_usage(
    state: GraceDayState,
    now: Optional[CalendarDay] = None,
    *,
    retention_weeks: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> GraceDayState:
    """Drop usages whose (year, week) bucket falls before the retention window.

    The only operation allowed to shrink the ledger.
    """
    reference = as_day(now) if now is not None else current_day(clock)
    weeks = settings.GRACE_RETENTION_WEEKS if retention_weeks is None else retention_weeks
    cutoff_week, cutoff_year = iso_week_info(reference - timedelta(weeks=weeks))

    kept = tuple(
        usage
        for usage in state.usage_history
        if (usage.year, usage.week_number) >= (cutoff_year, cutoff_week)
    )
    if len(kept) == len(state.usage_history):
        return state
    return replace(state, usage_history=kept)


def with_settings(
    state: GraceDayState,
    *,
    enabled: Optional[bool] = None,
    max_per_week: Optional[int] = None,
    weekend_pause_enabled: Optional[bool] = None,
) -> GraceDayState:
    """Return a copy of the state with the given preferences changed."""
    changes = {}
    if enabled is not None:
        changes["enabled"] = enabled
    if max_per_week is not None:
        if max_per_week < 0:
            raise ValueError("max_per_week must not be negative")
        changes["max_per_week"] = max_per_week
    if weekend_pause_enabled is not None:
        changes["weekend_pause_enabled"] = weekend_pause_enabled
    return replace(state, **changes) if changes else state
