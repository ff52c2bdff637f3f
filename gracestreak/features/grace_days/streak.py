"""
Streak reconstructor.

Replays a set of activity days plus the grace-day ledger into the real
streak (activity only) and the effective streak (activity plus healed days).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Protocol

from gracestreak.core.config import settings
from gracestreak.features.grace_days.calendar import (
    CalendarDay,
    Clock,
    ONE_DAY,
    as_day,
    is_weekend,
    today as current_day,
)
from gracestreak.models.grace_day import EMPTY_STREAK, GraceDayState, StreakResult


class DayExemptionPolicy(Protocol):
    """Marks days that may pass without activity and without breaking the chain."""

    def is_exempt(self, day: date) -> bool:
        ...


class WeekendPausePolicy:
    """Saturdays and Sundays are not due."""

    def is_exempt(self, day: date) -> bool:
        return is_weekend(day)


def weekend_pause_policy(state: GraceDayState) -> Optional[DayExemptionPolicy]:
    return WeekendPausePolicy() if state.weekend_pause_enabled else None


def _previous_due_day(day: date, exemption: Optional[DayExemptionPolicy]) -> date:
    previous = day - ONE_DAY
    if exemption is None:
        return previous
    for _ in range(7):
        if not exemption.is_exempt(previous):
            break
        previous -= ONE_DAY
    return previous


def _chain_is_alive(
    activity: set[date],
    protected: set[date],
    now: date,
    exemption: Optional[DayExemptionPolicy],
) -> bool:
    last_due = _previous_due_day(now, exemption)
    if last_due <= max(activity) <= now:
        return True
    # A healed last due day only counts if the due day before it was active
    if last_due not in protected:
        return False
    day = _previous_due_day(last_due, exemption)
    while day < last_due:
        if day in activity:
            return True
        day += ONE_DAY
    return False


def calculate_streak(
    activity_dates: Iterable[CalendarDay],
    state: GraceDayState,
    *,
    today: Optional[CalendarDay] = None,
    clock: Optional[Clock] = None,
    exemption: Optional[DayExemptionPolicy] = None,
    max_days: Optional[int] = None,
) -> StreakResult:
    """
    Count the streak ending today.

    Walks backwards from today. Activity days and grace-protected days extend
    the chain; today itself may be empty without breaking it. The first other
    empty day ends the walk, as does the lookback limit.

    Args:
        activity_dates: Days with qualifying activity, any order, duplicates allowed
        state: Grace-day state whose ledger supplies protected days
        today: Override for the current day
        clock: Clock used when `today` is not given
        exemption: Optional policy for days that are not due (e.g. weekend pause)
        max_days: Override for the lookback limit

    Returns:
        StreakResult, zeroed when the chain is not alive
    """
    activity = {as_day(day) for day in activity_dates}
    if not activity:
        return EMPTY_STREAK

    now = as_day(today) if today is not None else current_day(clock)
    protected = state.protected_dates()

    if not _chain_is_alive(activity, protected, now, exemption):
        return EMPTY_STREAK

    limit = settings.STREAK_LOOKBACK_DAYS if max_days is None else max_days
    effective_streak = 0
    grace_days_used = 0
    protected_used: List[date] = []

    day = now
    for _ in range(limit):
        if day in activity:
            effective_streak += 1
        elif day in protected:
            effective_streak += 1
            grace_days_used += 1
            protected_used.append(day)
        elif day == now:
            pass  # today is not due yet
        elif exemption is not None and exemption.is_exempt(day):
            pass
        else:
            break
        day -= ONE_DAY

    return StreakResult(
        current_streak=effective_streak - grace_days_used,
        effective_streak=effective_streak,
        grace_days_used_in_streak=grace_days_used,
        is_protected=grace_days_used > 0,
        protected_dates=tuple(protected_used),
    )
