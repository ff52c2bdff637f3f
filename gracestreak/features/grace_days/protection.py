"""
Gap protection evaluator.

Decides whether the gap between the last activity and a check date can be
healed by a grace day. Exactly one missed day is healable; two or more never
are, not even partially, whatever the remaining quota.
"""

from __future__ import annotations

from typing import Optional

from gracestreak.features.grace_days.calendar import (
    CalendarDay,
    Clock,
    ONE_DAY,
    as_day,
    today as current_day,
)
from gracestreak.features.grace_days.ledger import check_availability, is_date_protected
from gracestreak.models.grace_day import GapProtection, GraceDayState


def can_protect_gap(
    state: GraceDayState,
    last_activity_date: CalendarDay,
    check_date: Optional[CalendarDay] = None,
    *,
    clock: Optional[Clock] = None,
    quota_week: Optional[str] = None,
) -> GapProtection:
    if not state.enabled:
        return GapProtection(False, None, "Grace day protection is disabled")

    check = as_day(check_date) if check_date is not None else current_day(clock)
    gap_days = (check - as_day(last_activity_date)).days

    # Activity on or after the check date leaves nothing to heal
    if gap_days <= 1:
        reason = "Active today" if gap_days == 0 else "Active yesterday - streak continues"
        return GapProtection(False, None, reason)

    if gap_days == 2:
        missed_date = check - ONE_DAY

        if is_date_protected(state, missed_date):
            return GapProtection(False, missed_date, "This day was already protected by a grace day")

        availability = check_availability(state, check, quota_week=quota_week)
        if not availability.is_available:
            return GapProtection(
                False,
                missed_date,
                f"No grace days remaining this week ({availability.used_this_week}/{availability.max_per_week} used)",
            )

        return GapProtection(True, missed_date, "Grace day available to protect missed day")

    return GapProtection(
        False,
        None,
        f"Gap too large ({gap_days - 1} days missed). Grace days only protect 1 missed day.",
    )
