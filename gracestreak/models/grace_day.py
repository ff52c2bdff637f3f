"""
Grace-day domain models.

Day-level values only, no storage concerns. A GraceDayState is an immutable
value: every operation that "changes" it returns a new instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

DEFAULT_MAX_PER_WEEK = 1


@dataclass(frozen=True)
class WeekInfo:
    week_number: int  # ISO-8601 week (1..53)
    year: int  # ISO week-numbering year
    start_date: date  # Sunday on or before the day
    end_date: date  # Saturday after start_date

    def to_dict(self) -> dict:
        return {
            "weekNumber": self.week_number,
            "year": self.year,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class GraceDayUsage:
    """One healed gap. Never mutated once recorded."""

    used_on: date
    week_number: int
    year: int
    missed_date: date
    streak_at_use: int

    def to_dict(self) -> dict:
        return {
            "usedOn": self.used_on.isoformat(),
            "weekNumber": self.week_number,
            "year": self.year,
            "missedDate": self.missed_date.isoformat(),
            "streakAtUse": self.streak_at_use,
        }


@dataclass(frozen=True)
class GraceDayState:
    """
    Per-user grace-day settings plus the ledger of healed gaps.

    Attributes:
        enabled: Whether grace day protection is on
        usage_history: Healed gaps in the order they were recorded
        max_per_week: Heals allowed per quota week
        weekend_pause_enabled: User preference for pausing weekends
    """

    enabled: bool = True
    usage_history: Tuple[GraceDayUsage, ...] = field(default_factory=tuple)
    max_per_week: int = DEFAULT_MAX_PER_WEEK
    weekend_pause_enabled: bool = False

    def protected_dates(self) -> set[date]:
        return {usage.missed_date for usage in self.usage_history}

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "usageHistory": [usage.to_dict() for usage in self.usage_history],
            "maxPerWeek": self.max_per_week,
            "weekendPauseEnabled": self.weekend_pause_enabled,
        }


DEFAULT_GRACE_DAY_STATE = GraceDayState()


@dataclass(frozen=True)
class GraceDayAvailability:
    is_available: bool
    used_this_week: int
    max_per_week: int
    remaining: int
    resets_on: date  # Sunday starting the next quota week
    days_until_reset: int

    def to_dict(self) -> dict:
        return {
            "isAvailable": self.is_available,
            "usedThisWeek": self.used_this_week,
            "maxPerWeek": self.max_per_week,
            "remaining": self.remaining,
            "resetsOn": self.resets_on.isoformat(),
            "daysUntilReset": self.days_until_reset,
        }


@dataclass(frozen=True)
class GapProtection:
    """Outcome of asking whether a gap can be healed. Refusals are results, not errors."""

    can_protect: bool
    missed_date: Optional[date]
    reason: str

    def to_dict(self) -> dict:
        return {
            "canProtect": self.can_protect,
            "missedDate": self.missed_date.isoformat() if self.missed_date else None,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class StreakResult:
    current_streak: int = 0  # days with real activity
    effective_streak: int = 0  # including grace-protected days
    grace_days_used_in_streak: int = 0
    is_protected: bool = False
    protected_dates: Tuple[date, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "currentStreak": self.current_streak,
            "effectiveStreak": self.effective_streak,
            "graceDaysUsedInStreak": self.grace_days_used_in_streak,
            "isProtected": self.is_protected,
            "protectedDates": [day.isoformat() for day in self.protected_dates],
        }


EMPTY_STREAK = StreakResult()
