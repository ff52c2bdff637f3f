"""gracestreak public API.

Keep this surface small: hosts mostly need the pure grace-day operations,
the state models and a state store.
"""

from .features.grace_days import (
    calculate_streak,
    can_protect_gap,
    check_availability,
    cleanup_old_usage,
    consume_grace_day,
    grace_days_used_in_week,
)
from .features.grace_days.store import (
    DatabaseStateStore,
    GraceDayStateStore,
    InMemoryStateStore,
)
from .models.grace_day import (
    DEFAULT_GRACE_DAY_STATE,
    GapProtection,
    GraceDayAvailability,
    GraceDayState,
    GraceDayUsage,
    StreakResult,
    WeekInfo,
)

__all__ = [
    "calculate_streak",
    "can_protect_gap",
    "check_availability",
    "cleanup_old_usage",
    "consume_grace_day",
    "grace_days_used_in_week",
    "DatabaseStateStore",
    "GraceDayStateStore",
    "InMemoryStateStore",
    "DEFAULT_GRACE_DAY_STATE",
    "GapProtection",
    "GraceDayAvailability",
    "GraceDayState",
    "GraceDayUsage",
    "StreakResult",
    "WeekInfo",
]
