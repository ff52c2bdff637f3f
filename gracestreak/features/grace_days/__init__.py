"""
Grace-day streak protection.

- calendar: day arithmetic, ISO week numbering, Sunday-start week boundaries
- ledger: weekly quota accounting, consuming and trimming grace-day usage
- protection: whether a single missed day can be healed right now
- streak: replay of activity plus healed days into real/effective streaks
- store: load/save/clear contract with in-memory and database backends
"""

from gracestreak.features.grace_days.ledger import (
    check_availability,
    cleanup_old_usage,
    consume_grace_day,
    grace_days_used_in_week,
)
from gracestreak.features.grace_days.protection import can_protect_gap
from gracestreak.features.grace_days.streak import calculate_streak

__all__ = [
    "calculate_streak",
    "can_protect_gap",
    "check_availability",
    "cleanup_old_usage",
    "consume_grace_day",
    "grace_days_used_in_week",
]
