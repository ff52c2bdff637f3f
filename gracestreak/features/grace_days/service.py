from __future__ import annotations

from typing import Iterable, Optional, Tuple

from gracestreak.core.config import settings
from gracestreak.core.errors import ValidationError
from gracestreak.core.logging import log_event
from gracestreak.features.grace_days.calendar import CalendarDay, Clock, as_day, today as current_day
from gracestreak.features.grace_days.ledger import (
    check_availability,
    cleanup_old_usage,
    consume_grace_day,
    with_settings,
)
from gracestreak.features.grace_days.protection import can_protect_gap
from gracestreak.features.grace_days.store import GraceDayStateStore, get_state_store
from gracestreak.features.grace_days.streak import calculate_streak, weekend_pause_policy
from gracestreak.models.grace_day import (
    GapProtection,
    GraceDayAvailability,
    GraceDayState,
    StreakResult,
)


class GraceDayService:
    """Load, compute, save around each user action. Last writer wins; no locking."""

    def __init__(self, store: Optional[GraceDayStateStore] = None, clock: Optional[Clock] = None):
        self._store = store
        self._clock = clock

    @property
    def store(self) -> GraceDayStateStore:
        if self._store is None:
            self._store = get_state_store()
        return self._store

    def today(self):
        return current_day(self._clock)

    def get_state(self, user_id: str) -> GraceDayState:
        return self.store.load(self._key(user_id))

    def availability(self, user_id: str, *, reference_date: Optional[CalendarDay] = None) -> GraceDayAvailability:
        state = self.get_state(user_id)
        return check_availability(state, reference_date if reference_date is not None else self.today())

    def check_gap(
        self,
        user_id: str,
        *,
        last_activity_date: CalendarDay,
        check_date: Optional[CalendarDay] = None,
    ) -> GapProtection:
        state = self.get_state(user_id)
        return can_protect_gap(state, last_activity_date, check_date if check_date is not None else self.today())

    def protect_gap(
        self,
        user_id: str,
        *,
        last_activity_date: CalendarDay,
        current_streak: int,
        check_date: Optional[CalendarDay] = None,
    ) -> Tuple[GraceDayState, GapProtection]:
        """Spend a grace day on the missed day if the gap allows it.

        Only a gap ending today can be healed: the usage is charged to today's
        quota week, so the quota must be checked in that same week.
        The state is only written when a grace day was actually consumed.

        Raises:
            ValidationError: check_date is given and is not today
        """
        today = self.today()
        if check_date is not None and as_day(check_date) != today:
            raise ValidationError(f"check_date must be today ({today.isoformat()}) to spend a grace day")

        key = self._key(user_id)
        state = self.store.load(key)
        decision = can_protect_gap(state, last_activity_date, today)
        if not decision.can_protect:
            return state, decision

        updated = consume_grace_day(state, decision.missed_date, current_streak, today=today)
        persisted = self.store.save(key, updated, now=today)
        log_event(
            "info",
            "grace_day.consumed",
            user_id=user_id,
            state_key=key,
            event_type="grace_day.consumed",
            extra={
                "missed_date": decision.missed_date.isoformat(),
                "streak_at_use": current_streak,
                "persisted": persisted,
            },
        )
        return updated, decision

    def streak(self, user_id: str, activity_dates: Iterable[CalendarDay]) -> StreakResult:
        state = self.get_state(user_id)
        exemption = weekend_pause_policy(state) if settings.WEEKEND_PAUSE_IN_STREAK else None
        return calculate_streak(activity_dates, state, today=self.today(), exemption=exemption)

    def update_settings(
        self,
        user_id: str,
        *,
        enabled: Optional[bool] = None,
        max_per_week: Optional[int] = None,
        weekend_pause_enabled: Optional[bool] = None,
    ) -> GraceDayState:
        key = self._key(user_id)
        updated = with_settings(
            self.store.load(key),
            enabled=enabled,
            max_per_week=max_per_week,
            weekend_pause_enabled=weekend_pause_enabled,
        )
        self.store.save(key, updated, now=self.today())
        return updated

    def cleanup(self, user_id: str) -> GraceDayState:
        key = self._key(user_id)
        state = self.store.load(key)
        cleaned = cleanup_old_usage(state, self.today())
        if len(cleaned.usage_history) != len(state.usage_history):
            log_event(
                "info",
                "grace_day.usage_trimmed",
                user_id=user_id,
                state_key=key,
                event_type="grace_day.usage_trimmed",
                extra={"dropped": len(state.usage_history) - len(cleaned.usage_history)},
            )
            self.store.save(key, cleaned, now=self.today())
        return cleaned

    def reset(self, user_id: str) -> bool:
        return self.store.clear(self._key(user_id))

    @staticmethod
    def _key(user_id: str) -> str:
        return f"{settings.GRACE_DAY_STORAGE_KEY}:{user_id}"


# Singleton service used by routes
grace_day_service = GraceDayService()
