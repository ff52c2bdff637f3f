"""
Grace-day state persistence.

The engine itself never persists anything; hosts use a GraceDayStateStore
around each user action (load, compute, save). Storage failures are logged and
reported, never raised: the computed value is still returned to the caller,
only durability is lost.

Persisted payloads use the camelCase JSON shape of GraceDayState.to_dict().
A payload that does not match the schema is replaced by the default state
wholesale; nothing is partially repaired.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from gracestreak.core.config import settings
from gracestreak.core.database import create_all_tables, get_db_session, grace_day_states
from gracestreak.core.errors import StateStoreError
from gracestreak.core.logging import log_event
from gracestreak.features.grace_days.calendar import CalendarDay
from gracestreak.features.grace_days.ledger import cleanup_old_usage
from gracestreak.models.grace_day import GraceDayState, GraceDayUsage


class StoredUsage(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    used_on: date = Field(alias="usedOn")
    week_number: int = Field(alias="weekNumber", ge=1, le=53)
    year: int
    missed_date: date = Field(alias="missedDate")
    streak_at_use: int = Field(alias="streakAtUse", ge=0)


class StoredState(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)

    enabled: bool
    usage_history: List[StoredUsage] = Field(alias="usageHistory")
    max_per_week: int = Field(alias="maxPerWeek", ge=0)
    weekend_pause_enabled: bool = Field(alias="weekendPauseEnabled")

    @model_validator(mode="after")
    def _missed_dates_unique(self) -> "StoredState":
        missed = [usage.missed_date for usage in self.usage_history]
        if len(missed) != len(set(missed)):
            raise ValueError("usageHistory heals the same missedDate twice")
        return self

    def to_state(self) -> GraceDayState:
        return GraceDayState(
            enabled=self.enabled,
            usage_history=tuple(
                GraceDayUsage(
                    used_on=usage.used_on,
                    week_number=usage.week_number,
                    year=usage.year,
                    missed_date=usage.missed_date,
                    streak_at_use=usage.streak_at_use,
                )
                for usage in self.usage_history
            ),
            max_per_week=self.max_per_week,
            weekend_pause_enabled=self.weekend_pause_enabled,
        )


def default_state() -> GraceDayState:
    return GraceDayState(
        enabled=settings.GRACE_DAYS_ENABLED_DEFAULT,
        max_per_week=settings.GRACE_DAYS_MAX_PER_WEEK,
    )


def serialize_state(state: GraceDayState) -> str:
    return json.dumps(state.to_dict(), separators=(",", ":"))


def parse_state(raw: str, *, key: Optional[str] = None) -> GraceDayState:
    """Decode a persisted payload, falling back to the default state if it is malformed."""
    try:
        return StoredState.model_validate_json(raw).to_state()
    except ValidationError as exc:
        log_event(
            "warning",
            "grace_day.state_malformed",
            state_key=key,
            event_type="grace_day.state_malformed",
            error_code="malformed_state",
            extra={"errors": exc.error_count()},
        )
        return default_state()


class GraceDayStateStore(ABC):
    """load/save/clear contract over a key-value backend."""

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Return the stored payload or None. Raise StateStoreError on backend failure."""

    @abstractmethod
    def _write(self, key: str, payload: str) -> None:
        ...

    @abstractmethod
    def _delete(self, key: str) -> None:
        ...

    def load(self, key: str) -> GraceDayState:
        try:
            raw = self._read(key)
        except StateStoreError as exc:
            log_event(
                "warning",
                "grace_day.load_failed",
                state_key=key,
                event_type="grace_day.load_failed",
                error_code=exc.code,
                extra={"error": exc.message},
            )
            return default_state()
        if raw is None:
            return default_state()
        return parse_state(raw, key=key)

    def save(self, key: str, state: GraceDayState, *, now: Optional[CalendarDay] = None) -> bool:
        """Persist the state after dropping usages outside the retention window.

        Returns False when the backend failed; the failure is logged.
        """
        cleaned = cleanup_old_usage(state, now)
        try:
            self._write(key, serialize_state(cleaned))
        except StateStoreError as exc:
            log_event(
                "error",
                "grace_day.save_failed",
                state_key=key,
                event_type="grace_day.save_failed",
                error_code=exc.code,
                extra={"error": exc.message},
            )
            return False
        return True

    def clear(self, key: str) -> bool:
        try:
            self._delete(key)
        except StateStoreError as exc:
            log_event(
                "error",
                "grace_day.clear_failed",
                state_key=key,
                event_type="grace_day.clear_failed",
                error_code=exc.code,
                extra={"error": exc.message},
            )
            return False
        return True


class InMemoryStateStore(GraceDayStateStore):
    """Process-local store. Payloads are kept serialized so load/save mirror a real backend."""

    def __init__(self):
        self._payloads: Dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self._payloads.get(key)

    def _write(self, key: str, payload: str) -> None:
        self._payloads[key] = payload

    def _delete(self, key: str) -> None:
        self._payloads.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._payloads)


class DatabaseStateStore(GraceDayStateStore):
    """SQLAlchemy-backed store: one row per key in grace_day_states."""

    def __init__(self, session_factory=None):
        self._session = session_factory or get_db_session

    def _read(self, key: str) -> Optional[str]:
        try:
            with self._session() as session:
                row = session.execute(
                    select(grace_day_states.c.payload).where(grace_day_states.c.state_key == key)
                ).first()
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Failed to read grace day state: {exc.__class__.__name__}") from exc
        return row.payload if row else None

    def _write(self, key: str, payload: str) -> None:
        try:
            with self._session() as session:
                result = session.execute(
                    update(grace_day_states)
                    .where(grace_day_states.c.state_key == key)
                    .values(payload=payload)
                )
                if result.rowcount == 0:
                    session.execute(insert(grace_day_states).values(state_key=key, payload=payload))
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Failed to write grace day state: {exc.__class__.__name__}") from exc

    def _delete(self, key: str) -> None:
        try:
            with self._session() as session:
                session.execute(delete(grace_day_states).where(grace_day_states.c.state_key == key))
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Failed to clear grace day state: {exc.__class__.__name__}") from exc


_store: Optional[GraceDayStateStore] = None


def get_state_store() -> GraceDayStateStore:
    """Return the process-wide store for the configured backend."""
    global _store
    if _store is None:
        if settings.STATE_STORE_BACKEND == "database":
            create_all_tables()
            _store = DatabaseStateStore()
        else:
            _store = InMemoryStateStore()
    return _store


def reset_state_store() -> None:
    global _store
    _store = None
