# gracestreak/conftest.py
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gracestreak.features.grace_days.store import InMemoryStateStore  # noqa: E402
from gracestreak.models.grace_day import GraceDayState  # noqa: E402


class FixedClock:
    """Clock pinned to one day; advance() moves it forward."""

    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day

    def advance(self, days: int = 1) -> date:
        self.day = self.day + timedelta(days=days)
        return self.day


@pytest.fixture
def fixed_clock():
    """Wednesday 2024-06-12 unless a test moves it."""
    return FixedClock(date(2024, 6, 12))


@pytest.fixture
def memory_store():
    return InMemoryStateStore()


@pytest.fixture
def default_state():
    return GraceDayState()


@pytest.fixture(autouse=True)
def reset_settings_overrides(monkeypatch):
    """
    Pin settings that tests rely on so a local .env cannot change outcomes.
    """
    from gracestreak.core.config import settings

    monkeypatch.setattr(settings, "GRACE_QUOTA_WEEK", "iso")
    monkeypatch.setattr(settings, "GRACE_RETENTION_WEEKS", 52)
    monkeypatch.setattr(settings, "STREAK_LOOKBACK_DAYS", 365)
    monkeypatch.setattr(settings, "WEEKEND_PAUSE_IN_STREAK", False)
    monkeypatch.setattr(settings, "GRACE_DAYS_ENABLED_DEFAULT", True)
    monkeypatch.setattr(settings, "GRACE_DAYS_MAX_PER_WEEK", 1)
    monkeypatch.setattr(settings, "STATE_STORE_BACKEND", "memory")
    yield
