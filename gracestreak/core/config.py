import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Persistence
    DATABASE_URL: Optional[str] = None
    STATE_STORE_BACKEND: str = "memory"  # memory | database
    GRACE_DAY_STORAGE_KEY: str = "grace-day-state"

    # Grace days
    GRACE_DAYS_ENABLED_DEFAULT: bool = True
    GRACE_DAYS_MAX_PER_WEEK: int = 1
    GRACE_QUOTA_WEEK: str = "iso"  # iso | sunday
    GRACE_RETENTION_WEEKS: int = 52

    # Streak replay
    STREAK_LOOKBACK_DAYS: int = 365
    STREAK_TIMEZONE: str = "UTC"
    WEEKEND_PAUSE_IN_STREAK: bool = False

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate grace-day configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("gracestreak")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    backend = getattr(cfg, "STATE_STORE_BACKEND", "memory")
    if backend not in ("memory", "database"):
        problems.append(f"STATE_STORE_BACKEND must be 'memory' or 'database', got {backend!r}")
    if backend == "database" and not getattr(cfg, "DATABASE_URL", None):
        problems.append("DATABASE_URL is required when STATE_STORE_BACKEND=database")
    if getattr(cfg, "GRACE_QUOTA_WEEK", "iso") not in ("iso", "sunday"):
        problems.append("GRACE_QUOTA_WEEK must be 'iso' or 'sunday'")
    if getattr(cfg, "GRACE_DAYS_MAX_PER_WEEK", 1) < 0:
        problems.append("GRACE_DAYS_MAX_PER_WEEK must not be negative")
    if getattr(cfg, "STREAK_LOOKBACK_DAYS", 365) < 1:
        problems.append("STREAK_LOOKBACK_DAYS must be at least 1")

    if problems:
        message = f"Invalid configuration: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
