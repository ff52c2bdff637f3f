from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from gracestreak.core.errors import ValidationError
from gracestreak.features.grace_days.service import grace_day_service

router = APIRouter(prefix="/v1/grace-days")


class ProtectRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    last_activity_date: date
    current_streak: int = Field(..., ge=0)
    check_date: Optional[date] = None


class StreakRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    activity_dates: List[date] = Field(default_factory=list)


class SettingsUpdate(BaseModel):
    user_id: str = Field(..., min_length=1)
    enabled: Optional[bool] = None
    max_per_week: Optional[int] = None
    weekend_pause_enabled: Optional[bool] = None


class UserRef(BaseModel):
    user_id: str = Field(..., min_length=1)


@router.get("/state")
def get_state(user_id: str = Query(..., min_length=1)):
    """Return the persisted grace-day state for a user (defaults on first use)."""
    return grace_day_service.get_state(user_id).to_dict()


@router.get("/availability")
def get_availability(user_id: str = Query(..., min_length=1), reference_date: Optional[date] = None):
    return grace_day_service.availability(user_id, reference_date=reference_date).to_dict()


@router.get("/gap")
def check_gap(
    user_id: str = Query(..., min_length=1),
    last_activity_date: date = Query(...),
    check_date: Optional[date] = None,
):
    decision = grace_day_service.check_gap(
        user_id,
        last_activity_date=last_activity_date,
        check_date=check_date,
    )
    return decision.to_dict()


@router.post("/protect")
def protect_gap(body: ProtectRequest):
    state, decision = grace_day_service.protect_gap(
        body.user_id,
        last_activity_date=body.last_activity_date,
        current_streak=body.current_streak,
        check_date=body.check_date,
    )
    return {"protection": decision.to_dict(), "state": state.to_dict()}


@router.post("/streak")
def compute_streak(body: StreakRequest):
    return grace_day_service.streak(body.user_id, body.activity_dates).to_dict()


@router.patch("/settings")
def update_settings(body: SettingsUpdate):
    if body.max_per_week is not None and body.max_per_week < 0:
        raise ValidationError("max_per_week must not be negative")
    state = grace_day_service.update_settings(
        body.user_id,
        enabled=body.enabled,
        max_per_week=body.max_per_week,
        weekend_pause_enabled=body.weekend_pause_enabled,
    )
    return state.to_dict()


@router.post("/cleanup")
def cleanup_usage(body: UserRef):
    return grace_day_service.cleanup(body.user_id).to_dict()


@router.delete("/state")
def clear_state(user_id: str = Query(..., min_length=1)):
    return {"cleared": grace_day_service.reset(user_id)}
