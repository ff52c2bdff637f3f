"""HTTP contract for the grace-day routes."""

import logging
from datetime import date

import pytest
from fastapi.testclient import TestClient

from gracestreak.features.grace_days.service import grace_day_service
from gracestreak.features.grace_days.store import InMemoryStateStore
from gracestreak.main import app


@pytest.fixture
def client(monkeypatch, fixed_clock):
    monkeypatch.setattr(grace_day_service, "_store", InMemoryStateStore())
    monkeypatch.setattr(grace_day_service, "_clock", fixed_clock)
    return TestClient(app)


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "store": "memory"}
    assert response.headers.get("x-request-id")


def test_request_id_is_echoed(client, caplog):
    with caplog.at_level(logging.INFO, logger="gracestreak"):
        response = client.get("/healthz", headers={"x-request-id": "rid-123"})
    assert response.headers["x-request-id"] == "rid-123"
    assert any(getattr(r, "request_id", None) == "rid-123" for r in caplog.records)


def test_state_defaults(client):
    response = client.get("/v1/grace-days/state", params={"user_id": "u1"})
    assert response.status_code == 200
    assert response.json() == {
        "enabled": True,
        "usageHistory": [],
        "maxPerWeek": 1,
        "weekendPauseEnabled": False,
    }


def test_availability(client):
    response = client.get("/v1/grace-days/availability", params={"user_id": "u1"})
    body = response.json()
    assert body["isAvailable"] is True
    assert body["resetsOn"] == "2024-06-16"
    assert body["daysUntilReset"] == 4


def test_gap_check(client):
    response = client.get(
        "/v1/grace-days/gap",
        params={"user_id": "u1", "last_activity_date": "2024-06-08", "check_date": "2024-06-10"},
    )
    assert response.json() == {
        "canProtect": True,
        "missedDate": "2024-06-09",
        "reason": "Grace day available to protect missed day",
    }


def test_protect_then_already_protected(client):
    body = {"user_id": "u1", "last_activity_date": "2024-06-10", "current_streak": 5}

    first = client.post("/v1/grace-days/protect", json=body).json()
    assert first["protection"]["canProtect"] is True
    assert first["protection"]["missedDate"] == "2024-06-11"
    assert first["state"]["usageHistory"] == [
        {
            "usedOn": "2024-06-12",
            "weekNumber": 24,
            "year": 2024,
            "missedDate": "2024-06-11",
            "streakAtUse": 5,
        }
    ]

    second = client.post("/v1/grace-days/protect", json=body).json()
    assert second["protection"]["canProtect"] is False
    assert "already protected" in second["protection"]["reason"]


def test_streak(client):
    client.post(
        "/v1/grace-days/protect",
        json={"user_id": "u1", "last_activity_date": "2024-06-10", "current_streak": 2},
    )

    response = client.post(
        "/v1/grace-days/streak",
        json={"user_id": "u1", "activity_dates": ["2024-06-10", "2024-06-09"]},
    )

    assert response.json() == {
        "currentStreak": 2,
        "effectiveStreak": 3,
        "graceDaysUsedInStreak": 1,
        "isProtected": True,
        "protectedDates": ["2024-06-11"],
    }


def test_update_settings(client):
    response = client.patch("/v1/grace-days/settings", json={"user_id": "u1", "max_per_week": 2})
    assert response.status_code == 200
    assert response.json()["maxPerWeek"] == 2
    assert client.get("/v1/grace-days/state", params={"user_id": "u1"}).json()["maxPerWeek"] == 2


def test_negative_quota_is_validation_error(client):
    response = client.patch("/v1/grace-days/settings", json={"user_id": "u1", "max_per_week": -1})
    assert response.status_code == 400
    payload = response.json()
    assert payload["error"]["code"] == "validation_error"
    assert payload["error"]["request_id"] == response.headers["x-request-id"]


def test_invalid_date_rejected(client):
    response = client.get(
        "/v1/grace-days/gap",
        params={"user_id": "u1", "last_activity_date": "June 10"},
    )
    assert response.status_code == 422


def test_cleanup_and_delete(client):
    client.post(
        "/v1/grace-days/protect",
        json={"user_id": "u1", "last_activity_date": "2024-06-10", "current_streak": 2},
    )

    cleaned = client.post("/v1/grace-days/cleanup", json={"user_id": "u1"}).json()
    assert [u["missedDate"] for u in cleaned["usageHistory"]] == [date(2024, 6, 11).isoformat()]

    assert client.delete("/v1/grace-days/state", params={"user_id": "u1"}).json() == {"cleared": True}
    assert client.get("/v1/grace-days/state", params={"user_id": "u1"}).json()["usageHistory"] == []


def test_protect_with_past_check_date_rejected(client):
    response = client.post(
        "/v1/grace-days/protect",
        json={"user_id": "u1", "last_activity_date": "2024-06-03", "current_streak": 5, "check_date": "2024-06-05"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"
    assert client.get("/v1/grace-days/state", params={"user_id": "u1"}).json()["usageHistory"] == []


def test_protect_calls_cannot_exceed_weekly_quota(client):
    accepted = 0
    for check, last in (
        ("2024-06-12", "2024-06-10"),
        ("2024-06-05", "2024-06-03"),
        ("2024-05-29", "2024-05-27"),
        ("2024-05-22", "2024-05-20"),
    ):
        response = client.post(
            "/v1/grace-days/protect",
            json={"user_id": "u1", "last_activity_date": last, "current_streak": 5, "check_date": check},
        )
        if response.status_code == 200 and response.json()["protection"]["canProtect"]:
            accepted += 1

    assert accepted == 1
    availability = client.get("/v1/grace-days/availability", params={"user_id": "u1"}).json()
    assert availability["usedThisWeek"] == 1
    assert availability["remaining"] == 0
