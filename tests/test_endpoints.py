"""Endpoint tests — FastAPI app via httpx ASGITransport."""

from __future__ import annotations

import pytest

from coachkernel.config import settings
from tests.conftest import READINESS_WEEK, SLEEP_WEEK, series
from tests.test_aggregator import END, make_week


def _body(**overrides) -> dict:
    body = {
        "metrics": {
            "sleep": series(SLEEP_WEEK).model_dump(mode="json"),
            "readiness": series(READINESS_WEEK).model_dump(mode="json"),
        },
        "now": "2026-02-10T09:00:00+00:00",
        "tz": "UTC",
    }
    body.update(overrides)
    return body


class TestInsightsEndpoint:
    @pytest.mark.asyncio
    async def test_full_bundle(self, client):
        resp = await client.post("/coaching/insights", json=_body())
        assert resp.status_code == 200
        data = resp.json()
        assert data["morning_briefing"]["motivation"] == "You're on a 7-day sleep streak!"
        assert data["weekly_insights"]["top_performer"] == "Sleep consistency"
        assert [a["id"] for a in data["achievements"]] == ["sleep-champion"]
        assert [c["id"] for c in data["challenges"]] == [
            "daily-sleep",
            "weekly-improvement",
            "monthly-consistency",
        ]
        assert {"kind": "achievement", "key": "sleep-champion", "value": 1, "started_at": None} in data["ledger_updates"]

    @pytest.mark.asyncio
    async def test_empty_body_uses_defaults(self, client):
        resp = await client.post("/coaching/insights", json={"now": "2026-02-10T09:00:00+00:00"})
        assert resp.status_code == 200
        assert resp.json()["morning_briefing"]["focus"] == "Maintain your current routine"

    @pytest.mark.asyncio
    async def test_ledger_suppresses_achievement(self, client):
        body = _body(ledger={"achievements": {"sleep-champion": True}})
        resp = await client.post("/coaching/insights", json=body)
        assert resp.json()["achievements"] == []

    @pytest.mark.asyncio
    async def test_now_converted_to_local_time(self, client):
        # 03:30 UTC is 22:30 in New York (EST) -> wind-down window
        body = _body(now="2026-02-10T03:30:00+00:00", tz="America/New_York")
        resp = await client.post("/coaching/insights", json=body)
        assert [n["id"] for n in resp.json()["notifications"]] == ["wind-down"]

    @pytest.mark.asyncio
    async def test_seen_ids_suppressed(self, client):
        body = _body(
            now="2026-02-10T22:00:00+00:00",
            seen_notification_ids=["wind-down"],
        )
        resp = await client.post("/coaching/insights", json=body)
        assert resp.json()["notifications"] == []

    @pytest.mark.asyncio
    async def test_non_numeric_series_422(self, client):
        body = _body(metrics={"sleep": {"current": 80, "weekly_data": ["lots"]}})
        resp = await client.post("/coaching/insights", json=body)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_timezone_422(self, client):
        resp = await client.post("/coaching/insights", json=_body(tz="Mars/Olympus"))
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_change_derived_from_raw_weekly_data(self, client):
        body = _body(metrics={"sleep": {"current": 84, "weekly_data": SLEEP_WEEK}})
        resp = await client.post("/coaching/insights", json=body)
        data = resp.json()
        assert data["weekly_insights"]["improvement"] == "Sleep quality"
        weekly = next(c for c in data["challenges"] if c["id"] == "weekly-improvement")
        assert weekly["current"] == pytest.approx((84 - 78) / 78 * 100)


class TestUserEndpoints:
    @pytest.mark.asyncio
    async def test_today_from_db(self, client, override_session):
        override_session.wellness_rows = make_week()
        resp = await client.get(f"/coaching/users/u1/today?date={END.isoformat()}")
        assert resp.status_code == 200
        data = resp.json()
        assert [s["type"] for s in data["streaks"]] == ["sleep"]
        assert [a["id"] for a in data["achievements"]] == ["sleep-champion"]

    @pytest.mark.asyncio
    async def test_today_respects_ledger(self, client, override_session):
        override_session.wellness_rows = make_week()
        override_session.ledger_rows = [
            {"kind": "achievement", "key": "sleep-champion", "value": 1, "started_at": None},
            {"kind": "best_streak", "key": "sleep", "value": 20, "started_at": None},
        ]
        resp = await client.get(f"/coaching/users/u1/today?date={END.isoformat()}")
        data = resp.json()
        assert data["achievements"] == []
        assert data["streaks"][0]["best"] == 20

    @pytest.mark.asyncio
    async def test_today_without_data(self, client):
        resp = await client.get("/coaching/users/u1/today?date=2026-02-15")
        assert resp.status_code == 200
        assert resp.json()["streaks"] == []

    @pytest.mark.asyncio
    async def test_today_invalid_date_422(self, client):
        resp = await client.get("/coaching/users/u1/today?date=yesterday")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_today_with_timezone(self, client, override_session):
        override_session.wellness_rows = make_week()
        resp = await client.get(f"/coaching/users/u1/today?date={END.isoformat()}&tz=Asia/Tokyo")
        assert resp.status_code == 200
        assert resp.json()["generated_at"].endswith("+09:00")

    @pytest.mark.asyncio
    async def test_apply_ledger(self, client, override_session):
        resp = await client.post(
            "/coaching/users/u1/ledger",
            json=[{"kind": "achievement", "key": "sleep-champion"}],
        )
        assert resp.status_code == 200
        assert resp.json()["achievements"] == {"sleep-champion": True}
        assert override_session.commits == 1

    @pytest.mark.asyncio
    async def test_apply_ledger_bad_kind_422(self, client):
        resp = await client.post("/coaching/users/u1/ledger", json=[{"kind": "trophy", "key": "x"}])
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_enroll_in_challenge(self, client, override_session):
        resp = await client.post(
            "/coaching/users/u1/ledger",
            json=[
                {
                    "kind": "challenge_start",
                    "key": "monthly-consistency",
                    "started_at": "2026-02-01T00:00:00+00:00",
                }
            ],
        )
        assert resp.status_code == 200
        assert resp.json()["challenge_starts"]["monthly-consistency"].startswith("2026-02-01T00:00:00")
        inserts = [params for sql, params in override_session.executed if sql.startswith("INSERT")]
        assert inserts[0]["started_at"].day == 1

    @pytest.mark.asyncio
    async def test_enroll_without_start_422(self, client):
        resp = await client.post(
            "/coaching/users/u1/ledger", json=[{"kind": "challenge_start", "key": "monthly-consistency"}]
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "update",
        [
            {"kind": "achievement", "key": "sleep-legend"},
            {"kind": "challenge_start", "key": "yearly-sleep", "started_at": "2026-02-01T00:00:00+00:00"},
        ],
    )
    async def test_unknown_catalog_key_422(self, client, override_session, update):
        resp = await client.post("/coaching/users/u1/ledger", json=[update])
        assert resp.status_code == 422
        assert override_session.commits == 0


class TestAuth:
    @pytest.mark.asyncio
    async def test_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "coach_api_key", "secret")
        resp = await client.post("/coaching/insights", json=_body())
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_bearer_key_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "coach_api_key", "secret")
        resp = await client.post(
            "/coaching/insights", json=_body(), headers={"Authorization": "Bearer secret"}
        )
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_header_key_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "coach_api_key", "secret")
        resp = await client.post("/coaching/insights", json=_body(), headers={"X-API-Key": "secret"})
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_key_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "coach_api_key", "secret")
        resp = await client.get("/coaching/users/u1/today", headers={"X-API-Key": "guess"})
        assert resp.status_code == 401


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_root_index(self, client):
        resp = await client.get("/")
        assert resp.json()["coaching"]["insights"] == "/coaching/insights"
