"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from coachkernel.coaching.features import build_series
from coachkernel.coaching.models import WeeklyMetricSeries
from coachkernel.db import get_session
from coachkernel.main import app

# Tuesday morning, mid-month: no wind-down window, no month-end reminder.
NOW = datetime(2026, 2, 10, 9, 0, tzinfo=timezone.utc)

SLEEP_WEEK = [78, 80, 82, 85, 83, 82, 84]
READINESS_WEEK = [73, 75, 74, 76, 75, 75, 75]
WEIGHT_WEEK = [166.1, 165.8, 165.5, 165.3, 165.4, 165.2, 165.2]


def series(values: list[float], threshold: float = 1.0) -> WeeklyMetricSeries:
    built = build_series(values, threshold)
    assert built is not None
    return built


def flat_series(current: float, change: float = 0.0) -> WeeklyMetricSeries:
    """Series with a hand-picked change, for rule-ladder tests."""
    return WeeklyMetricSeries(current=current, weekly_data=[current] * 7, change=change)


# ---------------------------------------------------------------------------
# Fake DB session (no real Postgres needed)
# ---------------------------------------------------------------------------

class FakeSession:
    """Minimal stand-in for AsyncSession; routes SELECTs by table name."""

    def __init__(
        self,
        wellness_rows: list[dict[str, Any]] | None = None,
        ledger_rows: list[dict[str, Any]] | None = None,
    ):
        self.wellness_rows = wellness_rows or []
        self.ledger_rows = ledger_rows or []
        self.executed: list[tuple[str, dict[str, Any]]] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_on_insert = False

    async def execute(self, stmt, params=None):
        sql = str(stmt)
        self.executed.append((sql, params or {}))
        if sql.startswith("INSERT"):
            if self.fail_on_insert:
                raise RuntimeError("insert failed")
            return FakeResult([])
        if "daily_wellness" in sql:
            return FakeResult(self.wellness_rows)
        if "coaching_ledger" in sql:
            return FakeResult(self.ledger_rows)
        return FakeResult([])

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


class FakeResult:
    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows
        self._keys = list(rows[0].keys()) if rows else []

    def keys(self):
        return self._keys

    def fetchall(self):
        return [tuple(r[k] for k in self._keys) for r in self._rows]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def fake_session():
    """Return a FakeSession with no rows (set its row lists in tests if needed)."""
    return FakeSession()


@pytest.fixture()
def override_session(fake_session):
    """Override the FastAPI dependency so no real DB is needed."""
    async def _override():
        yield fake_session

    app.dependency_overrides[get_session] = _override
    yield fake_session
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_session):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
