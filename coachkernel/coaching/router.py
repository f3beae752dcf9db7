"""Coaching HTTP router."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from coachkernel.auth import verify_api_key
from coachkernel.coaching import aggregator, ledger_store
from coachkernel.coaching.models import (
    CoachingData,
    CoachingMetrics,
    HistoricalLedger,
    LedgerUpdate,
    PatternFlags,
)
from coachkernel.coaching.rules_config import get_achievement, get_challenge
from coachkernel.coaching.service import build_coaching_data
from coachkernel.config import settings
from coachkernel.db import get_session

router = APIRouter(prefix="/coaching", tags=["coaching"])


class CoachingRequest(BaseModel):
    metrics: CoachingMetrics = Field(default_factory=CoachingMetrics)
    patterns: PatternFlags = Field(default_factory=PatternFlags)
    ledger: HistoricalLedger = Field(default_factory=HistoricalLedger)
    now: datetime | None = None
    tz: str | None = None
    seen_notification_ids: list[str] = Field(default_factory=list)


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=422, detail=f"Unknown timezone: {tz_name}")


def _local_now(now: datetime | None, tz_name: str) -> datetime:
    """The user's wall-clock time; naive inputs are taken as already local."""
    zone = _zone(tz_name)
    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def _parse_date(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid date for '{name}': {value}")


def _check_catalog_keys(updates: list[LedgerUpdate]) -> None:
    for update in updates:
        if update.kind == "achievement" and get_achievement(update.key) is None:
            raise HTTPException(status_code=422, detail=f"Unknown achievement: {update.key}")
        if update.kind == "challenge_start" and get_challenge(update.key) is None:
            raise HTTPException(status_code=422, detail=f"Unknown challenge: {update.key}")


# ---------------------------------------------------------------------------
# /coaching/insights
# ---------------------------------------------------------------------------


@router.post("/insights", response_model=CoachingData)
async def generate_insights(
    request: CoachingRequest,
    _: str = Depends(verify_api_key),
) -> CoachingData:
    now = _local_now(request.now, request.tz or settings.default_tz)
    return build_coaching_data(
        request.metrics,
        request.patterns,
        request.ledger,
        now=now,
        seen_ids=set(request.seen_notification_ids),
    )


# ---------------------------------------------------------------------------
# /coaching/users/{user_id}
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/today", response_model=CoachingData)
async def user_today(
    user_id: str,
    session: AsyncSession = Depends(get_session),
    _: str = Depends(verify_api_key),
    target_date: str | None = Query(default=None, alias="date", description="Last day of the week (YYYY-MM-DD)"),
    tz: str | None = Query(default=None, description="Timezone (e.g. US/Eastern)"),
) -> CoachingData:
    now = _local_now(None, tz or settings.default_tz)
    end_date = _parse_date(target_date, "date") if target_date else now.date()

    metrics = await aggregator.fetch_weekly_metrics(session, user_id, end_date)
    ledger = await ledger_store.load_ledger(session, user_id)
    return build_coaching_data(metrics, None, ledger, now=now)


@router.post("/users/{user_id}/ledger", response_model=HistoricalLedger)
async def user_ledger_apply(
    user_id: str,
    updates: list[LedgerUpdate] = Body(...),
    session: AsyncSession = Depends(get_session),
    _: str = Depends(verify_api_key),
) -> HistoricalLedger:
    """Apply engine updates and challenge enrollments to the stored ledger."""
    _check_catalog_keys(updates)
    return await ledger_store.apply_updates(session, user_id, updates)
