"""Metric aggregation — daily_wellness rows to WeeklyMetricSeries.

Table: daily_wellness
  user_id (string), date (date), sleep_score (float), readiness_score (float),
  weight (float)

A metric is only built when every day in the window has a value; a series
with gaps is omitted so the engines fall back to their defaults.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from coachkernel.coaching import features
from coachkernel.coaching.models import CoachingMetrics, WeeklyMetricSeries
from coachkernel.config import settings

WINDOW_DAYS = 7

# metric name -> (column, trend threshold)
METRIC_COLUMNS: dict[str, tuple[str, float]] = {
    "sleep": ("sleep_score", settings.trend_threshold_sleep),
    "readiness": ("readiness_score", settings.trend_threshold_readiness),
    "weight": ("weight", settings.trend_threshold_weight),
}


def _window(end_date: date, days: int = WINDOW_DAYS) -> list[date]:
    return [end_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def _gap_free_values(rows_by_date: dict[date, dict[str, Any]], window: list[date], column: str) -> list[float] | None:
    values: list[float] = []
    for day in window:
        row = rows_by_date.get(day)
        if row is None or row.get(column) is None:
            return None
        try:
            values.append(float(row[column]))
        except (TypeError, ValueError):
            return None
    return values


def series_from_rows(rows: Sequence[dict[str, Any]], end_date: date) -> dict[str, WeeklyMetricSeries]:
    """Build one series per metric with a complete 7-day window ending at end_date."""
    rows_by_date = {row["date"]: row for row in rows if isinstance(row.get("date"), date)}
    window = _window(end_date)
    result: dict[str, WeeklyMetricSeries] = {}
    for metric, (column, threshold) in METRIC_COLUMNS.items():
        values = _gap_free_values(rows_by_date, window, column)
        if values is None:
            continue
        series = features.build_series(values, threshold)
        if series is not None:
            result[metric] = series
    return result


async def fetch_daily_rows(
    session: AsyncSession,
    user_id: str,
    start: date,
    end_exclusive: date,
) -> Sequence[dict[str, Any]]:
    """Fetch daily_wellness rows for [start, end_exclusive). Empty list when none."""
    query = (
        "SELECT date, sleep_score, readiness_score, weight "
        "FROM daily_wellness "
        "WHERE user_id = :user_id AND date >= :start AND date < :end "
        "ORDER BY date"
    )
    result = await session.execute(
        text(query), {"user_id": user_id, "start": start, "end": end_exclusive}
    )
    columns = result.keys()
    return [dict(zip(columns, r)) for r in result.fetchall()]


async def fetch_weekly_metrics(session: AsyncSession, user_id: str, end_date: date) -> CoachingMetrics:
    start = end_date - timedelta(days=WINDOW_DAYS - 1)
    rows = await fetch_daily_rows(session, user_id, start, end_date + timedelta(days=1))
    return CoachingMetrics(**series_from_rows(rows, end_date))
