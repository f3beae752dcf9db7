"""Pure stateless coaching feature functions — math only, never raises."""

from __future__ import annotations

import calendar
import math
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from coachkernel.coaching.models import Trend, WeeklyMetricSeries
from coachkernel.config import settings


def local_now() -> datetime:
    """Current wall-clock time in the configured default timezone."""
    return datetime.now(ZoneInfo(settings.default_tz))


def percent_change(values: list[float]) -> float:
    """Percent change of the last sample relative to the first.

    Returns 0.0 with fewer than two samples or a zero first sample.
    """
    if len(values) < 2:
        return 0.0
    first, last = values[0], values[-1]
    if first == 0.0:
        return 0.0
    return ((last - first) / abs(first)) * 100.0


def classify_trend(change: float, threshold: float = 1.0) -> Trend:
    """Map a percent change to up/down/stable. ±threshold itself is stable."""
    if change > threshold:
        return Trend.up
    if change < -threshold:
        return Trend.down
    return Trend.stable


def build_series(values: list[float], trend_threshold: float = 1.0) -> WeeklyMetricSeries | None:
    """Build a WeeklyMetricSeries from daily samples (oldest first).

    An empty input yields None: an absent series, not an empty one.
    """
    if not values:
        return None
    change = percent_change(values)
    return WeeklyMetricSeries(
        current=values[-1],
        trend=classify_trend(change, trend_threshold),
        weekly_data=list(values),
        change=change,
    )


def trailing_streak(values: list[float], threshold: float) -> int:
    """Consecutive samples >= threshold, counted from the most recent backward."""
    streak = 0
    for value in reversed(values):
        if value < threshold:
            break
        streak += 1
    return streak


def trailing_flag_streak(flags: list[bool]) -> int:
    """Consecutive True days, counted from the most recent backward."""
    streak = 0
    for flag in reversed(flags):
        if not flag:
            break
        streak += 1
    return streak


def consistency_score(sleep_change: float, readiness_change: float) -> float:
    """Mean absolute change of sleep and readiness, capped at 100."""
    return min(100.0, (abs(sleep_change) + abs(readiness_change)) / 2.0)


def total_improvement(sleep_change: float, readiness_change: float, weight_change: float) -> float:
    return abs(sleep_change) + abs(readiness_change) + abs(weight_change)


def weekly_improvement(sleep_change: float, readiness_change: float) -> float:
    """Best single-metric change of the week (never the sum)."""
    return max(sleep_change, readiness_change)


def qualifying_day_ratio(series: list[tuple[list[float], float]]) -> float:
    """Percentage (0–100) of samples meeting their metric's threshold.

    `series` pairs each sample list with its threshold. No samples → 0.0.
    """
    total = 0
    qualifying = 0
    for values, threshold in series:
        total += len(values)
        qualifying += sum(1 for v in values if v >= threshold)
    if total == 0:
        return 0.0
    return round((qualifying / total) * 100.0, 1)


def days_until_month_end(now: datetime) -> int:
    """Whole days (rounded up) from `now` to midnight of the month's last day.

    On the last day itself this is 0 or negative-rounded-to-0.
    """
    _, last = calendar.monthrange(now.year, now.month)
    last_midnight = now.replace(day=last, hour=0, minute=0, second=0, microsecond=0)
    return math.ceil((last_midnight - now) / timedelta(days=1))


def personal_best(values: list[float], threshold: float) -> float | None:
    """Window maximum if it reaches `threshold`, else None."""
    if not values:
        return None
    best = max(values)
    if best >= threshold:
        return best
    return None
