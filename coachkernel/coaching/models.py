"""Coaching contract — Pydantic v2 models for engine inputs and artifacts."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coachkernel.config import settings


class Trend(str, Enum):
    up = "up"
    down = "down"
    stable = "stable"


class Priority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class NotificationType(str, Enum):
    context_aware = "context_aware"
    timing_based = "timing_based"
    pattern_based = "pattern_based"
    goal_based = "goal_based"


class ChallengeType(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class CelebrationType(str, Enum):
    streak = "streak"
    improvement = "improvement"
    personal_best = "personal_best"
    achievement = "achievement"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


# Series built outside CoachingMetrics have no metric to pick a threshold from
DEFAULT_TREND_THRESHOLD = 1.0


class WeeklyMetricSeries(BaseModel):
    current: float
    trend: Trend = Trend.stable
    weekly_data: list[float] = Field(default_factory=list)  # oldest first
    change: float = 0.0  # % change of weekly_data[-1] vs weekly_data[0]

    @model_validator(mode="before")
    @classmethod
    def _derive_change_and_trend(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return derive_series_fields(data, DEFAULT_TREND_THRESHOLD)
        return data


def derive_series_fields(data: dict[str, Any], trend_threshold: float) -> dict[str, Any]:
    """Fill an omitted `change` from weekly_data and an omitted `trend` from change.

    Malformed values are left alone for field validation to reject.
    """
    # features imports this module
    from coachkernel.coaching import features

    data = dict(data)
    try:
        if data.get("change") is None:
            samples = [float(v) for v in data.get("weekly_data") or []]
            data["change"] = features.percent_change(samples)
        if data.get("trend") is None:
            data["trend"] = features.classify_trend(float(data["change"]), trend_threshold)
    except (TypeError, ValueError):
        pass
    return data


def _metric_trend_thresholds() -> dict[str, float]:
    return {
        "sleep": settings.trend_threshold_sleep,
        "readiness": settings.trend_threshold_readiness,
        "weight": settings.trend_threshold_weight,
    }


class CoachingMetrics(BaseModel):
    sleep: WeeklyMetricSeries | None = None
    readiness: WeeklyMetricSeries | None = None
    weight: WeeklyMetricSeries | None = None

    # Daily flags (oldest first) for streaks that have no numeric series
    exercise_days: list[bool] | None = None
    goal_completion_days: list[bool] | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_metric_trends(cls, data: Any) -> Any:
        """Raw series get their trend classified with the metric's own threshold."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for metric, threshold in _metric_trend_thresholds().items():
            if isinstance(data.get(metric), dict):
                data[metric] = derive_series_fields(data[metric], threshold)
        return data


class SleepPatterns(BaseModel):
    evening_walks: bool = False


class PatternFlags(BaseModel):
    sleep: SleepPatterns = Field(default_factory=SleepPatterns)


class HistoricalLedger(BaseModel):
    """Caller-owned record of past awards. The engine only reads it."""

    model_config = ConfigDict(frozen=True)

    achievements: dict[str, bool] = Field(default_factory=dict)
    best_streaks: dict[str, int] = Field(default_factory=dict)
    challenge_starts: dict[str, datetime] = Field(default_factory=dict)

    def is_awarded(self, achievement_id: str) -> bool:
        return bool(self.achievements.get(achievement_id, False))

    def best_streak(self, streak_type: str) -> int:
        return self.best_streaks.get(streak_type, 0)


class LedgerUpdate(BaseModel):
    """Ledger write command: mark an achievement, raise a streak floor, or enroll in a challenge.

    The engines emit the first two; `challenge_start` comes from the caller
    when a user enrolls and pins that challenge's window to `started_at`.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["achievement", "best_streak", "challenge_start"]
    key: str
    value: int = 1
    started_at: datetime | None = None

    @model_validator(mode="after")
    def _check_started_at(self) -> LedgerUpdate:
        if self.kind == "challenge_start" and self.started_at is None:
            raise ValueError("challenge_start requires started_at")
        return self

    def apply(self, ledger: HistoricalLedger) -> HistoricalLedger:
        """Return a new ledger with this update applied. Idempotent."""
        if self.kind == "achievement":
            achievements = {**ledger.achievements, self.key: True}
            return ledger.model_copy(update={"achievements": achievements})
        if self.kind == "challenge_start":
            # Re-enrolling replaces the previous window.
            starts = {**ledger.challenge_starts, self.key: self.started_at}
            return ledger.model_copy(update={"challenge_starts": starts})
        # best_streak floors never decrease
        best = max(ledger.best_streak(self.key), self.value)
        best_streaks = {**ledger.best_streaks, self.key: best}
        return ledger.model_copy(update={"best_streaks": best_streaks})


def apply_ledger_updates(ledger: HistoricalLedger, updates: list[LedgerUpdate]) -> HistoricalLedger:
    for update in updates:
        ledger = update.apply(ledger)
    return ledger


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


class MorningBriefing(BaseModel):
    focus: str
    insight: str
    recommendation: str
    motivation: str
    timestamp: datetime


class WeeklyInsights(BaseModel):
    top_performer: str
    improvement: str
    recommendation: str
    celebration: str
    week_start: datetime
    week_end: datetime


class Notification(BaseModel):
    id: str
    type: NotificationType
    title: str
    message: str
    action: str | None = None
    priority: Priority
    timestamp: datetime
    read: bool = False


class ProgressCelebration(BaseModel):
    type: CelebrationType
    title: str
    description: str
    value: float
    icon: str
    color: str


class StreakRecord(BaseModel):
    type: str  # "sleep" | "exercise" | "goal_completion"
    current: int
    best: int
    start_date: datetime
    last_update: datetime


class AchievementBadge(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    color: str
    unlocked_at: datetime
    category: str  # "sleep" | "exercise" | "consistency" | "improvement"


class AchievementUnlock(BaseModel):
    badge: AchievementBadge
    mark_awarded: LedgerUpdate


class Challenge(BaseModel):
    id: str
    title: str
    description: str
    type: ChallengeType
    target: float
    current: float
    reward: str
    start_date: datetime
    end_date: datetime
    completed: bool


class CoachingData(BaseModel):
    """Everything one coaching run produces, bundled for the presentation layer."""

    morning_briefing: MorningBriefing
    weekly_insights: WeeklyInsights
    notifications: list[Notification] = Field(default_factory=list)
    celebrations: list[ProgressCelebration] = Field(default_factory=list)
    streaks: list[StreakRecord] = Field(default_factory=list)
    achievements: list[AchievementBadge] = Field(default_factory=list)
    challenges: list[Challenge] = Field(default_factory=list)
    ledger_updates: list[LedgerUpdate] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
