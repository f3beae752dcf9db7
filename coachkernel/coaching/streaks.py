"""Streak data providers, one per streak type.

Each provider answers "how many consecutive qualifying days, ending today?"
from whatever data the caller supplied in CoachingMetrics. A provider with no
data reports 0, so its streak is simply not emitted.
"""

from __future__ import annotations

from typing import Protocol

from coachkernel.coaching import features
from coachkernel.coaching.models import CoachingMetrics
from coachkernel.config import settings


class StreakProvider(Protocol):
    streak_type: str

    def current_streak(self, metrics: CoachingMetrics) -> int: ...


class ThresholdStreakProvider:
    """Streak over a numeric series: samples >= threshold."""

    def __init__(self, streak_type: str, metric: str, threshold: float):
        self.streak_type = streak_type
        self.metric = metric
        self.threshold = threshold

    def current_streak(self, metrics: CoachingMetrics) -> int:
        series = getattr(metrics, self.metric, None)
        if series is None:
            return 0
        return features.trailing_streak(series.weekly_data, self.threshold)


class DailyFlagStreakProvider:
    """Streak over caller-supplied per-day booleans (e.g. workout logged)."""

    def __init__(self, streak_type: str, field_name: str):
        self.streak_type = streak_type
        self.field_name = field_name

    def current_streak(self, metrics: CoachingMetrics) -> int:
        flags = getattr(metrics, self.field_name, None)
        if not flags:
            return 0
        return features.trailing_flag_streak(flags)


def sleep_streak_provider() -> ThresholdStreakProvider:
    return ThresholdStreakProvider("sleep", "sleep", settings.sleep_streak_threshold)


def default_providers() -> list[StreakProvider]:
    return [
        sleep_streak_provider(),
        DailyFlagStreakProvider("exercise", "exercise_days"),
        DailyFlagStreakProvider("goal_completion", "goal_completion_days"),
    ]
