"""InsightGenerator: narrative artifacts for the briefing, weekly view and notifications.

Every rule is a fixed-threshold ladder evaluated top to bottom; the first
matching rung wins. Missing metrics fall back to the snapshot defaults and
never raise.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from coachkernel.coaching import features
from coachkernel.coaching.models import (
    CoachingMetrics,
    MorningBriefing,
    Notification,
    PatternFlags,
    Trend,
    WeeklyInsights,
)
from coachkernel.coaching.rules_config import NOTIFICATIONS, PERSONAL_BEST_RULES
from coachkernel.coaching.snapshot import MetricSnapshot
from coachkernel.coaching.streaks import sleep_streak_provider
from coachkernel.config import settings

logger = logging.getLogger(__name__)


class InsightGenerator:
    def __init__(self, metrics: CoachingMetrics | None, patterns: PatternFlags | None = None):
        self.metrics = metrics or CoachingMetrics()
        self.patterns = patterns or PatternFlags()
        self.snapshot = MetricSnapshot.from_metrics(self.metrics)

    # ------------------------------------------------------------------
    # Morning briefing
    # ------------------------------------------------------------------

    def generate_morning_briefing(self, now: datetime | None = None) -> MorningBriefing:
        timestamp = now or features.local_now()
        return MorningBriefing(
            focus=self._focus(),
            insight=self._insight(),
            recommendation=self._recommendation(),
            motivation=self._motivation(),
            timestamp=timestamp,
        )

    def _focus(self) -> str:
        sleep = self.snapshot.sleep.current
        readiness = self.snapshot.readiness.current
        if sleep < 70:
            return "Focus on improving your sleep quality tonight"
        if readiness < 70:
            return "Take it easy today and prioritize recovery"
        if sleep > 85 and readiness > 80:
            return "You're in great shape - tackle your most challenging tasks today"
        return "Maintain your current routine"

    def _insight(self) -> str:
        sleep = self.snapshot.sleep
        if sleep.trend == Trend.up and sleep.current > 80:
            return f"Your sleep improved {abs(sleep.change):.1f}% this week - keep it up!"
        if self.snapshot.readiness.trend == Trend.up:
            return "Your readiness scores are trending up - you're building great momentum!"
        if sleep.trend == Trend.down:
            return "Your sleep has been challenging this week - let's focus on recovery"
        return "Your health metrics are stable"

    def _recommendation(self) -> str:
        readiness = self.snapshot.readiness.current
        if readiness < 60:
            return "Consider lighter activities and prioritize rest today"
        if readiness > 80:
            return "You're ready for a challenging workout or intense focus work"
        if 70 <= readiness <= 80:
            return "Moderate exercise and balanced activities would be ideal today"
        return "Continue with your normal routine"

    def _motivation(self) -> str:
        streak = self.sleep_streak()
        if streak >= 3:
            return f"You're on a {streak}-day sleep streak!"
        change = self.snapshot.sleep.change
        if change > 5:
            return f"Your sleep improved {change:.1f}% this week - amazing progress!"
        return "Keep up the great work!"

    # ------------------------------------------------------------------
    # Weekly insights
    # ------------------------------------------------------------------

    def generate_weekly_insights(self, now: datetime | None = None) -> WeeklyInsights:
        week_end = now or features.local_now()
        return WeeklyInsights(
            top_performer=self._top_performer(),
            improvement=self._weekly_improvement(),
            recommendation=self._weekly_recommendation(),
            celebration=self._weekly_celebration(),
            week_start=week_end - timedelta(days=7),
            week_end=week_end,
        )

    def _top_performer(self) -> str:
        sleep = self.snapshot.sleep.change
        readiness = self.snapshot.readiness.change
        weight = self.snapshot.weight.change

        # Ties go to the earlier metric: sleep, then readiness, then weight.
        if abs(sleep) >= abs(readiness) and abs(sleep) >= abs(weight):
            return "Sleep consistency" if sleep > 0 else "Sleep recovery"
        if abs(readiness) >= abs(weight):
            return "Energy management" if readiness > 0 else "Recovery focus"
        return "Weight management" if weight < 0 else "Body composition"

    def _weekly_improvement(self) -> str:
        if self.snapshot.sleep.change > 5:
            return "Sleep quality"
        if self.snapshot.readiness.change > 5:
            return "Daily readiness"
        if self.snapshot.weight.change < -1:
            return "Weight management"
        return "Overall wellness"

    def _weekly_recommendation(self) -> str:
        sleep = self.snapshot.sleep.change
        readiness = self.snapshot.readiness.change
        if sleep < -5:
            return "Focus on sleep hygiene and bedtime routine"
        if readiness < -5:
            return "Prioritize recovery and stress management"
        if sleep > 5 and readiness > 5:
            return "You're in a great rhythm - consider adding new challenges"
        return "Maintain your current routine"

    def _weekly_celebration(self) -> str:
        bests = self.count_personal_bests()
        if bests > 0:
            return f"Hit {bests} personal best{'s' if bests > 1 else ''} this week!"
        if self.snapshot.sleep.change > 10 or self.snapshot.readiness.change > 10:
            return "Outstanding improvement this week!"
        return "Great consistency this week"

    # ------------------------------------------------------------------
    # Smart notifications
    # ------------------------------------------------------------------

    def generate_smart_notifications(
        self,
        now: datetime | None = None,
        seen_ids: set[str] | frozenset[str] | None = None,
    ) -> list[Notification]:
        """Evaluate every notification rule independently.

        `now` is read as the user's local time for the wind-down window;
        omitted, it is the current time in `settings.default_tz`.
        Ids listed in `seen_ids` are suppressed; with no set given, repeated
        calls in the same window emit the same ids again.
        """
        timestamp = now or features.local_now()
        seen = seen_ids or frozenset()
        notifications: list[Notification] = []

        def emit(rule_id: str, message: str) -> None:
            if rule_id in seen:
                return
            rule = NOTIFICATIONS[rule_id]
            notifications.append(
                Notification(
                    id=rule.id,
                    type=rule.type,
                    title=rule.title,
                    message=message,
                    action=rule.action,
                    priority=rule.priority,
                    timestamp=timestamp,
                )
            )

        if self.snapshot.readiness.current < 60:
            emit("low-readiness", "Your readiness is below 60 - consider lighter activities today")

        if settings.notification_wind_down_start <= timestamp.hour <= settings.notification_wind_down_end:
            emit("wind-down", "It's time to start your evening routine for better sleep")

        if self.patterns.sleep.evening_walks and self.snapshot.sleep.current < 75:
            emit("evening-walk", "You usually sleep better after evening walks")

        days_left = features.days_until_month_end(timestamp)
        if 0 < days_left <= settings.goal_reminder_days:
            emit(
                "goal-reminder",
                f"You're {days_left} day{'s' if days_left > 1 else ''} away from your monthly sleep goal",
            )

        logger.debug(
            "notifications_generated ids=%s suppressed=%d",
            [n.id for n in notifications],
            len(seen),
        )
        return notifications

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def sleep_streak(self) -> int:
        return sleep_streak_provider().current_streak(self.metrics)

    def count_personal_bests(self) -> int:
        count = 0
        for rule in PERSONAL_BEST_RULES:
            values = list(getattr(self.snapshot, rule.metric).weekly_data)
            if features.personal_best(values, rule.threshold) is not None:
                count += 1
        return count
