"""MotivationEngine: gamification artifacts derived from metrics and the ledger.

The engine reads the caller's HistoricalLedger but never writes it. Anything
that should change the ledger comes back as a LedgerUpdate for the caller to
apply, ideally in the same transaction that stores the new achievements.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from coachkernel.coaching import features
from coachkernel.coaching.models import (
    AchievementBadge,
    AchievementUnlock,
    CelebrationType,
    Challenge,
    CoachingMetrics,
    HistoricalLedger,
    LedgerUpdate,
    ProgressCelebration,
    StreakRecord,
)
from coachkernel.coaching.rules_config import (
    PERSONAL_BEST_RULES,
    AchievementDefinition,
    ChallengeDefinition,
    list_achievements,
    list_challenges,
)
from coachkernel.coaching.snapshot import MetricSnapshot
from coachkernel.coaching.streaks import StreakProvider, default_providers, sleep_streak_provider
from coachkernel.config import settings

logger = logging.getLogger(__name__)


class MotivationEngine:
    def __init__(
        self,
        metrics: CoachingMetrics | None,
        ledger: HistoricalLedger | None = None,
        providers: list[StreakProvider] | None = None,
    ):
        self.metrics = metrics or CoachingMetrics()
        self.ledger = ledger or HistoricalLedger()
        self.snapshot = MetricSnapshot.from_metrics(self.metrics)

        providers = list(providers) if providers is not None else default_providers()
        if not any(p.streak_type == "sleep" for p in providers):
            providers.insert(0, sleep_streak_provider())
        self.providers = providers

    # ------------------------------------------------------------------
    # Derived numbers
    # ------------------------------------------------------------------

    def sleep_streak(self) -> int:
        for provider in self.providers:
            if provider.streak_type == "sleep":
                return provider.current_streak(self.metrics)
        return 0

    def consistency_score(self) -> float:
        return features.consistency_score(self.snapshot.sleep.change, self.snapshot.readiness.change)

    def total_improvement(self) -> float:
        return features.total_improvement(
            self.snapshot.sleep.change,
            self.snapshot.readiness.change,
            self.snapshot.weight.change,
        )

    def weekly_improvement(self) -> float:
        return features.weekly_improvement(self.snapshot.sleep.change, self.snapshot.readiness.change)

    def monthly_consistency(self) -> float:
        """Share of visible sleep/readiness days that met their thresholds."""
        return features.qualifying_day_ratio(
            [
                (list(self.snapshot.sleep.weekly_data), settings.sleep_streak_threshold),
                (list(self.snapshot.readiness.weekly_data), settings.readiness_consistency_threshold),
            ]
        )

    # ------------------------------------------------------------------
    # Celebrations
    # ------------------------------------------------------------------

    def generate_progress_celebrations(self) -> list[ProgressCelebration]:
        celebrations: list[ProgressCelebration] = []

        streak = self.sleep_streak()
        if streak >= 3:
            celebrations.append(
                ProgressCelebration(
                    type=CelebrationType.streak,
                    title="Sleep Streak",
                    description=f"{streak} days of qualifying sleep",
                    value=streak,
                    icon="🔥",
                    color="text-orange-400",
                )
            )

        sleep_change = self.snapshot.sleep.change
        if sleep_change > 5:
            celebrations.append(
                ProgressCelebration(
                    type=CelebrationType.improvement,
                    title="Sleep Improvement",
                    description=f"{sleep_change:.1f}% better this week",
                    value=sleep_change,
                    icon="📈",
                    color="text-green-400",
                )
            )

        readiness_change = self.snapshot.readiness.change
        if readiness_change > 5:
            celebrations.append(
                ProgressCelebration(
                    type=CelebrationType.improvement,
                    title="Energy Boost",
                    description=f"{readiness_change:.1f}% better readiness",
                    value=readiness_change,
                    icon="⚡",
                    color="text-blue-400",
                )
            )

        weight_change = self.snapshot.weight.change
        if weight_change < -1:
            celebrations.append(
                ProgressCelebration(
                    type=CelebrationType.improvement,
                    title="Weight Progress",
                    description=f"{abs(weight_change):.1f}% weight loss",
                    value=abs(weight_change),
                    icon="🎯",
                    color="text-purple-400",
                )
            )

        celebrations.extend(self.identify_personal_bests())
        return celebrations

    def identify_personal_bests(self) -> list[ProgressCelebration]:
        """Window highs above a fixed bar. These are not all-time records."""
        bests: list[ProgressCelebration] = []
        for rule in PERSONAL_BEST_RULES:
            values = list(getattr(self.snapshot, rule.metric).weekly_data)
            best = features.personal_best(values, rule.threshold)
            if best is None:
                continue
            bests.append(
                ProgressCelebration(
                    type=CelebrationType.personal_best,
                    title=rule.title,
                    description=f"{best:g} {rule.label}",
                    value=best,
                    icon=rule.icon,
                    color=rule.color,
                )
            )
        return bests

    # ------------------------------------------------------------------
    # Streaks
    # ------------------------------------------------------------------

    def generate_streaks(self, now: datetime | None = None) -> list[StreakRecord]:
        timestamp = now or features.local_now()
        streaks: list[StreakRecord] = []
        for provider in self.providers:
            current = provider.current_streak(self.metrics)
            if current <= 0:
                continue
            streaks.append(
                StreakRecord(
                    type=provider.streak_type,
                    current=current,
                    best=max(current, self.ledger.best_streak(provider.streak_type)),
                    start_date=timestamp - timedelta(days=current),
                    last_update=timestamp,
                )
            )
        return streaks

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    def _measures(self) -> dict[str, float]:
        return {
            "sleep_streak": float(self.sleep_streak()),
            "consistency_score": self.consistency_score(),
            "total_improvement": self.total_improvement(),
        }

    def generate_achievement_unlocks(self, now: datetime | None = None) -> list[AchievementUnlock]:
        """New achievements, each paired with the command that records it."""
        timestamp = now or features.local_now()
        unlocks: list[AchievementUnlock] = []
        measures = self._measures()
        for definition in list_achievements():
            if measures[definition.measure] < definition.threshold:
                continue
            if self.ledger.is_awarded(definition.id):
                continue
            unlocks.append(
                AchievementUnlock(
                    badge=_badge(definition, timestamp),
                    mark_awarded=LedgerUpdate(kind="achievement", key=definition.id),
                )
            )
        if unlocks:
            logger.debug("achievements_unlocked ids=%s", [u.badge.id for u in unlocks])
        return unlocks

    def generate_achievements(self, now: datetime | None = None) -> list[AchievementBadge]:
        return [unlock.badge for unlock in self.generate_achievement_unlocks(now)]

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------

    def generate_challenges(self, now: datetime | None = None) -> list[Challenge]:
        """Recompute progress for every challenge.

        A start date stored in the ledger pins the challenge window; without
        one the window is anchored at `now`.
        """
        timestamp = now or features.local_now()
        progress = {
            "daily-sleep": float(self.sleep_streak()),
            "weekly-improvement": self.weekly_improvement(),
            "monthly-consistency": self.monthly_consistency(),
        }
        challenges: list[Challenge] = []
        for definition in list_challenges():
            start = self.ledger.challenge_starts.get(definition.id, timestamp)
            challenges.append(_challenge(definition, progress.get(definition.id, 0.0), start))
        return challenges

    # ------------------------------------------------------------------
    # Ledger updates
    # ------------------------------------------------------------------

    def generate_ledger_updates(self, now: datetime | None = None) -> list[LedgerUpdate]:
        """Commands the caller should persist after accepting this run's output."""
        updates = [unlock.mark_awarded for unlock in self.generate_achievement_unlocks(now)]
        for provider in self.providers:
            current = provider.current_streak(self.metrics)
            if current > self.ledger.best_streak(provider.streak_type):
                updates.append(LedgerUpdate(kind="best_streak", key=provider.streak_type, value=current))
        return updates


def _badge(definition: AchievementDefinition, unlocked_at: datetime) -> AchievementBadge:
    return AchievementBadge(
        id=definition.id,
        name=definition.name,
        description=definition.description,
        icon=definition.icon,
        color=definition.color,
        unlocked_at=unlocked_at,
        category=definition.category,
    )


def _challenge(definition: ChallengeDefinition, current: float, start: datetime) -> Challenge:
    return Challenge(
        id=definition.id,
        title=definition.title,
        description=definition.description,
        type=definition.type,
        target=definition.target,
        current=current,
        reward=definition.reward,
        start_date=start,
        end_date=start + timedelta(days=definition.window_days),
        completed=current >= definition.target,
    )
