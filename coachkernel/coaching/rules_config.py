"""Static coaching rule tables — no DB, config only.

Thresholds that tune behavior live in `coachkernel.config.settings`; this
module holds the fixed catalog of achievements, challenges, notifications
and personal-best rules the engines emit.
"""

from __future__ import annotations

from dataclasses import dataclass

from coachkernel.coaching.models import ChallengeType, NotificationType, Priority


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    id: str
    name: str
    description: str
    icon: str
    color: str
    category: str
    measure: str  # MotivationEngine number compared against threshold
    threshold: float


@dataclass(frozen=True, slots=True)
class ChallengeDefinition:
    id: str
    title: str
    description: str
    type: ChallengeType
    target: float
    reward: str
    window_days: int


@dataclass(frozen=True, slots=True)
class NotificationDefinition:
    id: str
    type: NotificationType
    title: str
    action: str
    priority: Priority


@dataclass(frozen=True, slots=True)
class PersonalBestRule:
    metric: str
    threshold: float
    title: str
    label: str
    icon: str
    color: str


ACHIEVEMENTS: dict[str, AchievementDefinition] = {
    "sleep-champion": AchievementDefinition(
        id="sleep-champion",
        name="Sleep Champion",
        description="7+ days of consistent sleep",
        icon="😴",
        color="text-blue-500",
        category="sleep",
        measure="sleep_streak",
        threshold=7,
    ),
    "sleep-master": AchievementDefinition(
        id="sleep-master",
        name="Sleep Master",
        description="30+ days of consistent sleep",
        icon="👑",
        color="text-purple-500",
        category="sleep",
        measure="sleep_streak",
        threshold=30,
    ),
    "consistency-master": AchievementDefinition(
        id="consistency-master",
        name="Consistency Master",
        description="80%+ consistency across all metrics",
        icon="🎯",
        color="text-green-500",
        category="consistency",
        measure="consistency_score",
        threshold=80,
    ),
    "improvement-expert": AchievementDefinition(
        id="improvement-expert",
        name="Improvement Expert",
        description="20%+ improvement across metrics",
        icon="📈",
        color="text-orange-500",
        category="improvement",
        measure="total_improvement",
        threshold=20,
    ),
}


CHALLENGES: dict[str, ChallengeDefinition] = {
    "daily-sleep": ChallengeDefinition(
        id="daily-sleep",
        title="Daily Sleep Goal",
        description="Maintain a qualifying sleep score for 7 days",
        type=ChallengeType.daily,
        target=7,
        reward="Sleep Champion Badge",
        window_days=7,
    ),
    "weekly-improvement": ChallengeDefinition(
        id="weekly-improvement",
        title="Weekly Improvement",
        description="Improve any metric by 10% this week",
        type=ChallengeType.weekly,
        target=10,
        reward="Improvement Badge",
        window_days=7,
    ),
    "monthly-consistency": ChallengeDefinition(
        id="monthly-consistency",
        title="Monthly Consistency",
        description="Maintain 80%+ consistency for the month",
        type=ChallengeType.monthly,
        target=80,
        reward="Consistency Master Badge",
        window_days=30,
    ),
}


NOTIFICATIONS: dict[str, NotificationDefinition] = {
    "low-readiness": NotificationDefinition(
        id="low-readiness",
        type=NotificationType.context_aware,
        title="Low Readiness Score",
        action="Adjust today's plan",
        priority=Priority.high,
    ),
    "wind-down": NotificationDefinition(
        id="wind-down",
        type=NotificationType.timing_based,
        title="Wind-Down Time",
        action="Start wind-down routine",
        priority=Priority.medium,
    ),
    "evening-walk": NotificationDefinition(
        id="evening-walk",
        type=NotificationType.pattern_based,
        title="Evening Walk Reminder",
        action="Take an evening walk",
        priority=Priority.medium,
    ),
    "goal-reminder": NotificationDefinition(
        id="goal-reminder",
        type=NotificationType.goal_based,
        title="Goal Deadline Approaching",
        action="Review goal progress",
        priority=Priority.high,
    ),
}


PERSONAL_BEST_RULES: tuple[PersonalBestRule, ...] = (
    PersonalBestRule(
        metric="sleep",
        threshold=90,
        title="Sleep Personal Best",
        label="sleep score",
        icon="⭐",
        color="text-yellow-400",
    ),
    PersonalBestRule(
        metric="readiness",
        threshold=85,
        title="Readiness Personal Best",
        label="readiness score",
        icon="🚀",
        color="text-blue-400",
    ),
)


def get_achievement(achievement_id: str) -> AchievementDefinition | None:
    return ACHIEVEMENTS.get(achievement_id)


def list_achievements() -> list[AchievementDefinition]:
    return list(ACHIEVEMENTS.values())


def get_challenge(challenge_id: str) -> ChallengeDefinition | None:
    return CHALLENGES.get(challenge_id)


def list_challenges() -> list[ChallengeDefinition]:
    return list(CHALLENGES.values())
