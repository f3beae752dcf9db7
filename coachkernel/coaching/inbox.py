"""Read-state and filtering helpers over a CoachingData bundle.

All helpers return new objects; the input bundle is left untouched.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from coachkernel.coaching.models import (
    AchievementBadge,
    Challenge,
    CoachingData,
    Notification,
    Priority,
    StreakRecord,
)


def mark_notification_read(data: CoachingData, notification_id: str) -> CoachingData:
    notifications = [
        n.model_copy(update={"read": True}) if n.id == notification_id else n
        for n in data.notifications
    ]
    return data.model_copy(update={"notifications": notifications})


def mark_all_notifications_read(data: CoachingData) -> CoachingData:
    notifications = [n.model_copy(update={"read": True}) for n in data.notifications]
    return data.model_copy(update={"notifications": notifications})


def unread_count(data: CoachingData) -> int:
    return sum(1 for n in data.notifications if not n.read)


def high_priority_unread(data: CoachingData) -> list[Notification]:
    return [n for n in data.notifications if n.priority == Priority.high and not n.read]


def active_streaks(data: CoachingData) -> list[StreakRecord]:
    return [s for s in data.streaks if s.current > 0]


def recent_achievements(data: CoachingData, now: datetime, days: int = 7) -> list[AchievementBadge]:
    cutoff = now - timedelta(days=days)
    return [a for a in data.achievements if a.unlocked_at > cutoff]


def active_challenges(data: CoachingData) -> list[Challenge]:
    return [c for c in data.challenges if not c.completed]


def notification_dedup_key(notification: Notification) -> tuple[str, str]:
    """(rule id, day): one display per rule per calendar day of its timestamp."""
    return notification.id, notification.timestamp.date().isoformat()
