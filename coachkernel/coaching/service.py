"""Coaching service — runs both engines over one snapshot."""

from __future__ import annotations

import logging
from datetime import datetime

from coachkernel.coaching import features
from coachkernel.coaching.insights import InsightGenerator
from coachkernel.coaching.models import CoachingData, CoachingMetrics, HistoricalLedger, PatternFlags
from coachkernel.coaching.motivation import MotivationEngine

logger = logging.getLogger(__name__)


def build_coaching_data(
    metrics: CoachingMetrics | None,
    patterns: PatternFlags | None = None,
    ledger: HistoricalLedger | None = None,
    now: datetime | None = None,
    seen_ids: set[str] | None = None,
) -> CoachingData:
    """Produce every coaching artifact for one (metrics, ledger, now) snapshot.

    The same `now` stamps all artifacts so one run is internally consistent.
    """
    timestamp = now or features.local_now()
    insights = InsightGenerator(metrics, patterns)
    motivation = MotivationEngine(metrics, ledger)

    data = CoachingData(
        morning_briefing=insights.generate_morning_briefing(timestamp),
        weekly_insights=insights.generate_weekly_insights(timestamp),
        notifications=insights.generate_smart_notifications(timestamp, seen_ids=seen_ids),
        celebrations=motivation.generate_progress_celebrations(),
        streaks=motivation.generate_streaks(timestamp),
        achievements=motivation.generate_achievements(timestamp),
        challenges=motivation.generate_challenges(timestamp),
        ledger_updates=motivation.generate_ledger_updates(timestamp),
        generated_at=timestamp,
    )
    logger.info(
        "coaching_generated notifications=%d achievements=%d ledger_updates=%d",
        len(data.notifications),
        len(data.achievements),
        len(data.ledger_updates),
    )
    return data
