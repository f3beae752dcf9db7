"""Resolved view over CoachingMetrics with documented defaults applied."""

from __future__ import annotations

from dataclasses import dataclass, field

from coachkernel.coaching.models import CoachingMetrics, Trend, WeeklyMetricSeries
from coachkernel.config import settings


@dataclass(frozen=True, slots=True)
class MetricReading:
    current: float
    change: float = 0.0
    trend: Trend = Trend.stable
    weekly_data: tuple[float, ...] = field(default_factory=tuple)


def _reading(series: WeeklyMetricSeries | None, default_current: float) -> MetricReading:
    if series is None:
        return MetricReading(current=default_current)
    return MetricReading(
        current=series.current,
        change=series.change,
        trend=series.trend,
        weekly_data=tuple(series.weekly_data),
    )


@dataclass(frozen=True, slots=True)
class MetricSnapshot:
    sleep: MetricReading
    readiness: MetricReading
    weight: MetricReading

    @classmethod
    def from_metrics(cls, metrics: CoachingMetrics | None) -> MetricSnapshot:
        metrics = metrics or CoachingMetrics()
        return cls(
            sleep=_reading(metrics.sleep, settings.default_sleep_score),
            readiness=_reading(metrics.readiness, settings.default_readiness_score),
            # Weight has no meaningful default current; only its change is read.
            weight=_reading(metrics.weight, 0.0),
        )
