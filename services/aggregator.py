"""Summary statistics for the readings currently on screen."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence

from models.readings import METRICS, Reading


@dataclass
class MetricSummary:
    """Computed statistics for one metric over a batch of readings."""

    metric: str
    count: int = 0
    min_value: float | None = None
    max_value: float | None = None
    mean_value: float | None = None


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def __init__(self, metrics: Sequence[str] = METRICS) -> None:
        self.metrics = tuple(metrics)

    def summarize(self, readings: Iterable[Reading]) -> Dict[str, MetricSummary]:
        summaries = {metric: MetricSummary(metric=metric) for metric in self.metrics}
        totals = {metric: 0.0 for metric in self.metrics}

        for reading in readings:
            for metric in self.metrics:
                summary = summaries[metric]
                value = reading.value_of(metric)
                summary.count += 1
                totals[metric] += value

                if summary.min_value is None or value < summary.min_value:
                    summary.min_value = value
                if summary.max_value is None or value > summary.max_value:
                    summary.max_value = value

        for metric, summary in summaries.items():
            if summary.count:
                summary.mean_value = totals[metric] / summary.count

        return summaries
