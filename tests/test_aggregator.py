"""Unit tests for the aggregation logic."""

from __future__ import annotations

from models.readings import Reading
from services.aggregator import Aggregator


def _reading(temperature: float, humidity: float = 50.0, pressure: float = 1000.0) -> Reading:
    """Helper to build deterministic sensor readings."""

    return Reading(
        date="01/01/2024",
        time="00:00:00",
        temperature=temperature,
        humidity=humidity,
        pressure=pressure,
    )


def test_summarize_empty_iterable_returns_default_summaries() -> None:
    aggregator = Aggregator()

    summaries = aggregator.summarize([])

    assert set(summaries) == {"temperature", "humidity", "pressure"}
    for summary in summaries.values():
        assert summary.count == 0
        assert summary.min_value is None
        assert summary.max_value is None
        assert summary.mean_value is None


def test_summarize_computes_statistics_per_metric() -> None:
    aggregator = Aggregator()
    readings = [
        _reading(10.0, humidity=30.0),
        _reading(30.0, humidity=60.0),
        _reading(20.0, humidity=90.0),
    ]

    summaries = aggregator.summarize(readings)

    temperature = summaries["temperature"]
    assert temperature.count == 3
    assert temperature.min_value == 10.0
    assert temperature.max_value == 30.0
    assert temperature.mean_value == 20.0
    assert summaries["humidity"].mean_value == 60.0
    assert summaries["pressure"].min_value == summaries["pressure"].max_value == 1000.0


def test_summarize_restricted_metrics() -> None:
    aggregator = Aggregator(metrics=("pressure",))

    summaries = aggregator.summarize([_reading(1.0)])

    assert list(summaries) == ["pressure"]
