"""Unit tests for the mock reading feed."""

from __future__ import annotations

import json
import threading

import pytest

from services.ingestion import StreamingIngestionAdapter
from services.store import TimeSeriesStore
from storage.mock_feed import MockReadingFeed


def test_subscribe_delivers_current_snapshot_then_every_publish() -> None:
    feed = MockReadingFeed(name="readings")
    feed.publish([{"timestamp": "01/01/2025 10:00:00"}])
    deliveries: list[list[dict]] = []

    feed.subscribe(deliveries.append)
    feed.publish([])

    assert deliveries == [[{"timestamp": "01/01/2025 10:00:00"}], []]


def test_publish_orders_records_by_timestamp() -> None:
    feed = MockReadingFeed(name="readings")

    feed.publish(
        [
            {"timestamp": "02/01/2025 10:00:00"},
            {"timestamp": "garbage"},
            {"date": "01/01/2025", "time": "09:00:00"},
        ]
    )

    assert feed.snapshot() == [
        {"timestamp": "garbage"},
        {"date": "01/01/2025", "time": "09:00:00"},
        {"timestamp": "02/01/2025 10:00:00"},
    ]


def test_deliveries_are_copies() -> None:
    feed = MockReadingFeed(name="readings")
    feed.publish([{"timestamp": "01/01/2025 10:00:00", "temperature": 1}])
    received: list[list[dict]] = []
    feed.subscribe(received.append)

    received[0][0]["temperature"] = 99

    assert feed.snapshot()[0]["temperature"] == 1


def test_unsubscribe_stops_delivery_and_is_idempotent() -> None:
    feed = MockReadingFeed(name="readings")
    deliveries: list[list[dict]] = []
    unsubscribe = feed.subscribe(deliveries.append)

    unsubscribe()
    unsubscribe()
    feed.publish([{"timestamp": "01/01/2025 10:00:00"}])

    assert deliveries == [[]]
    assert feed.subscriber_count == 0


def test_publish_persists_and_reloads(tmp_path) -> None:
    path = tmp_path / "feed.json"
    feed = MockReadingFeed(name="readings", persistence_path=path)

    feed.publish([{"timestamp": "01/01/2025 10:00:00", "temperature": 21}])

    payload = json.loads(path.read_text())
    assert payload["records"][0]["temperature"] == 21

    reloaded = MockReadingFeed(name="readings", persistence_path=path)
    assert reloaded.snapshot() == feed.snapshot()


def test_corrupt_persistence_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "feed.json"
    path.write_text("{not json")

    feed = MockReadingFeed(name="readings", persistence_path=path)

    assert feed.snapshot() == []


def test_blank_timestamp_orders_by_date_and_time_fields() -> None:
    feed = MockReadingFeed(name="readings")
    store = TimeSeriesStore()
    StreamingIngestionAdapter(feed, store)

    feed.publish(
        [
            {"timestamp": "01/01/2025 10:00:00"},
            {"timestamp": "  ", "date": "03/01/2025", "time": "10:00:00"},
        ]
    )

    assert [reading.date for reading in store.current_view()] == ["01/01/2025", "03/01/2025"]
    assert store.latest().date == "03/01/2025"


def test_overlapping_publishes_reach_subscribers_in_publish_order() -> None:
    feed = MockReadingFeed(name="readings")
    store = TimeSeriesStore()
    entered = threading.Event()
    release = threading.Event()

    def slow_subscriber(records: list[dict]) -> None:
        if records and records[0]["timestamp"].startswith("01/01") and not release.is_set():
            entered.set()
            release.wait(timeout=5)

    feed.subscribe(slow_subscriber)
    StreamingIngestionAdapter(feed, store)

    first = threading.Thread(target=feed.publish, args=([{"timestamp": "01/01/2025 10:00:00"}],))
    second = threading.Thread(target=feed.publish, args=([{"timestamp": "02/01/2025 10:00:00"}],))
    first.start()
    assert entered.wait(timeout=5)
    second.start()
    second.join(timeout=0.2)

    assert second.is_alive()
    assert feed.snapshot() == [{"timestamp": "01/01/2025 10:00:00"}]

    release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert feed.snapshot() == [{"timestamp": "02/01/2025 10:00:00"}]
    assert store.latest().date == "02/01/2025"


def test_failed_persist_keeps_previous_snapshot(tmp_path) -> None:
    path = tmp_path / "feed.json"
    path.mkdir()
    feed = MockReadingFeed(name="readings", persistence_path=path)
    deliveries: list[list[dict]] = []
    feed.subscribe(deliveries.append)

    with pytest.raises(OSError):
        feed.publish([{"timestamp": "01/01/2025 10:00:00"}])

    assert feed.snapshot() == []
    assert deliveries == [[]]
