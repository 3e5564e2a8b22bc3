import threading
from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.api import push_snapshot
from app.main import create_app
from app.schemas import FeedPushRequest, FeedPushResponse
from charts.surface import HeadlessChartSurface
from services.dashboard import Dashboard
from storage.mock_feed import MockReadingFeed

RECORDS = [
    {"timestamp": "01/01/2025 10:00:00", "temperature": 20.0, "humidity": 40.0, "pressure": 1010.0},
    {"timestamp": "01/01/2025 10:05:00", "temperature": 21.0, "humidity": 41.0, "pressure": 1011.0},
    {"timestamp": "02/01/2025 10:00:00", "temperature": 22.0, "humidity": 42.0, "pressure": 1012.0},
]


@pytest.fixture
def feed() -> MockReadingFeed:
    return MockReadingFeed(name="test")


@pytest.fixture
def dashboards() -> List[Dashboard]:
    return []


@pytest.fixture
def api_client(monkeypatch, feed: MockReadingFeed, dashboards: List[Dashboard]) -> Iterator[TestClient]:
    def build_test_dashboard() -> Dashboard:
        if not dashboards:
            dashboards.append(
                Dashboard(
                    source=feed,
                    surface_factory=lambda name: HeadlessChartSurface(mount_point=name, plot_width=100),
                )
            )
        return dashboards[-1]

    build_test_dashboard.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_dashboard", build_test_dashboard)
    monkeypatch.setattr("app.api.build_default_dashboard", build_test_dashboard)
    monkeypatch.setattr("app.api.build_default_feed", lambda: feed)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _push(client: TestClient, records=RECORDS) -> dict:
    response = client.post("/feed", json={"records": records})
    assert response.status_code == 202
    return response.json()


def test_lifespan_mounts_and_tears_down_dashboard(monkeypatch, feed: MockReadingFeed) -> None:
    dashboard = Dashboard(source=feed, surface_factory=lambda name: HeadlessChartSurface(mount_point=name))
    cleared: list[bool] = []

    def build() -> Dashboard:
        return dashboard

    build.cache_clear = lambda: cleared.append(True)  # type: ignore[attr-defined]
    monkeypatch.setattr("app.main.build_default_dashboard", build)

    with TestClient(create_app()):
        assert dashboard.mounted is True
        assert feed.subscriber_count == 1

    assert dashboard.mounted is False
    assert feed.subscriber_count == 0
    assert cleared == [True]


def test_push_and_read_series(api_client: TestClient) -> None:
    payload = _push(api_client)
    assert payload == {"published": 3, "accepted": 3, "dropped": 0}

    response = api_client.get("/readings/series")

    assert response.status_code == 200
    series = response.json()
    assert series["count"] == 3
    assert series["labels"] == ["01/01 10:00", "01/01 10:05", "02/01 10:00"]
    assert series["pressure"] == [1010.0, 1011.0, 1012.0]


def test_push_reports_dropped_records(api_client: TestClient) -> None:
    payload = _push(api_client, RECORDS + [{"temperature": 5}])

    assert payload["published"] == 4
    assert payload["accepted"] == 3
    assert payload["dropped"] == 1


def test_concurrent_pushes_report_their_own_counts(feed: MockReadingFeed) -> None:
    dashboard = Dashboard(source=feed, surface_factory=lambda name: HeadlessChartSurface(mount_point=name))
    dashboard.mount()
    responses: List[FeedPushResponse] = []
    workers: List[threading.Thread] = []

    def push_clean_snapshot() -> None:
        responses.append(push_snapshot(FeedPushRequest(records=RECORDS), feed=feed, dashboard=dashboard))

    def start_second_push(records: list[dict]) -> None:
        if len(records) == 4 and not workers:
            worker = threading.Thread(target=push_clean_snapshot)
            workers.append(worker)
            worker.start()
            worker.join(timeout=0.2)

    feed.subscribe(start_second_push)

    first = push_snapshot(FeedPushRequest(records=RECORDS + [{"temperature": 5}]), feed=feed, dashboard=dashboard)
    workers[0].join(timeout=5)

    assert (first.accepted, first.dropped) == (3, 1)
    assert [(response.accepted, response.dropped) for response in responses] == [(3, 0)]
    dashboard.teardown()


def test_latest_returns_not_found_when_empty(api_client: TestClient) -> None:
    response = api_client.get("/readings/latest")

    assert response.status_code == 404


def test_latest_follows_active_filter(api_client: TestClient) -> None:
    _push(api_client)

    assert api_client.get("/readings/latest").json()["temperature"] == 22.0

    response = api_client.put("/filter", json={"start": "01/01/2025", "end": "2025-01-01"})
    assert response.status_code == 200
    assert response.json() == {"active": True, "start": "2025-01-01", "end": "2025-01-01"}

    latest = api_client.get("/readings/latest").json()
    assert latest["temperature"] == 21.0
    assert latest["date"] == "01/01/2025"
    assert latest["time"] == "10:05:00"


def test_incomplete_filter_is_rejected(api_client: TestClient) -> None:
    _push(api_client)

    response = api_client.put("/filter", json={"start": "2025-01-01"})

    assert response.status_code == 400
    assert api_client.get("/filter").json() == {"active": False, "start": None, "end": None}


def test_delete_filter_restores_full_view(api_client: TestClient) -> None:
    _push(api_client)
    api_client.put("/filter", json={"start": "2025-01-02", "end": "2025-01-02"})
    assert api_client.get("/readings/series").json()["count"] == 1

    response = api_client.delete("/filter")

    assert response.json()["active"] is False
    assert api_client.get("/readings/series").json()["count"] == 3


def test_zoom_propagates_and_reset_clears(api_client: TestClient) -> None:
    _push(api_client)

    charts = api_client.post("/charts/humidity/extremes", json={"min": 0, "max": 1}).json()
    assert {(chart["min"], chart["max"]) for chart in charts} == {(0.0, 1.0)}
    assert len(charts) == 4

    charts = api_client.post("/charts/combined/extremes", json={}).json()
    assert {(chart["min"], chart["max"]) for chart in charts} == {(None, None)}


def test_half_open_zoom_is_rejected(api_client: TestClient) -> None:
    response = api_client.post("/charts/humidity/extremes", json={"min": 1})

    assert response.status_code == 400


def test_unknown_chart_returns_not_found(api_client: TestClient) -> None:
    response = api_client.post("/charts/wind/pointer", json={"x": 1})

    assert response.status_code == 404


def test_pointer_syncs_tooltips(api_client: TestClient) -> None:
    _push(api_client)

    charts = api_client.post("/charts/pressure/pointer", json={"x": 50, "y": 10}).json()
    assert {chart["tooltip_index"] for chart in charts} == {1}

    charts = api_client.post("/charts/temperature/pointer-leave").json()
    assert {chart["tooltip_index"] for chart in charts} == {None}


def test_summary_and_export(api_client: TestClient) -> None:
    _push(api_client)

    summary = api_client.get("/readings/summary").json()
    assert summary["metrics"]["temperature"]["mean_value"] == 21.0

    response = api_client.get("/readings/export.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.splitlines()
    assert lines[0] == "timestamp,date,time,temperature,humidity,pressure"
    assert lines[1].startswith("01/01/2025 10:00:00,01/01/2025,10:00:00,")


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
