from __future__ import annotations

from typing import Iterable

from charts.surface import HeadlessChartSurface
from services.dashboard import build_default_dashboard
from settings import get_settings
from storage.mock_feed import build_default_feed


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    feed_path = tmp_path / "feed.json"

    monkeypatch.setenv("SENSOR_FEED_NAME", "custom-feed")
    monkeypatch.setenv("SENSOR_FEED_PERSISTENCE_PATH", str(feed_path))
    monkeypatch.setenv("CHART_PLOT_WIDTH", "640")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    caches = (get_settings, build_default_feed, build_default_dashboard)
    _clear_caches(caches)

    feed = build_default_feed()
    dashboard = build_default_dashboard()

    try:
        dashboard.mount()
        surface = dashboard.view("temperature").surface
        assert feed.name == "custom-feed"
        assert feed.persistence_path == feed_path
        assert dashboard.source is feed
        assert isinstance(surface, HeadlessChartSurface)
        assert surface.plot_width == 640
        assert get_settings().log_level == "DEBUG"
    finally:
        dashboard.teardown()
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("CHART_PLOT_WIDTH", "-3")
    monkeypatch.setenv("SENSOR_FEED_PERSISTENCE_PATH", "  ")
    monkeypatch.setenv("SENSOR_FEED_NAME", "")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.plot_width == 800
        assert settings.feed_persistence_path is None
        assert settings.feed_name == "sensor-readings"
    finally:
        get_settings.cache_clear()
