"""Dashboard orchestration: store, ingestion, chart views and their sync group."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from threading import RLock
from typing import Callable, Dict, Optional, Tuple

from charts.surface import (
    POINTER_LEAVE,
    POINTER_MOVE,
    ChartSurface,
    Extremes,
    HeadlessChartSurface,
    StaleSurface,
)
from charts.sync import SyncCoordinator
from charts.view import ChartView
from models.readings import METRICS, DateRange, Reading
from services.aggregator import Aggregator, MetricSummary
from services.export import export_csv
from services.ingestion import IngestionStats, ReadingSource, StreamingIngestionAdapter
from services.store import DerivedSeries, TimeSeriesStore
from settings import get_settings
from storage.mock_feed import build_default_feed

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[str], ChartSurface]

VIEW_LAYOUT: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("temperature", "Temperature", ("temperature",)),
    ("humidity", "Humidity", ("humidity",)),
    ("pressure", "Pressure", ("pressure",)),
    ("combined", "Combined", METRICS),
)


@dataclass(frozen=True)
class ChartState:
    name: str
    title: str
    metrics: Tuple[str, ...]
    extremes: Optional[Extremes]
    tooltip_index: Optional[int]
    point_count: int


class Dashboard:
    """Mounts every dashboard resource together and tears them down together."""

    def __init__(
        self,
        source: ReadingSource,
        surface_factory: SurfaceFactory,
        store: Optional[TimeSeriesStore] = None,
        aggregator: Optional[Aggregator] = None,
    ) -> None:
        self.source = source
        self.surface_factory = surface_factory
        self.store = store or TimeSeriesStore()
        self.aggregator = aggregator or Aggregator()
        self.views: Dict[str, ChartView] = {}
        self.coordinator: Optional[SyncCoordinator] = None
        self.adapter: Optional[StreamingIngestionAdapter] = None
        self._lock = RLock()

    @property
    def mounted(self) -> bool:
        return self.adapter is not None

    def mount(self) -> None:
        """Create the views, the sync group and the feed subscription."""
        with self._delivery_guard(), self._lock:
            if self.mounted:
                return
            try:
                series = self.store.derive_series()
                for name, title, metrics in VIEW_LAYOUT:
                    surface = self.surface_factory(name)
                    self.views[name] = ChartView.create(
                        surface,
                        title,
                        metrics,
                        name=name,
                        labels=series.labels,
                        values=series.values_for(metrics),
                    )
                self.coordinator = SyncCoordinator(self.views.values())
                self.adapter = StreamingIngestionAdapter(
                    self.source, self.store, on_refresh=self.refresh
                )
            except Exception:
                logger.exception("Dashboard mount failed; tearing down")
                self.teardown()
                raise
            logger.info("Dashboard mounted", extra={"reading_count": len(self.store.current_view())})

    def _delivery_guard(self):
        # Taken before our own lock, in the same order as a feed delivering into refresh().
        return getattr(self.source, "delivery_lock", None) or nullcontext()

    def teardown(self) -> None:
        """Unsubscribe and destroy every view. Safe after a partial mount."""
        with self._lock:
            adapter, self.adapter = self.adapter, None
            coordinator, self.coordinator = self.coordinator, None
            views, self.views = self.views, {}

            if adapter is not None:
                adapter.unsubscribe()
            if coordinator is not None:
                coordinator.close()
            for view in views.values():
                view.destroy()

    def refresh(self, reset_extremes: bool = False) -> None:
        """Push freshly derived series into every live view."""
        with self._lock:
            series = self.store.derive_series()
            for view in list(self.views.values()):
                if view.destroyed:
                    continue
                try:
                    view.update(
                        series.labels,
                        series.values_for(view.metrics),
                        reset_extremes=reset_extremes,
                    )
                except StaleSurface:
                    logger.debug("Skipping stale view on refresh", extra={"view": view.name})

    def set_filter(self, start: Optional[date], end: Optional[date]) -> None:
        with self._lock:
            self.store.set_filter(start, end)
            self.refresh(reset_extremes=True)

    def reset_filter(self) -> None:
        with self._lock:
            self.store.reset_filter()
            self.refresh(reset_extremes=True)

    @property
    def active_filter(self) -> Optional[DateRange]:
        return self.store.active_filter

    @property
    def ingestion_stats(self) -> IngestionStats:
        if self.adapter is None:
            return IngestionStats()
        return self.adapter.stats

    def series(self) -> DerivedSeries:
        return self.store.derive_series()

    def latest(self) -> Optional[Reading]:
        return self.store.latest()

    def summary(self) -> Dict[str, MetricSummary]:
        return self.aggregator.summarize(self.store.current_view())

    def export_csv(self) -> str:
        return export_csv(self.store.current_view())

    def view(self, name: str) -> ChartView:
        try:
            return self.views[name]
        except KeyError as exc:
            raise KeyError(f"Chart view {name!r} not found.") from exc

    def zoom(self, name: str, low: Optional[float], high: Optional[float]) -> None:
        """Apply a user zoom on one view; both bounds absent means reset zoom."""
        with self._lock:
            view = self.view(name)
            if low is None and high is None:
                view.reset_zoom()
            elif low is None or high is None:
                raise ValueError("Zoom needs both bounds, or neither to reset.")
            else:
                view.set_extremes(low, high)

    def pointer_move(self, name: str, x: float, y: float = 0.0) -> None:
        with self._lock:
            self.view(name).surface.dispatch_pointer(POINTER_MOVE, x, y)

    def pointer_leave(self, name: str) -> None:
        with self._lock:
            self.view(name).surface.dispatch_pointer(POINTER_LEAVE)

    def chart_states(self) -> list[ChartState]:
        with self._lock:
            point_count = len(self.store.current_view())
            states = []
            for view in self.views.values():
                if view.destroyed:
                    continue
                states.append(
                    ChartState(
                        name=view.name,
                        title=view.title,
                        metrics=view.metrics,
                        extremes=view.get_extremes(),
                        tooltip_index=view.tooltip_index(),
                        point_count=point_count,
                    )
                )
            return states


@lru_cache
def build_default_dashboard() -> Dashboard:
    """Factory that wires the dashboard with the default feed and headless charts."""
    settings = get_settings()
    feed = build_default_feed()

    def surface_factory(name: str) -> ChartSurface:
        return HeadlessChartSurface(mount_point=name, plot_width=settings.plot_width)

    return Dashboard(source=feed, surface_factory=surface_factory)
