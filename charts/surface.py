"""Rendering surface boundary and a headless in-memory implementation.

``ChartSurface`` lists the capabilities the dashboard needs from a plotting
library: render a configured chart on a mount point, replace its data in
place, read and write the x-axis extremes, show or hide a tooltip, map pointer
coordinates to a data index, and be destroyed. ``HeadlessChartSurface`` keeps
all of that in memory so the synchronization engine runs without a browser.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

logger = logging.getLogger(__name__)

POINTER_MOVE = "pointermove"
POINTER_LEAVE = "pointerleave"

Extremes = Tuple[float, float]
PointerCallback = Callable[..., None]


class StaleSurface(RuntimeError):
    """Raised when an operation targets a chart that has been destroyed."""


@dataclass(frozen=True)
class ExtremesEvent:
    """Zoom/pan change reported by a surface.

    ``reset`` is set when the user asked to zoom out to the full extent.
    ``synthetic`` marks changes applied by the sync coordinator itself.
    """

    min: Optional[float] = None
    max: Optional[float] = None
    synthetic: bool = False
    reset: bool = False

    @property
    def is_reset(self) -> bool:
        return self.reset or (self.min is None and self.max is None)


@dataclass(frozen=True)
class SeriesConfig:
    metric: str
    name: str
    color: str
    axis: int = 0


@dataclass(frozen=True)
class ChartConfig:
    mount_point: str
    title: str
    series: Tuple[SeriesConfig, ...]
    categories: Tuple[str, ...] = ()
    data: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)


ExtremesCallback = Callable[[ExtremesEvent], None]


class ChartSurface(Protocol):
    """Capabilities consumed from the rendering library."""

    @property
    def destroyed(self) -> bool:
        ...

    def render(self, config: ChartConfig) -> None:
        ...

    def set_data(self, categories: Sequence[str], series: Mapping[str, Sequence[float]]) -> None:
        ...

    def get_extremes(self) -> Optional[Extremes]:
        ...

    def set_extremes(
        self, min: Optional[float], max: Optional[float], synthetic: bool = False
    ) -> None:
        ...

    def reset_zoom(self) -> None:
        ...

    def show_tooltip(self, index: int) -> None:
        ...

    def hide_tooltip(self) -> None:
        ...

    def get_tooltip(self) -> Optional[int]:
        ...

    def normalize_pointer(self, x: float, y: float) -> Optional[int]:
        ...

    def on_extremes_changed(self, callback: ExtremesCallback) -> None:
        ...

    def add_pointer_listener(self, kind: str, callback: PointerCallback) -> None:
        ...

    def remove_pointer_listener(self, kind: str, callback: PointerCallback) -> None:
        ...

    def dispatch_pointer(self, kind: str, x: float = 0.0, y: float = 0.0) -> None:
        ...

    def destroy(self) -> None:
        ...


class HeadlessChartSurface:
    """In-memory chart that mirrors the behaviour of a browser chart widget.

    Pointer listeners belong to the mount point, not to the chart, so they
    survive :meth:`destroy` until whoever attached them removes them.
    """

    def __init__(self, mount_point: str, plot_width: int = 800) -> None:
        if plot_width <= 0:
            raise ValueError("plot_width must be positive.")
        self.mount_point = mount_point
        self.plot_width = plot_width
        self.config: Optional[ChartConfig] = None
        self.categories: Tuple[str, ...] = ()
        self.series: Dict[str, Tuple[float, ...]] = {}
        self.tooltip_calls: List[int] = []
        self._extremes: Optional[Extremes] = None
        self._tooltip: Optional[int] = None
        self._extremes_callbacks: List[ExtremesCallback] = []
        self._pointer_listeners: Dict[str, List[PointerCallback]] = {}
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def point_count(self) -> int:
        return len(self.categories)

    def listener_count(self, kind: Optional[str] = None) -> int:
        if kind is not None:
            return len(self._pointer_listeners.get(kind, ()))
        return sum(len(listeners) for listeners in self._pointer_listeners.values())

    def render(self, config: ChartConfig) -> None:
        self._ensure_alive()
        self.config = config
        self.categories = tuple(config.categories)
        self.series = {spec.metric: tuple(config.data.get(spec.metric, ())) for spec in config.series}

    def set_data(self, categories: Sequence[str], series: Mapping[str, Sequence[float]]) -> None:
        self._ensure_alive()
        self.categories = tuple(categories)
        self.series = {metric: tuple(values) for metric, values in series.items()}
        if self._tooltip is not None and self._tooltip >= len(self.categories):
            self._tooltip = None

    def get_extremes(self) -> Optional[Extremes]:
        self._ensure_alive()
        return self._extremes

    def set_extremes(
        self, min: Optional[float], max: Optional[float], synthetic: bool = False
    ) -> None:
        self._ensure_alive()
        if min is None or max is None:
            self._extremes = None
        else:
            self._extremes = (min, max) if min <= max else (max, min)
        self._emit(ExtremesEvent(min=min, max=max, synthetic=synthetic))

    def reset_zoom(self) -> None:
        self._ensure_alive()
        self._extremes = None
        self._emit(ExtremesEvent(reset=True))

    def show_tooltip(self, index: int) -> None:
        self._ensure_alive()
        self.tooltip_calls.append(index)
        self._tooltip = index if 0 <= index < len(self.categories) else None

    def hide_tooltip(self) -> None:
        self._ensure_alive()
        self._tooltip = None

    def get_tooltip(self) -> Optional[int]:
        self._ensure_alive()
        return self._tooltip

    def normalize_pointer(self, x: float, y: float) -> Optional[int]:
        """Nearest data index under plot-relative coordinates, if any."""
        self._ensure_alive()
        if not self.categories or not 0 <= x <= self.plot_width or y < 0:
            return None

        last = len(self.categories) - 1
        low, high = self._extremes if self._extremes is not None else (0.0, float(last))
        position = low + (x / self.plot_width) * (high - low)
        return int(min(max(round(position), 0), last))

    def on_extremes_changed(self, callback: ExtremesCallback) -> None:
        self._ensure_alive()
        self._extremes_callbacks.append(callback)

    def add_pointer_listener(self, kind: str, callback: PointerCallback) -> None:
        self._pointer_listeners.setdefault(kind, []).append(callback)

    def remove_pointer_listener(self, kind: str, callback: PointerCallback) -> None:
        listeners = self._pointer_listeners.get(kind)
        if not listeners:
            return
        try:
            listeners.remove(callback)
        except ValueError:
            return
        if not listeners:
            del self._pointer_listeners[kind]

    def dispatch_pointer(self, kind: str, x: float = 0.0, y: float = 0.0) -> None:
        for callback in list(self._pointer_listeners.get(kind, ())):
            if kind == POINTER_LEAVE:
                callback()
            else:
                callback(x, y)

    def pointer_move(self, x: float, y: float = 0.0) -> None:
        self.dispatch_pointer(POINTER_MOVE, x, y)

    def pointer_leave(self) -> None:
        self.dispatch_pointer(POINTER_LEAVE)

    def destroy(self) -> None:
        self._ensure_alive()
        self._destroyed = True
        self._extremes_callbacks.clear()
        self.series = {}
        self.categories = ()
        self._tooltip = None
        logger.debug("Chart destroyed", extra={"view": self.mount_point})

    def _emit(self, event: ExtremesEvent) -> None:
        for callback in list(self._extremes_callbacks):
            callback(event)

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise StaleSurface(f"Chart on {self.mount_point!r} has been destroyed.")
