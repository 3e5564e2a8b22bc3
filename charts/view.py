"""Chart view wrapper binding one rendering surface to dashboard series."""

from __future__ import annotations

import logging
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from charts.surface import (
    POINTER_LEAVE,
    POINTER_MOVE,
    ChartConfig,
    ChartSurface,
    Extremes,
    ExtremesEvent,
    SeriesConfig,
    StaleSurface,
)

logger = logging.getLogger(__name__)

SERIES_STYLE = {
    "temperature": ("Temperature (°C)", "#e4572e"),
    "humidity": ("Humidity (%)", "#17bebb"),
    "pressure": ("Pressure (hPa)", "#76b041"),
}

ExtremesListener = Callable[["ChartView", ExtremesEvent], None]
PointerMoveListener = Callable[["ChartView", float, float], None]
PointerLeaveListener = Callable[["ChartView"], None]


def build_series_config(metrics: Sequence[str]) -> Tuple[SeriesConfig, ...]:
    """Series definitions; pressure moves to the secondary axis on combined charts."""
    combined = len(metrics) > 1
    configs = []
    for metric in metrics:
        try:
            name, color = SERIES_STYLE[metric]
        except KeyError as exc:
            raise ValueError(f"Unknown metric {metric!r}.") from exc
        axis = 1 if combined and metric == "pressure" else 0
        configs.append(SeriesConfig(metric=metric, name=name, color=color, axis=axis))
    return tuple(configs)


class ChartView:
    """One rendered chart plus the pointer listeners bound to its mount point."""

    def __init__(
        self,
        name: str,
        title: str,
        metrics: Sequence[str],
        surface: ChartSurface,
    ) -> None:
        self.name = name
        self.title = title
        self.metrics: Tuple[str, ...] = tuple(metrics)
        self.surface = surface
        self._extremes_listeners: List[ExtremesListener] = []
        self._move_listeners: List[PointerMoveListener] = []
        self._leave_listeners: List[PointerLeaveListener] = []
        self._destroyed = False

    @classmethod
    def create(
        cls,
        surface: ChartSurface,
        title: str,
        metrics: Sequence[str],
        name: Optional[str] = None,
        labels: Sequence[str] = (),
        values: Optional[Mapping[str, Sequence[float]]] = None,
    ) -> "ChartView":
        view = cls(name=name or title.lower(), title=title, metrics=metrics, surface=surface)
        values = values or {}
        config = ChartConfig(
            mount_point=view.name,
            title=title,
            series=build_series_config(view.metrics),
            categories=tuple(labels),
            data={metric: tuple(values.get(metric, ())) for metric in view.metrics},
        )
        surface.render(config)
        surface.on_extremes_changed(view._handle_extremes)
        surface.add_pointer_listener(POINTER_MOVE, view._handle_pointer_move)
        surface.add_pointer_listener(POINTER_LEAVE, view._handle_pointer_leave)
        return view

    @property
    def destroyed(self) -> bool:
        return self._destroyed or self.surface.destroyed

    def on_extremes(self, listener: ExtremesListener) -> Callable[[], None]:
        self._extremes_listeners.append(listener)
        return lambda: _discard(self._extremes_listeners, listener)

    def on_pointer(
        self, move: PointerMoveListener, leave: PointerLeaveListener
    ) -> Callable[[], None]:
        self._move_listeners.append(move)
        self._leave_listeners.append(leave)

        def remove() -> None:
            _discard(self._move_listeners, move)
            _discard(self._leave_listeners, leave)

        return remove

    def update(
        self,
        labels: Sequence[str],
        values: Mapping[str, Sequence[float]],
        reset_extremes: bool = False,
    ) -> None:
        """Swap in new series data without recreating the chart."""
        self._ensure_alive()
        self.surface.set_data(
            tuple(labels),
            {metric: tuple(values.get(metric, ())) for metric in self.metrics},
        )
        if reset_extremes:
            self.surface.set_extremes(None, None, synthetic=True)

    def set_extremes(
        self, min: Optional[float], max: Optional[float], synthetic: bool = False
    ) -> None:
        self._ensure_alive()
        self.surface.set_extremes(min, max, synthetic=synthetic)

    def get_extremes(self) -> Optional[Extremes]:
        self._ensure_alive()
        return self.surface.get_extremes()

    def reset_zoom(self) -> None:
        self._ensure_alive()
        self.surface.reset_zoom()

    def show_tooltip_at(self, index: int) -> None:
        self._ensure_alive()
        self.surface.show_tooltip(index)

    def hide_tooltip(self) -> None:
        self._ensure_alive()
        self.surface.hide_tooltip()

    def tooltip_index(self) -> Optional[int]:
        self._ensure_alive()
        return self.surface.get_tooltip()

    def resolve_index(self, x: float, y: float) -> Optional[int]:
        self._ensure_alive()
        return self.surface.normalize_pointer(x, y)

    def destroy(self) -> None:
        """Release the chart and detach mount-point listeners. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self.surface.remove_pointer_listener(POINTER_MOVE, self._handle_pointer_move)
        self.surface.remove_pointer_listener(POINTER_LEAVE, self._handle_pointer_leave)
        self._extremes_listeners.clear()
        self._move_listeners.clear()
        self._leave_listeners.clear()
        try:
            self.surface.destroy()
        except StaleSurface:
            logger.debug("Surface already gone", extra={"view": self.name})

    def _handle_extremes(self, event: ExtremesEvent) -> None:
        for listener in list(self._extremes_listeners):
            listener(self, event)

    def _handle_pointer_move(self, x: float, y: float) -> None:
        for listener in list(self._move_listeners):
            listener(self, x, y)

    def _handle_pointer_leave(self) -> None:
        for listener in list(self._leave_listeners):
            listener(self)

    def _ensure_alive(self) -> None:
        if self.destroyed:
            raise StaleSurface(f"Chart view {self.name!r} has been destroyed.")

    def __repr__(self) -> str:
        return f"ChartView(name={self.name!r}, metrics={self.metrics!r})"


def _discard(items: list, item: object) -> None:
    try:
        items.remove(item)
    except ValueError:
        pass
