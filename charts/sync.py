"""Synchronization of zoom extremes and tooltips across a group of chart views."""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, Iterable, List, Optional, Tuple, Union

from charts.surface import ExtremesEvent, StaleSurface
from charts.view import ChartView

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """Propagation cycle states; both active states are transient."""

    idle = "idle"
    propagating = "propagating"
    resetting = "resetting"


class _Reset:
    def __repr__(self) -> str:
        return "RESET"


RESET = _Reset()

Request = Union[Tuple[float, float], _Reset]


class SyncCoordinator:
    """Keeps every member view at the same zoom window and tooltip index.

    Bounded zoom changes from one member are copied to the others with the
    ``synthetic`` marker, and synthetic changes are never re-broadcast. A
    reset clears every member's extremes under the ``resetting`` guard; reset
    reports that arrive while the guard is up are dropped.

    All work runs synchronously inside the call that reported the event.
    Non-synthetic changes reported while a cycle is running are queued and
    handled in arrival order once it finishes.
    """

    def __init__(self, views: Iterable[ChartView] = ()) -> None:
        self.state = SyncState.idle
        self.max_depth = 0
        self._members: List[ChartView] = []
        self._detachers: Dict[int, List[Callable[[], None]]] = {}
        self._pending: Deque[Tuple[ChartView, Request]] = deque()
        self._depth = 0
        for view in views:
            self.attach(view)

    @property
    def members(self) -> Tuple[ChartView, ...]:
        return tuple(self._members)

    @property
    def resetting(self) -> bool:
        return self.state is SyncState.resetting

    def attach(self, view: ChartView) -> None:
        if id(view) in self._detachers:
            return
        self._members.append(view)
        self._detachers[id(view)] = [
            view.on_extremes(self.handle_extremes),
            view.on_pointer(self.handle_pointer_move, self.handle_pointer_leave),
        ]

    def detach(self, view: ChartView) -> None:
        for remove in self._detachers.pop(id(view), ()):
            remove()
        if view in self._members:
            self._members.remove(view)

    def close(self) -> None:
        """Detach every member and drop queued work."""
        for view in list(self._members):
            self.detach(view)
        self._pending.clear()
        self.state = SyncState.idle

    def handle_extremes(self, origin: ChartView, event: ExtremesEvent) -> None:
        nesting = self._depth
        self.max_depth = max(self.max_depth, nesting)
        self._depth += 1
        try:
            request = self._classify(origin, event)
            if request is None:
                return

            if self.state is not SyncState.idle:
                if request is RESET and self.state is SyncState.resetting:
                    logger.debug(
                        "Reset ignored while resetting",
                        extra={"origin": origin.name, "state": self.state.value},
                    )
                    return
                self._pending.append((origin, request))
                return

            self._run(origin, request)
            while self._pending:
                queued_origin, queued_request = self._pending.popleft()
                if queued_origin in self._members:
                    self._run(queued_origin, queued_request)
        finally:
            self._depth -= 1

    def handle_pointer_move(self, origin: ChartView, x: float, y: float) -> None:
        if origin.destroyed:
            return
        try:
            index = origin.resolve_index(x, y)
        except StaleSurface:
            return
        if index is None:
            return
        logger.debug("Syncing tooltip", extra={"origin": origin.name, "index": index})
        self._broadcast(lambda member: member.show_tooltip_at(index))

    def handle_pointer_leave(self, origin: ChartView) -> None:
        self._broadcast(lambda member: member.hide_tooltip())

    def _classify(self, origin: ChartView, event: ExtremesEvent) -> Optional[Request]:
        if event.synthetic:
            return None
        if event.is_reset:
            return RESET
        if event.min is None or event.max is None:
            logger.debug("Half-open extremes ignored", extra={"origin": origin.name})
            return None
        return (event.min, event.max)

    def _run(self, origin: ChartView, request: Request) -> None:
        if isinstance(request, _Reset):
            self._reset(origin)
        else:
            self._propagate(origin, *request)

    def _propagate(self, origin: ChartView, low: float, high: float) -> None:
        self.state = SyncState.propagating
        try:
            self._broadcast(
                lambda member: member.set_extremes(low, high, synthetic=True),
                skip=origin,
            )
        finally:
            self.state = SyncState.idle

    def _reset(self, origin: ChartView) -> None:
        logger.debug("Resetting zoom", extra={"origin": origin.name})
        self.state = SyncState.resetting
        try:
            self._broadcast(lambda member: member.set_extremes(None, None, synthetic=True))
        finally:
            self.state = SyncState.idle

    def _broadcast(
        self,
        action: Callable[[ChartView], None],
        skip: Optional[ChartView] = None,
    ) -> None:
        for member in list(self._members):
            if member is skip:
                continue
            if member.destroyed:
                logger.debug("Skipping destroyed view", extra={"view": member.name})
                continue
            try:
                action(member)
            except StaleSurface:
                logger.debug("Skipping stale view", extra={"view": member.name})
