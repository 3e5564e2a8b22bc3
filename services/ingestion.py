"""Streaming ingestion from a push-based reading source into the store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from models.readings import Reading
from services.normalizer import MalformedReading, normalize_reading
from services.store import TimeSeriesStore

logger = logging.getLogger(__name__)


class ReadingSource(Protocol):
    """External store that pushes the full, time-ordered record set on change."""

    def subscribe(
        self, callback: Callable[[list[dict[str, Any]]], None]
    ) -> Callable[[], None]:
        ...


@dataclass
class IngestionStats:
    """Counters for the pushes handled by one adapter."""

    pushes: int = 0
    accepted: int = 0
    dropped: int = 0


class StreamingIngestionAdapter:
    """Sole write path into the store during normal operation.

    Subscribes once at construction. Every push is normalized record by
    record (malformed records are logged and dropped), swapped into the store
    as a whole, and followed by ``on_refresh``.
    """

    def __init__(
        self,
        source: ReadingSource,
        store: TimeSeriesStore,
        on_refresh: Optional[Callable[[], None]] = None,
    ) -> None:
        self.store = store
        self.stats = IngestionStats()
        self._on_refresh = on_refresh
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._active = True
        self._unsubscribe = source.subscribe(self._handle_push)

    @property
    def subscribed(self) -> bool:
        return self._active and self._unsubscribe is not None

    def unsubscribe(self) -> None:
        """Stop receiving pushes. Safe to call repeatedly."""
        self._active = False
        release, self._unsubscribe = self._unsubscribe, None
        if release is not None:
            release()

    def _handle_push(self, records: Sequence[Mapping[str, Any]]) -> None:
        if not self._active:
            return

        readings: list[Reading] = []
        dropped = 0
        for record_index, record in enumerate(records or ()):
            try:
                readings.append(normalize_reading(record))
            except MalformedReading as exc:
                dropped += 1
                logger.warning(
                    "Skipping malformed reading",
                    extra={"record_index": record_index, "reason": str(exc)},
                )

        self.store.replace_all(readings)
        self.stats.pushes += 1
        self.stats.accepted = len(readings)
        self.stats.dropped = dropped
        logger.debug(
            "Push ingested",
            extra={"reading_count": len(readings), "dropped_count": dropped},
        )

        if self._on_refresh is not None:
            self._on_refresh()
