from __future__ import annotations
import copy
import json
import logging
from datetime import datetime
from functools import lru_cache
from itertools import count
from pathlib import Path
from threading import Lock, RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from services.normalizer import MalformedReading, resolve_timestamp
from settings import get_settings

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]
PushCallback = Callable[[List[RawRecord]], None]


def _order_key(record: Mapping[str, Any]) -> Tuple[int, datetime]:
    try:
        return (1, resolve_timestamp(record))
    except MalformedReading:
        return (0, datetime.min)


class MockReadingFeed:
    """Push-based reading source that always delivers the full snapshot.

    Subscribers receive the current snapshot on subscription and again after
    every :meth:`publish`, ordered ascending by timestamp. Deliveries are
    serialized by :attr:`delivery_lock`, so subscribers see snapshots in the
    order they were published.
    """

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._records: List[RawRecord] = []
        self._subscribers: Dict[int, PushCallback] = {}
        self._ids = count(1)
        self.persistence_path = persistence_path
        self._lock = Lock()
        self.delivery_lock = RLock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def publish(self, records: Iterable[Mapping[str, Any]]) -> int:
        ordered = sorted((dict(record) for record in records), key=_order_key)
        with self.delivery_lock:
            with self._lock:
                self._persist(ordered)
                self._records = ordered
                subscribers = list(self._subscribers.values())
            logger.info("Snapshot published", extra={"reading_count": len(ordered)})
            for callback in subscribers:
                callback(copy.deepcopy(ordered))
        return len(ordered)

    def snapshot(self) -> List[RawRecord]:
        with self._lock:
            return copy.deepcopy(self._records)

    def subscribe(self, callback: PushCallback) -> Callable[[], None]:
        with self.delivery_lock:
            with self._lock:
                token = next(self._ids)
                self._subscribers[token] = callback
                current = copy.deepcopy(self._records)
            callback(current)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _persist(self, records: List[RawRecord]) -> None:
        if not self.persistence_path:
            return
        payload = {"name": self.name, "records": records}
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        records = data.get("records") if isinstance(data, dict) else None
        if isinstance(records, list):
            self._records = sorted(
                (dict(record) for record in records if isinstance(record, dict)),
                key=_order_key,
            )


@lru_cache
def build_default_feed(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> MockReadingFeed:
    settings = get_settings()
    feed_name = settings.feed_name if name is None else name
    feed_path = settings.feed_persistence_path if path is None else path
    persistence = Path(feed_path) if feed_path else None
    return MockReadingFeed(name=feed_name, persistence_path=persistence)
