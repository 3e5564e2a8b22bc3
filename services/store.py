"""In-memory time-series store with retroactive date-range filtering."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from threading import Lock
from typing import Iterable, Mapping, Optional, Tuple

from models.readings import METRICS, DateRange, Reading


class IncompleteFilter(ValueError):
    """Raised when a date filter is activated with a missing bound."""


@dataclass(frozen=True)
class DerivedSeries:
    """Index-aligned labels and per-metric values for the current view."""

    labels: Tuple[str, ...] = ()
    temperature: Tuple[float, ...] = ()
    humidity: Tuple[float, ...] = ()
    pressure: Tuple[float, ...] = ()

    def __len__(self) -> int:
        return len(self.labels)

    def values_for(self, metrics: Iterable[str]) -> Mapping[str, Tuple[float, ...]]:
        return {metric: getattr(self, metric) for metric in metrics}


class TimeSeriesStore:
    """Holds the authoritative reading sequence and the active date filter.

    ``replace_all`` trusts the source to deliver readings ascending by time and
    does not re-sort them; the last element is always the most recent reading.
    """

    def __init__(self) -> None:
        self._readings: Tuple[Reading, ...] = ()
        self._filter: Optional[DateRange] = None
        self._lock = Lock()

    def replace_all(self, readings: Iterable[Reading]) -> None:
        snapshot = tuple(readings)
        with self._lock:
            self._readings = snapshot

    def set_filter(
        self,
        range_or_start: DateRange | date | None = None,
        end: Optional[date] = None,
    ) -> None:
        """Activate a date filter, or clear it when called with no bounds.

        Accepts either a :class:`DateRange` or explicit ``start``/``end`` dates.
        A single bound raises :class:`IncompleteFilter` and keeps prior state.
        """
        if isinstance(range_or_start, DateRange):
            if end is not None:
                raise TypeError("Pass either a DateRange or start/end dates, not both.")
            new_filter: Optional[DateRange] = range_or_start
        else:
            start = range_or_start
            if start is None and end is None:
                new_filter = None
            elif start is None or end is None:
                raise IncompleteFilter("Both start and end dates are required to filter.")
            else:
                new_filter = DateRange(start=start, end=end)

        if new_filter is not None and new_filter.start > new_filter.end:
            raise IncompleteFilter("Filter start date must not be after the end date.")

        with self._lock:
            self._filter = new_filter

    def reset_filter(self) -> None:
        with self._lock:
            self._filter = None

    @property
    def active_filter(self) -> Optional[DateRange]:
        with self._lock:
            return self._filter

    def all_readings(self) -> Tuple[Reading, ...]:
        with self._lock:
            return self._readings

    def current_view(self) -> Tuple[Reading, ...]:
        with self._lock:
            readings = self._readings
            active = self._filter

        if active is None:
            return readings

        selected = []
        for reading in readings:
            moment = reading.timestamp
            if moment is not None and active.contains(moment):
                selected.append(reading)
        return tuple(selected)

    def derive_series(self) -> DerivedSeries:
        view = self.current_view()
        return DerivedSeries(
            labels=tuple(reading.label for reading in view),
            **{metric: tuple(reading.value_of(metric) for reading in view) for metric in METRICS},
        )

    def latest(self) -> Optional[Reading]:
        view = self.current_view()
        if not view:
            return None
        return view[-1]
