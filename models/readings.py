"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

DATE_FORMAT = "%d/%m/%Y"
TIME_FORMAT = "%H:%M:%S"
LABEL_FORMAT = "%d/%m %H:%M"

METRICS = ("temperature", "humidity", "pressure")


@dataclass(frozen=True, slots=True)
class Reading:
    """A single sensor sample.

    The day/month/year and hour:minute:second components are kept as the
    text the sensor reported so they can be displayed and exported as-is.
    """

    date: str
    time: str
    temperature: float = 0.0
    humidity: float = 0.0
    pressure: float = 0.0

    @property
    def timestamp(self) -> Optional[datetime]:
        """Combined point in time, or ``None`` when the components do not parse."""
        try:
            return datetime.strptime(f"{self.date} {self.time}", f"{DATE_FORMAT} {TIME_FORMAT}")
        except ValueError:
            return None

    @property
    def label(self) -> str:
        moment = self.timestamp
        if moment is None:
            return ""
        return moment.strftime(LABEL_FORMAT)

    def value_of(self, metric: str) -> float:
        if metric not in METRICS:
            raise KeyError(f"Unknown metric {metric!r}.")
        return getattr(self, metric)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar-day range: ``start`` 00:00:00 through ``end`` 23:59:59."""

    start: date
    end: date

    @property
    def lower(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def upper(self) -> datetime:
        return datetime.combine(self.end, time(23, 59, 59))

    def contains(self, moment: datetime) -> bool:
        return self.lower <= moment <= self.upper
