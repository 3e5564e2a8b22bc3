"""Conversion of raw feed records into :class:`Reading` instances."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from models.readings import DATE_FORMAT, METRICS, TIME_FORMAT, Reading

logger = logging.getLogger(__name__)

_TEXT_FORMATS = (
    f"{DATE_FORMAT} {TIME_FORMAT}",
    f"{DATE_FORMAT} %H:%M",
)
_EPOCH_MILLIS_THRESHOLD = 1e11


class MalformedReading(ValueError):
    """Raised when a raw record has no usable timestamp."""


def parse_timestamp(value: Any) -> datetime:
    """Parse a feed timestamp into a naive datetime.

    Accepts ``DD/MM/YYYY HH:MM[:SS]`` text, ISO-8601 text, or a numeric epoch
    (milliseconds above 1e11, seconds otherwise, read as UTC).
    """
    if value is None or isinstance(value, bool):
        raise ValueError("Timestamp is missing.")

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _EPOCH_MILLIS_THRESHOLD else value
        try:
            moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError("Epoch timestamp out of range") from exc
        return moment.replace(tzinfo=None)

    candidate = str(value).strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def resolve_timestamp(raw: Mapping[str, Any]) -> datetime:
    """Timestamp of a raw record, falling back to its date and time fields."""
    value = raw.get("timestamp")
    if value is None or (isinstance(value, str) and not value.strip()):
        date_part = str(raw.get("date") or "").strip()
        time_part = str(raw.get("time") or "").strip()
        if not date_part or not time_part:
            raise MalformedReading("missing timestamp")
        value = f"{date_part} {time_part}"

    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise MalformedReading(f"invalid timestamp {value!r}") from exc


def _metric_value(raw: Mapping[str, Any], metric: str) -> float:
    value = raw.get(metric)
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug(
            "Non-numeric value replaced with 0",
            extra={"metric": metric, "reason": repr(value)},
        )
        return 0.0


def normalize_reading(raw: Mapping[str, Any]) -> Reading:
    """Build a :class:`Reading` from a raw record.

    Missing or unreadable measurements become ``0.0`` because sensor dropouts
    are routine; only the timestamp is mandatory.
    """
    if not isinstance(raw, Mapping):
        raise MalformedReading(f"record is not a mapping: {type(raw).__name__}")

    moment = resolve_timestamp(raw)
    values = {metric: _metric_value(raw, metric) for metric in METRICS}
    # strftime's %Y drops leading zeros on some platforms for years below 1000.
    return Reading(
        date=f"{moment.day:02d}/{moment.month:02d}/{moment.year:04d}",
        time=moment.strftime(TIME_FORMAT),
        **values,
    )
