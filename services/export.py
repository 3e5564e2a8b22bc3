"""CSV export of the readings in the active view."""

from __future__ import annotations

import csv
import io
from typing import Iterable

from models.readings import Reading

CSV_HEADER = ("timestamp", "date", "time", "temperature", "humidity", "pressure")


def export_csv(readings: Iterable[Reading]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for reading in readings:
        writer.writerow(
            (
                f"{reading.date} {reading.time}",
                reading.date,
                reading.time,
                reading.temperature,
                reading.humidity,
                reading.pressure,
            )
        )
    return buffer.getvalue()
