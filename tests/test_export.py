from __future__ import annotations

import csv
import io

from models.readings import Reading
from services.export import export_csv


def test_export_writes_header_and_rows() -> None:
    readings = [
        Reading(date="01/01/2025", time="10:00:00", temperature=21.5, humidity=40.0, pressure=1012.0),
        Reading(date="01/01/2025", time="10:05:00", temperature=0.0, humidity=0.0, pressure=0.0),
    ]

    rows = list(csv.reader(io.StringIO(export_csv(readings))))

    assert rows[0] == ["timestamp", "date", "time", "temperature", "humidity", "pressure"]
    assert rows[1] == ["01/01/2025 10:00:00", "01/01/2025", "10:00:00", "21.5", "40.0", "1012.0"]
    assert len(rows) == 3


def test_export_of_empty_view_is_header_only() -> None:
    assert export_csv([]) == "timestamp,date,time,temperature,humidity,pressure\n"
