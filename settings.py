from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_FEED_NAME_ENV = "SENSOR_FEED_NAME"
_FEED_PATH_ENV = "SENSOR_FEED_PERSISTENCE_PATH"
_PLOT_WIDTH_ENV = "CHART_PLOT_WIDTH"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    feed_name: str
    feed_persistence_path: Optional[str]
    plot_width: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        feed_name=_read_str_env(_FEED_NAME_ENV, "sensor-readings"),
        feed_persistence_path=_read_optional_env(_FEED_PATH_ENV, "./tmp/feed.json"),
        plot_width=_read_positive_int(_PLOT_WIDTH_ENV, 800),
        log_level=_read_log_level("INFO"),
    )
