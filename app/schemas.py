"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from models.readings import DATE_FORMAT


class FeedPushRequest(BaseModel):
    """Full snapshot of raw records to publish to the feed."""

    records: List[Dict[str, Any]] = Field(default_factory=list)


class FeedPushResponse(BaseModel):
    """Outcome of a snapshot publication."""

    published: int = Field(..., ge=0)
    accepted: int = Field(..., ge=0)
    dropped: int = Field(..., ge=0)


class ReadingOut(BaseModel):
    """One normalized sensor reading."""

    date: str
    time: str
    timestamp: Optional[datetime] = None
    temperature: float
    humidity: float
    pressure: float


class SeriesResponse(BaseModel):
    """Index-aligned axis labels and per-metric values for the active view."""

    count: int = Field(..., ge=0)
    labels: List[str] = Field(default_factory=list)
    temperature: List[float] = Field(default_factory=list)
    humidity: List[float] = Field(default_factory=list)
    pressure: List[float] = Field(default_factory=list)


class MetricSummaryOut(BaseModel):
    metric: str
    count: int = Field(..., ge=0)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    mean_value: Optional[float] = None


class SummaryResponse(BaseModel):
    metrics: Dict[str, MetricSummaryOut] = Field(default_factory=dict)


class FilterRequest(BaseModel):
    """Date filter bounds; dates accept ``YYYY-MM-DD`` or ``DD/MM/YYYY``."""

    start: Optional[date] = None
    end: Optional[date] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_day_first(cls, value: Any) -> Any:
        if isinstance(value, str):
            candidate = value.strip()
            if not candidate:
                return None
            try:
                return datetime.strptime(candidate, DATE_FORMAT).date()
            except ValueError:
                return candidate
        return value


class FilterResponse(BaseModel):
    active: bool
    start: Optional[date] = None
    end: Optional[date] = None


class ExtremesRequest(BaseModel):
    """Zoom window over index space; omit both bounds to reset zoom."""

    min: Optional[float] = None
    max: Optional[float] = None


class PointerRequest(BaseModel):
    """Plot-relative pointer coordinates."""

    x: float
    y: float = 0.0


class ChartStateOut(BaseModel):
    name: str
    title: str
    metrics: List[str]
    min: Optional[float] = None
    max: Optional[float] = None
    tooltip_index: Optional[int] = None
    point_count: int = Field(..., ge=0)
