"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.schemas import (
    ChartStateOut,
    ExtremesRequest,
    FeedPushRequest,
    FeedPushResponse,
    FilterRequest,
    FilterResponse,
    MetricSummaryOut,
    PointerRequest,
    ReadingOut,
    SeriesResponse,
    SummaryResponse,
)
from services.dashboard import Dashboard, build_default_dashboard
from services.store import IncompleteFilter
from storage.mock_feed import MockReadingFeed, build_default_feed

router = APIRouter()


def get_dashboard() -> Dashboard:
    dashboard = build_default_dashboard()
    dashboard.mount()
    return dashboard


def get_feed() -> MockReadingFeed:
    return build_default_feed()


def _filter_response(dashboard: Dashboard) -> FilterResponse:
    active = dashboard.active_filter
    if active is None:
        return FilterResponse(active=False)
    return FilterResponse(active=True, start=active.start, end=active.end)


def _chart_states(dashboard: Dashboard) -> list[ChartStateOut]:
    states = []
    for state in dashboard.chart_states():
        low, high = state.extremes if state.extremes is not None else (None, None)
        states.append(
            ChartStateOut(
                name=state.name,
                title=state.title,
                metrics=list(state.metrics),
                min=low,
                max=high,
                tooltip_index=state.tooltip_index,
                point_count=state.point_count,
            )
        )
    return states


def _lookup_view(dashboard: Dashboard, name: str) -> None:
    try:
        dashboard.view(name)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Chart view {name!r} not found.",
        ) from exc


@router.post(
    "/feed",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=FeedPushResponse,
    summary="Publish a full snapshot of sensor readings to the feed.",
)
def push_snapshot(
    payload: FeedPushRequest,
    feed: MockReadingFeed = Depends(get_feed),
    dashboard: Dashboard = Depends(get_dashboard),
) -> FeedPushResponse:
    with feed.delivery_lock:
        published = feed.publish(payload.records)
        stats = dashboard.ingestion_stats
        accepted, dropped = stats.accepted, stats.dropped
    return FeedPushResponse(published=published, accepted=accepted, dropped=dropped)


@router.get(
    "/readings/series",
    response_model=SeriesResponse,
    summary="Axis labels and per-metric values for the active view.",
)
def get_series(dashboard: Dashboard = Depends(get_dashboard)) -> SeriesResponse:
    series = dashboard.series()
    return SeriesResponse(
        count=len(series),
        labels=list(series.labels),
        temperature=list(series.temperature),
        humidity=list(series.humidity),
        pressure=list(series.pressure),
    )


@router.get(
    "/readings/latest",
    response_model=ReadingOut,
    summary="Most recent reading in the active view.",
)
def get_latest(dashboard: Dashboard = Depends(get_dashboard)) -> ReadingOut:
    reading = dashboard.latest()
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No readings available.",
        )
    return ReadingOut(
        date=reading.date,
        time=reading.time,
        timestamp=reading.timestamp,
        temperature=reading.temperature,
        humidity=reading.humidity,
        pressure=reading.pressure,
    )


@router.get(
    "/readings/summary",
    response_model=SummaryResponse,
    summary="Per-metric count, min, max and mean for the active view.",
)
def get_summary(dashboard: Dashboard = Depends(get_dashboard)) -> SummaryResponse:
    summaries = dashboard.summary()
    return SummaryResponse(
        metrics={
            metric: MetricSummaryOut(
                metric=metric,
                count=summary.count,
                min_value=summary.min_value,
                max_value=summary.max_value,
                mean_value=summary.mean_value,
            )
            for metric, summary in summaries.items()
        }
    )


@router.get(
    "/readings/export.csv",
    summary="Download the active view as CSV.",
    response_class=Response,
)
def export_readings(dashboard: Dashboard = Depends(get_dashboard)) -> Response:
    return Response(
        content=dashboard.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="readings.csv"'},
    )


@router.get("/filter", response_model=FilterResponse, summary="Active date filter.")
def get_filter(dashboard: Dashboard = Depends(get_dashboard)) -> FilterResponse:
    return _filter_response(dashboard)


@router.put("/filter", response_model=FilterResponse, summary="Activate a date filter.")
def put_filter(
    payload: FilterRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> FilterResponse:
    try:
        dashboard.set_filter(payload.start, payload.end)
    except IncompleteFilter as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return _filter_response(dashboard)


@router.delete("/filter", response_model=FilterResponse, summary="Clear the date filter.")
def delete_filter(dashboard: Dashboard = Depends(get_dashboard)) -> FilterResponse:
    dashboard.reset_filter()
    return _filter_response(dashboard)


@router.get("/charts", response_model=list[ChartStateOut], summary="State of every chart view.")
def list_charts(dashboard: Dashboard = Depends(get_dashboard)) -> list[ChartStateOut]:
    return _chart_states(dashboard)


@router.post(
    "/charts/{name}/extremes",
    response_model=list[ChartStateOut],
    summary="Zoom one chart; omit both bounds to reset zoom on every chart.",
)
def set_chart_extremes(
    name: str,
    payload: ExtremesRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> list[ChartStateOut]:
    _lookup_view(dashboard, name)
    try:
        dashboard.zoom(name, payload.min, payload.max)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return _chart_states(dashboard)


@router.post(
    "/charts/{name}/pointer",
    response_model=list[ChartStateOut],
    summary="Move the pointer over one chart.",
)
def move_pointer(
    name: str,
    payload: PointerRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> list[ChartStateOut]:
    _lookup_view(dashboard, name)
    dashboard.pointer_move(name, payload.x, payload.y)
    return _chart_states(dashboard)


@router.post(
    "/charts/{name}/pointer-leave",
    response_model=list[ChartStateOut],
    summary="Move the pointer off one chart.",
)
def leave_pointer(
    name: str,
    dashboard: Dashboard = Depends(get_dashboard),
) -> list[ChartStateOut]:
    _lookup_view(dashboard, name)
    dashboard.pointer_leave(name)
    return _chart_states(dashboard)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
