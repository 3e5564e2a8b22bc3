from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import typer

_METRICS = ("temperature", "humidity", "pressure")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_push(payload: Dict[str, Any]) -> None:
    echo_heading("Snapshot Published")
    echo_key_values(
        [
            ("published", payload.get("published")),
            ("accepted", payload.get("accepted")),
            ("dropped", payload.get("dropped")),
        ]
    )


def render_latest(payload: Optional[Dict[str, Any]]) -> None:
    echo_heading("Current Readings")
    if not payload:
        typer.echo("No readings available.")
        return
    echo_key_values(
        [("date", payload.get("date")), ("time", payload.get("time"))]
        + [(metric, payload.get(metric)) for metric in _METRICS]
    )


def render_series(payload: Dict[str, Any], limit: int = 20) -> None:
    labels: List[str] = payload.get("labels") or []
    echo_heading(f"Series ({payload.get('count', len(labels))} points)")
    if not labels:
        typer.echo("No data points.")
        return
    rows = list(zip(labels, *(payload.get(metric) or [] for metric in _METRICS)))
    if len(rows) > limit:
        typer.echo(f"(showing last {limit})")
        rows = rows[-limit:]
    typer.echo(f"{'label':<12} {'temp':>8} {'hum':>8} {'press':>9}")
    for label, temperature, humidity, pressure in rows:
        typer.echo(f"{label:<12} {temperature:>8.2f} {humidity:>8.2f} {pressure:>9.2f}")


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Summary")
    metrics = payload.get("metrics") or {}
    if not metrics:
        typer.echo("No summary available.")
        return
    for metric, summary in metrics.items():
        typer.echo(
            f"  - {metric}: count={summary.get('count')} min={summary.get('min_value')} "
            f"max={summary.get('max_value')} mean={summary.get('mean_value')}"
        )


def render_filter(payload: Dict[str, Any]) -> None:
    echo_heading("Date Filter")
    if payload.get("active"):
        echo_key_values([("start", payload.get("start")), ("end", payload.get("end"))])
    else:
        typer.echo("No filter active.")


def render_charts(charts: List[Dict[str, Any]]) -> None:
    echo_heading("Charts")
    if not charts:
        typer.echo("No charts mounted.")
        return
    for chart in charts:
        extremes = "full" if chart.get("min") is None else f"{chart.get('min')}..{chart.get('max')}"
        typer.echo(
            f"  - {chart.get('name')}: points={chart.get('point_count')} "
            f"extremes={extremes} tooltip={chart.get('tooltip_index')}"
        )
