from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_charts,
    render_filter,
    render_latest,
    render_push,
    render_series,
    render_summary,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the synced sensor dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _parse_day(value: str) -> date:
    candidate = value.strip()
    for fmt in ("%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue
    raise typer.BadParameter(f"{value!r} is not a DD/MM/YYYY or YYYY-MM-DD date.")


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("push")
def push_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV or JSON file of readings."),
) -> None:
    """Publish a file of readings as the feed's new full snapshot."""
    state = _get_state(ctx)
    typer.echo(f"Publishing {file} to {state.config.base_url} ...")
    payload = state.client.push_file(file)
    render_push(payload)
    if payload.get("dropped"):
        typer.secho(f"{payload['dropped']} malformed record(s) were dropped.", fg=typer.colors.YELLOW)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent reading in the active view."""
    state = _get_state(ctx)
    render_latest(state.client.get_latest())


@app.command("series")
def series_command(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of trailing points to print."),
) -> None:
    """Print the derived per-metric series."""
    state = _get_state(ctx)
    render_series(state.client.get_series(), limit=limit)


@app.command("summary")
def summary_command(ctx: typer.Context) -> None:
    """Show per-metric statistics for the active view."""
    state = _get_state(ctx)
    render_summary(state.client.get_summary())


@app.command("filter")
def filter_command(
    ctx: typer.Context,
    start: str = typer.Argument(..., help="First day to include (DD/MM/YYYY or YYYY-MM-DD)."),
    end: str = typer.Argument(..., help="Last day to include (DD/MM/YYYY or YYYY-MM-DD)."),
) -> None:
    """Restrict every view to a range of whole days."""
    state = _get_state(ctx)
    render_filter(state.client.set_filter(_parse_day(start), _parse_day(end)))


@app.command("clear-filter")
def clear_filter_command(ctx: typer.Context) -> None:
    """Remove the active date filter."""
    state = _get_state(ctx)
    render_filter(state.client.clear_filter())


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", dir_okay=False, help="Write CSV here instead of stdout."),
) -> None:
    """Export the active view as CSV."""
    state = _get_state(ctx)
    content = state.client.export_csv()
    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    typer.secho(f"Wrote {output}", fg=typer.colors.GREEN)


@app.command("charts")
def charts_command(ctx: typer.Context) -> None:
    """Show zoom and tooltip state of every chart view."""
    state = _get_state(ctx)
    render_charts(state.client.list_charts())
