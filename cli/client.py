from __future__ import annotations

import csv
import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Read raw records from a ``.json`` array/object or a CSV with a header row."""
    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"File {path} is not valid JSON: {exc}") from exc
        if isinstance(payload, dict):
            payload = payload.get("records", [])
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise typer.BadParameter(f"File {path} must hold a list of reading objects.")
        return payload

    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise typer.BadParameter(f"File {path} is missing a header row.")
        return [
            {key.strip().lower(): value for key, value in row.items() if key is not None}
            for row in reader
        ]


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def push_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise typer.BadParameter(f"File {path} does not exist.")
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")
        return self.push_records(load_records(path))

    def push_records(self, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("POST", "/feed", json={"records": records}).json()

    def get_latest(self) -> Optional[Dict[str, Any]]:
        try:
            response = self._client.get("/readings/latest")
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def get_series(self) -> Dict[str, Any]:
        return self._request("GET", "/readings/series").json()

    def get_summary(self) -> Dict[str, Any]:
        return self._request("GET", "/readings/summary").json()

    def export_csv(self) -> str:
        return self._request("GET", "/readings/export.csv").text

    def set_filter(self, start: date, end: date) -> Dict[str, Any]:
        body = {"start": start.isoformat(), "end": end.isoformat()}
        return self._request("PUT", "/filter", json=body).json()

    def clear_filter(self) -> Dict[str, Any]:
        return self._request("DELETE", "/filter").json()

    def list_charts(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/charts").json()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
