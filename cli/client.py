from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import httpx
import typer

from cli.config import CLIConfig

_FILENAME_PATTERN = re.compile(r'filename="?([^";]+)"?')


@dataclass(frozen=True)
class DownloadedReport:
    filename: str
    content: bytes


class ApiClient:
    """Minimal HTTP client for the report endpoints."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_statistics(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/reports/stats")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        data = payload.get("data")
        if not isinstance(data, dict):
            raise typer.BadParameter("Unexpected response payload when fetching statistics.")
        return data

    def download_xml(self, sections: Optional[Sequence[str]] = None) -> DownloadedReport:
        params = [("sections", name) for name in sections or ()]
        return self._download("/reports/download", "catalogo-libros.xml", params)

    def download_pdf(self) -> DownloadedReport:
        return self._download("/reports/pdf", "catalogo-libros.pdf")

    def _download(
        self, path: str, fallback_name: str, params: Optional[list[tuple[str, str]]] = None
    ) -> DownloadedReport:
        try:
            response = self._client.get(path, params=params or None)
            if response.status_code == 404:
                typer.secho("Nothing to report: the catalog is empty.", fg=typer.colors.YELLOW, err=True)
                raise typer.Exit(code=1)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        disposition = response.headers.get("content-disposition", "")
        match = _FILENAME_PATTERN.search(disposition)
        filename = match.group(1) if match else fallback_name
        return DownloadedReport(filename=filename, content=response.content)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
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
