from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from cli.client import ApiClient, DownloadedReport
from cli.config import CLIConfig, load_config
from cli.render import render_statistics


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for fetching catalog reports from the report service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _save(report: DownloadedReport, output: Optional[Path]) -> Path:
    target = output or Path(report.filename)
    if target.is_dir():
        target = target / report.filename
    target.write_bytes(report.content)
    typer.secho(f"Saved {target} ({len(report.content)} bytes).", fg=typer.colors.GREEN)
    return target


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Report API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for a report before giving up.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Print catalog statistics."""
    state = _get_state(ctx)
    data = state.client.get_statistics()
    render_statistics(data)


@app.command("xml")
def xml_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="File or directory to write to (defaults to the server-provided filename).",
    ),
    sections: Optional[List[str]] = typer.Option(
        None,
        "--section",
        "-s",
        help="Only include the given section; repeat for several.",
    ),
) -> None:
    """Download the XML catalog report."""
    state = _get_state(ctx)
    typer.echo(f"Requesting XML report from {state.config.base_url} ...")
    report = state.client.download_xml(sections=sections)
    _save(report, output)


@app.command("pdf")
def pdf_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="File or directory to write to (defaults to the server-provided filename).",
    ),
) -> None:
    """Download the PDF catalog report."""
    state = _get_state(ctx)
    typer.echo(f"Requesting PDF report from {state.config.base_url} ...")
    report = state.client.download_pdf()
    _save(report, output)
