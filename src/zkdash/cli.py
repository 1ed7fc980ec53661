"""Command line interface for zkdash."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from zkdash.config import DEFAULT_SECTIONS, DashboardConfig
from zkdash.errors import DashboardError
from zkdash.index.gateway import DiagnosticLog, QueryGateway
from zkdash.index.storage import NoteIndex
from zkdash.models import FileLink
from zkdash.report.controller import ReportController
from zkdash.report.surface import ReportSurface
from zkdash.web.app import app as web_app

console = Console()
app = typer.Typer(help="zkdash - dashboard for a zettelkasten note index")

SPAN_STYLES = {"file-link": "underline cyan", "stat-button": "bold magenta"}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _print_surface(surface: ReportSurface) -> None:
    text = Text(surface.text)
    for span in surface.spans:
        text.stylize(SPAN_STYLES[span.kind], span.start, span.end)
    console.rule(f"[bold]{surface.name}[/bold]")
    console.print(text, end="")

    if not surface.spans:
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Item")
    table.add_column("Target")
    for number, span in enumerate(surface.spans, start=1):
        label = surface.text[span.start : span.end]
        if isinstance(span.target, FileLink):
            table.add_row(str(number), Text(label), Text(span.target.path))
        else:
            table.add_row(str(number), Text(label), Text(span.target.title))
    console.print(table)


def _print_diagnostics(log: DiagnosticLog) -> None:
    table = Table(show_header=True, header_style="bold yellow", title="Query failures")
    table.add_column("Time", no_wrap=True)
    table.add_column("Section", no_wrap=True)
    table.add_column("Message")
    for diagnostic in log.unseen():
        table.add_row(
            diagnostic.timestamp.strftime("%H:%M:%S"),
            diagnostic.section or "-",
            Text(diagnostic.message),
        )
    console.print(table)


def _build_config(
    db: Optional[Path],
    sections: Optional[List[str]],
    sticky_tag: str,
    limit: int,
) -> DashboardConfig:
    try:
        config = DashboardConfig(
            db_path=db,
            sections=tuple(sections) if sections else DEFAULT_SECTIONS,
            sticky_tag=sticky_tag,
            modified_limit=limit,
            linked_limit=limit,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    config.db_path = config.resolve_db_path(Path.cwd())
    return config


def _open_index(config: DashboardConfig) -> NoteIndex:
    try:
        return NoteIndex(config.db_path, read_only=True)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Index not found: {config.db_path}") from exc


@app.command()
def show(
    db: Path = typer.Option(None, "--db", help="SQLite note index path"),
    section: List[str] = typer.Option(None, "--section", "-s", help="Sections to show, in order"),
    sticky_tag: str = typer.Option("Dashboard", help="Tag marking sticky pages"),
    limit: int = typer.Option(10, help="Rows in the modified and most linked lists"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Build the dashboard and print it."""
    _setup_logging(verbose)
    config = _build_config(db, section, sticky_tag, limit)
    index = _open_index(config)
    try:
        controller = ReportController(
            QueryGateway(index, DiagnosticLog()),
            config,
            display=_print_surface,
            on_diagnostics=_print_diagnostics,
        )
        controller.open()
    finally:
        index.close()


@app.command()
def activate(
    items: List[int] = typer.Argument(
        ..., help="Item numbers to activate; later numbers apply to the report opened before"
    ),
    db: Path = typer.Option(None, "--db", help="SQLite note index path"),
    sticky_tag: str = typer.Option("Dashboard", help="Tag marking sticky pages"),
    limit: int = typer.Option(10, help="Rows in the modified and most linked lists"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Open the file or sub-report behind a numbered dashboard item."""
    _setup_logging(verbose)
    config = _build_config(db, None, sticky_tag, limit)
    index = _open_index(config)
    try:
        controller = ReportController(
            QueryGateway(index, DiagnosticLog()),
            config,
            display=_print_surface,
            on_diagnostics=_print_diagnostics,
        )
        surface: Optional[ReportSurface] = controller.open()
        for number in items:
            if surface is None:
                raise typer.BadParameter("A file was opened; no report left to select from")
            if not 1 <= number <= len(surface.spans):
                raise typer.BadParameter(
                    f"Item {number} does not exist in {surface.name!r} "
                    f"(1-{len(surface.spans)})"
                )
            surface = controller.activate(surface, surface.spans[number - 1].start)
    except DashboardError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        index.close()


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite note index path"),
) -> None:
    """Serve the dashboard over HTTP."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = DashboardConfig(db_path=db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        console.print("[yellow]Warning: index not found, the dashboard will fail to load.[/yellow]")
    web_app.state.db_path = resolved_db

    console.print(f"Starting dashboard on http://{host}:{port} (index: {resolved_db})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
