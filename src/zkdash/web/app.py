"""FastAPI application serving the dashboard."""

from __future__ import annotations

import html
import logging
from contextlib import contextmanager
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from zkdash.config import DashboardConfig
from zkdash.errors import TargetUnavailableError, UsageError
from zkdash.index.gateway import DiagnosticLog, QueryGateway
from zkdash.index.storage import NoteIndex
from zkdash.models import FileLink
from zkdash.report.controller import ReportController
from zkdash.report.surface import ReportSurface

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="zkdash", version="0.1.0")
app.state.db_path = None

# Surfaces and diagnostics outlive a request, keyed by index path. The least
# recently used index is dropped once more than MAX_SESSIONS are open.
MAX_SESSIONS = 8
_SESSIONS: Dict[Path, Tuple[Dict[str, ReportSurface], DiagnosticLog]] = {}


class RefreshPayload(BaseModel):
    db: Path | None = None


class ActivatePayload(BaseModel):
    item: int
    surface: str | None = None
    db: Path | None = None


def _resolve_db_path(db: Path | None) -> Path:
    config = DashboardConfig(db_path=db if db is not None else app.state.db_path)
    return config.resolve_db_path(Path.cwd())


def surface_to_dict(surface: ReportSurface, log: DiagnosticLog | None = None) -> dict[str, Any]:
    items: List[dict[str, Any]] = []
    for number, span in enumerate(surface.spans, start=1):
        item: dict[str, Any] = {
            "number": number,
            "kind": span.kind,
            "start": span.start,
            "end": span.end,
            "label": surface.text[span.start : span.end],
        }
        if isinstance(span.target, FileLink):
            item["path"] = span.target.path
        else:
            item["title"] = span.target.title
            item["count"] = span.target.count
        items.append(item)

    diagnostics = []
    if log is not None:
        diagnostics = [
            {
                "timestamp": entry.timestamp.isoformat(),
                "section": entry.section,
                "message": entry.message,
            }
            for entry in log.unseen()
        ]
    return {
        "name": surface.name,
        "kind": surface.kind,
        "text": surface.text,
        "cursor": surface.cursor,
        "items": items,
        "diagnostics": diagnostics,
    }


def _session(db_path: Path) -> Tuple[Dict[str, ReportSurface], DiagnosticLog]:
    session = _SESSIONS.pop(db_path, None)
    if session is None:
        session = ({}, DiagnosticLog())
    _SESSIONS[db_path] = session
    while len(_SESSIONS) > MAX_SESSIONS:
        evicted = next(iter(_SESSIONS))
        LOGGER.debug("Dropping dashboard session for %s", evicted)
        del _SESSIONS[evicted]
    return session


@contextmanager
def _controller(db: Path | None) -> Iterator[ReportController]:
    resolved_db = _resolve_db_path(db)
    try:
        index = NoteIndex(resolved_db, read_only=True)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Index not found at {resolved_db}")

    surfaces, log = _session(resolved_db)
    config = DashboardConfig(db_path=resolved_db)
    try:
        yield ReportController(QueryGateway(index, log), config, surfaces=surfaces)
    finally:
        index.close()


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _load_template() -> str:
    template = files("zkdash.web").joinpath("templates", "index.html")
    return template.read_text(encoding="utf-8")


@app.get("/", response_class=HTMLResponse)
async def index_page() -> HTMLResponse:
    """Page rendering the dashboard; the report name fills in the title."""
    config = DashboardConfig(db_path=app.state.db_path)
    page = _load_template().replace("{{ report_name }}", html.escape(config.buffer_name))
    return HTMLResponse(content=page)


@app.get("/dashboard")
async def open_dashboard(db: Path | None = None) -> dict[str, Any]:
    with _controller(db) as controller:
        surface = controller.open()
        return surface_to_dict(surface, controller.diagnostics)


@app.post("/dashboard/refresh")
async def refresh_dashboard(payload: RefreshPayload) -> dict[str, Any]:
    with _controller(payload.db) as controller:
        surface = controller.surfaces.get(controller.config.buffer_name)
        if surface is None:
            surface = controller.open()
        else:
            controller.refresh(surface)
        return surface_to_dict(surface, controller.diagnostics)


@app.post("/dashboard/activate")
async def activate_item(payload: ActivatePayload) -> dict[str, Any]:
    with _controller(payload.db) as controller:
        name = payload.surface or controller.config.buffer_name
        surface = controller.surfaces.get(name)
        if surface is None:
            raise HTTPException(status_code=404, detail=f"Report not open: {name}")
        if not 1 <= payload.item <= len(surface.spans):
            raise HTTPException(status_code=400, detail=f"Item {payload.item} does not exist")

        try:
            opened = controller.activate(surface, surface.spans[payload.item - 1].start)
        except TargetUnavailableError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UsageError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OSError as exc:  # pragma: no cover
            LOGGER.error("Unable to open item %d: %s", payload.item, exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    if opened is None:
        return {"status": "ok"}
    return {"status": "ok", "report": surface_to_dict(opened)}
