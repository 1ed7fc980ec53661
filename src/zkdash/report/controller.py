"""Assembles the dashboard from its sections and handles activation."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from zkdash.config import DashboardConfig
from zkdash.errors import TargetUnavailableError, UsageError
from zkdash.index.gateway import DiagnosticLog, QueryGateway
from zkdash.models import FileLink, StatButton
from zkdash.report.sections import SECTION_PRODUCERS, SectionContext
from zkdash.report.surface import (
    DASHBOARD,
    SECONDARY,
    Renderer,
    ReportSurface,
    SurfaceState,
    render_file_rows,
)
from zkdash.utils.files import open_in_editor, target_exists

LOGGER = logging.getLogger(__name__)

TITLE_LINE = "Zettelkasten Dashboard"


def _ignore(_: object) -> None:
    return None


class ReportController:
    """Owns the report surfaces and runs the section pipeline.

    ``display`` is called with every surface that should be shown to the
    user, ``opener`` (default: :func:`open_in_editor`) with the path of an
    activated file link, and ``on_diagnostics`` with the diagnostic log after
    a refresh that recorded at least one failure.
    """

    def __init__(
        self,
        gateway: QueryGateway,
        config: DashboardConfig | None = None,
        *,
        opener: Optional[Callable[[str], None]] = None,
        display: Callable[[ReportSurface], None] = _ignore,
        on_diagnostics: Callable[[DiagnosticLog], None] = _ignore,
        surfaces: Optional[Dict[str, ReportSurface]] = None,
    ) -> None:
        self.gateway = gateway
        self.config = config or DashboardConfig()
        self.opener = opener
        self.display = display
        self.on_diagnostics = on_diagnostics
        self.surfaces: Dict[str, ReportSurface] = surfaces if surfaces is not None else {}

    @property
    def diagnostics(self) -> DiagnosticLog:
        return self.gateway.diagnostics

    def open(self) -> ReportSurface:
        """Show the dashboard, building it first if it does not exist yet."""
        surface = self.surfaces.get(self.config.buffer_name)
        if surface is None:
            surface = ReportSurface(self.config.buffer_name, DASHBOARD)
            self.refresh(surface)
            self.surfaces[surface.name] = surface
        self.display(surface)
        return surface

    def refresh(self, surface: ReportSurface | None = None) -> ReportSurface:
        if surface is None:
            surface = self.surfaces.get(self.config.buffer_name)
            if surface is None:
                raise UsageError("No dashboard to refresh; open it first")
        if surface.kind != DASHBOARD:
            raise UsageError(f"{surface.name!r} is not a dashboard report")

        self.diagnostics.reset_unseen()
        # ``surface`` is only touched once every section rendered.
        staging = ReportSurface(surface.name, surface.kind)
        renderer = Renderer(staging)
        renderer.write_line(TITLE_LINE)
        renderer.write_line()

        for name in self.config.sections:
            LOGGER.debug("Running section %s", name)
            before = len(staging)
            SECTION_PRODUCERS[name](SectionContext(name, self.gateway, renderer, self.config))
            if len(staging) > before:
                renderer.write_line()

        renderer.finalize_navigation()
        surface.replace_contents(staging)
        surface.goto_first_item()
        surface.state = SurfaceState.READY

        if self.diagnostics.has_unseen:
            LOGGER.info(
                "Dashboard refreshed with %d query failure(s)", len(self.diagnostics.unseen())
            )
            self.on_diagnostics(self.diagnostics)
        return surface

    def activate(
        self, surface: ReportSurface, offset: Optional[int] = None
    ) -> Optional[ReportSurface]:
        """Activate the interactive span at ``offset`` (default: the cursor).

        Returns the secondary surface for stat buttons, ``None`` for file
        links.
        """
        position = surface.cursor if offset is None else offset
        span = surface.span_at(position)
        if span is None:
            raise UsageError(f"No item at position {position}")

        target = span.target
        if isinstance(target, FileLink):
            if not target_exists(target.path):
                raise TargetUnavailableError(target.path)
            (self.opener or open_in_editor)(target.path)
            return None
        if isinstance(target, StatButton):
            if target.records is None:
                raise UsageError(f"Button {target.title!r} has no records attached")
            return self._show_secondary(target)
        raise UsageError(f"Unknown item type: {type(target).__name__}")

    def _show_secondary(self, button: StatButton) -> ReportSurface:
        surface = ReportSurface(self.config.secondary_buffer_name(button.title), SECONDARY)
        renderer = Renderer(surface)
        renderer.write_line(button.title)
        renderer.write_line()
        render_file_rows(renderer, button.records or ())
        renderer.finalize_navigation()
        surface.goto_first_item()
        surface.state = SurfaceState.READY
        self.surfaces[surface.name] = surface
        self.display(surface)
        return surface
