"""Tests for report surfaces and the renderer."""

from __future__ import annotations

import pytest

from zkdash.errors import UsageError
from zkdash.models import FileLink, SectionRecord, StatButton
from zkdash.report.surface import (
    DASHBOARD,
    Renderer,
    ReportSurface,
    SurfaceState,
    render_file_rows,
)


@pytest.fixture
def renderer() -> Renderer:
    return Renderer(ReportSurface("test"))


class TestRenderer:
    """Test writes and span registration."""

    def test_new_surface(self) -> None:
        surface = ReportSurface("test")
        assert surface.kind == DASHBOARD
        assert surface.state == SurfaceState.UNINITIALIZED
        assert surface.text == ""
        assert len(surface) == 0

    def test_write_line(self, renderer: Renderer) -> None:
        renderer.write_line("Title")
        renderer.write_line()
        assert renderer.surface.text == "Title\n\n"

    def test_file_link_span(self, renderer: Renderer) -> None:
        renderer.write("see ")
        span = renderer.write_file_link("/n/a.md", "Note A")

        assert (span.start, span.end) == (4, 10)
        assert span.target == FileLink("/n/a.md")
        assert span.kind == "file-link"
        assert renderer.surface.text[span.start : span.end] == "Note A"

    def test_stat_button_span(self, renderer: Renderer) -> None:
        records = [SectionRecord(1.0, "/n/a.md", "a.md")]
        renderer.write("Orphaned files: ")
        span = renderer.write_stat_button(1234, records, "Orphaned Files")

        assert renderer.surface.text == "Orphaned files: [1.234]"
        assert span.kind == "stat-button"
        assert isinstance(span.target, StatButton)
        assert span.target.records == tuple(records)
        assert span.target.title == "Orphaned Files"

    def test_stat_button_snapshot_is_frozen(self, renderer: Renderer) -> None:
        records = [SectionRecord(1.0, "/n/a.md", "a.md")]
        span = renderer.write_stat_button(1, records, "Orphaned Files")
        records.append(SectionRecord(2.0, "/n/b.md", "b.md"))
        assert len(span.target.records) == 1

    def test_writes_after_finalize_fail(self, renderer: Renderer) -> None:
        renderer.write_line("x")
        renderer.finalize_navigation()

        assert renderer.surface.read_only
        with pytest.raises(UsageError):
            renderer.write_line("y")
        with pytest.raises(UsageError):
            renderer.write_file_link("/n/a.md", "a")

    def test_replace_contents(self, renderer: Renderer) -> None:
        renderer.write_line("old")
        renderer.finalize_navigation()
        renderer.surface.cursor = 2

        staging = Renderer(ReportSurface("staging"))
        staging.write("x ")
        staging.write_file_link("/n/a.md", "a")
        staging.finalize_navigation()
        renderer.surface.replace_contents(staging.surface)

        assert renderer.surface.text == "x a"
        assert [span.target for span in renderer.surface.spans] == [FileLink("/n/a.md")]
        assert renderer.surface.stops == [2]
        assert renderer.surface.read_only
        assert renderer.surface.cursor == 0
        assert renderer.surface.name != "staging"


class TestNavigation:
    """Test cursor movement restricted to interactive spans."""

    @pytest.fixture
    def surface(self, renderer: Renderer) -> ReportSurface:
        renderer.write_line("Header")
        renderer.write_file_link("/n/a.md", "A")
        renderer.write_line()
        renderer.write("Orphaned files: ")
        renderer.write_stat_button(2, [], "Orphaned Files")
        renderer.write_line()
        renderer.write_file_link("/n/b.md", "B")
        renderer.write_line()
        renderer.finalize_navigation()
        return renderer.surface

    def test_stops_are_span_starts(self, surface: ReportSurface) -> None:
        assert surface.stops == [span.start for span in surface.spans]

    def test_goto_first_item(self, surface: ReportSurface) -> None:
        assert surface.goto_first_item() == surface.spans[0].start

    def test_next_and_previous_wrap(self, surface: ReportSurface) -> None:
        starts = [span.start for span in surface.spans]
        surface.goto_first_item()

        assert surface.next_item() == starts[1]
        assert surface.next_item() == starts[2]
        assert surface.next_item() == starts[0]
        assert surface.previous_item() == starts[2]

    def test_next_from_non_stop_position(self, surface: ReportSurface) -> None:
        surface.cursor = 0
        assert surface.next_item() == surface.spans[0].start

    def test_span_at(self, surface: ReportSurface) -> None:
        first = surface.spans[0]
        assert surface.span_at(first.start) == first
        assert surface.span_at(first.end) != first
        assert surface.span_at(0) is None

    def test_no_spans(self) -> None:
        surface = ReportSurface("empty")
        Renderer(surface).write_line("nothing here")
        surface.freeze()

        assert surface.goto_first_item() == 0
        assert surface.next_item() == 0
        assert surface.previous_item() == 0


class TestRenderFileRows:
    """Test the shared row format."""

    def test_rows_with_timestamps(self, renderer: Renderer) -> None:
        records = [SectionRecord(0.0, "/n/a.md", "A"), SectionRecord(60.0, "/n/b.md", "B")]
        render_file_rows(renderer, records)

        lines = renderer.surface.text.splitlines()
        assert len(lines) == 2
        assert lines[0].endswith(" A")
        assert len(lines[0]) == len("YYYY-MM-DD HH:MM A")
        assert [span.target.path for span in renderer.surface.spans] == ["/n/a.md", "/n/b.md"]

    def test_rows_without_timestamp(self, renderer: Renderer) -> None:
        render_file_rows(renderer, [SectionRecord(None, "/n/a.md", "A", extra=3)])
        assert renderer.surface.text == "A\n"
