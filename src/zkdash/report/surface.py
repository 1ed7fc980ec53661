"""Report surfaces and the renderer writing into them."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional

from zkdash.errors import UsageError
from zkdash.models import FileLink, InteractiveSpan, SectionRecord, StatButton
from zkdash.utils.rows import format_grouped_count, format_timestamp

DASHBOARD = "dashboard"
SECONDARY = "secondary"


class SurfaceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class ReportSurface:
    """Named append-only text buffer with a list of interactive spans.

    Navigation only stops at the first character of each span once the
    surface has been finalized.
    """

    def __init__(self, name: str, kind: str = DASHBOARD) -> None:
        self.name = name
        self.kind = kind
        self.state = SurfaceState.UNINITIALIZED
        self.read_only = False
        self.cursor = 0
        self.spans: List[InteractiveSpan] = []
        self._parts: List[str] = []
        self._length = 0
        self._stops: List[int] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return self._length

    def replace_contents(self, other: ReportSurface) -> None:
        """Take over the text, spans and navigation stops of ``other``."""
        self._parts = list(other._parts)
        self._length = other._length
        self.spans = list(other.spans)
        self._stops = list(other._stops)
        self.read_only = other.read_only
        self.cursor = 0

    def append(self, text: str) -> int:
        """Append text and return the offset it starts at."""
        if self.read_only:
            raise UsageError(f"Report {self.name!r} is read-only")
        start = self._length
        self._parts.append(text)
        self._length += len(text)
        return start

    def add_span(self, span: InteractiveSpan) -> None:
        if self.read_only:
            raise UsageError(f"Report {self.name!r} is read-only")
        self.spans.append(span)

    def freeze(self) -> None:
        self.read_only = True
        self._stops = sorted(span.start for span in self.spans)

    @property
    def stops(self) -> List[int]:
        return list(self._stops)

    def span_at(self, offset: int) -> Optional[InteractiveSpan]:
        for span in self.spans:
            if span.contains(offset):
                return span
        return None

    def goto_first_item(self) -> int:
        self.cursor = self._stops[0] if self._stops else 0
        return self.cursor

    def next_item(self) -> int:
        if self._stops:
            later = [stop for stop in self._stops if stop > self.cursor]
            self.cursor = later[0] if later else self._stops[0]
        return self.cursor

    def previous_item(self) -> int:
        if self._stops:
            earlier = [stop for stop in self._stops if stop < self.cursor]
            self.cursor = earlier[-1] if earlier else self._stops[-1]
        return self.cursor


class Renderer:
    """Writes text and interactive spans into one surface."""

    def __init__(self, surface: ReportSurface) -> None:
        self.surface = surface

    def write(self, text: str) -> None:
        self.surface.append(text)

    def write_line(self, text: str = "") -> None:
        self.surface.append(text + "\n")

    def write_file_link(self, path: str, display_text: str) -> InteractiveSpan:
        start = self.surface.append(display_text)
        span = InteractiveSpan(start, start + len(display_text), FileLink(path))
        self.surface.add_span(span)
        return span

    def write_stat_button(
        self, count: int, records: Iterable[SectionRecord] | None, title: str
    ) -> InteractiveSpan:
        label = f"[{format_grouped_count(count)}]"
        start = self.surface.append(label)
        snapshot = tuple(records) if records is not None else None
        span = InteractiveSpan(start, start + len(label), StatButton(count, title, snapshot))
        self.surface.add_span(span)
        return span

    def finalize_navigation(self) -> None:
        self.surface.freeze()


def render_file_rows(renderer: Renderer, records: Iterable[SectionRecord]) -> None:
    """Write ``<timestamp> <file-link>`` rows, omitting absent timestamps."""
    for record in records:
        if record.timestamp is not None:
            renderer.write(f"{format_timestamp(record.timestamp)} ")
        renderer.write_file_link(record.path, record.display_title)
        renderer.write_line()
