"""Dashboard section producers.

Each producer receives a :class:`SectionContext`, queries the index through
the gateway and writes into the context's renderer. A producer whose queries
fail or come back empty writes nothing at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from zkdash import __version__
from zkdash.config import DashboardConfig
from zkdash.index.gateway import QueryGateway, Row
from zkdash.models import SectionRecord
from zkdash.report.surface import Renderer, render_file_rows
from zkdash.utils.rows import (
    flatten_distinct_tags,
    format_grouped_count,
    pick_display_name,
    resolve_modified_timestamp,
    sort_by_timestamp_descending,
    truncate_display_title,
)

FILE_COUNT_QUERY = "SELECT COUNT(*) FROM files"
TAG_VALUES_QUERY = "SELECT DISTINCT tag FROM tags"
FILE_LINKS_QUERY = "SELECT source, kind FROM links WHERE kind = ?"
SCHEMA_VERSION_QUERY = "PRAGMA user_version"

MODIFIED_FILES_QUERY = """
    SELECT f.path, f.meta, t.title
    FROM files f
    LEFT JOIN titles t ON t.path = f.path
    ORDER BY f.rowid
"""

STICKY_FILES_QUERY = """
    SELECT f.path, f.meta, t.title
    FROM files f
    LEFT JOIN titles t ON t.path = f.path
    WHERE f.path IN (SELECT path FROM tags WHERE tag = ?)
    ORDER BY f.rowid
"""

ORPHANED_FILES_QUERY = """
    SELECT f.path, f.meta, t.title
    FROM files f
    LEFT JOIN titles t ON t.path = f.path
    WHERE f.path NOT IN (SELECT source FROM links)
      AND f.path NOT IN (SELECT target FROM links)
    ORDER BY f.rowid
"""

MOST_LINKED_QUERY = """
    SELECT f.path, COUNT(l.target) AS hits, t.title
    FROM files f
    LEFT JOIN links l ON l.target = f.path
    LEFT JOIN titles t ON t.path = f.path
    GROUP BY f.path
    ORDER BY hits DESC, f.rowid
    LIMIT ?
"""

FOOTER_TEXT = "Select an item to open it. Refresh to rebuild this report from the index."
ORPHANS_TITLE = "Orphaned Files"


@dataclass(slots=True)
class SectionContext:
    """Everything a producer needs while it runs."""

    name: str
    gateway: QueryGateway
    renderer: Renderer
    config: DashboardConfig

    def query(self, query: str, params: Sequence[Any] = ()) -> Optional[List[Row]]:
        return self.gateway.run(query, params, section=self.name)


def _file_records(rows: Iterable[Row], config: DashboardConfig) -> List[SectionRecord]:
    """Build time-sorted records from ``(path, meta, title)`` rows."""
    records = []
    for row in rows:
        path, mtime, title = resolve_modified_timestamp(row, 1)
        display = truncate_display_title(pick_display_name(path, title), config.title_max_len)
        records.append(SectionRecord(timestamp=mtime, path=path, display_title=display))
    return sort_by_timestamp_descending(records)


def statistics(ctx: SectionContext) -> None:
    files = ctx.query(FILE_COUNT_QUERY)
    tags = ctx.query(TAG_VALUES_QUERY)
    links = ctx.query(FILE_LINKS_QUERY, ("file",))
    version = ctx.query(SCHEMA_VERSION_QUERY)
    if files is None or tags is None or links is None or version is None:
        return

    file_count = files[0][0] if files else 0
    tag_count = len(flatten_distinct_tags(tags))
    ctx.renderer.write_line(
        f"Files: {format_grouped_count(file_count)}  "
        f"Tags: {format_grouped_count(tag_count)}  "
        f"Links: {format_grouped_count(len(links))}  "
        f"(zkdash {__version__}, index schema v{version[0][0] if version else 0})"
    )


def sticky_pages(ctx: SectionContext) -> None:
    rows = ctx.query(STICKY_FILES_QUERY, (ctx.config.sticky_tag,))
    if not rows:
        return
    ctx.renderer.write_line("Sticky pages:")
    render_file_rows(ctx.renderer, _file_records(rows, ctx.config))


def modified_files(ctx: SectionContext) -> None:
    rows = ctx.query(MODIFIED_FILES_QUERY)
    if not rows:
        return
    records = _file_records(rows, ctx.config)[: ctx.config.modified_limit]
    ctx.renderer.write_line("Last modified files:")
    render_file_rows(ctx.renderer, records)


def orphaned_files(ctx: SectionContext) -> None:
    rows = ctx.query(ORPHANED_FILES_QUERY)
    if not rows:
        return
    records = _file_records(rows, ctx.config)
    ctx.renderer.write("Orphaned files: ")
    ctx.renderer.write_stat_button(len(records), records, ORPHANS_TITLE)
    ctx.renderer.write_line()


def most_linked_files(ctx: SectionContext) -> None:
    rows = ctx.query(MOST_LINKED_QUERY, (ctx.config.linked_limit,))
    if not rows:
        return
    records = [
        SectionRecord(
            timestamp=None,
            path=path,
            display_title=truncate_display_title(
                pick_display_name(path, title), ctx.config.title_max_len
            ),
            extra=hits,
        )
        for path, hits, title in rows
    ]
    ctx.renderer.write_line("Most linked files:")
    render_file_rows(ctx.renderer, records)


def footer(ctx: SectionContext) -> None:
    ctx.renderer.write_line(FOOTER_TEXT)


SectionProducer = Callable[[SectionContext], None]

SECTION_PRODUCERS: Dict[str, SectionProducer] = {
    "statistics": statistics,
    "sticky-pages": sticky_pages,
    "modified-files": modified_files,
    "orphaned-files": orphaned_files,
    "most-linked-files": most_linked_files,
    "footer": footer,
}
