"""Pure helpers reshaping index rows into display records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import PurePath
from typing import Any, Iterable, List, Optional, Set

from zkdash.models import SectionRecord


def resolve_modified_timestamp(record: Iterable[Any], field_index: int) -> List[Any]:
    """Replace the attribute bag at ``field_index`` with its ``mtime`` value.

    The bag is either a mapping or the JSON object text stored by the index.
    Lists are updated in place, other sequences are copied first. A record of
    any other shape is a bug in the query, so this raises instead of
    producing a diagnostic.
    """
    fields = record if isinstance(record, list) else list(record)
    bag = fields[field_index]
    if isinstance(bag, (str, bytes)):
        bag = json.loads(bag)
    if not isinstance(bag, Mapping) or "mtime" not in bag:
        raise ValueError(f"Expected an attribute bag with 'mtime', got {bag!r}")
    mtime = bag["mtime"]
    if isinstance(mtime, bool) or not isinstance(mtime, (int, float)):
        raise TypeError(f"mtime must be a number, got {mtime!r}")
    fields[field_index] = float(mtime)
    return fields


def sort_by_timestamp_descending(records: Iterable[SectionRecord]) -> List[SectionRecord]:
    """Most recent first; equal timestamps keep their order, missing ones go last."""
    return sorted(
        records,
        key=lambda record: (record.timestamp is not None, record.timestamp or 0.0),
        reverse=True,
    )


def truncate_display_title(title: str, max_len: int) -> str:
    return title[:max_len]


def pick_display_name(path: str, title: Optional[str]) -> str:
    """Prefer the note's title on one line, else the file name without its directory."""
    if title:
        collapsed = " ".join(title.split())
        if collapsed:
            return collapsed
    return PurePath(path).name


def flatten_distinct_tags(rows: Iterable[Any]) -> Set[str]:
    tags: Set[str] = set()
    for item in rows:
        if item is None:
            continue
        if isinstance(item, str):
            tags.add(item)
        else:
            tags.update(flatten_distinct_tags(item))
    return tags


def format_grouped_count(n: int) -> str:
    """Group digits by three with dots, e.g. ``1234567 -> '1.234.567'``."""
    return f"{n:,}".replace(",", ".")


def format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")
