"""Core zkdash data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional, Tuple, Union


@dataclass(frozen=True, slots=True)
class NoteFile:
    """Snapshot of one indexed note."""

    path: str
    modified_at: float
    title: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class LinkEdge:
    source: str
    target: str
    kind: str = "file"


@dataclass(frozen=True, slots=True)
class SectionRecord:
    """One display row of a section."""

    timestamp: Optional[float]
    path: str
    display_title: str
    extra: Optional[int] = None


SectionResult = Tuple[SectionRecord, ...]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal query failure attributed to a section."""

    timestamp: datetime
    section: Optional[str]
    message: str


@dataclass(frozen=True, slots=True)
class FileLink:
    path: str


@dataclass(frozen=True, slots=True)
class StatButton:
    """Count button carrying a frozen snapshot for a secondary report."""

    count: int
    title: str
    records: Optional[SectionResult] = None


SpanTarget = Union[FileLink, StatButton]


@dataclass(frozen=True, slots=True)
class InteractiveSpan:
    """Region ``[start, end)`` of a report that responds to activation."""

    start: int
    end: int
    target: SpanTarget

    @property
    def kind(self) -> str:
        if isinstance(self.target, FileLink):
            return "file-link"
        return "stat-button"

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end
