"""Failure-isolating query access to the note index."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from zkdash.models import Diagnostic

LOGGER = logging.getLogger(__name__)

Row = Tuple[Any, ...]


class QueryExecutor(Protocol):
    def execute(self, query: str, params: Sequence[Any] = ()) -> List[Row]: ...


class DiagnosticLog:
    """Log of query failures recorded while building reports.

    ``has_unseen`` is reset at the start of every refresh so the caller can
    tell whether the last run recorded anything. Only the newest
    ``max_entries`` diagnostics are kept.
    """

    def __init__(self, max_entries: int = 500) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.entries: List[Diagnostic] = []
        self._mark = 0

    @property
    def has_unseen(self) -> bool:
        return len(self.entries) > self._mark

    def unseen(self) -> List[Diagnostic]:
        return self.entries[self._mark :]

    def reset_unseen(self) -> None:
        self._mark = len(self.entries)

    def record(self, section: Optional[str], message: str) -> Diagnostic:
        diagnostic = Diagnostic(timestamp=datetime.now(), section=section, message=message)
        self.entries.append(diagnostic)
        overflow = len(self.entries) - self.max_entries
        if overflow > 0:
            del self.entries[:overflow]
            self._mark = max(0, self._mark - overflow)
        return diagnostic

    def clear(self) -> None:
        self.entries.clear()
        self._mark = 0


DIAGNOSTICS = DiagnosticLog()


class QueryGateway:
    """Run read queries, turning failures into diagnostics."""

    def __init__(self, index: QueryExecutor, diagnostics: DiagnosticLog | None = None) -> None:
        self.index = index
        self.diagnostics = diagnostics if diagnostics is not None else DIAGNOSTICS

    def run(
        self,
        query: str,
        params: Sequence[Any] = (),
        *,
        section: str | None = None,
    ) -> Optional[List[Row]]:
        """Return the rows of ``query`` or ``None`` when it failed."""
        try:
            return self.index.execute(query, params)
        except (sqlite3.Error, OSError) as exc:
            message = (
                f"Query failed in section {section or '-'}: {exc}\n"
                f"  query: {' '.join(query.split())}\n"
                f"  params: {list(params)!r}"
            )
            LOGGER.warning(message)
            self.diagnostics.record(section, message)
            return None
