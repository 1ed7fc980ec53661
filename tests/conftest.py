"""Shared fixtures for zkdash tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from zkdash.index.gateway import DiagnosticLog, QueryGateway
from zkdash.index.storage import NoteIndex
from zkdash.models import NoteFile


@pytest.fixture
def index(tmp_path: Path):
    """Empty note index with the documented schema."""
    store = NoteIndex(tmp_path / "index.db")
    store.ensure_schema()
    yield store
    store.close()


@pytest.fixture
def diagnostics() -> DiagnosticLog:
    return DiagnosticLog()


@pytest.fixture
def gateway(index: NoteIndex, diagnostics: DiagnosticLog) -> QueryGateway:
    return QueryGateway(index, diagnostics)


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "notes"
    directory.mkdir()
    return directory


@pytest.fixture
def make_note(index: NoteIndex, notes_dir: Path):
    """Create a note file on disk and register it in the index."""

    def _make(name: str, mtime: float, *, title: str | None = None, tags=()) -> str:
        path = notes_dir / name
        path.write_text(f"# {name}\n", encoding="utf-8")
        index.add_note(NoteFile(str(path), mtime, title=title, tags=frozenset(tags)))
        return str(path)

    return _make
