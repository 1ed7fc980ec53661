"""SQLite access to the zettelkasten note index."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Tuple

from zkdash.models import LinkEdge, NoteFile

SCHEMA_VERSION = 1


class NoteIndex:
    """Connection to the note index maintained by the host application.

    The dashboard only reads from the index. The writer helpers exist so an
    index can be created and populated outside of the host application, for
    instance in tests.
    """

    def __init__(self, db_path: Path, *, read_only: bool = False) -> None:
        self.db_path = Path(db_path)
        self.read_only = read_only
        if read_only:
            if not self.db_path.exists():
                raise FileNotFoundError(f"Index not found: {self.db_path}")
            uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True)
        else:
            self._conn = sqlite3.connect(self.db_path)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def execute(self, query: str, params: Sequence[Any] = ()) -> List[Tuple[Any, ...]]:
        """Run a read query and return its rows as positional tuples."""
        return [tuple(row) for row in self._conn.execute(query, tuple(params)).fetchall()]

    def schema_version(self) -> int:
        return int(self._conn.execute("PRAGMA user_version").fetchone()[0])

    def ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS files (
                    path TEXT PRIMARY KEY,
                    meta TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS titles (
                    path TEXT PRIMARY KEY,
                    title TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tags (
                    path TEXT NOT NULL,
                    tag TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS links (
                    source TEXT NOT NULL,
                    target TEXT NOT NULL,
                    kind TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tags_path ON tags(path)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_links_target ON links(target)")
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def add_note(self, note: NoteFile) -> None:
        """Insert or replace a note together with its title and tags."""
        key = note.path
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO files(path, meta) VALUES (?, ?)",
                (key, json.dumps({"mtime": note.modified_at})),
            )
            conn.execute("DELETE FROM titles WHERE path = ?", (key,))
            if note.title is not None:
                conn.execute(
                    "INSERT INTO titles(path, title) VALUES (?, ?)", (key, note.title)
                )
            conn.execute("DELETE FROM tags WHERE path = ?", (key,))
            conn.executemany(
                "INSERT INTO tags(path, tag) VALUES (?, ?)",
                [(key, tag) for tag in sorted(note.tags)],
            )

    def remove_tag(self, path: str | Path, tag: str) -> int:
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM tags WHERE path = ? AND tag = ?", (str(path), tag)
            )
        return cursor.rowcount

    def add_link(self, edge: LinkEdge) -> None:
        with self.transaction() as conn:
            conn.execute(
                "INSERT INTO links(source, target, kind) VALUES (?, ?, ?)",
                (edge.source, edge.target, edge.kind),
            )
