"""Tests for the query gateway and diagnostic log."""

from __future__ import annotations

import logging
import sqlite3
from unittest.mock import MagicMock

import pytest

from zkdash.index.gateway import DIAGNOSTICS, DiagnosticLog, QueryGateway
from zkdash.index.storage import NoteIndex
from zkdash.models import NoteFile


class TestDiagnosticLog:
    """Test DiagnosticLog bookkeeping."""

    def test_empty(self) -> None:
        log = DiagnosticLog()
        assert not log.has_unseen
        assert log.unseen() == []

    def test_record_sets_unseen(self) -> None:
        log = DiagnosticLog()
        entry = log.record("statistics", "boom")

        assert log.has_unseen
        assert log.unseen() == [entry]
        assert entry.section == "statistics"
        assert entry.message == "boom"

    def test_reset_unseen_keeps_entries(self) -> None:
        log = DiagnosticLog()
        log.record(None, "first")
        log.reset_unseen()

        assert not log.has_unseen
        assert len(log.entries) == 1

        second = log.record("footer", "second")
        assert log.unseen() == [second]

    def test_oldest_entries_dropped(self) -> None:
        log = DiagnosticLog(max_entries=3)
        for number in range(2):
            log.record(None, f"old {number}")
        log.reset_unseen()
        for number in range(3):
            log.record("orphaned_files", f"new {number}")

        assert [entry.message for entry in log.entries] == ["new 0", "new 1", "new 2"]
        assert [entry.message for entry in log.unseen()] == ["new 0", "new 1", "new 2"]

    def test_overflow_keeps_unseen_window(self) -> None:
        log = DiagnosticLog(max_entries=3)
        for number in range(3):
            log.record(None, f"old {number}")
        log.reset_unseen()
        log.record(None, "new")

        assert len(log.entries) == 3
        assert [entry.message for entry in log.unseen()] == ["new"]

    def test_invalid_max_entries(self) -> None:
        with pytest.raises(ValueError):
            DiagnosticLog(max_entries=0)

    def test_clear(self) -> None:
        log = DiagnosticLog()
        log.record(None, "x")
        log.clear()
        assert log.entries == []
        assert not log.has_unseen


class TestQueryGateway:
    """Test QueryGateway.run."""

    def test_returns_rows(self, gateway: QueryGateway, index: NoteIndex) -> None:
        index.add_note(NoteFile("/n/a.md", 1.0))
        assert gateway.run("SELECT path FROM files") == [("/n/a.md",)]

    def test_passes_params(self, gateway: QueryGateway, index: NoteIndex) -> None:
        index.add_note(NoteFile("/n/a.md", 1.0, tags=frozenset({"x"})))
        index.add_note(NoteFile("/n/b.md", 1.0, tags=frozenset({"y"})))
        assert gateway.run("SELECT path FROM tags WHERE tag = ?", ("y",)) == [("/n/b.md",)]

    def test_failure_becomes_diagnostic(
        self,
        gateway: QueryGateway,
        diagnostics: DiagnosticLog,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A broken query returns None and is recorded instead of raised."""
        with caplog.at_level(logging.WARNING, logger="zkdash.index.gateway"):
            result = gateway.run(
                "SELECT nope FROM missing_table WHERE x = ?", (3,), section="statistics"
            )

        assert result is None
        assert diagnostics.has_unseen
        (entry,) = diagnostics.entries
        assert entry.section == "statistics"
        assert "missing_table" in entry.message
        assert "[3]" in entry.message
        assert "Query failed" in caplog.text

    def test_io_errors_become_diagnostics(self, diagnostics: DiagnosticLog) -> None:
        executor = MagicMock()
        executor.execute.side_effect = OSError("disk gone")
        gateway = QueryGateway(executor, diagnostics)

        assert gateway.run("SELECT 1") is None
        assert "disk gone" in diagnostics.entries[0].message
        assert diagnostics.entries[0].section is None

    def test_other_errors_propagate(self, diagnostics: DiagnosticLog) -> None:
        executor = MagicMock()
        executor.execute.side_effect = RuntimeError("bug")
        gateway = QueryGateway(executor, diagnostics)

        with pytest.raises(RuntimeError):
            gateway.run("SELECT 1")
        assert diagnostics.entries == []

    def test_schema_mismatch(self, tmp_path, diagnostics: DiagnosticLog) -> None:
        """An index with an older schema degrades into diagnostics."""
        conn = sqlite3.connect(tmp_path / "old.db")
        conn.execute("CREATE TABLE files (file TEXT)")
        conn.commit()
        conn.close()

        store = NoteIndex(tmp_path / "old.db", read_only=True)
        try:
            gateway = QueryGateway(store, diagnostics)
            assert gateway.run("SELECT path, meta FROM files") is None
        finally:
            store.close()
        assert len(diagnostics.entries) == 1

    def test_defaults_to_process_log(self, index: NoteIndex) -> None:
        assert QueryGateway(index).diagnostics is DIAGNOSTICS
