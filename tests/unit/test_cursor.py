"""
Tests for LazyCursor: deferred execution and batched fetching.
"""

import logging

import pytest

from resultset.core import config
from resultset.domain.query.compiler import CompiledQuery, QueryCompiler
from resultset.domain.query.cursor import LazyCursor
from resultset.domain.query.spec import QuerySpec


class RecordingCursor:
    """DB-API cursor stand-in that records fetchmany() sizes."""

    def __init__(self, rows, columns):
        self._rows = list(rows)
        self.description = [(c, None, None, None, None, None, None) for c in columns]
        self.fetch_sizes = []
        self.closed = False

    def fetchmany(self, size):
        self.fetch_sizes.append(size)
        batch, self._rows = self._rows[:size], self._rows[size:]
        return batch

    def close(self):
        self.closed = True


class RecordingAdapter:
    ENGINE = "recording"

    def __init__(self, rows, columns=("id", "name")):
        self.rows = rows
        self.columns = columns
        self.executions = []
        self.cursors = []

    def open_cursor(self, sql, params=None):
        self.executions.append((sql, list(params or [])))
        cursor = RecordingCursor(self.rows, self.columns)
        self.cursors.append(cursor)
        return cursor


@pytest.fixture
def compiled():
    return CompiledQuery(sql='SELECT "id", "name" FROM "artist"', params=())


class TestDeferredExecution:
    """Nothing runs before the first row is requested."""

    def test_construction_does_not_execute(self, compiled):
        adapter = RecordingAdapter([(1, "a")])
        cursor = LazyCursor(adapter, compiled)
        assert adapter.executions == []
        assert not cursor.executed

    def test_next_executes_once(self, compiled):
        adapter = RecordingAdapter([(1, "a"), (2, "b")])
        cursor = LazyCursor(adapter, compiled)
        assert cursor.next() == {"id": 1, "name": "a"}
        assert cursor.next() == {"id": 2, "name": "b"}
        assert cursor.next() is None
        assert len(adapter.executions) == 1
        assert cursor.executed
        assert cursor.rows_fetched == 2

    def test_exhaustion_closes_db_cursor(self, compiled):
        adapter = RecordingAdapter([(1, "a")])
        cursor = LazyCursor(adapter, compiled)
        list(cursor)
        assert adapter.cursors[0].closed

    def test_params_passed_through(self):
        adapter = RecordingAdapter([])
        LazyCursor(adapter, CompiledQuery(sql="SELECT ?", params=(5,))).next()
        assert adapter.executions == [("SELECT ?", [5])]


class TestBatching:
    """Rows are pulled with fetchmany(fetch_size)."""

    def test_fetch_size_respected(self, compiled):
        adapter = RecordingAdapter([(i, str(i)) for i in range(5)])
        cursor = LazyCursor(adapter, compiled, fetch_size=2)
        assert [row["id"] for row in cursor] == [0, 1, 2, 3, 4]
        assert adapter.cursors[0].fetch_sizes == [2, 2, 2, 2]

    def test_fetch_size_defaults_to_settings(self, compiled, monkeypatch):
        monkeypatch.setattr(config.settings, "fetch_size", 3)
        cursor = LazyCursor(RecordingAdapter([]), compiled)
        assert cursor.fetch_size == 3


class TestResetAndAll:
    """reset() / all() / close()."""

    def test_reset_re_executes(self, compiled):
        adapter = RecordingAdapter([(1, "a"), (2, "b")])
        cursor = LazyCursor(adapter, compiled)
        cursor.next()
        cursor.reset()
        assert not cursor.executed
        assert adapter.cursors[0].closed
        assert cursor.next() == {"id": 1, "name": "a"}
        assert len(adapter.executions) == 2

    def test_all_starts_from_beginning(self, compiled):
        adapter = RecordingAdapter([(1, "a"), (2, "b")])
        cursor = LazyCursor(adapter, compiled)
        cursor.next()
        assert [row["id"] for row in cursor.all()] == [1, 2]

    def test_context_manager_closes(self, compiled):
        adapter = RecordingAdapter([(1, "a"), (2, "b")])
        with LazyCursor(adapter, compiled) as cursor:
            cursor.next()
        assert adapter.cursors[0].closed
        assert not cursor.executed

    def test_row_factory(self, compiled):
        adapter = RecordingAdapter([(1, "a")])
        cursor = LazyCursor(adapter, compiled, row_factory=lambda row: (row["id"], row["name"].upper()))
        assert cursor.all() == [(1, "A")]


class TestAgainstSQLite:
    """LazyCursor over a real SQLite adapter."""

    def test_streams_rows(self, sqlite_adapter, music_schema):
        compiled = QueryCompiler("sqlite", schema=music_schema).compile_select(
            QuerySpec(source="album").merge({"year": 2001}, order_by="id")
        )
        cursor = LazyCursor(sqlite_adapter, compiled, fetch_size=1)
        assert cursor.columns == []
        first = cursor.next()
        assert first["title"] == "Forkful of bees"
        assert cursor.columns == ["id", "artist_id", "title", "year", "rank"]
        assert [row["id"] for row in cursor] == [4]

    def test_trace_logging(self, sqlite_adapter, caplog, monkeypatch):
        monkeypatch.setattr(config.settings, "trace", True)
        compiled = CompiledQuery(sql="SELECT ? AS answer", params=(42,))
        with caplog.at_level(logging.INFO, logger="resultset.trace"):
            assert LazyCursor(sqlite_adapter, compiled).next() == {"answer": 42}
        assert any("binds=[42]" in record.getMessage() for record in caplog.records)
