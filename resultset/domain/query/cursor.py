"""
Lazy Cursor

Wraps a CompiledQuery and an adapter. The statement is sent to the database
only when the first row is asked for; rows are then pulled in batches of
`fetch_size` with DB-API fetchmany().
"""

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional

from resultset.core import config
from resultset.core.logging import trace_statement
from resultset.domain.query.compiler import CompiledQuery

logger = logging.getLogger(__name__)

RowFactory = Callable[[Dict[str, Any]], Any]


class LazyCursor:
    """
    Deferred, forward-only iterator over the rows of a compiled query.

    Usage:
        cursor = LazyCursor(adapter, compiler.compile_select(spec))
        row = cursor.next()        # executes here
        for row in cursor:         # continues where next() stopped
            ...
        cursor.reset()             # next call re-executes
    """

    def __init__(
        self,
        adapter,
        compiled: CompiledQuery,
        row_factory: Optional[RowFactory] = None,
        fetch_size: Optional[int] = None,
    ):
        self.adapter = adapter
        self.compiled = compiled
        self.row_factory = row_factory or dict
        self.fetch_size = fetch_size or config.settings.fetch_size

        self._cursor = None
        self._columns: List[str] = []
        self._buffer: Deque[tuple] = deque()
        self._executed = False
        self._exhausted = False
        self._rows_fetched = 0

    def __repr__(self) -> str:
        state = "exhausted" if self._exhausted else ("open" if self._executed else "pending")
        return f"<LazyCursor {state} rows={self._rows_fetched} sql={self.compiled.sql!r}>"

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def executed(self) -> bool:
        """True once the statement has been sent to the database."""
        return self._executed

    @property
    def rows_fetched(self) -> int:
        return self._rows_fetched

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _execute(self) -> None:
        engine = getattr(self.adapter, "ENGINE", "")
        trace_statement(self.compiled.sql, self.compiled.params, engine)
        self._cursor = self.adapter.open_cursor(self.compiled.sql, self.compiled.params)
        description = self._cursor.description or []
        self._columns = [desc[0] for desc in description]
        self._executed = True
        self._exhausted = False
        self._rows_fetched = 0
        logger.debug(f"Executed {self.compiled.kind} on {engine or 'adapter'}: {self.compiled.sql}")

    def _fill(self) -> None:
        batch = self._cursor.fetchmany(self.fetch_size)
        if batch:
            self._buffer.extend(batch)
        else:
            self._exhausted = True
            self._close_cursor()

    def _close_cursor(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def _materialize(self, raw: tuple) -> Any:
        return self.row_factory(dict(zip(self._columns, raw)))

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def next(self) -> Optional[Any]:
        """Return the next row, or None when the rows are exhausted."""
        if not self._executed:
            self._execute()

        if not self._buffer and not self._exhausted:
            self._fill()

        if not self._buffer:
            return None

        self._rows_fetched += 1
        return self._materialize(self._buffer.popleft())

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        row = self.next()
        if row is None:
            raise StopIteration
        return row

    def all(self) -> List[Any]:
        """Re-execute from the start and return every row."""
        self.reset()
        return list(self)

    def reset(self) -> "LazyCursor":
        """Drop the database cursor; the next row request re-executes."""
        self._close_cursor()
        self._buffer.clear()
        self._executed = False
        self._exhausted = False
        self._rows_fetched = 0
        return self

    def close(self) -> None:
        self.reset()

    def __enter__(self) -> "LazyCursor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
