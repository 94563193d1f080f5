"""
DuckDB Adapter for resultset

DuckDB is an embedded analytical database, perfect for:
- Local development and demos
- Testing without infrastructure
- Aggregate-heavy resultsets (group_by / having / get_column)

Connection modes:
- In-memory (default): Fast, ephemeral
- File-based: Persistent, shareable
"""

import time
import logging
from typing import Any, Dict, Optional, Sequence

import duckdb

from resultset.adapters.base import BaseAdapter, AdapterResult, ConnectionError, QueryError

logger = logging.getLogger(__name__)

_DML_PREFIXES = ("INSERT", "UPDATE", "DELETE")


class DuckDBAdapter(BaseAdapter):
    """
    Adapter for DuckDB embedded database.

    Config options:
        database: Path to database file, or ":memory:" (default)
        read_only: Open in read-only mode (default: False)

    Example:
        adapter = DuckDBAdapter({"database": ":memory:"})
        adapter.connect()
        result = adapter.execute("SELECT 1 + 1 AS answer")
    """

    ENGINE = "duckdb"
    DIALECT = "duckdb"
    PARAMSTYLE = "qmark"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize DuckDB adapter."""
        super().__init__(config or {})

        self.database = str(self.config.get("database", ":memory:"))
        self.read_only = self.config.get("read_only", False)

    def connect(self) -> None:
        """Connect to DuckDB database."""
        try:
            self._connection = duckdb.connect(
                database=self.database,
                read_only=self.read_only
            )
            self._connected = True
            logger.info(f"DuckDB connected: {self.database}")
        except duckdb.Error as e:
            raise ConnectionError(
                f"Failed to connect to DuckDB: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def disconnect(self) -> None:
        """Close DuckDB connection."""
        if self._connection:
            try:
                self._connection.close()
            except duckdb.Error as e:
                logger.warning(f"Error closing DuckDB connection: {e}")
            finally:
                self._connection = None
                self._connected = False

    def open_cursor(self, sql: str, params: Optional[Sequence[Any]] = None):
        """
        Execute `sql` on a fresh cursor of this connection.

        DuckDB cursors share the parent's database, so each lazy cursor can
        stream independently of other queries on the adapter.
        """
        self._require_connection()
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, list(params or []))
        except duckdb.Error as e:
            cursor.close()
            raise QueryError(
                f"DuckDB query failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
        self._update_last_used()
        return cursor

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> AdapterResult:
        """
        Execute SQL on DuckDB.

        DuckDB reports affected rows for INSERT/UPDATE/DELETE as a single
        "Count" row; that value becomes AdapterResult.rowcount.
        """
        start_time = time.perf_counter()
        cursor = self.open_cursor(sql, params)

        try:
            columns = [desc[0] for desc in cursor.description] if cursor.description else []
            raw_rows = cursor.fetchall() if columns else []
        except duckdb.Error as e:
            raise QueryError(
                f"DuckDB query failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
        finally:
            cursor.close()

        if sql.lstrip().upper().startswith(_DML_PREFIXES):
            rowcount = int(raw_rows[0][0]) if raw_rows else 0
            columns, rows = [], []
        else:
            rows = [dict(zip(columns, row)) for row in raw_rows]
            rowcount = len(rows)

        execution_time = (time.perf_counter() - start_time) * 1000

        return AdapterResult(
            rows=rows,
            columns=columns,
            rowcount=rowcount,
            execution_time_ms=execution_time,
            engine=self.ENGINE,
            sql=sql,
            metadata={"database": self.database}
        )

    def health_check(self) -> bool:
        """Check DuckDB connection health."""
        if not self._connected or not self._connection:
            return False

        try:
            self._connection.execute("SELECT 1").fetchone()
            return True
        except duckdb.Error:
            return False

    def execute_script(self, script: str) -> None:
        """
        Execute multiple SQL statements (for setup/seeding).
        """
        self._require_connection()

        try:
            self._connection.execute(script)
        except duckdb.Error as e:
            raise QueryError(
                f"DuckDB script execution failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
