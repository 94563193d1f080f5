"""
SQLite Adapter for resultset

SQLite is ideal for:
- Local development and testing
- Single-file embedded databases
- Quick prototyping

Features:
- Zero configuration (built into Python)
- In-memory databases
- Read-only mode for safety
- WAL mode for file databases

Requirements:
    None - sqlite3 is included in Python standard library
"""

import os
import time
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence
from pathlib import Path

from resultset.adapters.base import BaseAdapter, AdapterResult, ConnectionError, QueryError

logger = logging.getLogger(__name__)


class SQLiteAdapter(BaseAdapter):
    """
    Adapter for SQLite databases.

    Config options:
        database: Path to SQLite file or ':memory:' (default: ':memory:')
        create: Create the file if it does not exist (default: False)
        read_only: Open in read-only mode (default: False)
        timeout: Busy timeout in seconds (default: 30)
        isolation_level: Transaction isolation (default: None for autocommit)
        check_same_thread: Restrict the connection to its creating thread (default: False)
        journal_mode: WAL, DELETE, TRUNCATE, etc. (default: WAL for files)
        foreign_keys: Enable foreign key constraints (default: True)

    Example:
        adapter = SQLiteAdapter({"database": "/path/to/music.db"})
        adapter.connect()
    """

    ENGINE = "sqlite"
    DIALECT = "sqlite"
    PARAMSTYLE = "qmark"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize SQLite adapter."""
        super().__init__(config or {})

        self.database = str(self.config.get("database", ":memory:"))
        self.is_memory = self.database == ":memory:"

        if not self.is_memory and not self.config.get("create", False):
            if not os.path.exists(self.database):
                raise ConnectionError(
                    f"Database file not found: {self.database}",
                    engine=self.ENGINE
                )

        self.read_only = self.config.get("read_only", False)
        self.timeout = self.config.get("timeout", 30.0)
        self.isolation_level = self.config.get("isolation_level", None)
        self.check_same_thread = self.config.get("check_same_thread", False)
        self.journal_mode = self.config.get("journal_mode", None if self.is_memory else "WAL")
        self.foreign_keys = self.config.get("foreign_keys", True)

    def _get_uri(self) -> str:
        """Build read-only SQLite URI for a file database."""
        path = Path(self.database).absolute()
        return f"file:{path}?mode=ro"

    def connect(self) -> None:
        """Connect to SQLite database."""
        try:
            if self.read_only and not self.is_memory:
                self._connection = sqlite3.connect(
                    self._get_uri(),
                    uri=True,
                    timeout=self.timeout,
                    isolation_level=self.isolation_level,
                    check_same_thread=self.check_same_thread,
                )
            else:
                self._connection = sqlite3.connect(
                    self.database,
                    timeout=self.timeout,
                    isolation_level=self.isolation_level,
                    check_same_thread=self.check_same_thread,
                )

            cursor = self._connection.cursor()
            if self.journal_mode and not self.is_memory and not self.read_only:
                cursor.execute(f"PRAGMA journal_mode = {self.journal_mode}")
            if self.foreign_keys:
                cursor.execute("PRAGMA foreign_keys = ON")
            cursor.execute("SELECT 1")
            cursor.fetchone()
            cursor.close()

            self._connected = True
            logger.info(f"SQLite connected: {self.database}")

        except sqlite3.Error as e:
            raise ConnectionError(
                f"Failed to connect to SQLite: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def disconnect(self) -> None:
        """Close SQLite connection."""
        try:
            if self._connection:
                self._connection.close()
        except sqlite3.Error as e:
            logger.warning(f"Error closing SQLite connection: {e}")
        finally:
            self._connection = None
            self._connected = False

    def open_cursor(self, sql: str, params: Optional[Sequence[Any]] = None):
        """Execute `sql` and hand back the cursor unfetched."""
        self._require_connection()
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, list(params or []))
        except sqlite3.Error as e:
            cursor.close()
            raise QueryError(
                f"SQLite query failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
        self._update_last_used()
        return cursor

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> AdapterResult:
        """Execute a statement on SQLite."""
        start_time = time.perf_counter()
        cursor = self.open_cursor(sql, params)

        try:
            if cursor.description:
                columns = [desc[0] for desc in cursor.description]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
                rowcount = len(rows)
            else:
                columns, rows = [], []
                rowcount = cursor.rowcount
            lastrowid = cursor.lastrowid
        except sqlite3.Error as e:
            raise QueryError(
                f"SQLite query failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
        finally:
            cursor.close()

        execution_time_ms = (time.perf_counter() - start_time) * 1000

        return AdapterResult(
            rows=rows,
            columns=columns,
            rowcount=rowcount,
            lastrowid=lastrowid,
            execution_time_ms=execution_time_ms,
            engine=self.ENGINE,
            sql=sql,
            metadata={"database": self.database}
        )

    def execute_script(self, script: str) -> None:
        """Run several ;-separated statements, e.g. DDL and seed data."""
        self._require_connection()
        try:
            self._connection.executescript(script)
        except sqlite3.Error as e:
            raise QueryError(
                f"SQLite script failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def health_check(self) -> bool:
        """Check SQLite connection health."""
        try:
            if not self._connected or not self._connection:
                return False
            cursor = self._connection.cursor()
            cursor.execute("SELECT 1")
            result = cursor.fetchone()
            cursor.close()
            return result[0] == 1
        except sqlite3.Error:
            return False

    def get_tables(self) -> List[str]:
        """List user tables in the database."""
        result = self.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row["name"] for row in result.rows]
