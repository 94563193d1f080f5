"""
PostgreSQL Adapter for resultset

Features:
- SSL support
- Autocommit by default, so update()/delete()/create() persist immediately
- With autocommit off, execute() commits each statement once it succeeds and
  rolls back on failure; lazy cursors stay inside the open transaction
- Lazy cursors stream through psycopg2's client-side fetchmany

Requirements:
    pip install resultset[postgres]
"""

import time
import logging
from typing import Any, Dict, Optional, Sequence

try:
    import psycopg2
    PSYCOPG2_AVAILABLE = True
except ImportError:
    PSYCOPG2_AVAILABLE = False
    psycopg2 = None

from resultset.adapters.base import BaseAdapter, AdapterResult, ConnectionError, QueryError

logger = logging.getLogger(__name__)


class PostgresAdapter(BaseAdapter):
    """
    Adapter for PostgreSQL database.

    Config options:
        host: Database host (required)
        port: Database port (default: 5432)
        database: Database name (required)
        user: Username (required)
        password: Password (required)
        sslmode: SSL mode (default: prefer)
        connect_timeout: Connection timeout in seconds (default: 10)
        autocommit: Use driver autocommit (default: True); when False,
            execute() commits after each successful statement

    Example:
        adapter = PostgresAdapter({
            "host": "localhost",
            "database": "music",
            "user": "readonly",
            "password": "secret"
        })
        adapter.connect()
        result = adapter.execute("SELECT * FROM artist WHERE name = %s", ["Bob"])
    """

    ENGINE = "postgres"
    DIALECT = "postgres"
    PARAMSTYLE = "format"

    def __init__(self, config: Dict[str, Any]):
        """Initialize PostgreSQL adapter."""
        super().__init__(config)

        if not PSYCOPG2_AVAILABLE:
            raise ConnectionError(
                "psycopg2 not installed. Run: pip install resultset[postgres]",
                engine=self.ENGINE
            )

        required = ["host", "database", "user", "password"]
        missing = [k for k in required if k not in config]
        if missing:
            raise ConnectionError(
                f"Missing required config: {', '.join(missing)}",
                engine=self.ENGINE
            )

        self.host = config["host"]
        self.port = config.get("port", 5432)
        self.database = config["database"]
        self.user = config["user"]
        self.password = config["password"]
        self.sslmode = config.get("sslmode", "prefer")
        self.connect_timeout = config.get("connect_timeout", 10)
        self.autocommit = config.get("autocommit", True)

    def connect(self) -> None:
        """Connect to PostgreSQL database."""
        try:
            self._connection = psycopg2.connect(
                host=self.host,
                port=self.port,
                dbname=self.database,
                user=self.user,
                password=self.password,
                sslmode=self.sslmode,
                connect_timeout=self.connect_timeout
            )
            self._connection.autocommit = self.autocommit

            self._connected = True
            logger.info(f"PostgreSQL connected: {self.host}:{self.port}/{self.database}")

        except psycopg2.Error as e:
            raise ConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def disconnect(self) -> None:
        """Close PostgreSQL connection."""
        try:
            if self._connection:
                self._connection.close()
        except psycopg2.Error as e:
            logger.warning(f"Error closing PostgreSQL connection: {e}")
        finally:
            self._connection = None
            self._connected = False

    def _rollback(self) -> None:
        if self.autocommit or self._connection is None:
            return
        try:
            self._connection.rollback()
        except psycopg2.Error as e:
            logger.warning(f"PostgreSQL rollback failed: {e}")

    def _commit(self) -> None:
        if self.autocommit:
            return
        try:
            self._connection.commit()
        except psycopg2.Error as e:
            self._rollback()
            raise QueryError(
                f"PostgreSQL commit failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def open_cursor(self, sql: str, params: Optional[Sequence[Any]] = None):
        """Execute `sql` (format paramstyle) and return the cursor unfetched."""
        self._require_connection()
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, tuple(params or ()))
        except psycopg2.Error as e:
            cursor.close()
            self._rollback()
            raise QueryError(
                f"PostgreSQL query failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
        self._update_last_used()
        return cursor

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> AdapterResult:
        """Execute SQL on PostgreSQL."""
        start_time = time.perf_counter()
        cursor = self.open_cursor(sql, params)

        try:
            columns = [desc[0] for desc in cursor.description] if cursor.description else []
            data = cursor.fetchall() if cursor.description else []
            rows = [dict(zip(columns, row)) for row in data]
            rowcount = len(rows) if columns else cursor.rowcount
        except psycopg2.Error as e:
            self._rollback()
            raise QueryError(
                f"PostgreSQL query failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
        finally:
            cursor.close()

        self._commit()
        execution_time = (time.perf_counter() - start_time) * 1000

        return AdapterResult(
            rows=rows,
            columns=columns,
            rowcount=rowcount,
            execution_time_ms=execution_time,
            engine=self.ENGINE,
            sql=sql,
            metadata={
                "host": self.host,
                "database": self.database
            }
        )

    def health_check(self) -> bool:
        """Check PostgreSQL connection health."""
        if not self._connected or self._connection is None:
            return False

        try:
            with self._connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return True
        except psycopg2.Error:
            return False
