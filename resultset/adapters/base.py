"""
Base Adapter Interface

All database adapters implement this interface so resultsets behave the
same on every engine.

DESIGN PRINCIPLES:
-----------------
1. Each adapter owns one DB-API connection
2. Adapters declare the SQL dialect and paramstyle queries must be compiled for
3. execute() returns rows as list of dicts (engine-agnostic)
4. open_cursor() returns a live DB-API cursor for lazy, batched fetching
5. Errors wrapped in AdapterError for consistent handling
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class AdapterError(Exception):
    """Base exception for adapter errors."""

    def __init__(self, message: str, engine: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.engine = engine
        self.original_error = original_error


class ConnectionError(AdapterError):
    """Failed to connect to database."""
    pass


class QueryError(AdapterError):
    """Query execution failed."""
    pass


@dataclass
class AdapterResult:
    """
    Standardized result from statement execution.

    Attributes:
        rows: List of result rows as dicts
        columns: List of column names
        rowcount: Rows returned, or rows affected for UPDATE/DELETE/INSERT
        lastrowid: Row id of the last inserted row, if the driver reports one
        execution_time_ms: Execution time in milliseconds
        engine: Database engine name
        sql: Executed SQL (with placeholders, not values)
        metadata: Additional engine-specific metadata
    """
    rows: List[Dict[str, Any]]
    columns: List[str]
    rowcount: int = -1
    lastrowid: Optional[Any] = None
    execution_time_ms: float = 0.0
    engine: str = ""
    sql: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.columns and self.rowcount < 0:
            self.rowcount = len(self.rows)


class BaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Each adapter must implement:
    - connect(): Establish database connection
    - disconnect(): Close connection
    - execute(): Run a statement and return every row
    - open_cursor(): Run a query and return the live DB-API cursor
    - health_check(): Verify connection is alive

    Usage:
        adapter = SQLiteAdapter({"database": ":memory:"})
        adapter.connect()

        result = adapter.execute(
            sql="SELECT * FROM artist WHERE name = ?",
            params=["Bob"]
        )

        adapter.disconnect()
    """

    # Engine identifier (e.g., "sqlite", "postgres", "duckdb")
    ENGINE: str = "base"

    # QueryCompiler dialect for this engine
    DIALECT: str = "sqlite"

    # DB-API paramstyle the driver accepts
    PARAMSTYLE: str = "qmark"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize adapter with connection configuration.

        Args:
            config: Database-specific configuration dict
                    (host, port, user, password, database, etc.)
        """
        self.config = config
        self._connection = None
        self._connected = False
        self._last_used = None

    @abstractmethod
    def connect(self) -> None:
        """
        Establish connection to database.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """
        Close database connection.

        Should be safe to call even if not connected.
        """
        pass

    @abstractmethod
    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> AdapterResult:
        """
        Execute a statement and return all results.

        Args:
            sql: SQL with placeholders in this adapter's PARAMSTYLE
            params: Parameter values (order matches placeholder positions)

        Returns:
            AdapterResult with rows, columns, and metadata

        Raises:
            QueryError: If execution fails
        """
        pass

    @abstractmethod
    def open_cursor(self, sql: str, params: Optional[Sequence[Any]] = None):
        """
        Execute a query and return the DB-API cursor without fetching.

        The caller owns the cursor and must close it.

        Raises:
            QueryError: If execution fails
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if connection is alive and usable.

        Returns:
            True if connection is healthy, False otherwise
        """
        pass

    def is_connected(self) -> bool:
        """Check if adapter has an active connection."""
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected or self._connection is None:
            raise QueryError(f"Not connected to {self.ENGINE}", engine=self.ENGINE)

    def get_engine_info(self) -> Dict[str, Any]:
        """Get information about this adapter/engine."""
        return {
            "engine": self.ENGINE,
            "dialect": self.DIALECT,
            "paramstyle": self.PARAMSTYLE,
            "connected": self._connected,
            "last_used": self._last_used.isoformat() if self._last_used else None
        }

    def _update_last_used(self):
        """Update last used timestamp."""
        self._last_used = datetime.now(timezone.utc)

    def __enter__(self):
        """Context manager support."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup."""
        self.disconnect()
        return False
