"""
Database Adapters for resultset

Each adapter handles:
- Connection management
- Statement execution
- Lazy cursors for streaming rows
- Declaring the SQL dialect and paramstyle its driver expects

Supported Engines:
- SQLite (built-in, zero dependencies)
- DuckDB
- PostgreSQL (optional, needs psycopg2)
"""

from resultset.adapters.base import (
    BaseAdapter,
    AdapterError,
    AdapterResult,
    ConnectionError,
    QueryError,
)
from resultset.adapters.duckdb_adapter import DuckDBAdapter
from resultset.adapters.postgres_adapter import PostgresAdapter
from resultset.adapters.sqlite_adapter import SQLiteAdapter
from resultset.adapters.factory import (
    adapter_from_url,
    get_adapter,
    is_engine_supported,
    list_adapters,
    parse_database_url,
    register_adapter,
)

__all__ = [
    "BaseAdapter",
    "AdapterError",
    "AdapterResult",
    "ConnectionError",
    "QueryError",
    "SQLiteAdapter",
    "DuckDBAdapter",
    "PostgresAdapter",
    "adapter_from_url",
    "get_adapter",
    "is_engine_supported",
    "list_adapters",
    "parse_database_url",
    "register_adapter",
]
