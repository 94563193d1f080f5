"""
resultset

Deferred, composable query specifications for relational databases.

Example:
    from resultset import Schema, SQLiteAdapter, literal

    schema = Schema(adapter=SQLiteAdapter({"database": "music.db"}))
    schema.define("artist", ["id", "name"], primary_key="id").has_many(
        "albums", "album", on={"artist_id": "id"}
    )
    schema.define("album", ["id", "artist_id", "title", "year"], primary_key="id")

    artists = schema.resultset("artist").search(
        {"albums.year": {"gte": 1990}}, join="albums", distinct=True
    )
    print(artists.as_sql().sql)     # nothing executed yet
    for artist in artists:          # executes here
        print(artist["name"])
"""

__version__ = "0.1.0"

from resultset.errors import ErrorCode, ResultSetError
from resultset.domain.schema import Relationship, Schema, Table, load_schema, schema_from_dict
from resultset.domain.query import (
    ColumnRef,
    CompiledQuery,
    LazyCursor,
    Pager,
    QueryCompiler,
    QuerySpec,
    ResultSet,
    ResultSetColumn,
    SQLLiteral,
    SubQuery,
    column_ref,
    convert_paramstyle,
    literal,
)
from resultset.adapters import (
    AdapterError,
    BaseAdapter,
    DuckDBAdapter,
    PostgresAdapter,
    SQLiteAdapter,
    adapter_from_url,
    get_adapter,
)

__all__ = [
    "__version__",
    "ErrorCode",
    "ResultSetError",
    "Relationship",
    "Schema",
    "Table",
    "load_schema",
    "schema_from_dict",
    "ColumnRef",
    "CompiledQuery",
    "LazyCursor",
    "Pager",
    "QueryCompiler",
    "QuerySpec",
    "ResultSet",
    "ResultSetColumn",
    "SQLLiteral",
    "SubQuery",
    "column_ref",
    "convert_paramstyle",
    "literal",
    "AdapterError",
    "BaseAdapter",
    "DuckDBAdapter",
    "PostgresAdapter",
    "SQLiteAdapter",
    "adapter_from_url",
    "get_adapter",
]
