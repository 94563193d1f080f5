"""
Query layer: specifications, compilation, lazy cursors and resultsets.
"""

from resultset.domain.query.conditions import (
    ColumnRef,
    SQLLiteral,
    SubQuery,
    column_ref,
    literal,
)
from resultset.domain.query.spec import QuerySpec
from resultset.domain.query.compiler import (
    PARAMSTYLES,
    CompiledQuery,
    QueryCompiler,
    convert_paramstyle,
)
from resultset.domain.query.cursor import LazyCursor
from resultset.domain.query.pager import Pager
from resultset.domain.query.resultset import ResultSet, ResultSetColumn

__all__ = [
    "ColumnRef",
    "SQLLiteral",
    "SubQuery",
    "column_ref",
    "literal",
    "QuerySpec",
    "PARAMSTYLES",
    "CompiledQuery",
    "QueryCompiler",
    "convert_paramstyle",
    "LazyCursor",
    "Pager",
    "ResultSet",
    "ResultSetColumn",
]
