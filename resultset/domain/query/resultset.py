"""
ResultSet

The user-facing query object. A ResultSet wraps an immutable QuerySpec;
search() and friends return new ResultSets and never touch the database.
Only the terminal methods (all, next, first, single, find, count, update,
delete, create) compile the QuerySpec and run it through the adapter.

Usage:
    artists = schema.resultset("artist")
    prolific = artists.search(
        {"albums.year": {"gte": 1990}},
        join="albums",
        group_by=["me.id", "me.name"],
        having={"COUNT(albums.id)": {"gt": 2}},
        order_by="name",
    )
    prolific.as_sql()      # inspect without executing
    for row in prolific:   # executes here
        ...
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from resultset.core import config
from resultset.core.logging import trace_statement
from resultset.domain.query.compiler import CompiledQuery, QueryCompiler
from resultset.domain.query.conditions import SubQuery, normalize_join_on
from resultset.domain.query.cursor import LazyCursor, RowFactory
from resultset.domain.query.pager import Pager
from resultset.domain.query.spec import QuerySpec
from resultset.errors import (
    invalid_attribute,
    invalid_page,
    no_primary_key,
    no_storage,
    not_found,
)
from resultset.shared.types.models import ColumnSpec, JoinSpec

if TYPE_CHECKING:
    from resultset.adapters.base import AdapterResult, BaseAdapter
    from resultset.domain.schema.registry import Schema

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class ResultSet:
    """
    Immutable, lazily executed query over one source.

    Args:
        source: Table name, or a ready-made QuerySpec
        schema: Table metadata (relationships, primary keys, columns)
        adapter: Adapter to execute on; defaults to the schema's adapter
        dialect: SQL dialect; defaults to the schema's, then the adapter's
        paramstyle: Placeholder style; defaults to the adapter's
        row_factory: Callable applied to each row dict
        alias: Alias of the base source (default "me")
    """

    def __init__(
        self,
        source: Any,
        schema: Optional["Schema"] = None,
        adapter: Optional["BaseAdapter"] = None,
        dialect: Optional[str] = None,
        paramstyle: Optional[str] = None,
        row_factory: Optional[RowFactory] = None,
        alias: Optional[str] = None,
        fetch_size: Optional[int] = None,
    ):
        if isinstance(source, QuerySpec):
            self._spec = source
        else:
            self._spec = QuerySpec(source=source, alias=alias or config.settings.default_alias)

        self.schema = schema
        self.adapter = adapter if adapter is not None else getattr(schema, "adapter", None)
        self.dialect = (
            dialect
            or getattr(schema, "dialect", None)
            or getattr(self.adapter, "DIALECT", None)
        )
        self.paramstyle = paramstyle or getattr(self.adapter, "PARAMSTYLE", None)
        self.row_factory = row_factory
        self.fetch_size = fetch_size

        self._compiler: Optional[QueryCompiler] = None
        self._cursor: Optional[LazyCursor] = None

    def __repr__(self) -> str:
        return f"<ResultSet source={self._spec.source!r} alias={self._spec.alias!r}>"

    def __iter__(self):
        return iter(self.cursor())

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    @property
    def source(self) -> str:
        return self._spec.source

    @property
    def alias(self) -> str:
        return self._spec.alias

    @property
    def is_paged(self) -> bool:
        return self._spec.is_paged

    @property
    def is_ordered(self) -> bool:
        return self._spec.is_ordered

    @property
    def compiler(self) -> QueryCompiler:
        if self._compiler is None:
            self._compiler = QueryCompiler(self.dialect, self.paramstyle, self.schema)
        return self._compiler

    def as_sql(self) -> CompiledQuery:
        """The SELECT this resultset would run, without running it."""
        return self.compiler.compile_select(self._spec)

    def as_query(self) -> SubQuery:
        """This resultset as a subquery, e.g. for {"id": {"in": rs.as_query()}}."""
        return SubQuery(self._spec, self.schema)

    # =========================================================================
    # REFINEMENT
    # =========================================================================

    def _derive(self, spec: QuerySpec) -> "ResultSet":
        return ResultSet(
            spec,
            schema=self.schema,
            adapter=self.adapter,
            dialect=self.dialect,
            paramstyle=self.paramstyle,
            row_factory=self.row_factory,
            fetch_size=self.fetch_size,
        )

    def search(self, where: Any = None, **attrs: Any) -> "ResultSet":
        """
        Return a new resultset refined by `where` and search attributes.

        Attributes: columns, add_columns, join, order_by, group_by, having,
        rows, offset, page, distinct.
        """
        if "join" in attrs:
            join = attrs.pop("join")
            if join is not None:
                attrs["joins"] = self._resolve_joins(join)
        return self._derive(self._spec.merge(where, **attrs))

    def _resolve_joins(self, join: Any):
        if self.schema is not None:
            return self.schema.resolve_joins(
                self._spec.source, self._spec.alias, join, existing=self._spec.joins
            )

        items = join if isinstance(join, (list, tuple)) else [join]
        joins: List[JoinSpec] = []
        for item in items:
            if isinstance(item, JoinSpec):
                joins.append(item)
            elif isinstance(item, dict) and "table" in item:
                joins.append(JoinSpec(
                    table=item["table"],
                    alias=item.get("alias", item["table"]),
                    on=normalize_join_on(item.get("on")),
                    join_type=item.get("join_type", "left"),
                    parent=item.get("parent", self._spec.alias),
                ))
            else:
                raise invalid_attribute(
                    "join", item,
                    "relationship names need a schema; pass a JoinSpec or {'table', 'on'} instead",
                )
        return tuple(joins)

    def page(self, page: int) -> "ResultSet":
        """Return the given page; rows defaults to 10 when not set."""
        return self.search(None, page=page, rows=self._spec.limit or DEFAULT_PAGE_SIZE)

    def slice(self, first: int, last: int) -> "ResultSet":
        """Rows first..last (0-based, inclusive) of the current window."""
        if first < 0 or last < first:
            raise invalid_attribute("slice", (first, last), "need 0 <= first <= last")
        spec = self._spec.replace(
            offset=self._spec.effective_offset + first,
            limit=last - first + 1,
            page=None,
        )
        return self._derive(spec)

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def _storage(self) -> "BaseAdapter":
        if self.adapter is None:
            raise no_storage(self._spec.source)
        if not self.adapter.is_connected():
            self.adapter.connect()
        return self.adapter

    def _run(self, compiled: CompiledQuery) -> "AdapterResult":
        adapter = self._storage()
        trace_statement(compiled.sql, compiled.params, adapter.ENGINE)
        return adapter.execute(compiled.sql, compiled.params)

    def cursor(self) -> LazyCursor:
        """A new, not yet executed cursor over this resultset."""
        return LazyCursor(self._storage(), self.as_sql(), self.row_factory, self.fetch_size)

    def all(self) -> List[Any]:
        return self.cursor().all()

    def next(self) -> Optional[Any]:
        """Next row of this resultset's own cursor, None when exhausted."""
        if self._cursor is None:
            self._cursor = self.cursor()
        return self._cursor.next()

    def reset(self) -> "ResultSet":
        """Rewind the cursor used by next()."""
        if self._cursor is not None:
            self._cursor.reset()
        return self

    def first(self) -> Optional[Any]:
        """Reset the cursor and return its first row."""
        return self.reset().next()

    def single(self, where: Any = None) -> Optional[Any]:
        """
        Return the only row matching `where`.

        Meant for queries known to match at most one row; a warning is
        logged when the database returns more.
        """
        rs = self.search(where) if where is not None else self
        with rs.cursor() as cursor:
            row = cursor.next()
            if row is not None and cursor.next() is not None:
                logger.warning(
                    f"Query returned more than one row for '{self._spec.source}'; "
                    f"single() is meant for queries returning one row: {cursor.compiled.sql}"
                )
        return row

    def find(self, key: Any, required: bool = False) -> Optional[Any]:
        """
        Look a row up by primary key value, or by a {column: value} dict.

        Composite keys take a tuple/list in primary key order.
        """
        if isinstance(key, dict):
            where = dict(key)
        else:
            where = self._primary_key_condition(key)

        row = self.single(where)
        if row is None and required:
            raise not_found(self._spec.source, key)
        return row

    def _primary_key_condition(self, key: Any) -> Dict[str, Any]:
        primary_key: List[str] = []
        if self.schema is not None and self.schema.has_table(self._spec.source):
            primary_key = list(self.schema.table(self._spec.source).primary_key)
        if not primary_key:
            raise no_primary_key(self._spec.source, "find")

        values = list(key) if isinstance(key, (list, tuple)) else [key]
        if len(values) != len(primary_key):
            raise invalid_attribute(
                "find", key, f"expected {len(primary_key)} key value(s) for {primary_key}"
            )
        return {f"{self._spec.alias}.{col}": value for col, value in zip(primary_key, values)}

    def count(self) -> int:
        """Number of rows this resultset would return."""
        result = self._run(self.compiler.compile_count(self._spec))
        if not result.rows:
            return 0
        return int(next(iter(result.rows[0].values())) or 0)

    def update(self, values: Dict[str, Any]) -> int:
        """UPDATE every matching row; returns the affected row count."""
        result = self._run(self.compiler.compile_update(self._spec, values))
        logger.debug(f"Updated {result.rowcount} row(s) in '{self._spec.source}'")
        return result.rowcount

    def delete(self) -> int:
        """DELETE every matching row; returns the affected row count."""
        result = self._run(self.compiler.compile_delete(self._spec))
        logger.debug(f"Deleted {result.rowcount} row(s) from '{self._spec.source}'")
        return result.rowcount

    def create(self, values: Dict[str, Any]) -> Any:
        """
        INSERT one row and return it.

        Plain equality conditions of this resultset ({"artist_id": 3}) fill
        in columns missing from `values`. When the primary key is known
        afterwards the stored row is read back, so defaults show up.
        """
        row = self._defaults_from_conditions()
        row.update(values)

        result = self._run(self.compiler.compile_insert(self._spec.source, row))

        pk = None
        if self.schema is not None and self.schema.has_table(self._spec.source):
            pk = self.schema.table(self._spec.source).single_primary_key
        if pk is None:
            return row

        if row.get(pk) is None and result.lastrowid is not None:
            row[pk] = result.lastrowid
        if row.get(pk) is None:
            return row

        stored = ResultSet(
            self._spec.source,
            schema=self.schema,
            adapter=self.adapter,
            dialect=self.dialect,
            paramstyle=self.paramstyle,
            row_factory=self.row_factory,
            alias=self._spec.alias,
        ).find(row[pk])
        return stored if stored is not None else row

    def _defaults_from_conditions(self) -> Dict[str, Any]:
        defaults: Dict[str, Any] = {}
        prefix = f"{self._spec.alias}."
        for condition in self._spec.where:
            if not isinstance(condition, dict):
                continue
            for key, value in condition.items():
                if not isinstance(key, str) or isinstance(value, (dict, list, tuple)):
                    continue
                if value is None or isinstance(value, SubQuery):
                    continue
                if key.startswith(prefix):
                    key = key[len(prefix):]
                if "." in key or key.lower() in ("and", "or", "not"):
                    continue
                defaults[key] = value
        return defaults

    # =========================================================================
    # PAGING & COLUMNS
    # =========================================================================

    def pager(self) -> Pager:
        """Pager for a paged resultset; the total is counted on first use."""
        if not self._spec.is_paged:
            raise invalid_page("pager() needs a paged resultset; use page() or search(page=...)")
        unpaged = self._derive(self._spec.unwindowed())
        return Pager(unpaged.count, self._spec.limit, self._spec.page)

    def get_column(self, column: str) -> "ResultSetColumn":
        return ResultSetColumn(self, column)


class ResultSetColumn:
    """
    A single column of a resultset.

    Usage:
        years = rs.get_column("year")
        years.max()
        years.all()      # plain values, not row dicts
    """

    def __init__(self, resultset: ResultSet, column: str):
        self.column = column
        self._parent = resultset
        self._rs = ResultSet(
            resultset.spec.replace(columns=(ColumnSpec(expr=column),)),
            schema=resultset.schema,
            adapter=resultset.adapter,
            dialect=resultset.dialect,
            paramstyle=resultset.paramstyle,
            fetch_size=resultset.fetch_size,
        )

    def __repr__(self) -> str:
        return f"<ResultSetColumn {self.column!r} of {self._parent!r}>"

    @staticmethod
    def _value(row: Optional[Dict[str, Any]]) -> Any:
        if row is None:
            return None
        return next(iter(row.values()))

    def as_sql(self) -> CompiledQuery:
        return self._rs.as_sql()

    def as_query(self) -> SubQuery:
        return self._rs.as_query()

    def all(self) -> List[Any]:
        return [self._value(row) for row in self._rs.all()]

    def next(self) -> Any:
        return self._value(self._rs.next())

    def reset(self) -> "ResultSetColumn":
        self._rs.reset()
        return self

    def first(self) -> Any:
        return self._value(self._rs.first())

    def func(self, name: str) -> Any:
        """
        Apply an SQL aggregate, e.g. func("COUNT"), to the column.

        The aggregate runs over the whole resultset, so resultsets limited by
        rows/offset/page, grouped or DISTINCT are rejected.
        """
        spec = self._parent.spec
        if spec.is_windowed or spec.group_by or spec.distinct:
            raise invalid_attribute(
                "func", name,
                "aggregates need an unwindowed, ungrouped resultset; aggregate all() instead",
            )
        label = name.lower()
        column = self.column if "." in self.column else f"{spec.alias}.{self.column}"
        func_spec = spec.replace(
            columns=(ColumnSpec(expr=f"{name.upper()}({column})", alias=label),),
            order_by=(),
        )
        return self._value(self._rs._derive(func_spec).first())

    def min(self) -> Any:
        return self.func("MIN")

    def max(self) -> Any:
        return self.func("MAX")

    def sum(self) -> Any:
        return self.func("SUM")
