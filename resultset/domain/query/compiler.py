"""
Query Compiler using SQLGlot

Turns a QuerySpec into a dialect-specific SQL string plus the ordered list
of bind parameters. SQL is assembled as a SQLGlot expression tree and only
rendered at the end, so identifier quoting, LIMIT/OFFSET syntax and NULL
ordering follow the target dialect.

Usage:
    compiler = QueryCompiler(dialect="postgres")
    compiled = compiler.compile_select(spec)
    cursor.execute(compiled.sql, compiled.params)

Bind parameters are collected while the tree is built, in the order the
clauses are rendered: projection, joins, WHERE, HAVING, ORDER BY. UPDATE
collects its SET values before the WHERE binds.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Sequence, Tuple

import sqlglot
from sqlglot import expressions as exp
from sqlglot.dialects.dialect import Dialect
from sqlglot.errors import SqlglotError

from resultset.core import config
from resultset.domain.query.conditions import (
    LOGIC_KEYS,
    OPERATORS,
    ColumnRef,
    SQLLiteral,
    SubQuery,
    is_identifier,
    normalize_operator,
)
from resultset.domain.query.spec import QuerySpec
from resultset.errors import (
    ResultSetError,
    compile_failed,
    invalid_attribute,
    invalid_condition,
    no_primary_key,
    unknown_operator,
    unsupported_dialect,
    unsupported_paramstyle,
)
from resultset.shared.types.models import ColumnSpec, JoinSpec

if TYPE_CHECKING:
    from resultset.domain.schema.registry import Schema

logger = logging.getLogger(__name__)


PARAMSTYLES = ("qmark", "format", "numeric", "dollar")

# Escape character for the pattern operators; rendered as LIKE ? ESCAPE '\'
LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Make %, _ and the escape character match themselves inside a LIKE pattern."""
    for char in (LIKE_ESCAPE, "%", "_"):
        value = value.replace(char, LIKE_ESCAPE + char)
    return value


@dataclass(frozen=True)
class CompiledQuery:
    """
    A rendered statement.

    Attributes:
        sql: SQL text with placeholders in `paramstyle`
        params: Bind values, in placeholder order
        dialect: SQLGlot dialect the SQL was rendered for
        paramstyle: DB-API paramstyle of the placeholders
        kind: select, count, update, delete or insert
    """
    sql: str
    params: Tuple[Any, ...] = ()
    dialect: str = "sqlite"
    paramstyle: str = "qmark"
    kind: str = "select"

    def __iter__(self) -> Iterator[Any]:
        # sql, params = compiled
        yield self.sql
        yield list(self.params)

    def __str__(self) -> str:
        return self.sql


def convert_paramstyle(sql: str, paramstyle: str, bracket_quotes: bool = False) -> Tuple[str, int]:
    """
    Rewrite ? placeholders into `paramstyle`.

    Text inside string literals and quoted identifiers is left alone. For the
    "format" style every literal % is doubled, as DB-API drivers using %s
    require.

    Returns:
        (converted_sql, placeholder_count)
    """
    if paramstyle not in PARAMSTYLES:
        raise unsupported_paramstyle(paramstyle, list(PARAMSTYLES))

    closers = {"'": "'", '"': '"', "`": "`"}
    if bracket_quotes:
        closers["["] = "]"

    out: List[str] = []
    count = 0
    quote_end: Optional[str] = None
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]

        if quote_end is not None:
            out.append("%%" if paramstyle == "format" and ch == "%" else ch)
            if ch == quote_end:
                if i + 1 < n and sql[i + 1] == quote_end:
                    # Doubled closing quote is an escape
                    out.append(sql[i + 1])
                    i += 2
                    continue
                quote_end = None
            i += 1
            continue

        if ch in closers:
            quote_end = closers[ch]
            out.append(ch)
        elif ch == "?" or sql.startswith("%s", i):
            # Some dialects render anonymous placeholders as %s
            if ch == "%":
                i += 1
            count += 1
            if paramstyle == "qmark":
                out.append("?")
            elif paramstyle == "format":
                out.append("%s")
            elif paramstyle == "numeric":
                out.append(f":{count}")
            else:
                out.append(f"${count}")
        elif paramstyle == "format" and ch == "%":
            out.append("%%")
        else:
            out.append(ch)
        i += 1

    return "".join(out), count


class QueryCompiler:
    """
    Dialect-aware compiler from QuerySpec to SQL using SQLGlot.

    Supports:
    - SELECT with projections, joins, filters, grouping, ordering, paging
    - COUNT(*) (wrapped in a subquery when the query is windowed or grouped)
    - UPDATE / DELETE (rewritten to a primary key subquery when needed)
    - INSERT of a single row
    - Positional paramstyles: qmark, format, numeric, dollar
    """

    # Map of engine names to SQLGlot dialects
    DIALECT_MAP = {
        "postgres": "postgres",
        "postgresql": "postgres",
        "mysql": "mysql",
        "mariadb": "mysql",
        "snowflake": "snowflake",
        "bigquery": "bigquery",
        "databricks": "spark",
        "spark": "spark",
        "redshift": "redshift",
        "clickhouse": "clickhouse",
        "duckdb": "duckdb",
        "trino": "trino",
        "presto": "presto",
        "sqlserver": "tsql",
        "mssql": "tsql",
        "tsql": "tsql",
        "oracle": "oracle",
        "sqlite": "sqlite",
        "timescaledb": "postgres",  # TimescaleDB uses PostgreSQL syntax
        "cockroachdb": "postgres",  # CockroachDB uses PostgreSQL syntax
    }

    # Placeholder style the usual DB-API driver for each dialect expects
    DEFAULT_PARAMSTYLES = {
        "postgres": "format",
        "redshift": "format",
        "mysql": "format",
        "snowflake": "format",
        "oracle": "numeric",
    }

    # LIMIT value meaning "no limit", for dialects that need a LIMIT before OFFSET
    UNLIMITED = {
        "sqlite": -1,
        "mysql": 18446744073709551615,
    }

    def __init__(
        self,
        dialect: Optional[str] = None,
        paramstyle: Optional[str] = None,
        schema: Optional["Schema"] = None,
    ):
        """
        Initialize compiler with target dialect.

        Args:
            dialect: Target SQL dialect (e.g., "postgres", "sqlite", "duckdb")
            paramstyle: DB-API paramstyle; defaults to the dialect's usual one
            schema: Table metadata used for default projections and primary keys
        """
        self.dialect = self._normalize_dialect(dialect or config.settings.default_dialect)
        if self.dialect not in self.DIALECT_MAP:
            raise unsupported_dialect(self.dialect, list(self.DIALECT_MAP))
        self.target_dialect = self.DIALECT_MAP[self.dialect]

        self.paramstyle = (
            paramstyle
            or config.settings.default_paramstyle
            or self.DEFAULT_PARAMSTYLES.get(self.target_dialect, "qmark")
        )
        if self.paramstyle not in PARAMSTYLES:
            raise unsupported_paramstyle(self.paramstyle, list(PARAMSTYLES))

        self.schema = schema

    def _normalize_dialect(self, dialect: str) -> str:
        """Normalize dialect name to standard form."""
        return dialect.lower().replace("_", "").replace("-", "")

    @classmethod
    def supported_dialects(cls) -> List[str]:
        return sorted(cls.DIALECT_MAP)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def compile_select(self, spec: QuerySpec) -> CompiledQuery:
        """Compile the SELECT statement described by `spec`."""
        query, params = self._guard(spec, lambda: self._build_select(spec))
        return self._finish(query, params, "select", spec)

    def compile_count(self, spec: QuerySpec) -> CompiledQuery:
        """
        Compile SELECT COUNT(*) for `spec`.

        DISTINCT, GROUP BY and LIMIT/OFFSET change what a row is, so such
        queries are counted from a subquery; otherwise the projection and
        ordering are dropped and rows are counted directly.
        """
        def build():
            count_expr = exp.Count(this=exp.Star())
            if spec.distinct or spec.group_by or spec.is_windowed:
                inner_spec = spec if spec.is_windowed else spec.replace(order_by=())
                inner, params = self._build_select(inner_spec)
                outer = exp.select(count_expr).from_(inner.subquery("count_subq"))
                return outer, params
            return self._build_select(
                spec.replace(order_by=()), projection=[count_expr], window=False
            )

        query, params = self._guard(spec, build)
        return self._finish(query, params, "count", spec)

    def compile_update(self, spec: QuerySpec, values: dict) -> CompiledQuery:
        """Compile UPDATE <source> SET ... for the rows matched by `spec`."""
        if not values:
            raise invalid_attribute("values", values, "nothing to update")

        def build():
            params: List[Any] = []
            assignments = []
            for column, value in values.items():
                target = self._column(column, spec, qualify=False)
                assignments.append(
                    exp.EQ(this=target, expression=self._value(value, params, spec, qualify=False))
                )
            where = self._dml_where(spec, params, "update")
            statement = exp.Update(
                this=self._table(spec.source),
                expressions=assignments,
            )
            if where is not None:
                statement.set("where", exp.Where(this=where))
            return statement, params

        query, params = self._guard(spec, build)
        return self._finish(query, params, "update", spec)

    def compile_delete(self, spec: QuerySpec) -> CompiledQuery:
        """Compile DELETE FROM <source> for the rows matched by `spec`."""
        def build():
            params: List[Any] = []
            where = self._dml_where(spec, params, "delete")
            statement = exp.Delete(this=self._table(spec.source))
            if where is not None:
                statement.set("where", exp.Where(this=where))
            return statement, params

        query, params = self._guard(spec, build)
        return self._finish(query, params, "delete", spec)

    def compile_insert(self, source: str, values: dict) -> CompiledQuery:
        """Compile INSERT INTO <source> (...) VALUES (...) for one row."""
        if not values:
            raise invalid_attribute("values", values, "nothing to insert")

        spec = QuerySpec(source=source)

        def build():
            params: List[Any] = []
            columns = [
                exp.to_identifier(self._column(name, spec, qualify=False).name, quoted=True)
                for name in values
            ]
            row = [self._value(value, params, spec, qualify=False) for value in values.values()]
            statement = exp.Insert(
                this=exp.Schema(this=self._table(source), expressions=columns),
                expression=exp.Values(expressions=[exp.Tuple(expressions=row)]),
            )
            return statement, params

        query, params = self._guard(spec, build)
        return self._finish(query, params, "insert", spec)

    def compile_subquery(self, spec: QuerySpec) -> Tuple[exp.Select, List[Any]]:
        """Build the SELECT tree for embedding `spec` in another statement."""
        return self._build_select(spec)

    # =========================================================================
    # STATEMENT ASSEMBLY
    # =========================================================================

    def _guard(self, spec: QuerySpec, build):
        try:
            return build()
        except ResultSetError:
            raise
        except SqlglotError as e:
            logger.error(f"SQL compilation failed for '{spec.source}': {e}")
            raise compile_failed(str(e), spec.source) from e

    def _finish(self, query: exp.Expression, params: List[Any], kind: str, spec: QuerySpec) -> CompiledQuery:
        try:
            sql = query.sql(dialect=self.target_dialect, pretty=False)
        except SqlglotError as e:
            logger.error(f"SQL rendering failed for '{spec.source}': {e}")
            raise compile_failed(str(e), spec.source) from e

        sql, placeholders = convert_paramstyle(
            sql, self.paramstyle, bracket_quotes=self.target_dialect == "tsql"
        )
        if placeholders != len(params):
            raise compile_failed(
                f"{placeholders} placeholders rendered for {len(params)} bind values",
                spec.source,
            )

        logger.debug(f"Compiled {kind} ({self.target_dialect}): {sql}")
        return CompiledQuery(
            sql=sql,
            params=tuple(params),
            dialect=self.target_dialect,
            paramstyle=self.paramstyle,
            kind=kind,
        )

    def _build_select(
        self,
        spec: QuerySpec,
        projection: Optional[List[exp.Expression]] = None,
        window: bool = True,
    ) -> Tuple[exp.Select, List[Any]]:
        params: List[Any] = []

        if projection is None:
            projection = self._projection(spec, params)

        query = exp.Select().select(*projection, copy=False)
        query = query.from_(self._table(spec.source, spec.alias), copy=False)

        for join in spec.joins:
            query = query.join(
                self._table(join.table, join.alias),
                on=self._join_condition(join, spec),
                join_type=join.join_type,
                copy=False,
            )

        where = self._conditions(spec.where, params, spec)
        if where is not None:
            query = query.where(where, copy=False)

        if spec.group_by:
            query = query.group_by(
                *[self._operand(col, params, spec) for col in spec.group_by], copy=False
            )

        having = self._conditions(spec.having, params, spec)
        if having is not None:
            query = query.having(having, copy=False)

        if spec.order_by:
            query = query.order_by(*[self._ordered(o, params, spec) for o in spec.order_by], copy=False)

        if spec.distinct:
            query = query.distinct(copy=False)

        if window:
            offset = spec.effective_offset
            if spec.limit is not None:
                query = query.limit(spec.limit, copy=False)
            elif offset and self.target_dialect in self.UNLIMITED:
                query = query.limit(self.UNLIMITED[self.target_dialect], copy=False)
            if offset:
                query = query.offset(offset, copy=False)

        return query, params

    def _dml_where(self, spec: QuerySpec, params: List[Any], operation: str) -> Optional[exp.Expression]:
        """
        WHERE clause for UPDATE/DELETE.

        Conditions on the base source are rendered directly. Joins, grouping,
        DISTINCT or a row window cannot be expressed in a portable UPDATE or
        DELETE, so the matching primary keys are selected in a subquery.
        """
        needs_subquery = bool(
            spec.joins or spec.group_by or spec.having or spec.distinct or spec.is_windowed
        )
        if not needs_subquery:
            return self._conditions(spec.where, params, spec, qualify=False)

        pk = self._primary_key(spec.source)
        if pk is None:
            raise no_primary_key(spec.source, operation)

        inner_spec = spec.replace(columns=(ColumnSpec(expr=f"{spec.alias}.{pk}"),))
        if not spec.is_windowed:
            inner_spec = inner_spec.replace(order_by=())
        inner, inner_params = self._build_select(inner_spec)
        params.extend(inner_params)
        return exp.In(
            this=exp.column(pk, quoted=True),
            query=inner.subquery(copy=False),
        )

    def _primary_key(self, source: str) -> Optional[str]:
        if self.schema is None or not self.schema.has_table(source):
            return None
        return self.schema.table(source).single_primary_key

    # =========================================================================
    # IDENTIFIERS & PROJECTIONS
    # =========================================================================

    def _table(self, table_name: str, alias: Optional[str] = None) -> exp.Table:
        """Parse table name (supports schema.table format)."""
        parts = table_name.split(".", 1)
        if len(parts) == 2:
            table = exp.Table(
                this=exp.to_identifier(parts[1], quoted=True),
                db=exp.to_identifier(parts[0], quoted=True),
            )
        else:
            table = exp.Table(this=exp.to_identifier(table_name, quoted=True))
        if alias:
            table.set("alias", exp.TableAlias(this=exp.to_identifier(alias, quoted=True)))
        return table

    def _column(self, reference: str, spec: QuerySpec, qualify: bool = True) -> exp.Column:
        """
        Column reference: "col", "alias.col" or "db.table.col".

        Bare columns belong to the base source. With qualify=False (UPDATE,
        DELETE, INSERT) the base alias is dropped.
        """
        parts = reference.split(".")
        if parts[-1] == "*":
            table = parts[0] if len(parts) == 2 else (spec.alias if qualify else None)
            return exp.Column(
                this=exp.Star(),
                table=exp.to_identifier(table, quoted=True) if table else None,
            )

        if len(parts) == 1:
            return exp.column(parts[0], table=spec.alias if qualify else None, quoted=True)
        if len(parts) == 2:
            table, name = parts
            if not qualify and table == spec.alias:
                table = None
            return exp.column(name, table=table, quoted=True)
        if len(parts) == 3:
            return exp.column(parts[2], table=parts[1], db=parts[0], quoted=True)
        raise invalid_condition(reference, "column references have at most three parts")

    def _operand(self, text: Any, params: List[Any], spec: QuerySpec, qualify: bool = True) -> exp.Expression:
        """A column reference, or a SQL expression such as COUNT(albums.id)."""
        if isinstance(text, SQLLiteral):
            return self._literal(text, params)
        if not isinstance(text, str):
            raise invalid_condition(text, "column names must be strings")
        if text == "*" or text.endswith(".*") or is_identifier(text):
            return self._column(text, spec, qualify)
        return self._parse(text)

    def _parse(self, text: str) -> exp.Expression:
        try:
            return sqlglot.parse_one(text, read=self.target_dialect)
        except SqlglotError as e:
            raise compile_failed(f"cannot parse expression {text!r}: {e}") from e

    def _projection(self, spec: QuerySpec, params: List[Any]) -> List[exp.Expression]:
        if spec.columns:
            projection = []
            for column in spec.columns:
                expression = self._operand(column.expr, params, spec)
                if column.alias:
                    expression = exp.alias_(expression, column.alias, quoted=True)
                projection.append(expression)
            return projection

        if self.schema is not None and self.schema.has_table(spec.source):
            columns = self.schema.table(spec.source).columns
            if columns:
                return [self._column(col, spec) for col in columns]

        return [self._column("*", spec)]

    def _join_condition(self, join: JoinSpec, spec: QuerySpec) -> exp.Expression:
        pairs = [
            exp.EQ(this=self._column(left, spec), expression=self._column(right, spec))
            for left, right in join.on
        ]
        return self._and(pairs)

    def _ordered(self, order, params: List[Any], spec: QuerySpec) -> exp.Ordered:
        desc = order.direction == "desc"
        if order.nulls is None:
            nulls_first = self._natural_nulls_first(desc)
        else:
            nulls_first = order.nulls == "first"
        return exp.Ordered(this=self._operand(order.field, params, spec), desc=desc, nulls_first=nulls_first)

    def _natural_nulls_first(self, desc: bool) -> bool:
        """NULL placement the dialect uses when none is requested."""
        ordering = Dialect.get_or_raise(self.target_dialect).NULL_ORDERING
        if ordering == "nulls_are_large":
            return desc
        if ordering == "nulls_are_small":
            return not desc
        return False

    # =========================================================================
    # CONDITIONS
    # =========================================================================

    def _and(self, parts: Sequence[Optional[exp.Expression]]) -> Optional[exp.Expression]:
        parts = [p for p in parts if p is not None]
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        return exp.and_(*parts, copy=False)

    def _or(self, parts: Sequence[Optional[exp.Expression]]) -> Optional[exp.Expression]:
        parts = [p for p in parts if p is not None]
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        return exp.or_(*parts, copy=False)

    def _conditions(
        self, conditions: Sequence[Any], params: List[Any], spec: QuerySpec, qualify: bool = True
    ) -> Optional[exp.Expression]:
        """AND together the conditions of successive search() calls."""
        return self._and([self._condition(c, params, spec, qualify) for c in conditions])

    def _condition(self, node: Any, params: List[Any], spec: QuerySpec, qualify: bool) -> Optional[exp.Expression]:
        """
        Build a filter expression.

        Supports multiple formats:
        1. Query engine format: {"field": "...", "op": "...", "value": ...}
        2. Simple: {"field": value} -> field = value
        3. Operators: {"field": {"gte": value}} -> field >= value
        4. Complex: {"and": [...], "or": [...], "not": {...}}
        5. Lists (implicit AND), pydantic filter models, literal()
        """
        if node is None:
            return None

        # Convert Pydantic models to dict for consistent access
        if hasattr(node, "model_dump"):
            node = node.model_dump(by_alias=True, exclude_none=True)

        if isinstance(node, SQLLiteral):
            return self._literal(node, params)

        if isinstance(node, (list, tuple)):
            return self._and([self._condition(n, params, spec, qualify) for n in node])

        if not isinstance(node, dict):
            raise invalid_condition(node, "expected a dict, list, filter model or literal()")

        if "field" in node and "op" in node:
            return self._engine_condition(node, params, spec, qualify)

        parts = []
        for key, value in node.items():
            logic = key.lower().lstrip("-") if isinstance(key, str) else None
            if logic in LOGIC_KEYS and isinstance(value, (dict, list, tuple)):
                parts.append(self._logic(logic, value, params, spec, qualify))
            else:
                parts.append(self._field_condition(key, value, params, spec, qualify))
        return self._and(parts)

    def _logic(self, logic: str, value: Any, params: List[Any], spec: QuerySpec, qualify: bool):
        if logic == "not":
            inner = self._condition(value, params, spec, qualify)
            return exp.not_(inner, copy=False) if inner is not None else None

        if isinstance(value, dict):
            # {"or": {"a": 1, "b": 2}} means a = 1 OR b = 2
            items = [{k: v} for k, v in value.items()]
        else:
            items = list(value)
        parts = [self._condition(item, params, spec, qualify) for item in items]
        return self._and(parts) if logic == "and" else self._or(parts)

    def _engine_condition(self, node: dict, params: List[Any], spec: QuerySpec, qualify: bool):
        """Build filter from query engine format: {"field": "...", "op": "...", "value": ...}"""
        op = normalize_operator(node["op"])
        if op == "between":
            operand = [node.get("from"), node.get("to")]
        elif op in ("in", "not_in"):
            operand = node.get("values")
            if operand is None:
                operand = [node["value"]] if node.get("value") is not None else []
        elif op in ("is_null", "is_not_null"):
            operand = True
        else:
            operand = node.get("value")
        column = self._operand(node["field"], params, spec, qualify)
        return self._operator(column, op, operand, params, spec, qualify)

    def _field_condition(self, key: Any, value: Any, params: List[Any], spec: QuerySpec, qualify: bool):
        column = self._operand(key, params, spec, qualify)

        if isinstance(value, dict):
            if not value:
                raise invalid_condition({key: value}, f"no operator given for '{key}'")
            parts = []
            for op, operand in value.items():
                parts.append(
                    self._operator(column.copy(), normalize_operator(op), operand, params, spec, qualify)
                )
            return self._and(parts)

        if isinstance(value, (list, tuple)):
            return self._operator(column, "in", value, params, spec, qualify)

        return self._operator(column, "eq", value, params, spec, qualify)

    def _operator(
        self,
        column: exp.Expression,
        op: str,
        operand: Any,
        params: List[Any],
        spec: QuerySpec,
        qualify: bool,
    ) -> exp.Expression:
        if op not in OPERATORS:
            raise unknown_operator(op, list(OPERATORS))

        comparisons = {
            "eq": exp.EQ,
            "ne": exp.NEQ,
            "gt": exp.GT,
            "gte": exp.GTE,
            "lt": exp.LT,
            "lte": exp.LTE,
            "like": exp.Like,
            "ilike": exp.ILike,
        }

        if op in ("eq", "ne") and operand is None:
            is_null = exp.Is(this=column, expression=exp.Null())
            return is_null if op == "eq" else exp.not_(is_null, copy=False)

        if op in comparisons:
            return comparisons[op](this=column, expression=self._value(operand, params, spec, qualify))

        if op == "not_like":
            return exp.not_(
                exp.Like(this=column, expression=self._value(operand, params, spec, qualify)), copy=False
            )

        if op in ("contains", "starts_with", "ends_with"):
            if operand is None:
                raise invalid_condition({op: operand}, f"{op} needs a string to match")
            pattern = {
                "contains": "%{}%",
                "starts_with": "{}%",
                "ends_with": "%{}",
            }[op].format(escape_like(str(operand)))
            params.append(pattern)
            return exp.Escape(
                this=exp.Like(this=column, expression=exp.Placeholder()),
                expression=exp.Literal.string(LIKE_ESCAPE),
            )

        if op in ("is_null", "is_not_null"):
            negate = (op == "is_not_null") == bool(operand)
            is_null = exp.Is(this=column, expression=exp.Null())
            return exp.not_(is_null, copy=False) if negate else is_null

        if op == "between":
            if isinstance(operand, dict):
                operand = [operand.get("from"), operand.get("to")]
            if not isinstance(operand, (list, tuple)) or len(operand) != 2:
                raise invalid_condition(operand, "between needs exactly two values")
            low = self._value(operand[0], params, spec, qualify)
            high = self._value(operand[1], params, spec, qualify)
            return exp.Between(this=column, low=low, high=high)

        # in / not_in
        if isinstance(operand, (SubQuery, SQLLiteral)):
            subquery = self._value(operand, params, spec, qualify)
            if not isinstance(subquery, exp.Subquery):
                subquery = exp.Subquery(this=subquery)
            expression = exp.In(this=column, query=subquery)
        else:
            values = list(operand) if isinstance(operand, (list, tuple, set, frozenset)) else [operand]
            if not values:
                # IN () is invalid SQL; an empty IN matches nothing, NOT IN matches everything
                return self._constant(op == "not_in")
            expression = exp.In(
                this=column,
                expressions=[self._value(v, params, spec, qualify) for v in values],
            )
        return exp.not_(expression, copy=False) if op == "not_in" else expression

    def _constant(self, truth: bool) -> exp.Expression:
        return exp.EQ(
            this=exp.Literal.number(1),
            expression=exp.Literal.number(1 if truth else 0),
        )

    def _value(self, value: Any, params: List[Any], spec: QuerySpec, qualify: bool) -> exp.Expression:
        """Right hand side of a comparison; plain values become bind parameters."""
        if isinstance(value, ColumnRef):
            return self._column(value.name, spec, qualify)
        if isinstance(value, SQLLiteral):
            return self._literal(value, params)
        if isinstance(value, SubQuery):
            compiler = self if value.schema is None else QueryCompiler(
                self.dialect, self.paramstyle, value.schema
            )
            inner, inner_params = compiler.compile_subquery(value.spec)
            params.extend(inner_params)
            return inner.subquery(copy=False)
        params.append(value)
        return exp.Placeholder()

    def _literal(self, value: SQLLiteral, params: List[Any]) -> exp.Expression:
        parsed = self._parse(value.sql)
        placeholders = list(parsed.find_all(exp.Placeholder))
        if len(placeholders) != len(value.binds):
            raise invalid_condition(
                value.sql,
                f"literal has {len(placeholders)} placeholders but {len(value.binds)} binds",
            )
        params.extend(value.binds)
        return parsed
