"""
Condition values and attribute normalization.

Conditions are kept as plain Python structures inside a QuerySpec and only
turned into SQL by the QueryCompiler. This module holds the special values
that can appear inside them (literal SQL, column references, subqueries)
and the helpers that normalize order_by / columns / group_by attributes.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from resultset.errors import invalid_attribute, invalid_order
from resultset.shared.types.models import ColumnSpec, OrderBy

if TYPE_CHECKING:
    from resultset.domain.query.spec import QuerySpec
    from resultset.domain.schema.registry import Schema


# =============================================================================
# OPERATORS
# =============================================================================

OPERATORS = (
    "eq", "ne", "gt", "gte", "lt", "lte", "in", "not_in", "between",
    "like", "not_like", "ilike", "contains", "starts_with", "ends_with",
    "is_null", "is_not_null",
)

OPERATOR_ALIASES = {
    "=": "eq",
    "==": "eq",
    "!=": "ne",
    "<>": "ne",
    ">": "gt",
    ">=": "gte",
    "<": "lt",
    "<=": "lte",
    "not in": "not_in",
    "not like": "not_like",
    "-in": "in",
    "-not_in": "not_in",
    "-between": "between",
    "-like": "like",
    "-not_like": "not_like",
}

LOGIC_KEYS = ("and", "or", "not")

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*){0,2}$")


def normalize_operator(op: str) -> str:
    """Map symbolic and dashed operator spellings onto the canonical names."""
    key = op.strip().lower()
    return OPERATOR_ALIASES.get(key, key)


def is_identifier(text: str) -> bool:
    """True for "col", "alias.col" and "db.table.col" style references."""
    return bool(IDENTIFIER_RE.match(text))


# =============================================================================
# SPECIAL VALUES
# =============================================================================

@dataclass(frozen=True)
class SQLLiteral:
    """A raw SQL fragment with ? placeholders and its bind values."""
    sql: str
    binds: Tuple[Any, ...] = ()


def literal(sql: str, *binds: Any) -> SQLLiteral:
    """
    Embed raw SQL in a condition, or as the value a column is compared to.
    Projections take SQL expression strings instead: {"n": "COUNT(albums.id)"}.

        rs.search(literal("LENGTH(me.name) > ?", 5))
        rs.search({"year": {"gt": literal("(SELECT MIN(year) FROM album)")}})
    """
    return SQLLiteral(sql=sql, binds=tuple(binds))


@dataclass(frozen=True)
class ColumnRef:
    """A reference to another column, compared without a bind value."""
    name: str


def column_ref(name: str) -> ColumnRef:
    return ColumnRef(name=name)


class SubQuery:
    """
    A query specification embedded in another query, e.g. as the right
    hand side of an IN condition. Produced by ResultSet.as_query().
    """

    def __init__(self, spec: "QuerySpec", schema: Optional["Schema"] = None):
        self.spec = spec
        self.schema = schema

    def __deepcopy__(self, memo):
        # Immutable; the schema may hold a live connection.
        return self

    def __eq__(self, other):
        return isinstance(other, SubQuery) and other.spec == self.spec

    def __hash__(self):
        return hash((self.spec.source, self.spec.alias))

    def __repr__(self):
        return f"SubQuery(source={self.spec.source!r})"


# =============================================================================
# ATTRIBUTE NORMALIZATION
# =============================================================================

def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def normalize_order_by(order_by: Any) -> Tuple[OrderBy, ...]:
    """
    Accepted forms, alone or in a list:
        "name", "name desc", "name ASC"
        {"desc": "name"}, {"asc": ["name", "year"]}
        {"field": "name", "direction": "desc", "nulls": "last"}
        OrderBy(field="name", direction="desc")
    """
    result: List[OrderBy] = []
    for item in _as_list(order_by):
        if isinstance(item, OrderBy):
            result.append(item)
        elif isinstance(item, str):
            parts = item.split()
            if len(parts) == 1:
                result.append(OrderBy(field=parts[0]))
            elif len(parts) == 2 and parts[1].lower() in ("asc", "desc"):
                result.append(OrderBy(field=parts[0], direction=parts[1].lower()))
            else:
                raise invalid_order(item)
        elif isinstance(item, dict):
            if "field" in item:
                result.append(OrderBy(
                    field=item["field"],
                    direction=str(item.get("direction", "asc")).lower(),
                    nulls=item.get("nulls"),
                ))
                continue
            if len(item) != 1:
                raise invalid_order(item)
            key, fields = next(iter(item.items()))
            direction = key.lstrip("-").lower()
            if direction not in ("asc", "desc"):
                raise invalid_order(item)
            for field_name in _as_list(fields):
                result.append(OrderBy(field=field_name, direction=direction))
        else:
            raise invalid_order(item)
    return tuple(result)


def normalize_columns(columns: Any) -> Tuple[ColumnSpec, ...]:
    """
    Accepted forms, alone or in a list:
        "name", "albums.title", "COUNT(albums.id)"
        {"album_count": "COUNT(albums.id)"}
        ColumnSpec(expr="name", alias="artist_name")
    """
    result: List[ColumnSpec] = []
    for item in _as_list(columns):
        if isinstance(item, ColumnSpec):
            result.append(item)
        elif isinstance(item, str):
            result.append(ColumnSpec(expr=item))
        elif isinstance(item, dict):
            for alias, expr in item.items():
                if not isinstance(expr, str):
                    raise invalid_attribute("columns", item, "expressions must be strings")
                result.append(ColumnSpec(expr=expr, alias=alias))
        elif isinstance(item, SQLLiteral):
            raise invalid_attribute(
                "columns", item, "literal() is for conditions; pass the expression as a string"
            )
        else:
            raise invalid_attribute("columns", item, "expected a string, dict or ColumnSpec")
    return tuple(result)


def normalize_group_by(group_by: Any) -> Tuple[str, ...]:
    result = []
    for item in _as_list(group_by):
        if not isinstance(item, str):
            raise invalid_attribute("group_by", item, "expected column names")
        result.append(item)
    return tuple(result)


def normalize_join_on(on: Any) -> Tuple[Tuple[str, str], ...]:
    """{"albums.artist_id": "me.id"} or [("albums.artist_id", "me.id")]."""
    if isinstance(on, dict):
        pairs = list(on.items())
    else:
        pairs = [tuple(pair) for pair in _as_list(on)]
    if not pairs or any(len(pair) != 2 for pair in pairs):
        raise invalid_attribute("join", on, "join 'on' needs column pairs")
    return tuple((str(a), str(b)) for a, b in pairs)


def condition_is_empty(condition: Any) -> bool:
    return condition is None or (isinstance(condition, (dict, list, tuple)) and len(condition) == 0)



class FrozenDict(dict):
    """A dict that refuses changes. Condition trees are stored as these."""

    def _read_only(self, *args, **kwargs):
        raise TypeError("conditions stored on a QuerySpec are read-only")

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (FrozenDict, (dict(self),))


def freeze_condition(condition: Any) -> Any:
    """
    Read-only copy of a condition tree: dicts become FrozenDicts and lists
    become tuples, all the way down. Literals, column references, subqueries
    and filter models are immutable already and are kept as they are.
    """
    if isinstance(condition, dict):
        return FrozenDict((key, freeze_condition(value)) for key, value in condition.items())
    if isinstance(condition, (list, tuple)):
        return tuple(freeze_condition(item) for item in condition)
    if isinstance(condition, (set, frozenset)):
        return frozenset(condition)
    return condition
