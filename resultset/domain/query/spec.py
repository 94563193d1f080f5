"""
Query Specification

An immutable description of a query: source, filter predicates, joins,
projection, grouping, ordering and limits. Nothing here touches a database
or produces SQL; QueryCompiler does that.

Chaining rules (merge):
- where / having: AND-ed with the existing conditions
- columns, order_by, group_by, rows, offset, page, distinct: replaced
- add_columns: appended to the current projection
- joins: appended, identical joins are kept once
"""

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from resultset.domain.query.conditions import (
    condition_is_empty,
    freeze_condition,
    normalize_columns,
    normalize_group_by,
    normalize_order_by,
)
from resultset.errors import invalid_attribute, invalid_page
from resultset.shared.types.models import ColumnSpec, JoinSpec, OrderBy

MERGE_ATTRIBUTES = (
    "columns", "add_columns", "joins", "order_by", "group_by", "having",
    "rows", "limit", "offset", "page", "distinct",
)


class QuerySpec(BaseModel):
    """
    Immutable query specification.

    `where` and `having` hold one entry per search() call; the compiler
    AND-s them together. `limit` is the page size when `page` is set.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source: str
    alias: str = "me"
    where: Tuple[Any, ...] = ()
    columns: Tuple[ColumnSpec, ...] = ()
    joins: Tuple[JoinSpec, ...] = ()
    group_by: Tuple[str, ...] = ()
    having: Tuple[Any, ...] = ()
    order_by: Tuple[OrderBy, ...] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None
    page: Optional[int] = None
    distinct: bool = False

    @field_validator("where", "having", mode="after")
    @classmethod
    def _freeze_conditions(cls, conditions: Tuple[Any, ...]) -> Tuple[Any, ...]:
        return tuple(freeze_condition(condition) for condition in conditions)

    @model_validator(mode="after")
    def _check_window(self) -> "QuerySpec":
        if self.limit is not None and self.limit < 1:
            raise invalid_attribute("rows", self.limit, "must be a positive integer")
        if self.offset is not None and self.offset < 0:
            raise invalid_attribute("offset", self.offset, "must not be negative")
        if self.page is not None:
            if self.page < 1:
                raise invalid_page("page numbers start at 1", page=self.page, rows=self.limit)
            if self.limit is None:
                raise invalid_page("page requires rows", page=self.page)
        return self

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def effective_offset(self) -> int:
        offset = self.offset or 0
        if self.page is not None and self.limit is not None:
            offset += (self.page - 1) * self.limit
        return offset

    @property
    def is_paged(self) -> bool:
        return self.page is not None

    @property
    def is_ordered(self) -> bool:
        return bool(self.order_by)

    @property
    def is_windowed(self) -> bool:
        """True when LIMIT/OFFSET would change which rows are seen."""
        return self.limit is not None or self.effective_offset > 0

    @property
    def join_aliases(self) -> Tuple[str, ...]:
        return tuple(j.alias for j in self.joins)

    # -------------------------------------------------------------------------
    # Refinement
    # -------------------------------------------------------------------------

    def replace(self, **changes: Any) -> "QuerySpec":
        """Return a validated copy with `changes` applied."""
        data: Dict[str, Any] = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self)(**data)

    def merge(self, where: Any = None, **attrs: Any) -> "QuerySpec":
        """
        Return a new spec refined by `where` and search attributes.

        `joins` must already be resolved JoinSpecs; the ResultSet layer turns
        relationship names into joins before calling this.
        """
        unknown = set(attrs) - set(MERGE_ATTRIBUTES)
        if unknown:
            name = sorted(unknown)[0]
            raise invalid_attribute(
                name, attrs[name], f"unknown search attribute (known: {', '.join(MERGE_ATTRIBUTES)})"
            )

        changes: Dict[str, Any] = {}

        if not condition_is_empty(where):
            changes["where"] = self.where + (where,)

        if attrs.get("having") is not None and not condition_is_empty(attrs["having"]):
            changes["having"] = self.having + (attrs["having"],)

        if "columns" in attrs and attrs["columns"] is not None:
            changes["columns"] = normalize_columns(attrs["columns"])

        if attrs.get("add_columns") is not None:
            base = changes.get("columns", self.columns)
            changes["columns"] = base + normalize_columns(attrs["add_columns"])

        if attrs.get("joins"):
            joins = list(self.joins)
            for join in attrs["joins"]:
                if join not in joins:
                    joins.append(join)
            changes["joins"] = tuple(joins)

        if "order_by" in attrs and attrs["order_by"] is not None:
            changes["order_by"] = normalize_order_by(attrs["order_by"])

        if "group_by" in attrs and attrs["group_by"] is not None:
            changes["group_by"] = normalize_group_by(attrs["group_by"])

        rows = attrs.get("rows", attrs.get("limit"))
        if rows is not None:
            changes["limit"] = rows

        for name in ("offset", "page", "distinct"):
            if attrs.get(name) is not None:
                changes[name] = attrs[name]

        if not changes:
            return self
        return self.replace(**changes)

    def unwindowed(self) -> "QuerySpec":
        """Same query without rows/offset/page; used for counting totals."""
        return self.replace(limit=None, offset=None, page=None)
