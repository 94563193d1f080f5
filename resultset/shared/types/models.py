from typing import Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

FilterOp = Literal[
    "eq", "ne", "gt", "gte", "lt", "lte", "in", "not_in", "between",
    "like", "not_like", "ilike", "contains", "starts_with", "ends_with",
    "is_null", "is_not_null",
]
JoinType = Literal["inner", "left", "right", "full"]
SortDirection = Literal["asc", "desc"]

# =============================================================================
# FILTER TREE
# =============================================================================
# The dict forms accepted by ResultSet.search() ({"and": [...]}, {"field": ..,
# "op": ..}) can also be spelled with these models.

class FilterCondition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field: str
    op: FilterOp
    value: Optional[Any] = None
    values: Optional[List[Any]] = None
    from_: Optional[Any] = Field(default=None, alias="from")
    to: Optional[Any] = None

class FilterAnd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    and_: List["FilterGroup"] = Field(alias="and")

class FilterOr(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    or_: List["FilterGroup"] = Field(alias="or")

class FilterNot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    not_: "FilterGroup" = Field(alias="not")

FilterGroup = Union[FilterAnd, FilterOr, FilterNot, FilterCondition]

FilterAnd.model_rebuild()
FilterOr.model_rebuild()
FilterNot.model_rebuild()

# =============================================================================
# QUERY PARTS
# =============================================================================

class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    direction: SortDirection = "asc"
    nulls: Optional[Literal["first", "last"]] = None

class ColumnSpec(BaseModel):
    """
    One projected column.

    `expr` is either a column reference ("name", "albums.title") or a SQL
    expression ("COUNT(albums.id)"); `alias` renames it in the result rows.
    """
    model_config = ConfigDict(frozen=True)

    expr: str
    alias: Optional[str] = None

class JoinSpec(BaseModel):
    """
    A join onto the query.

    `on` holds (joined_column, parent_column) pairs, both fully qualified
    with their aliases, compared for equality and AND-ed together.
    """
    model_config = ConfigDict(frozen=True)

    table: str
    alias: str
    on: Tuple[Tuple[str, str], ...]
    join_type: JoinType = "left"
    parent: str = "me"
    relationship: Optional[str] = None
