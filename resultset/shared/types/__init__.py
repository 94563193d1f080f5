"""
Shared Types

Pydantic models for filter trees and query parts.
"""

from resultset.shared.types.models import (
    FilterCondition,
    FilterAnd,
    FilterOr,
    FilterNot,
    FilterGroup,
    FilterOp,
    OrderBy,
    ColumnSpec,
    JoinSpec,
    JoinType,
)

__all__ = [
    "FilterCondition",
    "FilterAnd",
    "FilterOr",
    "FilterNot",
    "FilterGroup",
    "FilterOp",
    "OrderBy",
    "ColumnSpec",
    "JoinSpec",
    "JoinType",
]
