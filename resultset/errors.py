"""
resultset - Structured Error Handling

Every error raised while building, compiling or running a query carries a
unique code so it can be searched for in logs, a human-readable message and,
where possible, a suggestion for fixing it.

ERROR DICT FORMAT:
------------------
{
    "error": {
        "code": "ERR_2002",
        "message": "Relationship 'albmus' not found on source 'artist'",
        "details": {
            "relationship": "albmus",
            "source": "artist",
            "available_relationships": ["albums"]
        },
        "suggestion": "Check the relationships declared for 'artist'. Did you mean: albums?"
    }
}
"""

import difflib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# ERROR CODES
# =============================================================================

class ErrorCode(str, Enum):
    """Unique error codes for every error type."""

    # Conditions & query specs (1xxx)
    ERR_INVALID_CONDITION = "ERR_1001"
    ERR_UNKNOWN_OPERATOR = "ERR_1002"
    ERR_INVALID_ATTRIBUTE = "ERR_1003"
    ERR_INVALID_ORDER = "ERR_1004"

    # Schema (2xxx)
    ERR_UNKNOWN_SOURCE = "ERR_2001"
    ERR_UNKNOWN_RELATIONSHIP = "ERR_2002"
    ERR_NO_PRIMARY_KEY = "ERR_2003"
    ERR_SCHEMA_INVALID = "ERR_2004"

    # Compilation (3xxx)
    ERR_UNSUPPORTED_DIALECT = "ERR_3001"
    ERR_UNSUPPORTED_PARAMSTYLE = "ERR_3002"
    ERR_COMPILE_FAILED = "ERR_3003"

    # Execution (4xxx)
    ERR_NO_STORAGE = "ERR_4001"
    ERR_NOT_FOUND = "ERR_4002"

    # Paging (5xxx)
    ERR_INVALID_PAGE = "ERR_5001"


# =============================================================================
# ERROR TYPE
# =============================================================================

@dataclass
class ResultSetError(Exception):
    """
    Structured error with all context needed for debugging.

    Attributes:
        code: Unique error code for searching logs
        message: Human-readable error message
        details: Additional context (dict)
        suggestion: How to fix the issue
    """
    code: ErrorCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    suggestion: Optional[str] = None

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a serializable dict."""
        error_dict = {
            "code": self.code.value,
            "message": self.message,
        }

        if self.details:
            error_dict["details"] = self.details

        if self.suggestion:
            error_dict["suggestion"] = self.suggestion

        error_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

        return {"error": error_dict}

    def log(self, level: str = "error"):
        """Log the error with context."""
        log_msg = f"[{self.code.value}] {self.message}"
        if self.details:
            log_msg += f" | details={self.details}"

        getattr(logger, level)(log_msg)


def _did_you_mean(name: str, candidates: List[str]) -> List[str]:
    return difflib.get_close_matches(name, candidates, n=3, cutoff=0.6)


# =============================================================================
# ERROR FACTORY FUNCTIONS
# =============================================================================

def invalid_condition(condition: Any, reason: str) -> ResultSetError:
    """Create an error for a condition structure that cannot be compiled."""
    return ResultSetError(
        code=ErrorCode.ERR_INVALID_CONDITION,
        message=f"Invalid condition: {reason}",
        details={"condition": repr(condition)[:200]},
        suggestion="Use {'col': value}, {'col': {'op': value}} or {'and'/'or'/'not': ...}",
    )


def unknown_operator(operator: str, known_operators: List[str]) -> ResultSetError:
    """Create unknown operator error."""
    suggestion = f"Supported operators: {', '.join(sorted(known_operators))}"
    similar = _did_you_mean(operator, known_operators)
    if similar:
        suggestion = f"Did you mean: {', '.join(similar)}?"

    return ResultSetError(
        code=ErrorCode.ERR_UNKNOWN_OPERATOR,
        message=f"Unknown operator '{operator}'",
        details={"operator": operator},
        suggestion=suggestion,
    )


def invalid_attribute(name: str, value: Any, reason: str) -> ResultSetError:
    """Create invalid search attribute error."""
    return ResultSetError(
        code=ErrorCode.ERR_INVALID_ATTRIBUTE,
        message=f"Invalid value for '{name}': {reason}",
        details={"attribute": name, "value": repr(value)[:200]},
    )


def invalid_order(order: Any) -> ResultSetError:
    """Create invalid order_by error."""
    return ResultSetError(
        code=ErrorCode.ERR_INVALID_ORDER,
        message=f"Cannot interpret order_by entry {order!r}",
        details={"order_by": repr(order)[:200]},
        suggestion="Use 'col', 'col desc', {'desc': 'col'} or {'field': 'col', 'direction': 'desc'}",
    )


def unknown_source(source: str, available_sources: Optional[List[str]] = None) -> ResultSetError:
    """Create source not found error with helpful context."""
    details: Dict[str, Any] = {"source": source}
    suggestion = f"Register a table named '{source}' on the schema"

    if available_sources:
        details["available_sources"] = available_sources[:10]
        similar = _did_you_mean(source, available_sources)
        if similar:
            suggestion += f". Did you mean: {', '.join(similar)}?"

    return ResultSetError(
        code=ErrorCode.ERR_UNKNOWN_SOURCE,
        message=f"Source '{source}' not found",
        details=details,
        suggestion=suggestion,
    )


def unknown_relationship(
    relationship: str,
    source: str,
    available_relationships: Optional[List[str]] = None,
) -> ResultSetError:
    """Create relationship not found error."""
    details: Dict[str, Any] = {"relationship": relationship, "source": source}
    suggestion = f"Check the relationships declared for '{source}'"

    if available_relationships:
        details["available_relationships"] = available_relationships[:10]
        similar = _did_you_mean(relationship, available_relationships)
        if similar:
            suggestion += f". Did you mean: {', '.join(similar)}?"

    return ResultSetError(
        code=ErrorCode.ERR_UNKNOWN_RELATIONSHIP,
        message=f"Relationship '{relationship}' not found on source '{source}'",
        details=details,
        suggestion=suggestion,
    )


def no_primary_key(source: str, operation: str) -> ResultSetError:
    """Create error for operations that need a single-column primary key."""
    return ResultSetError(
        code=ErrorCode.ERR_NO_PRIMARY_KEY,
        message=f"Source '{source}' has no single-column primary key, required for {operation}",
        details={"source": source, "operation": operation},
        suggestion="Declare primary_key on the table, or drop joins/limits from the resultset",
    )


def schema_invalid(reason: str, details: Optional[Dict[str, Any]] = None) -> ResultSetError:
    """Create schema definition error."""
    return ResultSetError(
        code=ErrorCode.ERR_SCHEMA_INVALID,
        message=f"Invalid schema definition: {reason}",
        details=details or {},
    )


def unsupported_dialect(dialect: str, supported: List[str]) -> ResultSetError:
    """Create unsupported dialect error."""
    suggestion = f"Supported dialects: {', '.join(sorted(supported))}"
    similar = _did_you_mean(dialect, supported)
    if similar:
        suggestion = f"Did you mean: {', '.join(similar)}?"

    return ResultSetError(
        code=ErrorCode.ERR_UNSUPPORTED_DIALECT,
        message=f"Unsupported SQL dialect '{dialect}'",
        details={"dialect": dialect},
        suggestion=suggestion,
    )


def unsupported_paramstyle(paramstyle: str, supported: List[str]) -> ResultSetError:
    """Create unsupported paramstyle error."""
    return ResultSetError(
        code=ErrorCode.ERR_UNSUPPORTED_PARAMSTYLE,
        message=f"Unsupported paramstyle '{paramstyle}'",
        details={"paramstyle": paramstyle},
        suggestion=f"Supported paramstyles: {', '.join(supported)}",
    )


def compile_failed(reason: str, source: Optional[str] = None) -> ResultSetError:
    """Create compilation failure error."""
    return ResultSetError(
        code=ErrorCode.ERR_COMPILE_FAILED,
        message=f"Failed to compile query: {reason}",
        details={"source": source} if source else {},
    )


def no_storage(source: str) -> ResultSetError:
    """Create error for execution attempts on a resultset without an adapter."""
    return ResultSetError(
        code=ErrorCode.ERR_NO_STORAGE,
        message=f"Resultset for '{source}' has no database adapter attached",
        details={"source": source},
        suggestion="Pass adapter= to the Schema or ResultSet, or use as_sql() to inspect the query",
    )


def not_found(source: str, criteria: Any) -> ResultSetError:
    """Create error for lookups that require a row to exist."""
    return ResultSetError(
        code=ErrorCode.ERR_NOT_FOUND,
        message=f"No row in '{source}' matches {criteria!r}",
        details={"source": source, "criteria": repr(criteria)[:200]},
    )


def invalid_page(reason: str, page: Any = None, rows: Any = None) -> ResultSetError:
    """Create invalid paging error."""
    return ResultSetError(
        code=ErrorCode.ERR_INVALID_PAGE,
        message=f"Invalid paging: {reason}",
        details={"page": page, "rows": rows},
        suggestion="Set rows=<n> together with page=<n>, both positive integers",
    )
