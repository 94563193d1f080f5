"""
Schema Domain

Table metadata, relationships and join resolution.
"""

from resultset.domain.schema.tables import Table, Relationship, RelationshipKind, JoinType
from resultset.domain.schema.registry import Schema
from resultset.domain.schema.loader import load_schema, schema_from_dict

__all__ = [
    "Table",
    "Relationship",
    "RelationshipKind",
    "JoinType",
    "Schema",
    "load_schema",
    "schema_from_dict",
]
