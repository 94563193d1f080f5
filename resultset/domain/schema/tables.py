"""
Table & Relationship Metadata

Describes the sources a resultset can query and the relationships that
can be joined by name:

- Table: name, ordered columns, primary key, relationships
- Relationship: target table, join condition, cardinality, join type

Join conditions follow the "foreign column -> self column" convention:
Relationship("albums", target="album", on={"artist_id": "id"}) joins
album.artist_id = artist.id.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from resultset.errors import schema_invalid, unknown_relationship

logger = logging.getLogger(__name__)


class RelationshipKind(str, Enum):
    """Relationship cardinality, seen from the declaring table."""
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    MIGHT_HAVE = "might_have"
    HAS_MANY = "has_many"


class JoinType(str, Enum):
    """SQL join type."""
    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"
    FULL = "full"


@dataclass
class Relationship:
    """
    A named relationship from one table to another.

    Attributes:
        name: Relationship (and default join alias) name
        target: Target table name
        on: Mapping of target column -> declaring table column
        kind: Cardinality of the relationship
        join_type: SQL join type; defaults to inner for belongs_to, left otherwise
    """
    name: str
    target: str
    on: Dict[str, str]
    kind: RelationshipKind = RelationshipKind.BELONGS_TO
    join_type: Optional[JoinType] = None

    def __post_init__(self):
        self.kind = RelationshipKind(self.kind)
        if self.join_type is None:
            self.join_type = (
                JoinType.INNER if self.kind == RelationshipKind.BELONGS_TO else JoinType.LEFT
            )
        else:
            self.join_type = JoinType(self.join_type)
        if not self.on:
            raise schema_invalid(
                f"relationship '{self.name}' has no join columns",
                {"relationship": self.name, "target": self.target},
            )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "target": self.target,
            "on": dict(self.on),
            "kind": self.kind.value,
            "join_type": self.join_type.value,
        }

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "Relationship":
        return cls(
            name=name,
            target=data["target"],
            on=dict(data.get("on", {})),
            kind=data.get("kind", RelationshipKind.BELONGS_TO),
            join_type=data.get("join_type"),
        )


@dataclass
class Table:
    """
    A queryable source.

    Attributes:
        name: Table name
        columns: Ordered column names (selected when no columns are requested)
        primary_key: Primary key column names
        relationships: Relationships keyed by name
        db: Optional schema/database qualifier
    """
    name: str
    columns: List[str] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    relationships: Dict[str, Relationship] = field(default_factory=dict)
    db: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.db}.{self.name}" if self.db else self.name

    def add_relationship(self, relationship: Relationship) -> "Table":
        if relationship.name in self.relationships:
            logger.warning(f"Replacing relationship '{relationship.name}' on '{self.name}'")
        self.relationships[relationship.name] = relationship
        return self

    def belongs_to(self, name: str, target: str, on: Dict[str, str], **kwargs) -> "Table":
        return self.add_relationship(
            Relationship(name, target, on, kind=RelationshipKind.BELONGS_TO, **kwargs)
        )

    def has_many(self, name: str, target: str, on: Dict[str, str], **kwargs) -> "Table":
        return self.add_relationship(
            Relationship(name, target, on, kind=RelationshipKind.HAS_MANY, **kwargs)
        )

    def might_have(self, name: str, target: str, on: Dict[str, str], **kwargs) -> "Table":
        return self.add_relationship(
            Relationship(name, target, on, kind=RelationshipKind.MIGHT_HAVE, **kwargs)
        )

    def has_one(self, name: str, target: str, on: Dict[str, str], **kwargs) -> "Table":
        return self.add_relationship(
            Relationship(name, target, on, kind=RelationshipKind.HAS_ONE, **kwargs)
        )

    def relationship(self, name: str) -> Relationship:
        try:
            return self.relationships[name]
        except KeyError:
            raise unknown_relationship(name, self.name, list(self.relationships)) from None

    @property
    def single_primary_key(self) -> Optional[str]:
        if len(self.primary_key) == 1:
            return self.primary_key[0]
        return None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "primary_key": list(self.primary_key),
            "relationships": {n: r.to_dict() for n, r in self.relationships.items()},
            "db": self.db,
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Table":
        primary_key: Union[str, List[str]] = data.get("primary_key", [])
        if isinstance(primary_key, str):
            primary_key = [primary_key]

        table = cls(
            name=name,
            columns=list(data.get("columns", [])),
            primary_key=list(primary_key),
            db=data.get("db"),
        )
        for rel_name, rel_data in (data.get("relationships") or {}).items():
            table.add_relationship(Relationship.from_dict(rel_name, rel_data))
        return table
