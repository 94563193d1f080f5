"""
Schema Registry

Holds the tables a resultset can be built on, resolves relationship names
into concrete joins and hands out ResultSet objects bound to an adapter.

Usage:
    schema = Schema([artist, album], adapter=SQLiteAdapter({"database": ":memory:"}))
    rs = schema.resultset("artist").search({"albums.year": {"gte": 1990}}, join="albums")
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from resultset.domain.schema.tables import Relationship, Table
from resultset.errors import invalid_attribute, schema_invalid, unknown_source
from resultset.shared.types.models import JoinSpec

if TYPE_CHECKING:
    from resultset.adapters.base import BaseAdapter
    from resultset.domain.query.resultset import ResultSet

logger = logging.getLogger(__name__)


class Schema:
    """
    A collection of tables plus, optionally, the adapter to run queries on.

    Args:
        tables: Tables to register
        adapter: Adapter used by resultsets created from this schema
        dialect: SQL dialect; defaults to the adapter's dialect
    """

    def __init__(
        self,
        tables: Optional[Iterable[Table]] = None,
        adapter: Optional["BaseAdapter"] = None,
        dialect: Optional[str] = None,
    ):
        self._tables: Dict[str, Table] = {}
        self.adapter = adapter
        self.dialect = dialect
        for table in tables or []:
            self.add_table(table)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_table(self, table: Table) -> Table:
        self._tables[table.name] = table
        return table

    def define(self, name: str, columns: List[str], primary_key: Any = None, **kwargs) -> Table:
        """Create and register a table in one call."""
        if isinstance(primary_key, str):
            primary_key = [primary_key]
        return self.add_table(
            Table(name=name, columns=list(columns), primary_key=list(primary_key or []), **kwargs)
        )

    @property
    def tables(self) -> List[str]:
        return list(self._tables)

    def has_table(self, name: str) -> bool:
        return self._find(name) is not None

    def table(self, name: str) -> Table:
        table = self._find(name)
        if table is None:
            raise unknown_source(name, self.tables)
        return table

    def _find(self, name: str) -> Optional[Table]:
        if name in self._tables:
            return self._tables[name]
        for table in self._tables.values():
            if table.full_name == name:
                return table
        return None

    def validate(self) -> None:
        """Check that every relationship points at a known table and columns."""
        for table in self._tables.values():
            for rel in table.relationships.values():
                target = self._find(rel.target)
                if target is None:
                    raise schema_invalid(
                        f"relationship '{table.name}.{rel.name}' targets unknown table '{rel.target}'",
                        {"table": table.name, "relationship": rel.name, "target": rel.target},
                    )
                for target_col, self_col in rel.on.items():
                    if target.columns and target_col not in target.columns:
                        raise schema_invalid(
                            f"column '{target_col}' not found on '{target.name}'",
                            {"relationship": rel.name},
                        )
                    if table.columns and self_col not in table.columns:
                        raise schema_invalid(
                            f"column '{self_col}' not found on '{table.name}'",
                            {"relationship": rel.name},
                        )

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def connect(self, adapter: "BaseAdapter") -> "Schema":
        """Attach an adapter, connecting it if needed."""
        if not adapter.is_connected():
            adapter.connect()
        self.adapter = adapter
        return self

    def resultset(self, name: str, **kwargs) -> "ResultSet":
        """Return an unrestricted resultset over the named table."""
        from resultset.domain.query.resultset import ResultSet

        table = self.table(name)
        return ResultSet(table.full_name, schema=self, adapter=self.adapter, **kwargs)

    # -------------------------------------------------------------------------
    # Join resolution
    # -------------------------------------------------------------------------

    def resolve_joins(
        self,
        source: str,
        alias: str,
        join: Any,
        existing: Tuple[JoinSpec, ...] = (),
    ) -> Tuple[JoinSpec, ...]:
        """
        Turn a join attribute into JoinSpecs appended after `existing`.

        Accepted forms:
            "albums"                          one relationship
            ["albums", "label"]               several relationships
            {"albums": "tracks"}              nested (tracks joined from albums)
            {"albums": ["tracks", "label"]}   nested, several
            JoinSpec(...)                     explicit join, used as-is

        A relationship already joined from the same parent is not joined twice.
        """
        joins = list(existing)
        aliases = {alias: source}
        for spec in joins:
            aliases[spec.alias] = spec.table
        self._walk(join, source, alias, joins, aliases)
        return tuple(joins)

    def _walk(self, join: Any, table_name: str, parent_alias: str, joins: List[JoinSpec], aliases: Dict[str, str]):
        if join is None:
            return
        if isinstance(join, JoinSpec):
            if join not in joins:
                joins.append(join)
                aliases[join.alias] = join.table
            return
        if isinstance(join, str):
            self._join_one(join, table_name, parent_alias, joins, aliases)
            return
        if isinstance(join, (list, tuple)):
            for item in join:
                self._walk(item, table_name, parent_alias, joins, aliases)
            return
        if isinstance(join, dict):
            for rel_name, nested in join.items():
                spec = self._join_one(rel_name, table_name, parent_alias, joins, aliases)
                self._walk(nested, spec.table, spec.alias, joins, aliases)
            return
        raise invalid_attribute("join", join, "expected a relationship name, list, dict or JoinSpec")

    def _join_one(
        self,
        rel_name: str,
        table_name: str,
        parent_alias: str,
        joins: List[JoinSpec],
        aliases: Dict[str, str],
    ) -> JoinSpec:
        for spec in joins:
            if spec.parent == parent_alias and spec.relationship == rel_name:
                return spec

        rel: Relationship = self.table(table_name).relationship(rel_name)
        target = self.table(rel.target)

        join_alias = rel_name
        suffix = 2
        while join_alias in aliases:
            join_alias = f"{rel_name}_{suffix}"
            suffix += 1

        spec = JoinSpec(
            table=target.full_name,
            alias=join_alias,
            on=tuple(
                (f"{join_alias}.{target_col}", f"{parent_alias}.{self_col}")
                for target_col, self_col in rel.on.items()
            ),
            join_type=rel.join_type.value,
            parent=parent_alias,
            relationship=rel_name,
        )
        logger.debug(f"Resolved join {parent_alias}.{rel_name} -> {target.full_name} AS {join_alias}")
        joins.append(spec)
        aliases[join_alias] = target.full_name
        return spec
