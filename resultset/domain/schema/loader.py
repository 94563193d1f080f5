"""
YAML schema loading.

    tables:
      artist:
        columns: [id, name]
        primary_key: id
        relationships:
          albums: {kind: has_many, target: album, on: {artist_id: id}}
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml

from resultset.domain.schema.registry import Schema
from resultset.domain.schema.tables import Table
from resultset.errors import schema_invalid


def schema_from_dict(data: Dict[str, Any]) -> Schema:
    tables = data.get("tables")
    if not isinstance(tables, dict):
        raise schema_invalid("top-level 'tables' mapping is required")

    schema = Schema(dialect=data.get("dialect"))
    for name, table_data in tables.items():
        schema.add_table(Table.from_dict(name, table_data or {}))
    schema.validate()
    return schema


def load_schema(path: Union[str, Path]) -> Schema:
    with open(path, "r", encoding="utf-8") as f:
        return schema_from_dict(yaml.safe_load(f) or {})
