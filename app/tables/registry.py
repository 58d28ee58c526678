"""
Schema registry: resource name -> TableSchema.

Built once by `load_registry()` during application startup and never
mutated afterwards, so request handlers share it without locking.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.errors import InternalError, SchemaError, SchemaLoadError
from app.tables.fields import FieldDescriptor, TableSchema
from app.tables.types import DataKind

log = logging.getLogger("app.tables")


# ---------------------------------------------------------------------------
# Schema document shape
# ---------------------------------------------------------------------------

class FieldConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    kind: DataKind
    required: bool = False
    generated: bool = False
    max_length: Optional[int] = None
    pattern: Optional[str] = None


class TableConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    identifier: str = "id"
    fields: list[FieldConfig] = Field(min_length=1)


class SchemaDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tables: dict[str, TableConfig] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class SchemaRegistry:
    """Read-only mapping of resource names to their table schemas."""

    def __init__(self, tables: Mapping[str, TableSchema]):
        self._tables: Mapping[str, TableSchema] = MappingProxyType(dict(tables))

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    @property
    def tables(self) -> Mapping[str, TableSchema]:
        return self._tables

    def table(self, name: str) -> TableSchema:
        """Return the schema for `name`.

        A missing table means the server asked for something its own schema
        document does not declare, which is a server-side fault.
        """
        schema = self._tables.get(name)
        if schema is None:
            raise InternalError(f"table {name} is not defined in the schema registry")
        return schema


def build_registry(document: SchemaDocument) -> SchemaRegistry:
    tables: dict[str, TableSchema] = {}
    for table_name, table in document.tables.items():
        fields = tuple(
            FieldDescriptor(
                name=f.name,
                kind=f.kind,
                required=f.required,
                generated=f.generated,
                max_length=f.max_length,
                pattern=f.pattern,
            )
            for f in table.fields
        )
        tables[table_name] = TableSchema(
            name=table_name, fields=fields, identifier=table.identifier
        )
    return SchemaRegistry(tables)


def load_registry(path: Path | str) -> SchemaRegistry:
    """Read and validate the schema document at `path`.

    Raises SchemaLoadError for anything that prevents a usable registry:
    unreadable file, invalid JSON, wrong document shape or an inconsistent
    table definition.
    """
    path = Path(path)
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"cannot read schema document {path}: {exc}") from exc

    try:
        raw = json.loads(source)
    except json.JSONDecodeError as exc:
        raise SchemaLoadError(f"schema document {path} is not valid JSON: {exc}") from exc

    try:
        document = SchemaDocument.model_validate(raw)
        registry = build_registry(document)
    except (ValidationError, SchemaError) as exc:
        raise SchemaLoadError(f"schema document {path} is invalid: {exc}") from exc

    log.info(
        "loaded %d table(s) from %s: %s",
        len(registry), path, ", ".join(sorted(registry)),
    )
    return registry
