"""
Field and table descriptors.

Both are immutable and built once when the schema document is loaded.
"""
from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from app.core.errors import ExtractionError, SchemaError
from app.tables.types import DataKind, DataValue, decode


@dataclass(frozen=True)
class FieldDescriptor:
    """Schema metadata for one field plus the extraction function for it."""
    name: str
    kind: DataKind
    required: bool = False
    # Server-assigned (e.g. ids): never demanded from the client on create.
    generated: bool = False
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    _compiled: Optional[re.Pattern] = dataclasses.field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise SchemaError("field name must not be empty")
        if (self.max_length is not None or self.pattern is not None) and self.kind != DataKind.string:
            raise SchemaError(
                f"field {self.name}: max_length/pattern only apply to string fields"
            )
        if self.max_length is not None and self.max_length < 1:
            raise SchemaError(f"field {self.name}: max_length must be positive")
        if self.pattern is not None:
            try:
                compiled = re.compile(self.pattern)
            except re.error as exc:
                raise SchemaError(f"field {self.name}: invalid pattern: {exc}") from exc
            object.__setattr__(self, "_compiled", compiled)

    @property
    def enforced_on_create(self) -> bool:
        return self.required and not self.generated

    def extract(self, raw: Any) -> DataValue:
        """Decode one JSON value for this field. Pure; raises ExtractionError."""
        value = decode(self.kind, raw)
        if self.kind == DataKind.string:
            self._check_format(value.value)
        return value

    def _check_format(self, text: str) -> None:
        if self.max_length is not None and len(text) > self.max_length:
            raise ExtractionError(
                self.kind.label, "string", text,
                reason=f"length {len(text)} exceeds the maximum of {self.max_length}",
            )
        if self._compiled is not None and not self._compiled.fullmatch(text):
            raise ExtractionError(
                self.kind.label, "string", text,
                reason=f"value does not match the pattern {self.pattern}",
            )


@dataclass(frozen=True)
class TableSchema:
    """A named, declaration-ordered set of fields with one identifier field."""
    name: str
    fields: tuple[FieldDescriptor, ...]
    identifier: str = "id"
    _by_name: dict[str, FieldDescriptor] = dataclasses.field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        by_name: dict[str, FieldDescriptor] = {}
        for f in self.fields:
            if f.name in by_name:
                raise SchemaError(f"table {self.name}: duplicate field {f.name}")
            by_name[f.name] = f
        object.__setattr__(self, "_by_name", by_name)

        ident = by_name.get(self.identifier)
        if ident is None:
            raise SchemaError(
                f"table {self.name}: identifier field {self.identifier} is not declared"
            )
        if ident.kind != DataKind.u32:
            raise SchemaError(
                f"table {self.name}: identifier field {self.identifier} must be of kind "
                f"{DataKind.u32.value}, not {ident.kind.value}"
            )

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def has_field(self, name: str) -> bool:
        return name in self._by_name

    def field(self, name: str) -> Optional[FieldDescriptor]:
        return self._by_name.get(name)

    @property
    def identifier_field(self) -> FieldDescriptor:
        return self._by_name[self.identifier]

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]
