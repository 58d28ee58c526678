"""
Extraction engine: JSON request body + table schema -> validated field map.

Public API
----------
extract(body, schema, policy)        -> ValidatedFieldMap
extract_identifier(body, schema)     -> int
identifier_from_path(raw, schema)    -> int
take_identifier(fields, schema)      -> int
take_value(fields, name, kind)       -> str | int | None

Extraction is pure and fail-fast: the first missing or malformed field
raises BadRequestError and nothing else is looked at.
"""
from __future__ import annotations

import enum
from typing import Any, Union

from app.core.errors import (
    BadRequestError,
    ExtractionError,
    InternalError,
    json_fragment,
)
from app.tables.fields import FieldDescriptor, TableSchema
from app.tables.types import U32_MAX, DataKind, DataValue

ValidatedFieldMap = dict[str, DataValue]


class Policy(str, enum.Enum):
    """Which fields a request has to carry."""
    create = "create"      # every required, non-generated field
    update = "update"      # any subset of the non-identifier fields
    identify = "identify"  # the identifier field only


def _fields_for(schema: TableSchema, policy: Policy) -> list[FieldDescriptor]:
    if policy == Policy.identify:
        return [schema.identifier_field]
    if policy == Policy.update:
        return [f for f in schema if f.name != schema.identifier]
    return list(schema)


def _missing(field: FieldDescriptor, schema: TableSchema, policy: Policy) -> BadRequestError | None:
    if policy == Policy.create and field.enforced_on_create:
        return BadRequestError(
            f"field {field.name} is listed as required, but was not included in the request body",
            field=field.name,
        )
    if policy == Policy.identify:
        return BadRequestError(
            f"{field.name} field is required to identify a {schema.name}, "
            "but was not included in the request",
            field=field.name,
        )
    return None


def extract(body: Any, schema: TableSchema, policy: Policy) -> ValidatedFieldMap:
    """Validate `body` against `schema` under `policy`.

    Keys the schema does not know are ignored.
    """
    if not isinstance(body, dict):
        raise BadRequestError(
            f"failed to parse JSON as object, JSON: {json_fragment(body)} "
            "(body should be a map)"
        )

    result: ValidatedFieldMap = {}
    for field in _fields_for(schema, policy):
        if field.name not in body:
            error = _missing(field, schema, policy)
            if error is not None:
                raise error
            continue

        raw = body[field.name]
        try:
            result[field.name] = field.extract(raw)
        except ExtractionError as exc:
            raise BadRequestError(
                f"field {field.name} is not formatted properly: {exc}; JSON: {json_fragment(raw)}",
                field=field.name,
            ) from exc
    return result


# ---------------------------------------------------------------------------
# Identifier helpers
# ---------------------------------------------------------------------------

def take_identifier(fields: ValidatedFieldMap, schema: TableSchema) -> int:
    """Remove the identifier from a validated map and return it."""
    value = fields.pop(schema.identifier, None)
    if value is None:
        raise BadRequestError(
            f"no {schema.identifier}; the {schema.identifier} field is required "
            f"to identify a {schema.name}",
            field=schema.identifier,
        )
    if value.kind != DataKind.u32:
        raise InternalError(
            f"wrong type; expected {DataKind.u32.label}, found {value.kind.label}; "
            f"value: {value}"
        )
    return value.value  # type: ignore[return-value]


def extract_identifier(body: Any, schema: TableSchema) -> int:
    return take_identifier(extract(body, schema, Policy.identify), schema)


def identifier_from_path(raw: str, schema: TableSchema) -> int:
    """Decode an identifier taken from the URL path.

    The segment is read as a JSON integer and then goes through the same
    field decoder as a body identifier, so range rules are shared.
    """
    if not raw.isascii() or not raw.isdigit():
        raise BadRequestError(
            f"path segment {raw!r} is not a valid {schema.identifier}; "
            f"expected {DataKind.u32.label}",
            field=schema.identifier,
        )
    digits = raw.lstrip("0") or "0"
    if len(digits) > len(str(U32_MAX)):
        raise BadRequestError(
            f"path segment for {schema.identifier} is outside 0..{U32_MAX}",
            field=schema.identifier,
        )
    return extract_identifier({schema.identifier: int(digits)}, schema)


def take_value(
    fields: ValidatedFieldMap, name: str, kind: DataKind, required: bool = False
) -> Union[str, int, None]:
    """Pop `name` from a validated map, checking the tag the engine produced.

    A tag mismatch, or a required value the engine let through as absent,
    means the schema and the caller disagree: InternalError.
    """
    value = fields.pop(name, None)
    if value is None:
        if required:
            raise InternalError(f"value for field {name} not found (internal)")
        return None
    if value.kind != kind:
        raise InternalError(
            f"wrong type; expected {kind.label}, found {value.kind.label}; value: {value}"
        )
    return value.value
