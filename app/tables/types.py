"""
Scalar data kinds understood by the extraction engine.

Every kind has exactly one decoder in `_DECODERS`; `decode()` dispatches on
the kind and returns a `DataValue` tagged with it.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Union

from app.core.errors import ExtractionError

U32_MAX = 2**32 - 1
BYTE_MAX = 2**8 - 1


class DataKind(str, enum.Enum):
    string = "string"
    u32 = "u32"
    enum = "enum"
    byte = "byte"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[DataKind, str] = {
    DataKind.string: "string",
    DataKind.u32: "unsigned 32-bit integer",
    DataKind.enum: "enum (non-negative integer)",
    DataKind.byte: "byte (integer 0-255)",
}


@dataclass(frozen=True)
class DataValue:
    """A decoded field value together with the kind it was decoded as."""
    kind: DataKind
    value: Union[str, int]

    def __str__(self) -> str:
        return str(self.value)


def json_shape(raw: Any) -> str:
    """Name the JSON type of an already-parsed value."""
    # bool first: it is a subclass of int
    if isinstance(raw, bool):
        return "boolean"
    if isinstance(raw, int):
        return "integer"
    if isinstance(raw, float):
        return "float"
    if isinstance(raw, str):
        return "string"
    if raw is None:
        return "null"
    if isinstance(raw, list):
        return "array"
    if isinstance(raw, dict):
        return "object"
    return type(raw).__name__


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------

def _decode_string(raw: Any) -> str:
    if not isinstance(raw, str):
        raise ExtractionError(DataKind.string.label, json_shape(raw), raw)
    return raw


def _bounded_int(kind: DataKind, raw: Any, upper: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ExtractionError(kind.label, json_shape(raw), raw)
    if raw < 0 or raw > upper:
        raise ExtractionError(
            kind.label, "integer", raw,
            reason=f"value {raw} is outside 0..{upper}",
        )
    return raw


def _decode_u32(raw: Any) -> int:
    return _bounded_int(DataKind.u32, raw, U32_MAX)


def _decode_enum(raw: Any) -> int:
    # Discriminants are stored verbatim; only the storage width is enforced.
    return _bounded_int(DataKind.enum, raw, U32_MAX)


def _decode_byte(raw: Any) -> int:
    return _bounded_int(DataKind.byte, raw, BYTE_MAX)


_DECODERS: dict[DataKind, Callable[[Any], Union[str, int]]] = {
    DataKind.string: _decode_string,
    DataKind.u32: _decode_u32,
    DataKind.enum: _decode_enum,
    DataKind.byte: _decode_byte,
}


def decode(kind: DataKind, raw: Any) -> DataValue:
    """Decode one JSON leaf value as `kind`. Raises ExtractionError on mismatch."""
    return DataValue(kind=kind, value=_DECODERS[kind](raw))
