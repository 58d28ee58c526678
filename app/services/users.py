"""
User operations: create / read / update / delete.

Handlers receive data already validated by the extraction engine and never
re-validate it. Persistence goes through a `UserStore`; the shipped
`LoggingUserStore` only records what a real store would have done.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from app.core.errors import SchemaLoadError
from app.tables.fields import TableSchema
from app.tables.types import DataKind
from app.services.extraction import ValidatedFieldMap, take_value

USER_TABLE = "user"
# The field a newly created user is greeted by.
NAME_FIELD = "name"

log = logging.getLogger("app.users")


@dataclass
class OperationResult:
    message: str
    identifier: Optional[int] = None
    name: Optional[str] = None


# ---------------------------------------------------------------------------
# Persistence boundary
# ---------------------------------------------------------------------------

class UserStore(Protocol):
    async def insert(self, schema: TableSchema, fields: ValidatedFieldMap) -> None: ...

    async def fetch(self, schema: TableSchema, user_id: int) -> None: ...

    async def update(self, schema: TableSchema, user_id: int, fields: ValidatedFieldMap) -> None: ...

    async def delete(self, schema: TableSchema, user_id: int) -> None: ...


def describe_fields(schema: TableSchema, fields: ValidatedFieldMap) -> str:
    """Render the present fields in schema order: `name: Alice, type: 2`."""
    parts = [f"{f.name}: {fields[f.name]}" for f in schema if f.name in fields]
    return ", ".join(parts)


class LoggingUserStore:
    """Stand-in for a database: logs the statement it would have issued."""

    async def insert(self, schema: TableSchema, fields: ValidatedFieldMap) -> None:
        log.info("Found User: { %s }", describe_fields(schema, fields))

    async def fetch(self, schema: TableSchema, user_id: int) -> None:
        log.info("User #%d: <retrieved %s>", user_id, ", ".join(schema.field_names))

    async def update(self, schema: TableSchema, user_id: int, fields: ValidatedFieldMap) -> None:
        log.info("Updated User #%d: { %s }", user_id, describe_fields(schema, fields))

    async def delete(self, schema: TableSchema, user_id: int) -> None:
        log.info("User #%d deleted", user_id)


# ---------------------------------------------------------------------------
# Startup check
# ---------------------------------------------------------------------------

def verify_user_table(schema: TableSchema) -> None:
    """Fail startup if the user table lacks what the handlers rely on."""
    name = schema.field(NAME_FIELD)
    if name is None or name.kind != DataKind.string or not name.enforced_on_create:
        raise SchemaLoadError(
            f"table {schema.name} must declare a required, non-generated "
            f"{DataKind.string.value} field {NAME_FIELD}"
        )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

async def create_user(
    schema: TableSchema, fields: ValidatedFieldMap, store: UserStore
) -> OperationResult:
    name = str(take_value(dict(fields), NAME_FIELD, DataKind.string, required=True))
    await store.insert(schema, fields)
    return OperationResult(
        message=f"Welcome, {name}! If this was hooked up to a database, you would be added.",
        name=name,
    )


async def read_user(schema: TableSchema, user_id: int, store: UserStore) -> OperationResult:
    await store.fetch(schema, user_id)
    return OperationResult(
        message=(
            f"Welcome, User #{user_id}! If this was hooked up to a database, "
            "your information would be retrieved."
        ),
        identifier=user_id,
    )


async def update_user(
    schema: TableSchema, user_id: int, fields: ValidatedFieldMap, store: UserStore
) -> OperationResult:
    # TODO: reject updates that carry no field besides the identifier once a real store exists
    await store.update(schema, user_id, fields)
    return OperationResult(
        message=(
            f"Welcome, User #{user_id}! If this was hooked up to a database, "
            "your information would be changed."
        ),
        identifier=user_id,
    )


async def delete_user(schema: TableSchema, user_id: int, store: UserStore) -> OperationResult:
    await store.delete(schema, user_id)
    return OperationResult(
        message=(
            f"Goodbye, User #{user_id}. If this was hooked up to a database, "
            "your information would be deleted."
        ),
        identifier=user_id,
    )