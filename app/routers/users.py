"""
User router.

POST   /  /api  /register      — create (body: all required fields)
GET    /login                  — read   (body: {id})
GET    /{user_id}              — read
PATCH  /update                 — update (body: {id, ...partial fields})
PATCH  /user/{user_id}         — update (body: partial fields)
DELETE /unsubscribe            — delete (body: {id})
DELETE /user/{user_id}         — delete

Every success is 202 Accepted with `{message}`. The fixed paths are
registered before `/{user_id}` so they are not read as identifiers; a GET
on one of them that only serves other methods is a 405.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from app.core.deps import get_user_schema, get_user_store, read_json_body
from app.core.errors import MethodNotAllowedError
from app.tables.fields import TableSchema
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.extraction import (
    Policy,
    extract,
    extract_identifier,
    identifier_from_path,
    take_identifier,
)
from app.services.users import (
    UserStore,
    create_user,
    delete_user,
    read_user,
    update_user,
)

router = APIRouter(tags=["users"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Malformed body, missing or badly formatted field."},
    413: {"model": ErrorResponse, "description": "Request body larger than the configured limit."},
    500: {"model": ErrorResponse, "description": "Schema / engine inconsistency."},
}
_ACCEPTED = {
    "response_model": MessageResponse,
    "status_code": status.HTTP_202_ACCEPTED,
    "responses": _ERRORS,
}


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

async def _create(
    body: Any = Depends(read_json_body),
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
) -> MessageResponse:
    """
    Register a new user. Every required field that is not server-generated
    must be present; unknown keys are ignored.
    """
    fields = extract(body, schema, Policy.create)
    result = await create_user(schema, fields, store)
    return MessageResponse(message=result.message)


for _path in ("/", "/api", "/register"):
    router.add_api_route(
        _path, _create, methods=["POST"], summary="Create a user",
        name=f"create_user{_path.replace('/', '_')}", **_ACCEPTED,
    )


# ---------------------------------------------------------------------------
# Body-identified routes
# ---------------------------------------------------------------------------

@router.get("/login", summary="Read a user identified in the body", **_ACCEPTED)
async def read_by_body(
    body: Any = Depends(read_json_body),
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
):
    """Body: `{"id": <u32>}`. Other keys are ignored."""
    user_id = extract_identifier(body, schema)
    result = await read_user(schema, user_id, store)
    return MessageResponse(message=result.message)


@router.patch("/update", summary="Update a user identified in the body", **_ACCEPTED)
async def update_by_body(
    body: Any = Depends(read_json_body),
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
):
    """
    Body: `{"id": <u32>, ...}`. Any subset of the remaining fields may be
    sent; each one present is validated.
    """
    fields = extract(body, schema, Policy.identify)
    user_id = take_identifier(fields, schema)
    changes = extract(body, schema, Policy.update)
    result = await update_user(schema, user_id, changes, store)
    return MessageResponse(message=result.message)


@router.delete("/unsubscribe", summary="Delete a user identified in the body", **_ACCEPTED)
async def delete_by_body(
    body: Any = Depends(read_json_body),
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
):
    """Body: `{"id": <u32>}`."""
    user_id = extract_identifier(body, schema)
    result = await delete_user(schema, user_id, store)
    return MessageResponse(message=result.message)


# ---------------------------------------------------------------------------
# Path-identified routes
# ---------------------------------------------------------------------------

@router.patch("/user/{user_id}", summary="Update a user", **_ACCEPTED)
async def update_by_path(
    user_id: str,
    body: Any = Depends(read_json_body),
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
):
    """An `id` key in the body is ignored; the path decides which user changes."""
    ident = identifier_from_path(user_id, schema)
    changes = extract(body, schema, Policy.update)
    result = await update_user(schema, ident, changes, store)
    return MessageResponse(message=result.message)


@router.delete("/user/{user_id}", summary="Delete a user", **_ACCEPTED)
async def delete_by_path(
    user_id: str,
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
):
    ident = identifier_from_path(user_id, schema)
    result = await delete_user(schema, ident, store)
    return MessageResponse(message=result.message)


@router.get("/{user_id}", summary="Read a user", **_ACCEPTED)
async def read_by_path(
    user_id: str,
    schema: TableSchema = Depends(get_user_schema),
    store: UserStore = Depends(get_user_store),
):
    if user_id in _fixed_paths():
        # /api, /update etc. exist for other methods only
        raise MethodNotAllowedError()
    ident = identifier_from_path(user_id, schema)
    result = await read_user(schema, ident, store)
    return MessageResponse(message=result.message)


def _fixed_paths() -> set[str]:
    """Single-segment literal paths of this router, e.g. {"api", "update"}."""
    return {
        route.path.strip("/")
        for route in router.routes
        if "{" not in route.path and route.path.count("/") == 1
    }
