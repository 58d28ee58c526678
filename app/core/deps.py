"""
FastAPI dependencies: request body, schema registry and user store.

The registry and the store are created in the application lifespan and kept
on `app.state`; tests swap the store through `app.dependency_overrides`.
"""
from __future__ import annotations

import json
from typing import Any

from fastapi import Depends, Request

from app.core.config import Settings, get_settings
from app.core.errors import BadRequestError, InternalError, PayloadTooLargeError
from app.tables.fields import TableSchema
from app.tables.registry import SchemaRegistry
from app.services.users import USER_TABLE, UserStore


async def read_json_body(
    request: Request, settings: Settings = Depends(get_settings)
) -> Any:
    """
    Read the request body, capped at MAX_BODY_BYTES, and parse it as JSON.

    An empty body parses to `None`; routes that need an object let the
    extraction engine reject it.
    """
    limit = settings.MAX_BODY_BYTES
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(limit=limit, received=int(declared))

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise PayloadTooLargeError(limit=limit)
        chunks.append(chunk)

    body = b"".join(chunks)
    if not body.strip():
        return None
    try:
        return json.loads(body)
    # ValueError covers JSONDecodeError and over-long integer literals.
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise BadRequestError(f"Invalid Body: {exc}") from exc


def get_registry(request: Request) -> SchemaRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise InternalError("schema registry is not initialised")
    return registry


def get_user_schema(registry: SchemaRegistry = Depends(get_registry)) -> TableSchema:
    return registry.table(USER_TABLE)


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store
