"""
Custom exception hierarchy for the user gateway.

Rule: every HTTP error body is `{code, message}` where `code` is the numeric
HTTP status, so clients can branch on it without parsing English messages.
"""
from __future__ import annotations

import enum
import json
import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("app.errors")


class ErrorKind(str, enum.Enum):
    bad_request = "bad_request"
    internal = "internal"
    not_found = "not_found"
    method_not_allowed = "method_not_allowed"
    payload_too_large = "payload_too_large"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.bad_request: status.HTTP_400_BAD_REQUEST,
    ErrorKind.internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.method_not_allowed: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorKind.payload_too_large: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
}


def status_for(kind: ErrorKind) -> int:
    """Map an error kind to the HTTP status it is reported with."""
    return _STATUS_BY_KIND[kind]


def json_fragment(raw: Any) -> str:
    """Compact JSON rendering of a client value, for error messages."""
    return json.dumps(raw, separators=(",", ":"), ensure_ascii=False)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class AppError(Exception):
    """Base class for all errors that end up as an HTTP error response."""
    kind: ErrorKind = ErrorKind.internal

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return status_for(self.kind)

    def to_dict(self) -> dict:
        return {"code": self.http_status, "message": self.message}


class BadRequestError(AppError):
    """Client-correctable problem with the request body or parameters."""
    kind = ErrorKind.bad_request

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InternalError(AppError):
    """The schema registry and the engine disagree. Never the client's fault."""
    kind = ErrorKind.internal


class NotFoundError(AppError):
    kind = ErrorKind.not_found

    def __init__(self, message: str = "Not Found"):
        super().__init__(message)


class MethodNotAllowedError(AppError):
    kind = ErrorKind.method_not_allowed

    def __init__(self, message: str = "Method Not Allowed"):
        super().__init__(message)


class PayloadTooLargeError(AppError):
    kind = ErrorKind.payload_too_large

    def __init__(self, limit: int, received: int | None = None):
        self.limit = limit
        self.received = received
        if received is None:
            message = f"request body exceeds the limit of {limit} bytes"
        else:
            message = f"request body of {received} bytes exceeds the limit of {limit} bytes"
        super().__init__(message)


class ExtractionError(Exception):
    """A single JSON value does not decode into the expected data kind."""

    def __init__(self, expected: str, found: str, raw: Any, reason: str | None = None):
        self.expected = expected
        self.found = found
        self.raw = raw
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.reason:
            return f"expected {self.expected}, {self.reason}"
        return f"expected {self.expected}, found {self.found}"


class SchemaError(ValueError):
    """A table or field definition is inconsistent."""


class SchemaLoadError(RuntimeError):
    """The schema document could not be loaded. Fatal at startup."""


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InternalError):
        log.error("internal error on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        log.info(
            "rejected %s %s with %d: %s",
            request.method, request.url.path, exc.http_status, exc.message,
        )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Routing-level failures (unknown path, wrong verb) in the uniform envelope."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        err: AppError = NotFoundError()
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        err = MethodNotAllowedError()
    else:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.status_code, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=err.http_status,
        content=err.to_dict(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Parameter validation done by FastAPI itself is reported as a 400."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        problems.append(f"{location}: {error['msg']}")
    err = BadRequestError("invalid request: " + "; ".join(problems))
    return JSONResponse(status_code=err.http_status, content=err.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "message": "An unexpected error occurred.",
        },
    )
