"""
Tests for error handling: the exception classes, status mapping and the
uniform `{code, message}` error body.
"""
import pytest
from fastapi.testclient import TestClient

from app.core.deps import get_user_schema, get_user_store
from app.core.errors import (
    BadRequestError,
    ErrorKind,
    ExtractionError,
    InternalError,
    MethodNotAllowedError,
    NotFoundError,
    PayloadTooLargeError,
    status_for,
)
from app.main import app


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    @pytest.mark.parametrize("kind,code", [
        (ErrorKind.bad_request, 400),
        (ErrorKind.internal, 500),
        (ErrorKind.not_found, 404),
        (ErrorKind.method_not_allowed, 405),
        (ErrorKind.payload_too_large, 413),
    ])
    def test_status_mapping(self, kind, code):
        assert status_for(kind) == code

    def test_every_kind_is_mapped(self):
        for kind in ErrorKind:
            assert status_for(kind) >= 400

    def test_bad_request(self):
        err = BadRequestError("field name is missing", field="name")
        assert err.http_status == 400
        assert err.field == "name"
        assert err.to_dict() == {"code": 400, "message": "field name is missing"}

    def test_internal(self):
        assert InternalError("boom").to_dict() == {"code": 500, "message": "boom"}

    def test_defaults(self):
        assert NotFoundError().to_dict() == {"code": 404, "message": "Not Found"}
        assert MethodNotAllowedError().message == "Method Not Allowed"

    def test_payload_too_large(self):
        err = PayloadTooLargeError(limit=16384, received=20000)
        assert err.http_status == 413
        assert "16384" in err.message
        assert "20000" in err.message

    def test_extraction_error_message(self):
        assert str(ExtractionError("string", "integer", 5)) == "expected string, found integer"
        err = ExtractionError("byte", "integer", 300, reason="value 300 is outside 0..255")
        assert str(err) == "expected byte, value 300 is outside 0..255"


# ---------------------------------------------------------------------------
# Integration tests on HTTP error responses
# ---------------------------------------------------------------------------

class TestTransportErrors:
    def test_unknown_route(self, client):
        r = client.get("/user/5/friends")
        assert r.status_code == 404
        assert r.json() == {"code": 404, "message": "Not Found"}

    def test_wrong_method(self, client):
        r = client.put("/update", json={"id": 1})
        assert r.status_code == 405
        assert r.json() == {"code": 405, "message": "Method Not Allowed"}

    def test_invalid_json(self, client):
        r = client.post("/", content=b"{not json", headers={"content-type": "application/json"})
        assert r.status_code == 400
        assert r.json()["message"].startswith("Invalid Body")

    def test_integer_literal_too_long_to_convert(self, client, store):
        body = b'{"name":"Alice","email":"a@x.com","type":1' + b"0" * 5000 + b"}"
        r = client.post("/", content=body, headers={"content-type": "application/json"})
        assert r.status_code == 400
        assert r.json()["message"].startswith("Invalid Body")
        assert store.calls == []

    def test_nesting_too_deep_to_parse(self, client):
        body = b"[" * 8000 + b"]" * 8000
        r = client.post("/", content=body, headers={"content-type": "application/json"})
        assert r.status_code == 400
        assert set(r.json()) == {"code", "message"}
        assert r.json()["message"].startswith("Invalid Body")

    @pytest.mark.parametrize("path", ["/api", "/register", "/update", "/unsubscribe"])
    def test_get_on_fixed_path_is_wrong_method(self, client, store, path):
        r = client.get(path)
        assert r.status_code == 405
        assert r.json() == {"code": 405, "message": "Method Not Allowed"}
        assert store.calls == []

    def test_body_over_limit_rejected_before_parsing(self, client, store):
        oversized = b"{" + b" " * (16 * 1024) + b"}"
        r = client.post("/", content=oversized, headers={"content-type": "application/json"})
        assert r.status_code == 413
        assert r.json()["code"] == 413
        assert store.calls == []

    def test_body_at_limit_is_parsed(self, client):
        body = b'{"name":"Alice","email":"a@x.com","type":2}'
        padded = body[:-1] + b" " * (16 * 1024 - len(body)) + b"}"
        assert len(padded) == 16 * 1024
        r = client.post("/", content=padded, headers={"content-type": "application/json"})
        assert r.status_code == 202


class TestServerErrors:
    def test_missing_table_is_internal(self, client, registry):
        def broken_schema():
            return registry.table("orders")

        app.dependency_overrides[get_user_schema] = broken_schema
        r = client.post("/", json={"name": "Alice", "email": "a@x.com", "type": 2})
        assert r.status_code == 500
        assert r.json()["code"] == 500
        assert "orders" in r.json()["message"]

    def test_unhandled_error_is_generic_500(self):
        class ExplodingStore:
            async def fetch(self, schema, user_id):
                raise RuntimeError("database password is hunter2")

        app.dependency_overrides[get_user_store] = lambda: ExplodingStore()
        try:
            with TestClient(app, raise_server_exceptions=False) as c:
                r = c.get("/5")
        finally:
            app.dependency_overrides.clear()
        assert r.status_code == 500
        assert r.json() == {"code": 500, "message": "An unexpected error occurred."}
