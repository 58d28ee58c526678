"""
Shared pytest fixtures.

The schema comes from the real `config/schema.json`; the user store is
replaced by a recorder so tests can see what would have been persisted.
"""
import pytest
from fastapi.testclient import TestClient

from app.core.config import PROJECT_ROOT
from app.core.deps import get_user_store
from app.main import app
from app.tables.registry import load_registry

SCHEMA_PATH = PROJECT_ROOT / "config" / "schema.json"


class RecordingStore:
    """UserStore that keeps every call instead of logging it."""

    def __init__(self):
        self.calls = []

    async def insert(self, schema, fields):
        self.calls.append(("insert", None, dict(fields)))

    async def fetch(self, schema, user_id):
        self.calls.append(("fetch", user_id, {}))

    async def update(self, schema, user_id, fields):
        self.calls.append(("update", user_id, dict(fields)))

    async def delete(self, schema, user_id):
        self.calls.append(("delete", user_id, {}))


@pytest.fixture(scope="session")
def registry():
    return load_registry(SCHEMA_PATH)


@pytest.fixture()
def user_schema(registry):
    return registry.table("user")


@pytest.fixture()
def store():
    return RecordingStore()


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_user_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
