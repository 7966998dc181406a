# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import uuid
from types import SimpleNamespace
from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from main import create_app
from core.config import settings
from core.local_store import LocalStore, SITE_NAMESPACE
from core.rate_limiter import limiter
from core.session import AppContext, Identity
from core.site_config import ConfigStore
from dependencies.auth import get_app_context, get_config_store
from models.enums import Role


# ============================================================
# In-memory Supabase stand-in
# ============================================================
class PermissionDenied(Exception):
    """Shaped like a PostgREST APIError for an RLS rejection."""

    def __init__(self, message="permission denied for table"):
        super().__init__(message)
        self.message = message
        self.code = "42501"


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_col = None
        self.desc = False
        self.max_rows = None
        self.ignore_duplicates = False

    def select(self, *_):
        self.op = "select"
        return self

    def insert(self, data):
        self.op, self.payload = "insert", data
        return self

    def update(self, data):
        self.op, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict=None, ignore_duplicates=False):
        self.op, self.payload = "upsert", data
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_col, self.desc = column, desc
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def execute(self):
        self.client.calls.append((self.table, self.op, self.payload))

        error = self.client.errors.get((self.table, self.op))
        if error is not None:
            raise error

        rows = self.client.rows.setdefault(self.table, [])

        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self.order_col:
                found.sort(key=lambda r: str(r.get(self.order_col) or ""), reverse=self.desc)
            if self.max_rows:
                found = found[: self.max_rows]
            return SimpleNamespace(data=found)

        if self.op == "insert":
            row = {"id": uuid.uuid4().hex, **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        if self.op == "upsert":
            key = getattr(self, "on_conflict", None) or "id"
            existing = [r for r in rows if r.get(key) == self.payload.get(key)]
            if existing:
                if not self.ignore_duplicates:
                    existing[0].update(self.payload)
                return SimpleNamespace(data=[])
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[dict(self.payload)])

        if self.op == "update":
            changed = []
            for r in rows:
                if self._matches(r):
                    r.update(self.payload)
                    changed.append(dict(r))
            return SimpleNamespace(data=changed)

        if self.op == "delete":
            self.client.rows[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=[])

        raise AssertionError(f"unsupported op {self.op}")


class FakeSupabase:
    def __init__(self):
        self.rows = {}
        self.errors = {}
        self.calls = []
        self.auth = Mock()

    def table(self, name):
        return FakeQuery(self, name)

    def deny(self, table, op="select"):
        self.errors[(table, op)] = PermissionDenied()

    def writes(self, table=None):
        return [
            c for c in self.calls
            if c[1] in ("insert", "update", "upsert", "delete") and (table is None or c[0] == table)
        ]


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def mock_scheduler():
    """Stands in for the APScheduler background scheduler."""
    return Mock()


# ============================================================
# Local state
# ============================================================
@pytest.fixture(autouse=True)
def local_state_dir(tmp_path, monkeypatch):
    """Every test gets its own device-local storage root."""
    root = tmp_path / "state"
    monkeypatch.setattr(settings, "LOCAL_STATE_DIR", str(root))
    return root


@pytest.fixture
def config_store(local_state_dir):
    return ConfigStore(LocalStore(SITE_NAMESPACE))


@pytest.fixture(autouse=True)
def reset_runtime_state():
    """Reset rate limits and chat widgets before each test."""
    from services.chat_widget import close_all_chat_widgets

    limiter.reset()
    close_all_chat_widgets()
    yield
    limiter.reset()
    close_all_chat_widgets()


# ============================================================
# Contexts
# ============================================================
@pytest.fixture
def make_context(fake_supabase, config_store):
    def factory(role=Role.admin, email="admin@abs.test", uid="user-1", signed_in=True):
        identity = Identity(uid=uid, email=email, display_name=None, access_token="token") if signed_in else None
        return AppContext(
            identity=identity,
            role=role if signed_in else None,
            config=config_store,
            client=fake_supabase if signed_in else None,
            device_id="device-1",
        )
    return factory


# ============================================================
# Application
# ============================================================
@pytest.fixture(scope="function")
def app():
    """Create a test FastAPI application instance."""
    return create_app()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def as_role(app, make_context, config_store):
    """Serve every request with a context for the given role."""
    def apply(role=Role.admin, **kwargs):
        ctx = make_context(role=role, **kwargs)

        def override():
            yield ctx

        app.dependency_overrides[get_app_context] = override
        app.dependency_overrides[get_config_store] = lambda: config_store
        return ctx

    yield apply
    app.dependency_overrides.clear()
