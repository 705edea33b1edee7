"""
Pytest configuration and shared fixtures
"""
import os

os.environ.setdefault("REALTIME_ENABLED", "false")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from hotelops.dependencies import get_cache, get_gateway
from hotelops.errors import RecordNotFound
from hotelops.main import app
from hotelops.schemas.profile import Profile
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import Filter, _jsonable
from hotelops.utils.security import create_access_token


def _matches(row: Dict[str, Any], f: Filter) -> bool:
    if f.op == "or_ilike":
        term = str(f.value).lower()
        return any(term in str(row.get(column) or "").lower() for column in f.column.split(","))
    if f.op == "or_eq":
        return any(row.get(column) == _jsonable(value) for column, value in zip(f.column.split(","), f.value))

    actual = row.get(f.column)
    expected = _jsonable(f.value)
    if f.op == "eq":
        return actual == expected
    if f.op == "gte":
        return actual is not None and actual >= expected
    if f.op == "lte":
        return actual is not None and actual <= expected
    if f.op == "in":
        return actual in expected
    if f.op == "not.is":
        return actual is not expected
    raise AssertionError(f"Unsupported filter {f.op}")


def _project(row: Dict[str, Any], columns: str) -> Dict[str, Any]:
    if "*" in columns or "(" in columns:
        return copy.deepcopy(row)
    return {column: row.get(column) for column in columns.split(",")}


class FakeGateway:
    """In-memory stand-in for SupabaseGateway with call recording and failure injection."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.objects: Dict[tuple, bytes] = {}
        self.rpc_results: Dict[str, Any] = {}
        self.calls: List[tuple] = []
        self._failures: Dict[str, list] = {}

    # ---- test helpers ----

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        stored = [_jsonable(dict(row)) for row in rows]
        self.tables.setdefault(table, []).extend(stored)
        return stored

    def fail_on(self, method: str, exc: Exception, times: Optional[int] = None) -> None:
        """Raise ``exc`` from ``method``; every time, or for the next ``times`` calls."""
        self._failures[method] = [exc, times]

    def calls_to(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        failure = self._failures.get(method)
        if failure is None:
            return
        exc, times = failure
        if times is not None:
            failure[1] = times - 1
            if failure[1] <= 0:
                del self._failures[method]
        raise exc

    def _rows(self, table: str, filters: Sequence[Filter]) -> List[Dict[str, Any]]:
        return [row for row in self.tables.get(table, []) if all(_matches(row, f) for f in filters)]

    @staticmethod
    def _single(rows: List[Dict[str, Any]], table: str) -> Dict[str, Any]:
        if len(rows) != 1:
            raise RecordNotFound(
                f"JSON object requested, multiple (or no) rows returned from {table}",
                status_code=406, code="PGRST116",
            )
        return rows[0]

    # ---- gateway surface ----

    async def select(self, table, columns="*", filters=(), order=None, ascending=True, limit=None, single=False):
        self._record("select", table, list(filters))
        rows = [_project(row, columns) for row in self._rows(table, filters)]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        return self._single(rows, table) if single else rows

    async def count(self, table, filters=()):
        self._record("count", table, list(filters))
        return len(self._rows(table, filters))

    async def insert(self, table, values, single=True):
        self._record("insert", table, values)
        stored = []
        for value in (values if isinstance(values, list) else [values]):
            row = _jsonable(dict(value))
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            self.tables.setdefault(table, []).append(row)
            stored.append(copy.deepcopy(row))
        return stored[0] if single else stored

    async def update(self, table, values, filters, columns="*", single=False):
        self._record("update", table, values, list(filters))
        rows = self._rows(table, filters)
        for row in rows:
            row.update(_jsonable(dict(values)))
        projected = [_project(row, columns) for row in rows]
        return self._single(projected, table) if single else projected

    async def delete(self, table, filters):
        self._record("delete", table, list(filters))
        doomed = self._rows(table, filters)
        self.tables[table] = [row for row in self.tables.get(table, []) if row not in doomed]

    async def rpc(self, function, params):
        self._record("rpc", function, params)
        result = self.rpc_results.get(function)
        return result(params) if callable(result) else result

    async def upload(self, bucket, path, content, content_type=None, cache_control="3600", upsert=False):
        self._record("upload", bucket, path)
        self.objects[(bucket, path)] = content
        return f"{bucket}/{path}"

    async def remove(self, bucket, paths):
        self._record("remove", bucket, list(paths))
        for path in paths:
            self.objects.pop((bucket, path), None)

    async def create_signed_url(self, bucket, path, expires_in):
        self._record("create_signed_url", bucket, path, expires_in)
        return f"http://fake.local/storage/v1/object/sign/{bucket}/{path}?token=signed&expires={expires_in}"

    def public_url(self, bucket, path):
        return f"http://fake.local/storage/v1/object/public/{bucket}/{path}"


def make_profile(role: str, **overrides) -> Profile:
    data = {
        "id": f"{role}-id",
        "email": f"{role}@hotel.test",
        "full_name": role.title(),
        "role": role,
        "is_active": True,
    }
    data.update(overrides)
    return Profile(**data)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def cache():
    return QueryCache()


@pytest.fixture
def admin():
    return make_profile("admin")


@pytest.fixture
def receptionist():
    return make_profile("receptionist")


@pytest.fixture
def housekeeping():
    return make_profile("housekeeping")


@pytest.fixture
def room_type_row():
    return {
        "id": "rt-deluxe",
        "name": "Deluxe",
        "description": "King bed",
        "base_price": 150,
        "max_adults": 2,
        "max_children": 1,
        "is_active": True,
    }


@pytest.fixture
def room_row(room_type_row):
    return {
        "id": "room-101",
        "room_type_id": "rt-deluxe",
        "room_number": "101",
        "floor": 1,
        "status": "available",
        "is_active": True,
        "room_types": room_type_row,
    }


# ============== API Fixtures ==============

@pytest.fixture
def client(gateway, cache):
    """Test client whose requests go to the in-memory gateway"""
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(gateway):
    """Seed a profile for ``role`` and return a bearer header for it"""
    def _headers(role: str, **overrides) -> Dict[str, str]:
        profile = make_profile(role, **overrides)
        gateway.seed("profiles", profile.model_dump())
        token = create_access_token({"sub": profile.id})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def profile_of():
    """Factory for a profile with the given role"""
    return make_profile
