"""Test fixtures: an in-memory stand-in for the Supabase client.

FakeSupabase implements the slice of the supabase-py query builder that
TableStoreClient uses: ``rpc(fn, params).execute()`` for the table catalog and
``table(id).select/insert/update(...).eq(field, value).execute()`` for rows.
Inserts echo the stored row only when ``echo_inserts`` is set, mirroring a
store that answers with a bare success flag.
"""

from __future__ import annotations

import copy
import threading
import time
import uuid
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.core.locks import KeyedLock
from app.core.rate_limit import limiter
from app.database.table_store import TableStoreClient, get_table_store
from app.main import app
from app.modules.auth.models import USERS_COLUMNS
from app.modules.auth.service import AuthService

USERS_TABLE_ID = "tbl_users_01"


class StoreDown(Exception):
    """Simulated network failure."""


class FakeResponse:
    def __init__(self, data: Any) -> None:
        self.data = data


class FakeRpc:
    def __init__(self, db: FakeSupabase, fn: str) -> None:
        self.db = db
        self.fn = fn

    def execute(self) -> FakeResponse:
        self.db.calls.append(("rpc", self.fn))
        self.db.maybe_fail("rpc")
        if self.fn != "list_tables":
            raise StoreDown(f"unknown function {self.fn}")
        return FakeResponse(copy.deepcopy(self.db.catalog))


class FakeQuery:
    def __init__(self, db: FakeSupabase, table_id: str) -> None:
        self.db = db
        self.table_id = table_id
        self.op = "select"
        self.payload: dict[str, Any] | None = None
        self.filters: list[tuple[str, Any]] = []

    def select(self, *columns: str) -> FakeQuery:
        self.op = "select"
        return self

    def insert(self, row: dict[str, Any]) -> FakeQuery:
        self.op = "insert"
        self.payload = row
        return self

    def update(self, data: dict[str, Any]) -> FakeQuery:
        self.op = "update"
        self.payload = data
        return self

    def eq(self, field: str, value: Any) -> FakeQuery:
        self.filters.append((field, value))
        return self

    def execute(self) -> FakeResponse:
        return self.db.run(self)


class FakeSupabase:
    def __init__(self, echo_inserts: bool = False, select_delay: float = 0.0) -> None:
        self.echo_inserts = echo_inserts
        self.select_delay = select_delay
        self.rows: dict[str, list[dict[str, Any]]] = {USERS_TABLE_ID: []}
        self.catalog: list[dict[str, Any]] = [
            {"id": "tbl_jobs_07", "name": "jobs", "schema": {"columns": [{"name": "title"}]}},
            {
                "id": USERS_TABLE_ID,
                "name": "users",
                "schema": {"columns": [{"name": c} for c in USERS_COLUMNS]},
            },
        ]
        self.drop_on_update = False  # row vanishes between update and re-fetch
        self.fail_on: set[str] = set()
        self.bad_payload_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def rpc(self, fn: str, params: dict[str, Any] | None = None) -> FakeRpc:
        return FakeRpc(self, fn)

    def table(self, table_id: str) -> FakeQuery:
        return FakeQuery(self, table_id)

    def maybe_fail(self, op: str) -> None:
        if op in self.fail_on:
            raise StoreDown(f"{op}: connection reset by peer")

    def _matches(self, row: dict[str, Any], filters: list[tuple[str, Any]]) -> bool:
        return all(str(row.get(f)) == str(v) for f, v in filters)

    def run(self, query: FakeQuery) -> FakeResponse:
        self.calls.append((query.op, query.table_id))
        self.maybe_fail(query.op)
        if query.op in self.bad_payload_on:
            return FakeResponse({"unexpected": "shape"})
        table = self.rows.setdefault(query.table_id, [])

        if query.op == "select":
            if self.select_delay:
                time.sleep(self.select_delay)
            with self._lock:
                return FakeResponse([copy.deepcopy(r) for r in table if self._matches(r, query.filters)])

        if query.op == "insert":
            with self._lock:
                row = {"id": str(uuid.uuid4()), **copy.deepcopy(query.payload)}
                table.append(row)
            return FakeResponse([copy.deepcopy(row)] if self.echo_inserts else [])

        with self._lock:
            if self.drop_on_update:
                table[:] = [r for r in table if not self._matches(r, query.filters)]
                return FakeResponse([])
            for row in table:
                if self._matches(row, query.filters):
                    row.update(copy.deepcopy(query.payload))
        return FakeResponse([])

    @property
    def users(self) -> list[dict[str, Any]]:
        return self.rows[USERS_TABLE_ID]


@pytest.fixture()
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def store(fake_supabase: FakeSupabase) -> TableStoreClient:
    return TableStoreClient(fake_supabase, users_table_name="users", list_tables_function="list_tables")


@pytest.fixture()
def service(store: TableStoreClient) -> AuthService:
    return AuthService(store, locks=KeyedLock())


@pytest.fixture()
def client(store: TableStoreClient):
    limiter.reset()
    app.dependency_overrides[get_table_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
