"""Tests for the table store facade: table resolution, queries and failure mapping."""

from __future__ import annotations

import threading

import pytest

from app.core.exceptions import NotFound, StoreUnavailable
from app.database.table_store import TableStoreClient
from app.scripts.check_users_table import missing_columns

from tests.conftest import USERS_TABLE_ID, FakeSupabase


class TestResolveUsersTable:
    def test_resolves_by_name(self, store: TableStoreClient) -> None:
        assert store.resolve_users_table() == USERS_TABLE_ID

    def test_resolution_is_cached(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        store.resolve_users_table()
        store.resolve_users_table()
        assert fake_supabase.calls.count(("rpc", "list_tables")) == 1

    def test_missing_table_is_not_found(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        fake_supabase.catalog = [t for t in fake_supabase.catalog if t["name"] != "users"]
        with pytest.raises(NotFound):
            store.resolve_users_table()
        assert store.users_table_resolved is False

    def test_failure_is_not_cached(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail_on.add("rpc")
        with pytest.raises(StoreUnavailable):
            store.resolve_users_table()
        fake_supabase.fail_on.clear()
        assert store.resolve_users_table() == USERS_TABLE_ID

    def test_concurrent_first_resolution_agrees(self, store: TableStoreClient) -> None:
        results: list[str] = []

        def resolve() -> None:
            results.append(store.resolve_users_table())

        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == [USERS_TABLE_ID] * 8

    def test_catalog_entry_without_id_is_unavailable(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        fake_supabase.catalog = [{"name": "users"}]
        with pytest.raises(StoreUnavailable):
            store.resolve_users_table()


class TestRows:
    def test_find_returns_empty_list_when_nothing_matches(self, store: TableStoreClient) -> None:
        assert store.find_by_field(USERS_TABLE_ID, "email", "nobody@x.com") == []

    def test_insert_without_echo_has_no_id(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        result = store.insert(USERS_TABLE_ID, {"email": "a@x.com"})
        assert result.success is True
        assert result.inserted_id is None
        assert len(fake_supabase.users) == 1

    def test_insert_with_echo_reports_id(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.echo_inserts = True
        store = TableStoreClient(fake_supabase)
        result = store.insert(USERS_TABLE_ID, {"email": "a@x.com"})
        assert result.inserted_id == fake_supabase.users[0]["id"]

    def test_update_then_refetch(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        store.insert(USERS_TABLE_ID, {"email": "a@x.com", "full_name": "Ada"})
        row_id = fake_supabase.users[0]["id"]
        assert store.update(USERS_TABLE_ID, row_id, {"full_name": "Ada L."}).success is True
        assert store.find_by_field(USERS_TABLE_ID, "id", row_id)[0]["full_name"] == "Ada L."

    @pytest.mark.parametrize("op", ["select", "insert", "update"])
    def test_backend_failure_is_store_unavailable(self, store: TableStoreClient, fake_supabase: FakeSupabase, op: str) -> None:
        fake_supabase.fail_on.add(op)
        with pytest.raises(StoreUnavailable):
            if op == "select":
                store.find_by_field(USERS_TABLE_ID, "email", "a@x.com")
            elif op == "insert":
                store.insert(USERS_TABLE_ID, {"email": "a@x.com"})
            else:
                store.update(USERS_TABLE_ID, "some-id", {"full_name": "x"})

    def test_unexpected_payload_is_store_unavailable(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        fake_supabase.bad_payload_on.add("select")
        with pytest.raises(StoreUnavailable):
            store.find_by_field(USERS_TABLE_ID, "email", "a@x.com")


class TestCheckUsersTable:
    def test_complete_schema(self, store: TableStoreClient) -> None:
        assert missing_columns(store) == []

    def test_reports_missing_columns(self, store: TableStoreClient, fake_supabase: FakeSupabase) -> None:
        users = next(t for t in fake_supabase.catalog if t["name"] == "users")
        users["schema"]["columns"] = [{"name": "email"}, {"name": "created_at"}]
        assert missing_columns(store) == ["password_hash", "full_name", "avatar_url", "updated_at"]
