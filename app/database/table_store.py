"""
Typed facade over the external table store.

The store is reached through four primitives only: list the table catalog,
query rows by an equality predicate, insert a row and update a row by id.
Every failure of the underlying client, and every response that does not have
the expected shape, surfaces as ``StoreUnavailable``.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from supabase import Client

from app.config import settings
from app.core.exceptions import NotFound, StoreUnavailable
from app.database.supabase_client import get_supabase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableInfo:
    id: str
    name: str
    schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def column_names(self) -> List[str]:
        return [c.get("name") for c in self.schema.get("columns", []) if isinstance(c, dict)]


# Both results only exist for successful calls; failures raise StoreUnavailable
@dataclass(frozen=True)
class InsertResult:
    success: bool
    inserted_id: Optional[str] = None  # best effort; the store may not echo the row


@dataclass(frozen=True)
class UpdateResult:
    success: bool


class TableStoreClient:
    def __init__(
        self,
        supabase: Client,
        users_table_name: str = "users",
        list_tables_function: str = "list_tables",
    ):
        self.supabase = supabase
        self.users_table_name = users_table_name
        self.list_tables_function = list_tables_function
        self._users_table_id: Optional[str] = None
        self._resolve_lock = threading.Lock()

    def _execute(self, operation: str, query) -> Any:
        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"Table store {operation} failed: {e}")
            raise StoreUnavailable(f"Table store {operation} failed") from e
        data = getattr(result, "data", None)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.error(f"Table store {operation} returned unexpected payload: {type(data).__name__}")
            raise StoreUnavailable(f"Table store {operation} returned an unexpected response")
        return data

    def list_tables(self) -> List[TableInfo]:
        rows = self._execute("list_tables", self.supabase.rpc(self.list_tables_function, {}))
        tables = []
        for row in rows:
            if not isinstance(row, dict) or "id" not in row or "name" not in row:
                raise StoreUnavailable("Table catalog entry is missing id or name")
            tables.append(TableInfo(id=str(row["id"]), name=row["name"], schema=row.get("schema") or {}))
        return tables

    def find_users_table(self) -> TableInfo:
        for table in self.list_tables():
            if table.name == self.users_table_name:
                return table
        raise NotFound(f"Table '{self.users_table_name}' not found")

    def resolve_users_table(self) -> str:
        """Return the backend id of the users table, resolving it once per client."""
        if self._users_table_id is not None:
            return self._users_table_id
        with self._resolve_lock:
            if self._users_table_id is None:
                table = self.find_users_table()
                self._users_table_id = table.id
                logger.info(f"Resolved table '{self.users_table_name}' to '{table.id}'")
        return self._users_table_id

    @property
    def users_table_resolved(self) -> bool:
        return self._users_table_id is not None

    def find_by_field(self, table_id: str, field_name: str, value: Any) -> List[Dict[str, Any]]:
        rows = self._execute(
            "query",
            self.supabase.table(table_id).select("*").eq(field_name, value),
        )
        if not all(isinstance(row, dict) for row in rows):
            raise StoreUnavailable("Table store query returned malformed rows")
        return rows

    def insert(self, table_id: str, row: Dict[str, Any]) -> InsertResult:
        rows = self._execute("insert", self.supabase.table(table_id).insert(row))
        inserted_id = None
        if rows and isinstance(rows[0], dict) and rows[0].get("id") is not None:
            inserted_id = str(rows[0]["id"])
        return InsertResult(success=True, inserted_id=inserted_id)

    def update(self, table_id: str, record_id: str, partial_row: Dict[str, Any]) -> UpdateResult:
        self._execute(
            "update",
            self.supabase.table(table_id).update(partial_row).eq("id", record_id),
        )
        return UpdateResult(success=True)


_table_store: Optional[TableStoreClient] = None
_table_store_lock = threading.Lock()


def get_table_store() -> TableStoreClient:
    """Process-wide store client, so the users-table resolution is shared by all requests."""
    global _table_store
    if _table_store is None:
        with _table_store_lock:
            if _table_store is None:
                _table_store = TableStoreClient(
                    get_supabase(),
                    users_table_name=settings.users_table_name,
                    list_tables_function=settings.list_tables_function,
                )
    return _table_store


def reset_table_store() -> None:
    global _table_store
    _table_store = None
