import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as RowValidationError

from app.core.exceptions import AlreadyExists, InvalidCredentials, NotFound, StoreUnavailable, ValidationError
from app.core.locks import KeyedLock, registration_locks
from app.database.table_store import TableStoreClient
from app.modules.auth.models import PRIVATE_COLUMNS
from app.modules.auth.passwords import hash_password, verify_password
from app.modules.auth.schemas import LoginRequest, RegisterRequest, User
from app.modules.users.schemas import UserUpdate

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sanitize_user(row: Dict[str, Any]) -> User:
    """Build the public User from a raw row, dropping the password digest unconditionally."""
    public = {k: v for k, v in row.items() if k not in PRIVATE_COLUMNS}
    if public.get("id") is not None:
        public["id"] = str(public["id"])
    try:
        return User(**public)
    except RowValidationError as e:
        logger.error(f"Malformed user row {public.get('id')}: {type(e).__name__}")
        raise StoreUnavailable("User store returned a malformed user row") from e


class AuthService:
    def __init__(self, store: TableStoreClient, locks: KeyedLock = registration_locks):
        self.store = store
        self.locks = locks

    def _find_one(self, table_id: str, field_name: str, value: str) -> Optional[Dict[str, Any]]:
        rows = self.store.find_by_field(table_id, field_name, value)
        if not rows:
            return None
        if len(rows) > 1:
            logger.warning(f"{len(rows)} users match on {field_name}; using the first")
        return rows[0]

    def _read_back(self, table_id: str, inserted_id: Optional[str], email: str) -> Dict[str, Any]:
        if inserted_id:
            row = self._find_one(table_id, "id", inserted_id)
        else:
            row = self._find_one(table_id, "email", email)
        if row is None:
            raise StoreUnavailable("Registered user could not be read back from the store")
        return row

    def register(self, register_data: RegisterRequest) -> User:
        """Create a user; the email must not be registered yet. Not idempotent."""
        email = register_data.email
        if not email or not register_data.password:
            raise ValidationError("Email and password are required")

        with self.locks.hold(email):
            table_id = self.store.resolve_users_table()

            if self.store.find_by_field(table_id, "email", email):
                logger.info("Registration rejected: email already registered")
                raise AlreadyExists()

            timestamp = _now().isoformat()
            result = self.store.insert(table_id, {
                "email": email,
                "password_hash": hash_password(register_data.password),
                "full_name": register_data.full_name,
                "avatar_url": None,
                "created_at": timestamp,
                "updated_at": timestamp,
            })

            user = sanitize_user(self._read_back(table_id, result.inserted_id, email))

        logger.info(f"Registered user {user.id}")
        return user

    def login(self, login_data: LoginRequest) -> User:
        """Check email and password. Read-only."""
        table_id = self.store.resolve_users_table()
        row = self._find_one(table_id, "email", login_data.email)

        if row is None or not verify_password(login_data.password, row.get("password_hash") or ""):
            logger.info("Login failed")
            raise InvalidCredentials()

        user = sanitize_user(row)
        logger.info(f"Login: {user.id}")
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Return the user, or None when no row has this id."""
        table_id = self.store.resolve_users_table()
        row = self._find_one(table_id, "id", user_id)
        if row is None:
            return None
        return sanitize_user(row)

    def _next_updated_at(self, previous: Any) -> str:
        now = _now()
        prior = _parse_timestamp(previous)
        if prior is not None and now <= prior:
            now = prior + timedelta(microseconds=1)
        return now.isoformat()

    def update_profile(self, user_id: str, updates: UserUpdate) -> User:
        """Apply the fields present in ``updates`` and return the re-fetched user."""
        table_id = self.store.resolve_users_table()
        current = self._find_one(table_id, "id", user_id)
        if current is None:
            raise NotFound("User not found")

        changes = updates.model_dump(exclude_unset=True)
        update_data: Dict[str, Any] = {}
        for key in ("full_name", "avatar_url"):
            if key in changes:
                update_data[key] = changes[key]

        new_email = changes.get("email")
        if new_email is None or new_email == current.get("email"):
            return self._apply_update(table_id, user_id, current, update_data, changes)

        # Same lock as register, so a rename cannot race a signup for that email
        with self.locks.hold(new_email):
            clash: List[Dict[str, Any]] = self.store.find_by_field(table_id, "email", new_email)
            if any(str(r.get("id")) != str(user_id) for r in clash):
                raise AlreadyExists()
            update_data["email"] = new_email
            return self._apply_update(table_id, user_id, current, update_data, changes)

    def _apply_update(
        self,
        table_id: str,
        user_id: str,
        current: Dict[str, Any],
        update_data: Dict[str, Any],
        changes: Dict[str, Any],
    ) -> User:
        if changes.get("password"):
            update_data["password_hash"] = hash_password(changes["password"])
        update_data["updated_at"] = self._next_updated_at(current.get("updated_at"))

        # Store failures raise StoreUnavailable from the client
        self.store.update(table_id, user_id, update_data)

        # The store does not return the updated row
        updated = self.get_by_id(user_id)
        if updated is None:
            raise NotFound("User not found after update")
        logger.info(f"Updated profile {user_id}: {sorted(k for k in update_data if k != 'password_hash')}")
        return updated
