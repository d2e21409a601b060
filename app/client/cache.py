"""Short-lived cache of the last authenticated user, optionally persisted to a JSON file."""

import json
import logging
import time
from pathlib import Path
from typing import Optional, Union

from app.modules.auth.schemas import User

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class UserCache:
    def __init__(self, path: Optional[Union[str, Path]] = None, ttl_seconds: float = DEFAULT_TTL_SECONDS):
        self.path = Path(path) if path else None
        self.ttl_seconds = ttl_seconds
        self._user: Optional[User] = None
        self._stored_at = 0.0
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self._user = User(**raw["user"])
            self._stored_at = float(raw["stored_at"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning(f"Ignoring unreadable user cache {self.path}: {e}")
            self._user = None
            self._stored_at = 0.0

    def _persist(self) -> None:
        if self.path is None:
            return
        if self._user is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"user": self._user.model_dump(mode="json"), "stored_at": self._stored_at}
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def get(self) -> Optional[User]:
        """The cached user, or None once the TTL has passed."""
        if self._user is None:
            return None
        if time.time() - self._stored_at > self.ttl_seconds:
            self.clear()
            return None
        return self._user

    def set(self, user: User) -> None:
        self._user = user
        self._stored_at = time.time()
        self._persist()

    def clear(self) -> None:
        self._user = None
        self._stored_at = 0.0
        self._persist()
