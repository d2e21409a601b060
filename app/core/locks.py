"""Thread-safe advisory locks keyed by string (e.g. email during registration)."""
import threading
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List

logger = logging.getLogger(__name__)


class KeyedLock:
    """One mutex per key, created on demand and dropped when no holder or waiter remains."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, List] = {}  # key -> [lock, refcount]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._entries[key] = entry
            entry[1] += 1
        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


registration_locks = KeyedLock()
