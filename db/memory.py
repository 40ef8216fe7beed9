"""Per-user key-value memory for skill handlers.

Handlers never touch a global store: each invocation receives a
UserMemory scoped to the calling user. UserMemory instances for the same
user share one re-entrant lock, so read-modify-write sequences wrapped in
``memory.locked()`` are serialised per user.

Backends:
- InMemoryBackend: process-local dicts (tests, embedding hosts)
- DatabaseBackend: SQLite / PostgreSQL through DatabaseManager
"""

from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from .database import DatabaseManager
from .models import TrackedMarket

# Keys in the per-user memory
WALLET_KEY = "zigma_wallet"
USAGE_KEY = "zigma_usage"
TRACKED_KEY = "zigma_tracked"
LAST_STRONG_SIGNAL_KEY = "zigma_last_strong_signal"
LAST_DAILY_POST_KEY = "zigma_last_daily_post"
REPLIED_COMMENTS_KEY = "zigma_replied_comments"


class MemoryBackend(ABC):
    """Storage behind UserMemory views."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def load(self, user_id: str, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def store(self, user_id: str, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def user_ids(self) -> List[str]:
        ...

    def lock_for(self, user_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.RLock()
            return lock

    def for_user(self, user_id: str) -> UserMemory:
        return UserMemory(self, user_id)


class InMemoryBackend(MemoryBackend):
    def __init__(self) -> None:
        super().__init__()
        self._data: Dict[str, Dict[str, Any]] = {}

    def load(self, user_id: str, key: str) -> Optional[Any]:
        # Copies keep callers from mutating stored state without a set()
        return copy.deepcopy(self._data.get(user_id, {}).get(key))

    def store(self, user_id: str, key: str, value: Any) -> None:
        self._data.setdefault(user_id, {})[key] = copy.deepcopy(value)

    def user_ids(self) -> List[str]:
        return sorted(self._data)


class DatabaseBackend(MemoryBackend):
    def __init__(self, db: DatabaseManager) -> None:
        super().__init__()
        self.db = db

    def load(self, user_id: str, key: str) -> Optional[Any]:
        return self.db.get_value(user_id, key)

    def store(self, user_id: str, key: str, value: Any) -> None:
        self.db.set_value(user_id, key, value)

    def user_ids(self) -> List[str]:
        return self.db.get_user_ids()


class UserMemory:
    """get/set view of one user's memory."""

    def __init__(self, backend: MemoryBackend, user_id: str) -> None:
        self.backend = backend
        self.user_id = user_id

    def get(self, key: str, default: Any = None) -> Any:
        value = self.backend.load(self.user_id, key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self.backend.store(self.user_id, key, value)

    @contextmanager
    def locked(self) -> Iterator[UserMemory]:
        """Hold this user's lock for a read-modify-write sequence."""
        with self.backend.lock_for(self.user_id):
            yield self


def load_tracked(memory: UserMemory) -> List[TrackedMarket]:
    return [TrackedMarket.from_dict(t) for t in memory.get(TRACKED_KEY) or []]


def save_tracked(memory: UserMemory, tracked: List[TrackedMarket]) -> None:
    memory.set(TRACKED_KEY, [t.to_dict() for t in tracked])
