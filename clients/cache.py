"""In-memory response cache with per-entry TTL.

Entries expire lazily: get() and has() drop an expired entry when they
see it, and size() sweeps the whole map. There is no background eviction.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    data: Any
    expiry: float


class ResponseCache:
    def __init__(self, default_ttl: float = 600.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = CacheEntry(data=value, expiry=self._clock() + ttl)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._live_entry(key)
            return entry.data if entry else None

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Count live entries, evicting expired ones on the way."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now > e.expiry]
            for key in expired:
                del self._entries[key]
            return len(self._entries)

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expiry:
            del self._entries[key]
            return None
        return entry
