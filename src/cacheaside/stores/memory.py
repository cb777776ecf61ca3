"""In-process backing store."""

from __future__ import annotations

import threading
from typing import Any, Optional

from cacheaside.models import CacheBundle
from cacheaside.stores.base import CacheStore


class MemoryStore(CacheStore):
    """Dictionary-backed store, mostly useful for tests and short-lived scripts.

    Entries are never evicted by the store itself; expiry is enforced by the
    cache decorator from each bundle's ``expires_at``.
    """

    def __init__(self, namespace: Optional[str] = None) -> None:
        super().__init__(namespace)
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()

    def contains(self, key: str) -> bool:
        with self._lock:
            return self._key(key) in self._entries

    def fetch(self, key: str) -> Optional[CacheBundle]:
        with self._lock:
            value = self._entries.get(self._key(key))
        if value is None:
            return None
        return self._check_bundle(key, value)

    def save(self, key: str, bundle: CacheBundle, ttl: int) -> bool:
        with self._lock:
            self._entries[self._key(key)] = bundle
        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(self._key(key), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
