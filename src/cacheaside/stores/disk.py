"""Disk-backed store built on :mod:`diskcache`.

Bundles are pickled into a :class:`diskcache.Cache` directory (SQLite plus
files under the hood).  The ttl passed to :meth:`DiskStore.save` is also
handed to diskcache as ``expire=`` so stale entries are evicted by the
backend even if nobody asks for them again.

Backend exceptions are wrapped so the decorator can tell a broken cache
from an empty one:

* reads raise :class:`~cacheaside.exceptions.CacheFetchError`
* writes raise :class:`~cacheaside.exceptions.CacheStoreError`
"""

from __future__ import annotations

import pickle
import sqlite3
from pathlib import Path
from typing import Any, Optional

import diskcache

from cacheaside.exceptions import CacheFetchError, CacheStoreError
from cacheaside.models import CacheBundle
from cacheaside.stores.base import CacheStore

_MISSING = object()
_BACKEND_ERRORS = (sqlite3.Error, OSError, pickle.UnpicklingError, EOFError)


class DiskStore(CacheStore):
    """Persistent store under ``<directory>/responses``.

    Args:
        directory: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.
        namespace: Optional key prefix.

    Example::

        store = DiskStore("/tmp/http-cache", namespace="github")
        handler = CacheHandler(store, transport)
    """

    def __init__(self, directory: str | Path, namespace: Optional[str] = None) -> None:
        super().__init__(namespace)
        self._directory = Path(directory) / "responses"
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def contains(self, key: str) -> bool:
        try:
            return self._key(key) in self._backend()
        except _BACKEND_ERRORS as exc:
            raise CacheFetchError(f"Failed to query cache for {key!r}: {exc}") from exc

    def fetch(self, key: str) -> Optional[CacheBundle]:
        try:
            value = self._backend().get(self._key(key), default=_MISSING, retry=True)
        except _BACKEND_ERRORS as exc:
            raise CacheFetchError(f"Failed to fetch response from cache: {exc}") from exc
        if value is _MISSING:
            return None
        return self._check_bundle(key, value)

    def save(self, key: str, bundle: CacheBundle, ttl: int) -> bool:
        try:
            return bool(
                self._backend().set(self._key(key), bundle, expire=ttl, retry=True)
            )
        except _BACKEND_ERRORS as exc:
            raise CacheStoreError(f"Failed to store response to cache: {exc}") from exc

    def delete(self, key: str) -> None:
        self._backend().delete(self._key(key), retry=True)

    def clear(self) -> None:
        cache = self._backend()
        if not self.namespace:
            cache.clear(retry=True)
            return
        for stored in self._own_keys(cache):
            cache.delete(stored, retry=True)

    def __len__(self) -> int:
        cache = self._backend()
        if not self.namespace:
            return len(cache)
        return len(self._own_keys(cache))

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`.  Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def stats(self) -> dict[str, Any]:
        summary = super().stats()
        summary["directory"] = str(self._directory)
        return summary

    def _backend(self) -> diskcache.Cache:
        if self._cache is None:
            raise CacheFetchError(f"Disk store at {self._directory} has been closed")
        return self._cache

    def _own_keys(self, cache: diskcache.Cache) -> list[str]:
        prefix = f"{self.namespace}:"
        return [
            stored for stored in cache.iterkeys()
            if isinstance(stored, str) and stored.startswith(prefix)
        ]
