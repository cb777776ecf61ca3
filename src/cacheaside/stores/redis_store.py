"""Redis-backed store.

Bundles are written as JSON (body base64-encoded) with a native Redis
expiry, so entries disappear from Redis on their own shortly after the
bundle's ``expires_at``.  Keys are always namespaced; the default namespace
is ``cacheaside``.
"""

from __future__ import annotations

from typing import Optional

import redis
from pydantic import ValidationError

from cacheaside.exceptions import CacheFetchError, CacheStoreError
from cacheaside.models import CacheBundle
from cacheaside.stores.base import CacheStore

DEFAULT_NAMESPACE = "cacheaside"


class RedisStore(CacheStore):
    """Store backed by a synchronous :class:`redis.Redis` client.

    Args:
        client: A connected redis-py client.
        namespace: Key prefix; defaults to :data:`DEFAULT_NAMESPACE`.

    Example::

        store = RedisStore(redis.Redis.from_url("redis://localhost:6379/0"))
    """

    def __init__(self, client: redis.Redis, namespace: Optional[str] = DEFAULT_NAMESPACE) -> None:
        super().__init__(namespace or DEFAULT_NAMESPACE)
        self._client = client

    @classmethod
    def from_url(cls, url: str, namespace: Optional[str] = DEFAULT_NAMESPACE) -> RedisStore:
        """Create a store with a client connected to *url*."""
        return cls(redis.Redis.from_url(url), namespace=namespace)

    def contains(self, key: str) -> bool:
        try:
            return bool(self._client.exists(self._key(key)))
        except redis.RedisError as exc:
            raise CacheFetchError(f"Failed to query cache for {key!r}: {exc}") from exc

    def fetch(self, key: str) -> Optional[CacheBundle]:
        try:
            raw = self._client.get(self._key(key))
        except redis.RedisError as exc:
            raise CacheFetchError(f"Failed to fetch response from cache: {exc}") from exc
        if raw is None:
            return None
        try:
            return CacheBundle.model_validate_json(raw)
        except ValidationError as exc:
            raise CacheFetchError(
                f"Failed to fetch response from cache: corrupt entry for {key!r}"
            ) from exc

    def save(self, key: str, bundle: CacheBundle, ttl: int) -> bool:
        try:
            result = self._client.set(
                self._key(key), bundle.model_dump_json(), ex=max(int(ttl), 1)
            )
        except redis.RedisError as exc:
            raise CacheStoreError(f"Failed to store response to cache: {exc}") from exc
        return bool(result)

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))

    def clear(self) -> None:
        keys = list(self._client.scan_iter(match=f"{self.namespace}:*"))
        if keys:
            self._client.delete(*keys)

    def __len__(self) -> int:
        return sum(1 for _ in self._client.scan_iter(match=f"{self.namespace}:*"))

    def close(self) -> None:
        self._client.close()
