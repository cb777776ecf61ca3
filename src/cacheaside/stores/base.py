"""Abstract base class for backing stores.

The cache decorator only ever talks to a :class:`CacheStore`, so any
key-value backend can sit behind it.  A store must keep "absent" and
"broken" apart:

* :meth:`CacheStore.fetch` returns ``None`` when the key does not exist.
* A backend failure, or an entry that is not a
  :class:`~cacheaside.models.CacheBundle`, raises
  :class:`~cacheaside.exceptions.CacheFetchError`.

Namespacing is the store's job.  When a ``namespace`` is given, every key is
stored as ``"<namespace>:<key>"``.

To add a backend, subclass :class:`CacheStore` and implement the abstract
methods.  See :mod:`cacheaside.stores.memory`,
:mod:`cacheaside.stores.disk`, and :mod:`cacheaside.stores.redis_store`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from cacheaside.exceptions import CacheFetchError
from cacheaside.models import CacheBundle


class CacheStore(ABC):
    """Key-value capability interface consumed by the cache decorator.

    Args:
        namespace: Optional prefix isolating this store's keys from other
            users of the same backend.
    """

    def __init__(self, namespace: Optional[str] = None) -> None:
        self.namespace = namespace

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Return ``True`` if *key* has an entry in the backend."""

    @abstractmethod
    def fetch(self, key: str) -> Optional[CacheBundle]:
        """Return the bundle stored under *key*, or ``None`` when absent.

        Raises:
            CacheFetchError: If the backend fails or the entry is corrupt.
        """

    @abstractmethod
    def save(self, key: str, bundle: CacheBundle, ttl: int) -> bool:
        """Store *bundle* under *key*, replacing any previous entry.

        Args:
            key: Cache key.
            bundle: The bundle to store.
            ttl: Lifetime in seconds; backends that expire entries on their
                own may use it, the bundle's ``expires_at`` stays authoritative.

        Returns:
            ``True`` if the backend accepted the write.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*.  Deleting a missing key is not an error."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry owned by this store."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of entries currently held."""

    def close(self) -> None:
        """Release backend resources.  The default does nothing."""

    def stats(self) -> dict[str, Any]:
        """Return a summary suitable for display."""
        return {
            "backend": type(self).__name__,
            "namespace": self.namespace,
            "size": len(self),
        }

    def _key(self, key: str) -> str:
        if self.namespace:
            return f"{self.namespace}:{key}"
        return key

    @staticmethod
    def _check_bundle(key: str, value: Any) -> CacheBundle:
        if not isinstance(value, CacheBundle):
            raise CacheFetchError(
                f"Failed to fetch response from cache: entry for {key!r} is not a bundle"
            )
        return value
