"""Backing stores for the cache decorator.

Every store implements :class:`~cacheaside.stores.base.CacheStore`:

* :class:`MemoryStore` -- in-process dictionary.
* :class:`DiskStore` -- :mod:`diskcache` directory on the local filesystem.
* :class:`RedisStore` -- a Redis server via redis-py.

:func:`create_store` builds one of them from a
:class:`~cacheaside.models.StoreConfig`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from cacheaside.models import StoreBackend, StoreConfig
from cacheaside.stores.base import CacheStore
from cacheaside.stores.disk import DiskStore
from cacheaside.stores.memory import MemoryStore
from cacheaside.stores.redis_store import RedisStore

__all__ = ["CacheStore", "DiskStore", "MemoryStore", "RedisStore", "create_store"]


def create_store(config: StoreConfig, default_directory: Optional[Path] = None) -> CacheStore:
    """Build the store selected by *config*.

    Args:
        config: Store selection and backend parameters.
        default_directory: Directory used by the disk backend when
            ``config.directory`` is unset.

    Returns:
        A ready-to-use :class:`CacheStore`.
    """
    if config.backend == StoreBackend.MEMORY:
        return MemoryStore(namespace=config.namespace)
    if config.backend == StoreBackend.REDIS:
        return RedisStore.from_url(config.redis_url, namespace=config.namespace)

    directory = config.directory or default_directory
    if directory is None:
        from cacheaside.config import get_cache_dir

        directory = get_cache_dir()
    return DiskStore(directory, namespace=config.namespace)
