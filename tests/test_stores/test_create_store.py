"""Tests for create_store backend selection."""

from __future__ import annotations

from unittest.mock import patch

from cacheaside.models import StoreBackend, StoreConfig
from cacheaside.stores import DiskStore, MemoryStore, RedisStore, create_store


class TestCreateStore:
    def test_memory(self) -> None:
        store = create_store(StoreConfig(backend=StoreBackend.MEMORY, namespace="x"))
        assert isinstance(store, MemoryStore)
        assert store.namespace == "x"

    def test_disk_explicit_directory(self, tmp_path) -> None:
        store = create_store(StoreConfig(backend="disk", directory=str(tmp_path / "c")))
        try:
            assert isinstance(store, DiskStore)
            assert store.directory == tmp_path / "c" / "responses"
        finally:
            store.close()

    def test_disk_default_directory_argument(self, tmp_path) -> None:
        store = create_store(StoreConfig(), default_directory=tmp_path)
        try:
            assert store.directory == tmp_path / "responses"
        finally:
            store.close()

    def test_disk_falls_back_to_xdg_cache(self, isolated_config) -> None:
        store = create_store(StoreConfig())
        try:
            assert store.directory == isolated_config / "cache" / "cacheaside" / "responses"
        finally:
            store.close()

    def test_redis(self) -> None:
        with patch("cacheaside.stores.redis_store.redis.Redis.from_url") as from_url:
            store = create_store(
                StoreConfig(backend="redis", redis_url="redis://cache:6379/2", namespace="api")
            )
        from_url.assert_called_once_with("redis://cache:6379/2")
        assert isinstance(store, RedisStore)
        assert store.namespace == "api"
