"""Factories for httpx clients mounted on the caching transports.

Both factories take the store explicitly; nothing is looked up from the
environment.  When no inner transport is passed, a plain
:class:`httpx.HTTPTransport` / :class:`httpx.AsyncHTTPTransport` is created.

Example::

    config = resolve_config()
    store = create_store(config.store)
    with build_client(config, store) as client:
        client.get("https://api.example.com/users")
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from cacheaside.models import GlobalConfig
from cacheaside.stores.base import CacheStore
from cacheaside.transport import AsyncCacheTransport, CacheTransport


def build_transport(
    config: GlobalConfig,
    store: CacheStore,
    transport: Optional[httpx.BaseTransport] = None,
    logger: Optional[logging.Logger] = None,
) -> CacheTransport:
    """Wrap *transport* (or a new :class:`httpx.HTTPTransport`) in a :class:`CacheTransport`."""
    return CacheTransport(
        transport or httpx.HTTPTransport(),
        store,
        config.cache.to_options(),
        logger=logger,
        log_level=config.log.level,
        log_template=config.log.template,
    )


def build_client(
    config: GlobalConfig,
    store: CacheStore,
    transport: Optional[httpx.BaseTransport] = None,
    logger: Optional[logging.Logger] = None,
) -> httpx.Client:
    """Return an :class:`httpx.Client` whose requests go through the cache."""
    return httpx.Client(
        transport=build_transport(config, store, transport, logger),
        timeout=config.timeout,
        follow_redirects=True,
    )


def build_async_client(
    config: GlobalConfig,
    store: CacheStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    logger: Optional[logging.Logger] = None,
) -> httpx.AsyncClient:
    """Return an :class:`httpx.AsyncClient` whose requests go through the cache."""
    cache_transport = AsyncCacheTransport(
        transport or httpx.AsyncHTTPTransport(),
        store,
        config.cache.to_options(),
        logger=logger,
        log_level=config.log.level,
        log_template=config.log.template,
    )
    return httpx.AsyncClient(
        transport=cache_transport,
        timeout=config.timeout,
        follow_redirects=True,
    )
