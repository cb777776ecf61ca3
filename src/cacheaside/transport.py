"""httpx transports that route requests through :class:`~cacheaside.handler.CacheHandler`.

:class:`CacheTransport` wraps a synchronous :class:`httpx.BaseTransport` and
:class:`AsyncCacheTransport` an asynchronous one.  Mount either on an httpx
client and every request it sends goes through the cache::

    transport = CacheTransport(httpx.HTTPTransport(), DiskStore("/tmp/c"), {"ttl": 60})
    with httpx.Client(transport=transport) as client:
        client.get("https://example.com/")

The request-scoped options used in the cache key are the request's
``extensions`` minus callables (so the ``timeout`` counts, a ``trace`` hook
does not).
"""

from __future__ import annotations

from typing import Any, Mapping, Union

import httpx

from cacheaside.handler import CacheHandler
from cacheaside.models import CacheOptions
from cacheaside.stores.base import CacheStore


def request_options(request: httpx.Request) -> dict[str, Any]:
    """Return the serialisable subset of ``request.extensions``."""
    return {
        name: value for name, value in request.extensions.items() if not callable(value)
    }


class CacheTransport(httpx.BaseTransport):
    """Synchronous caching transport.

    Args:
        transport: The transport that performs the real network call.
        store: Backing store for cached responses.
        options: Cache options or a mapping of overrides.
        **handler_kwargs: Forwarded to :class:`~cacheaside.handler.CacheHandler`
            (``logger``, ``log_level``, ``log_template``, ``clock``).
    """

    def __init__(
        self,
        transport: httpx.BaseTransport,
        store: CacheStore,
        options: Union[CacheOptions, Mapping[str, Any], None] = None,
        **handler_kwargs: Any,
    ) -> None:
        self._transport = transport
        self.handler = CacheHandler(store, self._send, options, **handler_kwargs)

    def _send(self, request: httpx.Request, options: dict[str, Any]) -> httpx.Response:
        return self._transport.handle_request(request)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self.handler(request, request_options(request))

    def close(self) -> None:
        self._transport.close()


class AsyncCacheTransport(httpx.AsyncBaseTransport):
    """Asynchronous caching transport.

    Cache hits resolve without touching the inner transport; misses await the
    inner transport and store the response in the same continuation.

    Args:
        transport: The async transport that performs the real network call.
        store: Backing store for cached responses.
        options: Cache options or a mapping of overrides.
        **handler_kwargs: Forwarded to :class:`~cacheaside.handler.CacheHandler`.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        store: CacheStore,
        options: Union[CacheOptions, Mapping[str, Any], None] = None,
        **handler_kwargs: Any,
    ) -> None:
        self._transport = transport
        self.handler = CacheHandler(store, self._send, options, **handler_kwargs)

    async def _send(self, request: httpx.Request, options: dict[str, Any]) -> httpx.Response:
        return await self._transport.handle_async_request(request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.handler(request, request_options(request))

    async def aclose(self) -> None:
        await self._transport.aclose()

