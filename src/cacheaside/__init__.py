"""cacheaside -- a cache-aside transport for outbound HTTP requests.

Wrap any httpx transport (or any ``(request, options)`` callable) so that
cacheable requests are answered from a backing store when a fresh entry
exists, and otherwise forwarded upstream and recorded for reuse::

    import httpx
    from cacheaside import CacheTransport, DiskStore

    transport = CacheTransport(httpx.HTTPTransport(), DiskStore("/tmp/http-cache"), {"ttl": 60})
    with httpx.Client(transport=transport) as client:
        client.get("https://api.example.com/users")   # upstream, stored
        client.get("https://api.example.com/users")   # served from the store

Modules:
    handler: The cache-aside decorator.
    transport: httpx sync/async transport adapters.
    stream: Replayable response body.
    stores: Backing store interface and implementations.
    models: Pydantic models for options, bundles, and configuration.
    messages: Log message templating.
    config: XDG-aware configuration loading and precedence.
    app: Typer command line.
"""

__version__ = "0.1.0"

from cacheaside.exceptions import (  # noqa: E402
    CacheAsideError,
    CacheError,
    CacheFetchError,
    CacheStoreError,
    InvalidUsageError,
)
from cacheaside.handler import CacheHandler, cache_key  # noqa: E402
from cacheaside.models import CacheBundle, CacheOptions  # noqa: E402
from cacheaside.stores import (  # noqa: E402
    CacheStore,
    DiskStore,
    MemoryStore,
    RedisStore,
    create_store,
)
from cacheaside.stream import ReplayableStream  # noqa: E402
from cacheaside.transport import AsyncCacheTransport, CacheTransport  # noqa: E402

__all__ = [
    "AsyncCacheTransport",
    "CacheAsideError",
    "CacheBundle",
    "CacheError",
    "CacheFetchError",
    "CacheHandler",
    "CacheOptions",
    "CacheStore",
    "CacheStoreError",
    "CacheTransport",
    "DiskStore",
    "InvalidUsageError",
    "MemoryStore",
    "RedisStore",
    "ReplayableStream",
    "create_store",
    "cache_key",
]
