"""Cache-aside decorator for outbound HTTP requests.

:class:`CacheHandler` wraps a transport callable.  For each request it
decides whether the request is cacheable, and either answers from a
:class:`~cacheaside.stores.base.CacheStore` or forwards to the transport
and records the response for reuse.

The transport may answer immediately or hand back an awaitable.  Either
way the store-on-completion step runs as a continuation on that result
(see :func:`_then`), so the same code path serves sync and async callers::

    handler = CacheHandler(MemoryStore(), transport, {"expire": 60})
    response = handler(request, {"timeout": 5})          # sync transport
    response = await handler(request, {"timeout": 5})    # async transport

Only responses with a status code below 400 are stored.  Their body is read
in full from the raw stream and replaced with a
:class:`~cacheaside.stream.ReplayableStream`, so both the caller and every
later cache hit can read it.  A response whose body the transport already
read (for example one returned by ``client.send``) is stored from its
decoded content, with ``Content-Encoding`` dropped to match.

With an async transport every call returns an awaitable, cache hits
included.

There is no in-flight deduplication: two concurrent misses for the same key
both reach the transport and the last write wins.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

import httpx

from cacheaside.exceptions import CacheFetchError, CacheStoreError
from cacheaside.messages import MessageFormatter
from cacheaside.models import CacheBundle, CacheOptions
from cacheaside.stores.base import CacheStore
from cacheaside.stream import ReplayableStream

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

MaybeAwaitable = Union[T, Awaitable[T]]
Transport = Callable[[httpx.Request, dict[str, Any]], MaybeAwaitable[httpx.Response]]
LogLevel = Union[int, str, Callable[[Optional[httpx.Response]], Union[int, str]], None]

FETCHED = "fetched from cache"
STORED = "stored in cache"


def cache_key(method: str, url: str, options: Mapping[str, Any]) -> str:
    """Return ``"<METHOD>:<URL>:<hash>"`` for a request and its options.

    The hash is an MD5 of the options serialised as sorted-key JSON, so the
    same request under a different configuration (e.g. another timeout)
    maps to a different key.
    """
    encoded = json.dumps(options, sort_keys=True, default=str)
    digest = hashlib.md5(encoded.encode("utf-8")).hexdigest()
    return ":".join([method.upper(), url, digest])


def _then(result: MaybeAwaitable[T], callback: Callable[[T], MaybeAwaitable[R]]) -> MaybeAwaitable[R]:
    """Run *callback* once *result* is available.

    A plain value is handled immediately.  An awaitable yields a coroutine
    that awaits it, applies *callback*, and awaits the callback's result too
    if that is itself awaitable.
    """
    if not inspect.isawaitable(result):
        return callback(result)

    async def _continue() -> R:
        value = callback(await result)
        if inspect.isawaitable(value):
            value = await value
        return value

    return _continue()


def _read_raw(response: httpx.Response) -> MaybeAwaitable[bytes]:
    """Read the undecoded body straight off the transport stream and close it."""
    stream = response.stream
    if isinstance(stream, httpx.SyncByteStream):
        try:
            return b"".join(stream)
        finally:
            stream.close()

    async def _aread() -> bytes:
        try:
            return b"".join([chunk async for chunk in stream])
        finally:
            await stream.aclose()

    return _aread()


def _body_was_consumed(response: httpx.Response) -> bool:
    """True when the transport already drained a one-shot stream (e.g. ``client.send``)."""
    return response.is_stream_consumed and not isinstance(
        response.stream, (httpx.ByteStream, ReplayableStream)
    )


def _with_body(
    response: httpx.Response,
    content: bytes,
    request: httpx.Request,
    decoded: bool = False,
) -> httpx.Response:
    """Copy *response* with its body replaced by a replayable buffer.

    The copy is already read, so ``.content`` works on it directly.  When
    *content* is the decoded body rather than the raw one, the encoding
    headers are dropped so they match the bytes.
    """
    headers = response.headers.copy()
    if decoded:
        headers.pop("content-encoding", None)
        headers.pop("transfer-encoding", None)
        headers["content-length"] = str(len(content))
    replayed = httpx.Response(
        status_code=response.status_code,
        headers=headers,
        stream=ReplayableStream(content),
        extensions=dict(response.extensions),
    )
    replayed.request = request
    replayed.read()
    return replayed


def _is_async_callable(func: Any) -> bool:
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    )


async def _resolved(value: T) -> T:
    return value


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if isinstance(resolved, int):
        return resolved
    return logging.DEBUG


class CacheHandler:
    """Cache-aside decorator around a transport callable.

    Args:
        store: Backing store holding :class:`~cacheaside.models.CacheBundle`
            entries.
        transport: Callable taking ``(request, options)`` and returning a
            response or an awaitable of one.
        options: Initial :class:`~cacheaside.models.CacheOptions` (or a
            mapping of overrides), merged over the defaults.
        logger: Optional :class:`logging.Logger` (or anything with a
            compatible ``log`` method) receiving ``fetched`` and ``stored``
            events.  Without one, logging is a no-op.
        log_level: Level for cache events: an int, a level name, a callable
            taking the response and returning either, or ``None`` for DEBUG.
        log_template: Message template, see :mod:`cacheaside.messages`.
        clock: Source of the current epoch time in seconds.
        is_async: Whether *transport* returns awaitables.  Detected from
            ``async def`` when ``None``; pass it explicitly for plain
            callables that return coroutines.
    """

    def __init__(
        self,
        store: CacheStore,
        transport: Transport,
        options: Union[CacheOptions, Mapping[str, Any], None] = None,
        *,
        logger: Optional[logging.Logger] = None,
        log_level: LogLevel = None,
        log_template: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        is_async: Optional[bool] = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.is_async = _is_async_callable(transport) if is_async is None else is_async
        self.options = options
        self.logger = logger
        self.log_level = log_level
        self.log_template = log_template
        self._clock = clock
        self._last_fetched = False

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def options(self) -> CacheOptions:
        return self._options

    @options.setter
    def options(self, options: Union[CacheOptions, Mapping[str, Any], None]) -> None:
        """Reset the options: *options* merged over the defaults."""
        self._options = CacheOptions().merge(options)

    def update_options(self, **changes: Any) -> CacheOptions:
        """Merge *changes* over the current options, keeping everything else."""
        self._options = self._options.merge(changes)
        return self._options

    @property
    def last_request_was_fetched_from_cache(self) -> bool:
        """Whether the most recent call was answered from the store."""
        return self._last_fetched

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    def __call__(
        self, request: httpx.Request, options: Optional[Mapping[str, Any]] = None
    ) -> MaybeAwaitable[httpx.Response]:
        """Answer *request* from the cache or from the transport.

        Returns:
            A response, or an awaitable of one when the transport is
            asynchronous (cache hits included).

        Raises:
            CacheFetchError: The store failed while reading an existing key.
            CacheStoreError: The store rejected a write.  The upstream
                response is attached to the exception.
        """
        request_options = dict(options or {})
        if self.should_cache_request(request):
            return self._cache(request, request_options)

        self._last_fetched = False
        return self.transport(request, request_options)

    # ------------------------------------------------------------------ #
    # Policy
    # ------------------------------------------------------------------ #

    def should_cache_request(self, request: httpx.Request) -> bool:
        return self.check_method(request) and self.filter(request)

    def check_method(self, request: httpx.Request) -> bool:
        return request.method.upper() in self._options.methods

    def filter(self, request: httpx.Request) -> bool:
        """Apply the configured predicate; a non-callable filter accepts everything."""
        predicate = self._options.filter
        return not callable(predicate) or bool(predicate(request))

    def should_cache_response(self, response: Optional[httpx.Response]) -> bool:
        return response is not None and response.status_code < 400

    def get_key(self, request: httpx.Request, options: Mapping[str, Any]) -> str:
        """Cache key for *request*; namespacing is left to the store."""
        return cache_key(request.method, str(request.url), options)

    # ------------------------------------------------------------------ #
    # Cache-aside flow
    # ------------------------------------------------------------------ #

    def _cache(
        self, request: httpx.Request, options: dict[str, Any]
    ) -> MaybeAwaitable[httpx.Response]:
        key = self.get_key(request, options)

        if self.store.contains(key):
            cached = self._fetch(request, key)
            if cached is not None:
                self._last_fetched = True
                return _resolved(cached) if self.is_async else cached

        self._last_fetched = False
        result = self.transport(request, options)

        expire = self._options.expire
        if expire <= 0:
            return result

        return _then(result, functools.partial(self._on_response, request, key, expire))

    def _on_response(
        self, request: httpx.Request, key: str, expire: int, response: httpx.Response
    ) -> MaybeAwaitable[httpx.Response]:
        if not self.should_cache_response(response):
            return response

        if _body_was_consumed(response):
            # Only the decoded content survives a drained network stream.
            return self._store_content(
                request, key, expire, response, response.content, decoded=True
            )

        # The original stream can only be consumed once; cache and caller
        # both get a replayable copy.
        return _then(
            _read_raw(response),
            functools.partial(self._store_content, request, key, expire, response),
        )

    def _store_content(
        self,
        request: httpx.Request,
        key: str,
        expire: int,
        response: httpx.Response,
        content: bytes,
        decoded: bool = False,
    ) -> httpx.Response:
        replayed = _with_body(response, content, request, decoded)
        bundle = CacheBundle.from_response(replayed, content, self._clock() + expire)
        self._store(request, key, bundle, expire, replayed)
        return replayed

    def _fetch(self, request: httpx.Request, key: str) -> Optional[httpx.Response]:
        bundle = self._fetch_bundle(key)
        if bundle is None:
            return None

        response = bundle.to_response(request)
        self._log(request, response, bundle, FETCHED)
        return response

    def _fetch_bundle(self, key: str) -> Optional[CacheBundle]:
        """Return a fresh bundle, or ``None`` after deleting an expired one."""
        bundle = self.store.fetch(key)
        if bundle is None:
            # Removed between contains() and fetch(); treat as a miss.
            return None
        if not isinstance(bundle, CacheBundle):
            raise CacheFetchError("Failed to fetch response from cache")

        if bundle.is_fresh(self._clock()):
            return bundle

        # Delete expired entries so they no longer satisfy contains().
        logger.debug("Deleting expired cache entry %s", key)
        self.store.delete(key)
        return None

    def _store(
        self,
        request: httpx.Request,
        key: str,
        bundle: CacheBundle,
        expire: int,
        response: httpx.Response,
    ) -> None:
        try:
            saved = self.store.save(key, bundle, expire)
        except CacheStoreError as exc:
            exc.response = response
            raise
        if not saved:
            raise CacheStoreError("Failed to store response to cache", response=response)

        self._log(request, response, bundle, STORED)

    # ------------------------------------------------------------------ #
    # Logging
    # ------------------------------------------------------------------ #

    def get_log_level(self, response: Optional[httpx.Response]) -> int:
        level = self.log_level
        if level is None:
            return logging.DEBUG
        if callable(level):
            level = level(response)
        return _coerce_level(level)

    def get_log_message(
        self,
        request: httpx.Request,
        response: httpx.Response,
        bundle: CacheBundle,
        event: str,
    ) -> str:
        formatter = MessageFormatter(self.log_template)
        return formatter.format(
            request,
            response,
            event=event,
            expires=bundle.expires_in(self._clock()),
        )

    def _log(
        self,
        request: httpx.Request,
        response: httpx.Response,
        bundle: CacheBundle,
        event: str,
    ) -> None:
        if self.logger is None:
            return

        message = self.get_log_message(request, response, bundle, event)
        self.logger.log(
            self.get_log_level(response),
            message,
            extra={
                "cache_event": event,
                "response": response,
                "expires": bundle.expires_in(self._clock()),
            },
        )
