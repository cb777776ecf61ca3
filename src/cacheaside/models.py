"""Canonical Pydantic models shared across all cacheaside modules.

The models fall into two groups:

**Cache models** -- the decorator's own data:
    :class:`CacheOptions` (which requests are cached and for how long) and
    :class:`CacheBundle` (the unit written to a backing store).

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`StoreConfig`, :class:`LogConfig`, and :class:`GlobalConfig`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
import math
from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from cacheaside.stream import ReplayableStream

DEFAULT_METHODS = ("GET", "HEAD", "OPTIONS")
DEFAULT_EXPIRE = 30


# --- Cache options ---


class CacheOptions(BaseModel):
    """Decorator configuration controlling which requests are cached.

    ``expire`` may also be given as ``ttl``.  A non-positive ``expire``
    disables writes; entries stored earlier under a positive ttl can still be
    served.  ``filter`` is a predicate over :class:`httpx.Request`; anything
    that is not callable counts as "no filter".

    Example::

        options = CacheOptions(methods=["GET"], ttl=60)
        options = options.merge({"expire": 10})  # methods is preserved
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    methods: list[str] = Field(
        default_factory=lambda: list(DEFAULT_METHODS),
        description="HTTP methods eligible for caching",
    )
    expire: int = Field(
        default=DEFAULT_EXPIRE,
        validation_alias=AliasChoices("expire", "ttl"),
        description="Seconds an entry stays valid after being stored",
    )
    filter: Optional[Any] = Field(
        default=None, description="Predicate accepting a request; true means cacheable"
    )

    @field_validator("methods", mode="before")
    @classmethod
    def _normalise_methods(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [value]
        return [str(method).upper() for method in value]

    @property
    def ttl(self) -> int:
        """Alias for :attr:`expire`."""
        return self.expire

    def merge(self, overrides: Union[CacheOptions, Mapping[str, Any], None]) -> CacheOptions:
        """Return a copy with *overrides* applied on top of the current values.

        Fields absent from *overrides* keep their current value.
        """
        if overrides is None:
            return self.model_copy()
        if isinstance(overrides, CacheOptions):
            changes = {name: getattr(overrides, name) for name in overrides.model_fields_set}
        else:
            changes = dict(overrides)
            if "ttl" in changes:
                changes["expire"] = changes.pop("ttl")
        data = {"methods": list(self.methods), "expire": self.expire, "filter": self.filter}
        data.update(changes)
        return CacheOptions.model_validate(data)


# --- Cache bundle ---


class CacheBundle(BaseModel):
    """A response snapshot plus the absolute time it stops being valid.

    The body is kept as the raw (still content-encoded) bytes received from
    the transport, so the stored headers stay truthful on replay.  Bundles
    pickle cleanly for :mod:`diskcache` and round-trip through JSON (body as
    base64) for text-oriented stores.
    """

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    status_code: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    content: bytes = b""
    http_version: str = "HTTP/1.1"
    reason_phrase: str = ""
    expires_at: float

    @classmethod
    def from_response(
        cls, response: httpx.Response, content: bytes, expires_at: float
    ) -> CacheBundle:
        """Snapshot *response* with the already materialised *content*."""
        return cls(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            content=content,
            http_version=response.http_version,
            reason_phrase=response.reason_phrase,
            expires_at=expires_at,
        )

    def to_response(self, request: Optional[httpx.Request] = None) -> httpx.Response:
        """Build a fresh :class:`httpx.Response` replaying the stored body.

        Every call returns a new response object over its own
        :class:`~cacheaside.stream.ReplayableStream`.
        """
        response = httpx.Response(
            status_code=self.status_code,
            headers=self.headers,
            stream=ReplayableStream(self.content),
            extensions={
                "http_version": self.http_version.encode("ascii", errors="ignore"),
                "reason_phrase": self.reason_phrase.encode("ascii", errors="ignore"),
                "from_cache": True,
            },
        )
        if request is not None:
            response.request = request
        return response

    def is_fresh(self, now: float) -> bool:
        """Return ``True`` while *now* is strictly before :attr:`expires_at`."""
        return now < self.expires_at

    def expires_in(self, now: float) -> int:
        """Seconds remaining until expiry, rounded up (zero or negative once expired)."""
        return math.ceil(self.expires_at - now)


# --- Configuration ---


class StoreBackend(str, enum.Enum):
    """Backing store implementations selectable from configuration."""

    MEMORY = "memory"
    DISK = "disk"
    REDIS = "redis"


class StoreConfig(BaseModel):
    """Backing store selection stored in :class:`GlobalConfig`."""

    backend: StoreBackend = Field(
        default=StoreBackend.DISK, description="Store backend: memory, disk, redis"
    )
    directory: Optional[str] = Field(
        default=None,
        description="Cache directory for the disk backend (defaults to the XDG cache dir)",
    )
    namespace: Optional[str] = Field(
        default=None, description="Key prefix applied by the store"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Connection URL for the redis backend"
    )


class LogConfig(BaseModel):
    """Cache event logging settings stored in :class:`GlobalConfig`."""

    level: Optional[str] = Field(
        default=None, description="Level name for cache events (default: debug)"
    )
    template: Optional[str] = Field(
        default=None, description="Message template for cache events"
    )


class CacheSettings(BaseModel):
    """Serialisable subset of :class:`CacheOptions` (no filter predicate)."""

    methods: list[str] = Field(default_factory=lambda: list(DEFAULT_METHODS))
    expire: int = Field(default=DEFAULT_EXPIRE, validation_alias=AliasChoices("expire", "ttl"))

    @field_validator("methods", mode="before")
    @classmethod
    def _normalise_methods(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        return [str(method).strip().upper() for method in value]

    def to_options(self) -> CacheOptions:
        return CacheOptions(methods=self.methods, expire=self.expire)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/cacheaside/config.json``.

    Loaded and saved by :func:`~cacheaside.config.load_global_config` and
    :func:`~cacheaside.config.save_global_config`.  Environment variables and
    CLI flags take precedence; see :func:`~cacheaside.config.resolve_config`.
    """

    model_config = ConfigDict(populate_by_name=True)

    cache: CacheSettings = Field(default_factory=CacheSettings)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    timeout: float = Field(default=30.0, description="Upstream request timeout in seconds")
