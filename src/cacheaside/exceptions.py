"""Exception hierarchy for cacheaside.

All exceptions inherit from :class:`CacheAsideError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cacheaside.exit_codes`.
The command line entry point in :func:`cacheaside.app.main` catches
``CacheAsideError`` and exits with the appropriate code.

Subclass hierarchy::

    CacheAsideError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConnectionError_    (exit 6)
    +-- CacheError          (exit 8)
    |   +-- CacheFetchError
    |   +-- CacheStoreError
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from cacheaside.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)

if TYPE_CHECKING:
    import httpx


class CacheAsideError(Exception):
    """Base exception for all cacheaside errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CacheAsideError):
    """Raised for invalid CLI arguments or unsupported operations on a replayable stream."""

    exit_code = EXIT_INVALID_USAGE


class ConnectionError_(CacheAsideError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class CacheError(CacheAsideError):
    """Base class for backing store failures."""

    exit_code = EXIT_CACHE_ERROR


class CacheFetchError(CacheError):
    """Raised when the backing store fails while reading an existing key.

    This is distinct from a miss: an absent key is reported as ``None`` by
    :meth:`~cacheaside.stores.base.CacheStore.fetch`, never as an error.
    """


class CacheStoreError(CacheError):
    """Raised when the backing store rejects a write.

    The upstream response has already been received when this is raised, so
    it is attached as :attr:`response` for callers that want to use it
    anyway.

    Args:
        message: Human-readable error description.
        response: The response that could not be stored, if any.
    """

    def __init__(self, message: str, response: Optional[httpx.Response] = None):
        super().__init__(message)
        self.response = response


class ConfigError(CacheAsideError):
    """Raised for configuration problems (invalid JSON, bad values, unknown store backend)."""

    exit_code = EXIT_GENERIC_FAILURE
