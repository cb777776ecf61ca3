"""Numeric process exit codes used by the ``cacheaside`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cacheaside.exceptions.CacheAsideError` subclass.
Shell wrappers can inspect the exit code to tell a cache backend failure
apart from a network failure without parsing stderr.
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments, or an API was misused."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CACHE_ERROR = 8
"""The backing store failed to read or write a cache entry."""
