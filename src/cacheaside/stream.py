"""Read-only, position-less byte stream used to replay cached response bodies.

Once a response body has been consumed to populate a cache entry, it only
ever needs to be replayed as an opaque byte string.  :class:`ReplayableStream`
wraps that byte string and plugs into httpx as both a sync and an async
byte stream, so a :class:`httpx.Response` built on top of it can be read any
number of times.

The stream does not keep a read cursor: :meth:`ReplayableStream.read`
always starts at offset 0.  Callers that need the full body should use
:meth:`ReplayableStream.getvalue` instead of looping over ``read``.

Example::

    stream = ReplayableStream(b"hello")
    response = httpx.Response(200, stream=stream)
    assert response.read() == b"hello"
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Iterator, NoReturn

import httpx

from cacheaside.exceptions import InvalidUsageError


class ReplayableStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Fixed in-memory body that can be read again and again.

    Args:
        content: The captured body.  ``str`` values are encoded as UTF-8.
    """

    def __init__(self, content: bytes | str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._content = bytes(content)

    def __repr__(self) -> str:
        return f"<ReplayableStream size={len(self._content)}>"

    def __bytes__(self) -> bytes:
        return self._content

    # ------------------------------------------------------------------ #
    # httpx stream protocol
    # ------------------------------------------------------------------ #

    def __iter__(self) -> Iterator[bytes]:
        yield self._content

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self._content

    def close(self) -> None:
        # httpx closes every response stream once it has been read.
        pass

    async def aclose(self) -> None:
        pass

    # ------------------------------------------------------------------ #
    # Read-only stream contract
    # ------------------------------------------------------------------ #

    @property
    def size(self) -> int:
        """Length of the buffer in bytes."""
        return len(self._content)

    def read(self, length: int = -1) -> bytes:
        """Return up to *length* bytes from the start of the buffer.

        A negative *length* returns the whole buffer.
        """
        if length < 0:
            return self._content
        return self._content[:length]

    def getvalue(self) -> bytes:
        """Return the entire buffer."""
        return self._content

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def seek(self, offset: int, whence: int = 0) -> NoReturn:
        self._unsupported("seek")

    def tell(self) -> NoReturn:
        self._unsupported("tell")

    def eof(self) -> NoReturn:
        self._unsupported("eof")

    def write(self, data: bytes) -> NoReturn:
        self._unsupported("write")

    def detach(self) -> NoReturn:
        self._unsupported("detach")

    def attach(self, stream: Any) -> NoReturn:
        self._unsupported("attach")

    def metadata(self, key: str | None = None) -> NoReturn:
        self._unsupported("metadata")

    def _unsupported(self, operation: str) -> NoReturn:
        raise InvalidUsageError(
            f"ReplayableStream is read-only and does not support {operation}()"
        )
