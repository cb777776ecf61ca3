"""Tests for ReplayableStream."""

from __future__ import annotations

import httpx
import pytest

from cacheaside.exceptions import InvalidUsageError
from cacheaside.stream import ReplayableStream


class TestReplayableStream:
    def test_size_and_value(self) -> None:
        stream = ReplayableStream(b"hello")
        assert stream.size == 5
        assert stream.getvalue() == b"hello"
        assert bytes(stream) == b"hello"

    def test_str_encoded_as_utf8(self) -> None:
        stream = ReplayableStream("héllo")
        assert stream.getvalue() == "héllo".encode("utf-8")
        assert stream.size == 6

    def test_read_always_starts_at_zero(self) -> None:
        stream = ReplayableStream(b"abcdef")
        assert stream.read(3) == b"abc"
        assert stream.read(3) == b"abc"
        assert stream.read() == b"abcdef"
        assert stream.read(100) == b"abcdef"

    def test_empty(self) -> None:
        stream = ReplayableStream(b"")
        assert stream.size == 0
        assert stream.read() == b""

    def test_capabilities(self) -> None:
        stream = ReplayableStream(b"x")
        assert stream.readable() is True
        assert stream.writable() is False
        assert stream.seekable() is False

    @pytest.mark.parametrize(
        "operation, args",
        [
            ("seek", (0,)),
            ("tell", ()),
            ("eof", ()),
            ("write", (b"x",)),
            ("detach", ()),
            ("attach", (None,)),
            ("metadata", ()),
        ],
    )
    def test_unsupported_operations(self, operation, args) -> None:
        stream = ReplayableStream(b"x")
        with pytest.raises(InvalidUsageError, match=operation):
            getattr(stream, operation)(*args)

    def test_iterates_repeatedly(self) -> None:
        stream = ReplayableStream(b"abc")
        assert b"".join(stream) == b"abc"
        assert b"".join(stream) == b"abc"

    def test_response_can_be_read_twice(self) -> None:
        stream = ReplayableStream(b"abc")
        first = httpx.Response(200, stream=stream)
        second = httpx.Response(200, stream=stream)
        assert first.read() == b"abc"
        assert second.read() == b"abc"

    @pytest.mark.asyncio
    async def test_async_iteration(self) -> None:
        response = httpx.Response(200, stream=ReplayableStream(b"async"))
        assert await response.aread() == b"async"
