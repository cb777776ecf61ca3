"""Tests for cache event message templates."""

from __future__ import annotations

import httpx

from cacheaside.messages import DEFAULT_TEMPLATE, SHORT, MessageFormatter


def _request() -> httpx.Request:
    return httpx.Request(
        "GET", "https://api.example.com/users?page=2", headers={"X-Trace": "abc"}
    )


def _response() -> httpx.Response:
    return httpx.Response(
        404, headers={"Content-Type": "application/json"}, request=_request()
    )


class TestMessageFormatter:
    def test_default_template(self) -> None:
        assert MessageFormatter().template == DEFAULT_TEMPLATE
        assert DEFAULT_TEMPLATE.startswith(SHORT)

    def test_request_fields(self) -> None:
        formatter = MessageFormatter("{method} {uri} {target} {host} {req_header_x-trace}")
        assert formatter.format(_request()) == (
            "GET https://api.example.com/users?page=2 /users?page=2 api.example.com abc"
        )

    def test_response_fields(self) -> None:
        formatter = MessageFormatter("{code} {phrase} {version} {res_header_content-type}")
        assert formatter.format(_request(), _response()) == "404 Not Found 1.1 application/json"

    def test_extras(self) -> None:
        formatter = MessageFormatter("{event} ({expires}s)")
        assert formatter.format(_request(), event="stored in cache", expires=30) == (
            "stored in cache (30s)"
        )

    def test_default_renders_everything(self) -> None:
        message = MessageFormatter().format(
            _request(), _response(), event="fetched from cache", expires=12
        )
        assert '"GET /users?page=2 HTTP/1.1" 404 fetched from cache (expires in 12s)' in message
        assert message.startswith("[")

    def test_unknown_fields_left_in_place(self) -> None:
        formatter = MessageFormatter("{method} {nope} {code}")
        assert formatter.format(_request()) == "GET {nope} {code}"

    def test_malformed_template_returned_verbatim(self) -> None:
        formatter = MessageFormatter("{method")
        assert formatter.format(_request()) == "{method"

    def test_format_spec_mismatch_falls_back_to_str(self) -> None:
        formatter = MessageFormatter("{method:d}")
        assert formatter.format(_request()) == "GET"
