"""Tests for the cacheaside Pydantic models."""

from __future__ import annotations

import gzip
import pickle

import httpx
import pytest
from pydantic import ValidationError

from cacheaside.models import (
    CacheBundle,
    CacheOptions,
    CacheSettings,
    GlobalConfig,
    StoreBackend,
    StoreConfig,
)
from cacheaside.stream import ReplayableStream


# ------------------------------------------------------------------ #
# CacheOptions
# ------------------------------------------------------------------ #


class TestCacheOptions:
    def test_defaults(self) -> None:
        options = CacheOptions()
        assert options.methods == ["GET", "HEAD", "OPTIONS"]
        assert options.expire == 30
        assert options.ttl == 30
        assert options.filter is None

    def test_methods_upper_cased(self) -> None:
        assert CacheOptions(methods=["get", "Post"]).methods == ["GET", "POST"]

    def test_single_method_string(self) -> None:
        assert CacheOptions(methods="get").methods == ["GET"]

    def test_ttl_alias(self) -> None:
        assert CacheOptions(ttl=5).expire == 5
        assert CacheOptions.model_validate({"ttl": 6}).expire == 6

    def test_merge_none_copies(self) -> None:
        options = CacheOptions(expire=10)
        merged = options.merge(None)
        assert merged == options
        assert merged is not options

    def test_merge_mapping_keeps_unspecified(self) -> None:
        options = CacheOptions(methods=["GET"], expire=10)
        merged = options.merge({"ttl": 20})
        assert merged.methods == ["GET"]
        assert merged.expire == 20
        assert options.expire == 10

    def test_merge_model_only_explicit_fields(self) -> None:
        base = CacheOptions(methods=["GET"], expire=10)
        merged = base.merge(CacheOptions(expire=99))
        assert merged.methods == ["GET"]
        assert merged.expire == 99

    def test_merge_keeps_callable_filter(self) -> None:
        def predicate(request):
            return True

        merged = CacheOptions(filter=predicate).merge({"expire": 1})
        assert merged.filter is predicate

    def test_invalid_expire(self) -> None:
        with pytest.raises(ValidationError):
            CacheOptions(expire="soon")


# ------------------------------------------------------------------ #
# CacheBundle
# ------------------------------------------------------------------ #


def _response(**kwargs) -> httpx.Response:
    kwargs.setdefault("content", b"payload")
    return httpx.Response(
        200,
        headers=[("content-type", "text/plain"), ("set-cookie", "a=1"), ("set-cookie", "b=2")],
        **kwargs,
    )


class TestCacheBundle:
    def test_from_response(self) -> None:
        response = _response()
        bundle = CacheBundle.from_response(response, b"payload", 100.0)
        assert bundle.status_code == 200
        assert bundle.content == b"payload"
        assert bundle.reason_phrase == "OK"
        assert bundle.http_version == "HTTP/1.1"
        assert ("set-cookie", "a=1") in bundle.headers
        assert ("set-cookie", "b=2") in bundle.headers

    def test_to_response_replays_body(self) -> None:
        bundle = CacheBundle.from_response(_response(), b"payload", 100.0)
        request = httpx.Request("GET", "https://example.com/")
        response = bundle.to_response(request)

        assert isinstance(response.stream, ReplayableStream)
        assert response.request is request
        assert response.extensions["from_cache"] is True
        assert response.reason_phrase == "OK"
        assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]
        assert response.read() == b"payload"

    def test_every_replay_is_independent(self) -> None:
        bundle = CacheBundle(status_code=200, content=b"x", expires_at=1.0)
        a, b = bundle.to_response(), bundle.to_response()
        assert a is not b
        assert a.read() == b.read() == b"x"

    def test_raw_encoded_body_is_decoded_on_replay(self) -> None:
        body = gzip.compress(b"plain text")
        bundle = CacheBundle(
            status_code=200,
            headers=[("content-encoding", "gzip")],
            content=body,
            expires_at=1.0,
        )
        assert bundle.to_response().read() == b"plain text"

    def test_freshness(self) -> None:
        bundle = CacheBundle(status_code=200, expires_at=100.0)
        assert bundle.is_fresh(99.9)
        assert not bundle.is_fresh(100.0)
        assert bundle.expires_in(70.0) == 30
        assert bundle.expires_in(110.0) == -10

    def test_expires_in_rounds_up(self) -> None:
        bundle = CacheBundle(status_code=200, expires_at=100.0)
        assert bundle.expires_in(89.999) == 11
        assert bundle.expires_in(90.0001) == 10
        assert bundle.expires_in(99.5) == 1

    def test_json_round_trip_binary_body(self) -> None:
        bundle = CacheBundle(status_code=200, content=b"\x00\x01\xfe\xff", expires_at=5.0)
        assert CacheBundle.model_validate_json(bundle.model_dump_json()) == bundle

    def test_pickles(self) -> None:
        bundle = CacheBundle(status_code=304, content=b"", expires_at=5.0)
        assert pickle.loads(pickle.dumps(bundle)) == bundle


# ------------------------------------------------------------------ #
# Configuration models
# ------------------------------------------------------------------ #


class TestConfigModels:
    def test_global_defaults(self) -> None:
        config = GlobalConfig()
        assert config.cache.expire == 30
        assert config.store.backend == StoreBackend.DISK
        assert config.store.redis_url == "redis://localhost:6379/0"
        assert config.log.level is None
        assert config.timeout == 30.0

    def test_settings_comma_separated_methods(self) -> None:
        assert CacheSettings(methods="get, head").methods == ["GET", "HEAD"]

    def test_settings_to_options(self) -> None:
        options = CacheSettings(methods=["GET"], ttl=12).to_options()
        assert isinstance(options, CacheOptions)
        assert options.methods == ["GET"]
        assert options.expire == 12

    def test_invalid_backend(self) -> None:
        with pytest.raises(ValidationError):
            StoreConfig(backend="memcached")

    def test_json_round_trip(self) -> None:
        config = GlobalConfig.model_validate(
            {"cache": {"expire": 5}, "store": {"backend": "memory"}, "log": {"level": "info"}}
        )
        restored = GlobalConfig.model_validate_json(config.model_dump_json())
        assert restored == config
