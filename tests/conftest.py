"""Shared test fixtures for cacheaside.

Provides a controllable clock, an in-memory store, a transport that counts
upstream calls, isolated config directories, and a CLI runner.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from cacheaside.output import reset_output
from cacheaside.stores import MemoryStore


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager keeps references to sys.stdout/sys.stderr taken while
    CliRunner had them redirected; a fresh one is created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Cache building blocks
# ---------------------------------------------------------------------------


class FakeClock:
    """Deterministic replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingTransport:
    """Transport callable returning canned responses and recording every call."""

    def __init__(self, factory: Callable[[httpx.Request], httpx.Response] | None = None) -> None:
        self.calls: list[tuple[httpx.Request, dict]] = []
        self._factory = factory or (lambda request: httpx.Response(200, content=b"hello"))

    def __call__(self, request: httpx.Request, options: dict) -> httpx.Response:
        self.calls.append((request, options))
        return self._factory(request)

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def transport() -> CountingTransport:
    return CountingTransport()


@pytest.fixture
def make_transport() -> type[CountingTransport]:
    """The CountingTransport class, for tests that need custom responses."""
    return CountingTransport


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config/cache dirs at tmp_path and clear CACHEASIDE_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setattr("cacheaside.config._is_xdg_platform", lambda: True)

    for var in [
        "CACHEASIDE_TTL",
        "CACHEASIDE_METHODS",
        "CACHEASIDE_STORE",
        "CACHEASIDE_CACHE_DIR",
        "CACHEASIDE_REDIS_URL",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
