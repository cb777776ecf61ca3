"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.cacheaside/`` on macOS and Windows.  See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Global config** -- a single :class:`~cacheaside.models.GlobalConfig`
  JSON file storing cache, store, and logging defaults.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables and CLI flags over the file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from cacheaside.exceptions import ConfigError
from cacheaside.models import GlobalConfig

_APP_NAME = "cacheaside"
_CONFIG_FILENAME = "config.json"

ENV_TTL = "CACHEASIDE_TTL"
ENV_METHODS = "CACHEASIDE_METHODS"
ENV_STORE = "CACHEASIDE_STORE"
ENV_CACHE_DIR = "CACHEASIDE_CACHE_DIR"
ENV_REDIS_URL = "CACHEASIDE_REDIS_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/cacheaside/`` (default ``~/.config/cacheaside/``).
    On macOS/Windows: ``~/.cacheaside/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory used by the disk store, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/cacheaside/`` (default ``~/.cache/cacheaside/``).
    On macOS/Windows: ``~/.cacheaside/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config(path: Optional[Path] = None) -> GlobalConfig:
    """Load the global configuration.

    Args:
        path: Explicit config file; defaults to ``<config_dir>/config.json``.

    Returns:
        The deserialised :class:`~cacheaside.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = path or _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig, path: Optional[Path] = None) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(path or _global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_overrides() -> dict[str, dict[str, Any]]:
    overrides: dict[str, dict[str, Any]] = {"cache": {}, "store": {}}
    if ttl := os.environ.get(ENV_TTL):
        overrides["cache"]["expire"] = ttl
    if methods := os.environ.get(ENV_METHODS):
        overrides["cache"]["methods"] = methods
    if backend := os.environ.get(ENV_STORE):
        overrides["store"]["backend"] = backend.lower()
    if directory := os.environ.get(ENV_CACHE_DIR):
        overrides["store"]["directory"] = directory
    if redis_url := os.environ.get(ENV_REDIS_URL):
        overrides["store"]["redis_url"] = redis_url
    return overrides


def resolve_config(
    cli_ttl: Optional[int] = None,
    cli_store: Optional[str] = None,
    cli_cache_dir: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_ttl``, ``cli_store``, ``cli_cache_dir``)
        2. Environment variables (``CACHEASIDE_TTL``, ``CACHEASIDE_METHODS``,
           ``CACHEASIDE_STORE``, ``CACHEASIDE_CACHE_DIR``, ``CACHEASIDE_REDIS_URL``)
        3. User config (``~/.config/cacheaside/config.json``)
        4. Defaults

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    data = load_global_config(config_path).model_dump(mode="json")

    for section, values in _env_overrides().items():
        data[section].update(values)

    if cli_ttl is not None:
        data["cache"]["expire"] = cli_ttl
    if cli_store is not None:
        data["store"]["backend"] = cli_store.lower()
    if cli_cache_dir is not None:
        data["store"]["directory"] = cli_cache_dir

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
