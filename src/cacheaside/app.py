"""Typer application and CLI entry point for cacheaside.

The ``cacheaside`` command sends HTTP requests through the caching transport
and manages the backing store::

    cacheaside get https://api.example.com/users       # miss: fetched and stored
    cacheaside get https://api.example.com/users       # hit: served from the store
    cacheaside stats
    cacheaside clear

Store selection, ttl, and methods come from
:func:`~cacheaside.config.resolve_config` (config file, then environment,
then the flags given here).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx
import typer

from cacheaside import __version__
from cacheaside.commands.config import config_app
from cacheaside.exceptions import CacheAsideError, ConnectionError_, InvalidUsageError
from cacheaside.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="cacheaside",
    help="Send HTTP requests through a cache-aside transport.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config", help="Configuration management.")

EVENT_LOGGER = "cacheaside.events"


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"cacheaside {__version__}")
        raise typer.Exit()


def _make_transport() -> httpx.BaseTransport:
    """Inner transport for CLI requests."""
    return httpx.HTTPTransport()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    store: Optional[str] = typer.Option(
        None, "--store", "-s", help="Store backend: memory, disk, redis."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory for the disk store."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log cache events and debug output."
    ),
) -> None:
    """Root callback: set up output and logging, stash shared options in ``ctx.obj``."""
    from cacheaside.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    ctx.ensure_object(dict)
    ctx.obj["store"] = store
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["verbose"] = verbose


@contextmanager
def _exit_on_error() -> Iterator[None]:
    """Turn cacheaside and network errors into an error line plus exit code."""
    from cacheaside.output import error

    try:
        yield
    except httpx.TransportError as exc:
        wrapped = ConnectionError_(f"Request failed: {exc}")
        error(str(wrapped))
        raise typer.Exit(code=wrapped.exit_code) from None
    except CacheAsideError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {value!r}, expected 'Name: value'")
        headers[name.strip()] = content.strip()
    return headers


def _print_body(response: httpx.Response) -> None:
    from cacheaside.output import format_response, print_data

    if not response.content:
        return
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            format_response(response.json())
            return
        except ValueError:
            pass
    print_data(response.text)


def _send(
    ctx: typer.Context,
    method: str,
    url: str,
    headers: list[str],
    data: Optional[str],
    ttl: Optional[int],
) -> None:
    from cacheaside.client import build_client
    from cacheaside.config import resolve_config
    from cacheaside.output import debug, info
    from cacheaside.stores import create_store

    obj = ctx.obj or {}
    with _exit_on_error():
        config = resolve_config(
            cli_ttl=ttl, cli_store=obj.get("store"), cli_cache_dir=obj.get("cache_dir")
        )
        request_headers = _parse_headers(headers)
        store = create_store(config.store)
        event_logger = logging.getLogger(EVENT_LOGGER) if obj.get("verbose") else None
        try:
            with build_client(config, store, _make_transport(), event_logger) as client:
                debug(f"{method.upper()} {url} (ttl {config.cache.expire}s)")
                response = client.request(
                    method.upper(), url, headers=request_headers, content=data
                )
        finally:
            store.close()

        source = "cache" if response.extensions.get("from_cache") else "upstream"
        info(f"{response.status_code} {response.reason_phrase} ({source})")
        _print_body(response)


@app.command("request")
def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET."),
    url: str = typer.Argument(help="Absolute URL to request."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Raw request body."),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Seconds to keep a stored response; 0 disables storing."
    ),
) -> None:
    """Send METHOD URL through the cache and print the response body."""
    _send(ctx, method, url, header, data, ttl)


@app.command("get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL to request."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Seconds to keep a stored response; 0 disables storing."
    ),
) -> None:
    """Shortcut for ``request GET URL``."""
    _send(ctx, "GET", url, header, None, ttl)


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show backing store statistics."""
    from cacheaside.config import resolve_config
    from cacheaside.output import print_table
    from cacheaside.stores import create_store

    obj = ctx.obj or {}
    with _exit_on_error():
        config = resolve_config(cli_store=obj.get("store"), cli_cache_dir=obj.get("cache_dir"))
        store = create_store(config.store)
        try:
            summary = store.stats()
        finally:
            store.close()
        summary["ttl_seconds"] = config.cache.expire
        summary["methods"] = ",".join(config.cache.methods)
        rows = [[key, "" if value is None else str(value)] for key, value in summary.items()]
        print_table(["Setting", "Value"], rows, title="Cache")


@app.command("clear")
def clear_command(ctx: typer.Context) -> None:
    """Remove every entry from the backing store."""
    from cacheaside.config import resolve_config
    from cacheaside.output import success
    from cacheaside.stores import create_store

    obj = ctx.obj or {}
    with _exit_on_error():
        config = resolve_config(cli_store=obj.get("store"), cli_cache_dir=obj.get("cache_dir"))
        store = create_store(config.store)
        try:
            store.clear()
        finally:
            store.close()
        success("Cache cleared.")


def main() -> None:
    """CLI entry point invoked by the ``cacheaside`` console script.

    :class:`~cacheaside.exceptions.CacheAsideError` instances that escape a
    command exit with the error's ``exit_code``; anything else exits with
    :data:`~cacheaside.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from cacheaside.output import error

        error(str(exc))
        if isinstance(exc, CacheAsideError):
            sys.exit(exc.exit_code)
        sys.exit(EXIT_GENERIC_FAILURE)
