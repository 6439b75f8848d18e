"""Typer application and CLI entry point for monthlycloud.

The CLI is a thin shell around the builders: every command resolves the
configuration (:func:`~monthlycloud.config.resolve_config`), builds a
:class:`~monthlycloud.builders.api.Builder` or
:class:`~monthlycloud.builders.storage.StorageBuilder`, performs exactly one
terminal call and prints the decoded body through :mod:`monthlycloud.output`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~monthlycloud.exceptions.MonthlyCloudError`
exits with the error's ``exit_code``; anything else is written to a crash
log under the data directory.
"""

from __future__ import annotations

import contextlib
import json
import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

import typer
from rich.logging import RichHandler

from monthlycloud import __version__
from monthlycloud.builders import Builder, PublicStorageBuilder, StorageBuilder
from monthlycloud.builders.base import BaseBuilder
from monthlycloud.cache.disk import DiskCacheStore
from monthlycloud.client.httpx_transport import HttpxTransport
from monthlycloud.config import get_cache_dir, get_data_dir, resolve_config
from monthlycloud.exceptions import InvalidUsageError
from monthlycloud.exit_codes import EXIT_GENERIC_FAILURE
from monthlycloud.models import ClientConfig
from monthlycloud.output import (
    OutputFormat,
    OutputManager,
    error,
    print_body,
    print_table,
    print_text,
    set_output,
    success,
    warning,
)

app = typer.Typer(
    name="monthlycloud",
    help="Query the Monthly Cloud API and content storage.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
cache_app = typer.Typer(help="Response cache management.", no_args_is_help=True)
config_app = typer.Typer(help="Configuration inspection.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"monthlycloud {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: user config dir)."
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Base API URL."),
    storage_url: Optional[str] = typer.Option(None, "--storage-url", help="Base storage URL."),
    access_token: Optional[str] = typer.Option(None, "--token", help="Bearer access token."),
    locale: Optional[str] = typer.Option(None, "--locale", help="Storage locale."),
    use_cache: Optional[bool] = typer.Option(
        None, "--cache/--no-cache", help="Wrap GET calls with the disk cache."
    ),
    read_only: Optional[bool] = typer.Option(
        None, "--read-only/--read-write", help="Suppress POST/PATCH calls."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Set up output and logging, and stash config overrides in ``ctx.obj``."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["overrides"] = {
        "api_url": api_url,
        "storage_url": storage_url,
        "access_token": access_token,
        "locale": locale,
        "use_cache": use_cache,
        "read_only": read_only,
    }


def _configure_logging(output: OutputManager) -> None:
    """Send ``monthlycloud.*`` log records to stderr through Rich."""
    logger = logging.getLogger("monthlycloud")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(console=output.stderr_console, show_time=False, show_path=False)
    )
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)


def _resolve(ctx: typer.Context) -> ClientConfig:
    obj = ctx.obj or {}
    return resolve_config(obj.get("config_file"), **obj.get("overrides", {}))


@contextlib.contextmanager
def _session(builder_cls: type[BaseBuilder], config: ClientConfig) -> Iterator[Any]:
    """Yield a configured builder; close its transport and cache afterwards."""
    with contextlib.ExitStack() as stack:
        transport = stack.enter_context(HttpxTransport.from_config(config.request))
        cache = None
        if config.use_cache:
            cache = stack.enter_context(DiskCacheStore(get_cache_dir()))
        yield builder_cls.from_config(config, client=transport, cache=cache)


def _parse_filter(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise InvalidUsageError(f"Invalid filter '{raw}': expected name=value")
    return name, value


def _parse_body(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Invalid JSON body: {exc}") from exc


# ------------------------------------------------------------------ #
# API commands
# ------------------------------------------------------------------ #


@app.command("get")
def get_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(..., help="Resource endpoint, e.g. properties."),
    id: Optional[str] = typer.Option(None, "--id", help="Resource id."),
    filters: Optional[list[str]] = typer.Option(
        None, "--filter", "-F", help="Filter as name=value (repeatable)."
    ),
    include: Optional[list[str]] = typer.Option(
        None, "--include", "-i", help="Related resource to include (repeatable)."
    ),
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort expression, e.g. -id."),
    page_size: Optional[int] = typer.Option(None, "--page-size", "--limit", help="Page size."),
    page: Optional[int] = typer.Option(None, "--page", help="Page number."),
    first: bool = typer.Option(False, "--first", help="Print only the first item; fail if none."),
    url_only: bool = typer.Option(False, "--url", help="Print the request URL without calling."),
) -> None:
    """GET a resource listing or a single resource."""
    config = _resolve(ctx)
    with _session(Builder, config) as builder:
        builder.endpoint(endpoint)
        for raw in filters or []:
            builder.filter(*_parse_filter(raw))
        if include:
            builder.with_(include)
        builder.sort(sort).page_size(page_size).set_current_page(page)
        if id is not None:
            builder.id(id)

        if url_only:
            print_text(builder.build_url())
            return
        print_body(builder.first_or_fail() if first else builder.get())


@app.command("post")
def post_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(..., help="Resource endpoint."),
    data: str = typer.Option(..., "--data", "-d", help="JSON request body."),
) -> None:
    """POST a JSON body to an endpoint."""
    body = _parse_body(data)
    config = _resolve(ctx)
    with _session(Builder, config) as builder:
        print_body(builder.endpoint(endpoint).post(body))


@app.command("patch")
def patch_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(..., help="Resource endpoint."),
    id: str = typer.Argument(..., help="Resource id."),
    data: str = typer.Option(..., "--data", "-d", help="JSON request body."),
) -> None:
    """PATCH a resource with a JSON body."""
    body = _parse_body(data)
    config = _resolve(ctx)
    with _session(Builder, config) as builder:
        print_body(builder.endpoint(endpoint).patch(id, body))


# ------------------------------------------------------------------ #
# Storage commands
# ------------------------------------------------------------------ #


@app.command("storage")
def storage_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(..., help="Storage endpoint, e.g. contents."),
    id: Optional[str] = typer.Option(None, "--id", help="File id (defaults to the locale)."),
    website: Optional[str] = typer.Option(None, "--website", help="Website id."),
    marketplace: Optional[str] = typer.Option(None, "--marketplace", help="Marketplace id."),
    public: bool = typer.Option(False, "--public", help="Use the public storage root."),
    url_only: bool = typer.Option(False, "--url", help="Print the request URL without calling."),
) -> None:
    """GET a file from the content storage."""
    config = _resolve(ctx)
    builder_cls = PublicStorageBuilder if public else StorageBuilder
    with _session(builder_cls, config) as builder:
        builder.website(website).marketplace(marketplace).endpoint(endpoint).id(id)
        if url_only:
            print_text(builder.build_url())
            return
        print_body(builder.get())


@app.command("routes")
def routes_command(
    ctx: typer.Context,
    website: Optional[str] = typer.Option(None, "--website", help="Website id."),
    route_locale: Optional[str] = typer.Option(None, "--route-locale", help="Locale override."),
) -> None:
    """Print the route table of a website."""
    config = _resolve(ctx)
    with _session(StorageBuilder, config) as builder:
        print_body(builder.website(website).get_routes(route_locale))


# ------------------------------------------------------------------ #
# Cache / config commands
# ------------------------------------------------------------------ #


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the number of cached responses and the cache directory."""
    with DiskCacheStore(get_cache_dir()) as store:
        stats = store.stats()
    print_table(["key", "value"], [[k, str(v)] for k, v in stats.items()], title="Cache")


@cache_app.command("forget")
def cache_forget(url: str = typer.Argument(..., help="Full request URL.")) -> None:
    """Remove one cached response by URL."""
    with DiskCacheStore(get_cache_dir()) as store:
        removed = store.forget(url)
    if removed:
        success(f"Removed {url}")
    else:
        warning(f"Not cached: {url}")


@cache_app.command("clear")
def cache_clear() -> None:
    """Remove all cached responses."""
    with DiskCacheStore(get_cache_dir()) as store:
        count = store.clear()
    success(f"Removed {count} cached responses")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the effective configuration (token masked)."""
    data = _resolve(ctx).model_dump(mode="json")
    if data.get("access_token"):
        data["access_token"] = data["access_token"][:4] + "****"
    print_body(data)


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``monthlycloud`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from monthlycloud.exceptions import MonthlyCloudError

        if isinstance(exc, MonthlyCloudError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
