"""Typer application and CLI entry point for asyncresource.

The CLI exposes a single network resource per invocation, cached either in
a file (``--cache PATH``) or in an entry of the key/value store under the
cache directory (``--key NAME``)::

    asyncresource get https://example.com/posts.json --cache posts.json
    asyncresource get https://example.com/posts.json --cache posts.json \\
        --strategy cache-first --max-age 2592000
    asyncresource status --cache posts.json --max-age 2592000
    asyncresource clear --cache posts.json

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~asyncresource.exceptions.AsyncResourceError`
is mapped to its exit code; any other exception is written to a crash log
under the data directory.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from asyncresource import __version__
from asyncresource.events import ResourceEvent, ResourceEventKind
from asyncresource.exceptions import AsyncResourceError, InvalidUsageError, NotFoundError
from asyncresource.exit_codes import EXIT_GENERIC_FAILURE
from asyncresource.output import debug, error, format_response, info, print_table, success, warning

R = TypeVar("R")

app = typer.Typer(
    name="asyncresource",
    help="Fetch a network resource through a local cache copy.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"asyncresource {__version__}")
        raise typer.Exit()


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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show resource decisions."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~asyncresource.output.OutputManager` from
    the CLI flags. Without ``--json`` or ``--plain`` the format comes from
    ``output.format`` in the config file.
    """
    from asyncresource.config import resolve_config
    from asyncresource.output import OutputFormat, OutputManager, set_output

    cli_format = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value
    config = _run_sync(lambda: resolve_config(cli_format=cli_format))

    set_output(
        OutputManager(
            format=OutputFormat(config.output.format),
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("get")
def get_command(
    url: str = typer.Argument(help="URL of the resource to fetch."),
    cache: Optional[str] = typer.Option(None, "--cache", "-c", help="File holding the cached copy."),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Key/value entry holding the cached copy."),
    max_age: Optional[int] = typer.Option(
        None, "--max-age", min=0, help="Seconds before the cached copy expires."
    ),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", "-s", help="network-first or cache-first."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Always fetch from the network."),
    no_fallback: bool = typer.Option(
        False, "--no-fallback", help="Do not use the cache when the network fails."
    ),
    skip_cache_write: bool = typer.Option(
        False, "--skip-cache-write", help="Do not update the cached copy."
    ),
    binary: bool = typer.Option(False, "--binary", help="Treat the resource as binary."),
) -> None:
    """Print the current value of URL, from memory, cache, or network.

    Example::

        asyncresource get https://example.com/posts.json --cache posts.json
    """
    from asyncresource.client import HttpFetcher
    from asyncresource.config import resolve_config
    from asyncresource.resources import http_network_resource

    async def _get() -> Any:
        config = resolve_config(cli_max_age=max_age, cli_strategy=strategy)
        local, close = _open_cache(cache, key, binary)
        try:
            async with HttpFetcher(config.request, binary=binary) as fetcher:
                resource = http_network_resource(
                    url,
                    cache=local,
                    max_age=config.cache.max_age,
                    strategy=config.cache.strategy,
                    observer=_event_observer,
                    fetcher=fetcher,
                )
                return await resource.get(
                    force_reload=force,
                    allow_cache_fallback=not no_fallback,
                    skip_cache_write=skip_cache_write,
                )
        finally:
            close()

    value = _run(_get)
    if value is None:
        _fail(NotFoundError(f"No content available for {url}"))
    format_response(value)


@app.command("status")
def status_command(
    cache: Optional[str] = typer.Option(None, "--cache", "-c", help="File holding the cached copy."),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Key/value entry holding the cached copy."),
    max_age: Optional[int] = typer.Option(
        None, "--max-age", min=0, help="Seconds before the cached copy expires."
    ),
) -> None:
    """Show whether the cached copy exists, when it was written, and if it has expired."""
    from asyncresource.config import resolve_config
    from asyncresource.expiration import has_expired

    async def _status() -> list[list[str]]:
        config = resolve_config(cli_max_age=max_age)
        local, close = _open_cache(cache, key, False)
        try:
            exists = await local.exists()
            modified = await local.last_modified()
        finally:
            close()
        expired = has_expired(modified, config.cache.max_age)
        return [
            ["location", local.location],
            ["exists", str(exists).lower()],
            ["last_modified", modified.isoformat() if modified else ""],
            ["max_age_seconds", "" if config.cache.max_age_seconds is None else str(config.cache.max_age_seconds)],
            ["expired", str(expired).lower()],
        ]

    rows = _run(_status)
    print_table(["field", "value"], rows, title="Cache status")


@app.command("clear")
def clear_command(
    cache: Optional[str] = typer.Option(None, "--cache", "-c", help="File holding the cached copy."),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Key/value entry holding the cached copy."),
) -> None:
    """Delete the cached copy."""

    async def _clear() -> str:
        local, close = _open_cache(cache, key, False)
        try:
            await local.delete()
        finally:
            close()
        return local.location

    location = _run(_clear)
    success(f"Cleared cached copy at {location}")


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration (config file + environment)."""
    from asyncresource.config import get_config_dir, resolve_config

    config = _run_sync(resolve_config)
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key in dot notation, e.g. 'cache.strategy'."),
    value: str = typer.Argument(help="New value; 'none' clears cache.max_age_seconds."),
) -> None:
    """Set a value in the config file.

    Example::

        asyncresource config set cache.strategy cache-first
        asyncresource config set cache.max_age_seconds 2592000
        asyncresource config set output.format json
    """
    from pydantic import ValidationError

    from asyncresource.config import load_global_config, parse_strategy, save_global_config
    from asyncresource.models import GlobalConfig

    data = _run_sync(load_global_config).model_dump(mode="json")
    section, _, field = key.partition(".")
    if not isinstance(data.get(section), dict) or field not in data[section]:
        _fail(InvalidUsageError(f"Unknown config key: {key}"))

    new_value: Optional[str] = value
    if value.lower() == "none":
        new_value = None
    elif key == "cache.strategy":
        new_value = _run_sync(lambda: parse_strategy(value)).value
    data[section][field] = new_value

    try:
        config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        _fail(InvalidUsageError(f"Invalid value for {key}: {value} ({exc.errors()[0]['msg']})"))

    save_global_config(config)
    success(f"Set {key} = {value}")


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _open_cache(cache: Optional[str], key: Optional[str], binary: bool):
    """Build the local resource selected by ``--cache`` / ``--key``.

    Returns:
        A ``(resource, close)`` pair; *close* releases the key/value store.
    """
    from asyncresource.config import get_cache_dir
    from asyncresource.resources import file_resource
    from asyncresource.storage import KeyValueStorage
    from asyncresource.resource import LocalResource

    if (cache is None) == (key is None):
        raise InvalidUsageError("Pass exactly one of --cache or --key")
    if cache is not None:
        return file_resource(cache, binary=binary), lambda: None
    storage = KeyValueStorage(key, get_cache_dir() / "store")
    return LocalResource(storage), storage.close


def _event_observer(event: ResourceEvent) -> None:
    if event.kind is ResourceEventKind.CACHE_FALLBACK:
        warning(f"Could not fetch {event.location}; trying the cached copy")
    else:
        debug(event.message)


def _fail(exc: AsyncResourceError) -> None:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


def _run(factory: Callable[[], Awaitable[R]]) -> R:
    """Run the coroutine built by *factory*, mapping library errors to exit codes."""
    try:
        return asyncio.run(factory())
    except AsyncResourceError as exc:
        _fail(exc)
        raise  # pragma: no cover


def _run_sync(func: Callable[[], R]) -> R:
    try:
        return func()
    except AsyncResourceError as exc:
        _fail(exc)
        raise  # pragma: no cover


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from asyncresource.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``asyncresource`` console script.

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
        if isinstance(exc, AsyncResourceError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
