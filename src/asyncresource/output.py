"""Terminal rendering for the ``asyncresource`` CLI.

The resolved resource value is the only thing written to stdout, so
``asyncresource get URL --cache f > copy`` captures exactly the value.
Everything else (resource events, fallback notices, errors) goes to
stderr. Colour is turned off by ``--no-color``, ``NO_COLOR`` or
``TERM=dumb``.

:func:`~asyncresource.app.main_callback` builds one :class:`OutputManager`
per invocation and installs it with :func:`set_output`; commands then call
the module-level helpers.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

_NOT_JSON = object()


class OutputFormat(str, Enum):
    """How values and tables are rendered on stdout.

    ``AUTO`` becomes ``RICH`` on a colour-capable terminal and ``PLAIN``
    everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders resource values on stdout and diagnostics on stderr.

    Args:
        format: Rendering of stdout data.
        no_color: Strip colour and markup from everything.
        quiet: Hide info and success messages. Warnings and errors stay.
        verbose: Show resource events as debug lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # Values (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Write a resolved resource value to stdout.

        ``bytes`` bypass formatting and go to the binary buffer so binary
        resources survive redirection. Text that holds JSON is re-indented
        in the JSON and rich formats.
        """
        if isinstance(data, bytes):
            self.print_bytes(data)
        elif self._format == OutputFormat.JSON:
            self._print_json(data)
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._print_rich(data)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_bytes(self, data: bytes) -> None:
        buffer = getattr(sys.stdout, "buffer", None)
        if buffer is None:
            # Text-only stream (e.g. a test runner capture).
            self.print_data(data.decode("utf-8", errors="replace"))
            return
        sys.stdout.flush()
        buffer.write(data)
        buffer.flush()

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write *rows* as JSON records, tab-separated lines, or a Rich table."""
        if self._format == OutputFormat.JSON:
            self.print_data(_dumps([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        self._diagnostic(message, style="yellow", prefix="Warning:")

    def error(self, message: str) -> None:
        self._diagnostic(message, style="bold red", prefix="Error:")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(message, style="dim", prefix="[debug]")

    def _diagnostic(self, message: str, style: str = "", prefix: str = "") -> None:
        text = f"{prefix} {message}" if prefix else message
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        else:
            self._stderr.print(text, style=style or None, markup=False, highlight=False)

    # ------------------------------------------------------------------ #
    # Value renderers
    # ------------------------------------------------------------------ #

    def _print_json(self, data: Any) -> None:
        value = _json_value(data)
        self.print_data(data if value is _NOT_JSON else _dumps(value))

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    item = "\t".join(str(v) for v in item.values())
                self.print_data(str(item))
        else:
            self.print_data(str(data))

    def _print_rich(self, data: Any) -> None:
        value = _json_value(data)
        if value is _NOT_JSON:
            self._stdout.print(str(data), markup=False)
        else:
            self._stdout.print(Syntax(_dumps(value), "json", theme="monokai", word_wrap=True))


def _json_value(data: Any) -> Any:
    """Parse JSON text; other values pass through. ``_NOT_JSON`` for text that is not JSON."""
    if not isinstance(data, str):
        return data
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return _NOT_JSON


def _dumps(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Installed instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one if needed."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
