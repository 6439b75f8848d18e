"""Terminal rendering for the ``monthlycloud`` CLI.

Response bodies and tables go to **stdout** so they can be piped into
``jq`` or ``cut``; status lines, warnings and errors go to **stderr**.
The format is picked once per invocation:

* ``--json`` -- indented JSON.
* ``--plain`` -- one ``key<TAB>value`` line per top-level key, or one
  compact JSON document per list item.
* otherwise Rich syntax highlighting when stdout is a terminal and colour
  is allowed (``NO_COLOR`` unset, ``TERM`` not ``dumb``), plain when piped.

:func:`~monthlycloud.app.main_callback` installs the active
:class:`OutputManager` with :func:`set_output`.  Library modules never
render anything themselves; they log through :mod:`logging`.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Chooses a stream and a rendering for everything the CLI prints.

    Args:
        format: Requested format; ``AUTO`` is resolved at construction.
        no_color: Strip colour and markup from stderr diagnostics.
        quiet: Drop ``info`` and ``success`` lines.
        verbose: Recorded for the log handler set up by the CLI.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._no_color)

        rich_stdout = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        """Console bound to stderr; the CLI log handler writes through it."""
        return self._stderr

    # stdout

    def print_body(self, body: Any) -> None:
        """Render a decoded response body."""
        if self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(_pretty(body), "json", theme="monokai", word_wrap=True))
        elif self._format == OutputFormat.JSON:
            self.print_text(_pretty(body))
        else:
            for line in _plain_lines(body):
                self.print_text(line)

    def print_text(self, text: str) -> None:
        sys.stdout.write(text + "\n")
        sys.stdout.flush()

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render rows as a Rich table, a JSON array of records, or TSV."""
        if self._format == OutputFormat.JSON:
            self.print_text(_pretty([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for cells in [headers, *rows]:
                self.print_text("\t".join(cells))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # stderr

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic(message, label="Warning", style="yellow")

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic(message, label="Error", style="bold red")

    def _diagnostic(
        self,
        message: str,
        label: Optional[str] = None,
        style: Optional[str] = None,
    ) -> None:
        if self._no_color or style is None:
            sys.stderr.write((f"{label}: {message}" if label else message) + "\n")
            sys.stderr.flush()
        elif label:
            self._stderr.print(f"[{style}]{label}:[/{style}] {message}", highlight=False)
        else:
            self._stderr.print(f"[{style}]{message}[/{style}]", highlight=False)


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _color_disabled_by_env() -> bool:
    # NO_COLOR counts when set at all, even empty
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _compact(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, default=str, separators=(",", ":"))


def _plain_lines(body: Any) -> Iterator[str]:
    if isinstance(body, Mapping):
        for key, value in body.items():
            yield f"{key}\t{_compact(value) if isinstance(value, (Mapping, list)) else value}"
    elif isinstance(body, list):
        for item in body:
            yield _compact(item) if isinstance(item, (Mapping, list)) else str(item)
    else:
        yield str(body)


# Process-wide manager, replaced by the CLI callback on every invocation.

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
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


def print_body(body: Any) -> None:
    get_output().print_body(body)


def print_text(text: str) -> None:
    get_output().print_text(text)


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
