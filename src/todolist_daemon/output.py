"""Console output for the daemon: data on stdout, diagnostics on stderr.

Two kinds of data reach stdout:

* **Item listings** -- the titles found by each GET phase
  (:func:`print_items`). Plain and rich modes print one title per line; JSON
  mode prints one compact ``{"cycle", "items", "count"}`` object per phase,
  so ``todod --json run`` yields a newline-delimited stream.
* **Records** -- settings dumps and token summaries (:func:`print_record`).
  JSON mode prints an indented document, plain mode ``key<TAB>value`` lines,
  rich mode a two-column table.

Progress, retry notices, cancellations and failures go to stderr through
:func:`info`, :func:`success`, :func:`warning`, :func:`error` and
:func:`debug`. This is the daemon's logging layer: the token acquirer and
the polling loop call these helpers, which delegate to the process-wide
:class:`OutputManager` installed by the CLI root callback.

Colour is dropped when ``--no-color`` is passed, ``NO_COLOR`` is set, or
``TERM=dumb``.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterable, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """Stdout data format. ``AUTO`` picks ``RICH`` on a colour TTY, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# Style and prefix per diagnostic level; ``None`` style means no markup.
_LEVELS: dict[str, tuple[Optional[str], str]] = {
    "info": (None, ""),
    "success": ("green", ""),
    "warning": ("yellow", "Warning: "),
    "error": ("bold red", "Error: "),
    "debug": ("dim", "[debug] "),
}


class OutputManager:
    """Route daemon output to the right stream in the chosen format.

    Args:
        format: Data format for stdout.
        no_color: Disable colour and markup on both streams.
        quiet: Drop ``info`` and ``success`` messages. Warnings, errors and
            data are always written.
        verbose: Emit ``debug`` messages.
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
            use_rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
            highlight=False,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True, highlight=False)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_items(self, titles: Iterable[str], cycle: Optional[int] = None) -> None:
        """Write the titles found by one GET phase."""
        titles = list(titles)
        if self._format == OutputFormat.JSON:
            record: dict[str, Any] = {"items": titles, "count": len(titles)}
            if cycle is not None:
                record = {"cycle": cycle, **record}
            self.print_data(json.dumps(record, ensure_ascii=False))
            return
        for title in titles:
            self.print_data(title)

    def print_record(self, data: dict[str, Any]) -> None:
        """Write a settings dump or summary mapping."""
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
            return
        rows = list(_flatten(data))
        if self._format == OutputFormat.PLAIN:
            for key, value in rows:
                self.print_data(f"{key}\t{value}")
            return
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan")
        table.add_column()
        for key, value in rows:
            table.add_row(escape(key), escape(str(value)))
        self._stdout.print(table)

    def print_data(self, text: str) -> None:
        """Write *text* to stdout as-is."""
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("info", message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("success", message)

    def warning(self, message: str) -> None:
        self._diagnostic("warning", message)

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic("debug", message)

    def _diagnostic(self, level: str, message: str) -> None:
        style, prefix = _LEVELS[level]
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        text = escape(prefix + message)
        self._stderr.print(f"[{style}]{text}[/{style}]" if style else text)


def _flatten(data: dict[str, Any], parent: str = "") -> Iterable[tuple[str, Any]]:
    for key, value in data.items():
        name = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, dict):
            yield from _flatten(value, name)
        else:
            yield name, value


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def print_items(titles: Iterable[str], cycle: Optional[int] = None) -> None:
    get_output().print_items(titles, cycle)


def print_record(data: dict[str, Any]) -> None:
    get_output().print_record(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


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
