"""Typer application and CLI entry point for todolist-daemon.

This module wires together the top-level Typer application and registers the
built-in commands (``run``, ``list``, ``add``, ``token``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app, and
maps errors to exit codes. Unhandled exceptions are written to a crash log
under the data directory.

See Also:
    :mod:`todolist_daemon.config`: Settings resolution.
    :mod:`todolist_daemon.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from todolist_daemon import __version__
from todolist_daemon.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="todod",
    help="Poll a to-do list API with OAuth2 bearer tokens.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"todolist-daemon {__version__}")
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
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the YAML/JSON config file."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output: one object per listing, settings as a document."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~todolist_daemon.output.OutputManager`
    from CLI flags and stores shared options in ``ctx.obj`` so that
    sub-commands can read them.
    """
    from todolist_daemon.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from todolist_daemon.commands.auth import token_command  # noqa: E402
from todolist_daemon.commands.config import config_app  # noqa: E402
from todolist_daemon.commands.daemon import add_command, list_command, run_command  # noqa: E402

app.command("run")(run_command)
app.command("list")(list_command)
app.command("add")(add_command)
app.command("token")(token_command)
app.add_typer(config_app, name="config", help="Inspect the resolved settings.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C outside the loop exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from todolist_daemon.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``todod`` console script.

    :class:`~todolist_daemon.exceptions.TodoDaemonError` instances that
    escape a command cause a clean exit with the error's ``exit_code``. All
    other exceptions produce a crash log and a generic failure exit.

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
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from todolist_daemon.exceptions import TodoDaemonError
        from todolist_daemon.output import error

        if isinstance(exc, TodoDaemonError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
