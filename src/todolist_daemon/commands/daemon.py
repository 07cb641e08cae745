"""Daemon commands -- run the polling loop or a single phase.

Typical usage::

    todod run                        # 10 cycles, 3 s apart (config defaults)
    todod run --forever --post       # post + list until Ctrl-C / SIGTERM
    todod list                       # one GET phase, right now
    todod add "Buy milk"             # one POST phase
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import typer

from todolist_daemon.commands import load_context_settings
from todolist_daemon.exit_codes import EXIT_API_FAILURE, EXIT_AUTH_FAILURE
from todolist_daemon.loop import PHASE_GET, PHASE_POST, run_daemon, run_single_phase
from todolist_daemon.models import DaemonSettings, PhaseResult, PhaseStatus
from todolist_daemon.output import info


def run_command(
    ctx: typer.Context,
    cycles: Optional[int] = typer.Option(
        None, "--cycles", "-n", min=0, help="Number of polling cycles."
    ),
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", min=0.0, help="Seconds to wait before each phase."
    ),
    forever: bool = typer.Option(
        False, "--forever", help="Poll until interrupted, ignoring --cycles."
    ),
    post: Optional[bool] = typer.Option(
        None, "--post/--no-post", help="Post a new item every cycle."
    ),
) -> None:
    """Poll the to-do list API on a fixed interval.

    Each cycle acquires a fresh token per phase, optionally posts a new
    item, then lists the items. SIGINT and SIGTERM stop the loop after the
    current phase. Phase failures are reported but never end the run.

    Example::

        todod run --cycles 5 --interval 10
    """
    overrides = {
        "loop": {
            "cycles": cycles,
            "interval": interval,
            "forever": forever or None,
            "post_enabled": post,
        }
    }
    settings = load_context_settings(ctx, overrides)
    results = asyncio.run(_run_until_signalled(settings))
    _print_summary(results)


def list_command(ctx: typer.Context) -> None:
    """Retrieve the to-do list once and print every title.

    Exits with the auth-failure code if no token could be obtained, the
    API-failure code if the request failed, and the decode-error code if
    the body was not a list of items. With ``--json`` the titles are printed
    as one ``{"cycle", "items", "count"}`` object.
    """
    settings = load_context_settings(ctx)
    result = asyncio.run(run_single_phase(settings, PHASE_GET))
    _exit_for(result)


def add_command(
    ctx: typer.Context,
    title: Optional[str] = typer.Argument(
        None, help="Item title. Defaults to 'Task at time: <now>'."
    ),
) -> None:
    """Post a single new item to the to-do list."""
    settings = load_context_settings(ctx)
    result = asyncio.run(run_single_phase(settings, PHASE_POST, title=title))
    _exit_for(result)


async def _run_until_signalled(settings: DaemonSettings) -> list[PhaseResult]:
    """Run the daemon with SIGINT/SIGTERM wired to its stop event."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError, ValueError):
            # Windows, or not on the main thread: fall back to KeyboardInterrupt.
            continue
        installed.append(sig)
    try:
        return await run_daemon(settings, stop_event=stop)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _print_summary(results: list[PhaseResult]) -> None:
    counts = {status: 0 for status in PhaseStatus}
    for result in results:
        counts[result.status] += 1
    info(
        f"Completed {len(results)} phase(s): {counts[PhaseStatus.OK]} ok, "
        f"{counts[PhaseStatus.FAILED]} failed, {counts[PhaseStatus.CANCELLED]} cancelled"
    )


def _exit_for(result: PhaseResult) -> None:
    """Exit with the code of the error that ended *result*, if any."""
    if result.status == PhaseStatus.OK:
        return
    if result.exit_code is not None:
        raise typer.Exit(code=result.exit_code)
    if result.status == PhaseStatus.CANCELLED:
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    raise typer.Exit(code=EXIT_API_FAILURE)
