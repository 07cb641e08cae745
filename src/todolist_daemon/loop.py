"""The authenticated polling loop.

:class:`PollingLoop` drives the daemon. Each cycle has two phase slots, each
preceded by an ``interval`` wait. The wait before the POST slot happens even
when posting is disabled:

1. **POST phase** (only when ``loop.post_enabled``) -- acquire a token and
   post a new item titled ``"Task at time: <timestamp>"``.
2. **GET phase** -- acquire a token, fetch the list, print every title to
   stdout and the total count to stderr.

A phase whose token cannot be obtained is cancelled before any API call is
made. Token failures (:class:`~todolist_daemon.exceptions.AuthError`), API
failures (:class:`~todolist_daemon.exceptions.ApiTransportError`) and
unreadable bodies (:class:`~todolist_daemon.exceptions.DecodeError`) are
caught at the phase boundary and recorded as a
:class:`~todolist_daemon.models.PhaseResult` carrying the error's exit code,
so one failure never ends the loop. The loop stops after ``cycles`` cycles,
or when its stop event is set. The event is checked between phases and
interrupts both the inter-phase wait and the token retry wait.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import httpx

from todolist_daemon.auth.token import TokenAcquirer
from todolist_daemon.client import TodoListClient, decode_todo_list
from todolist_daemon.exceptions import ApiTransportError, AuthError, DecodeError
from todolist_daemon.models import DaemonSettings, PhaseResult, PhaseStatus
from todolist_daemon.output import debug, error, info, print_items, success, warning

PHASE_POST = "post"
PHASE_GET = "get"

_CANCEL_MESSAGE = "Canceling attempt to contact To Do list service."


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class PollingLoop:
    """Run POST/GET phases against the to-do list API on a fixed cadence.

    Args:
        settings: Resolved daemon settings; ``settings.loop`` supplies the
            default cycle count, interval, and whether to post.
        client: An entered :class:`~todolist_daemon.client.TodoListClient`.
        acquirer: Token source, called once per phase.
        stop_event: Optional event that stops the loop when set. A private
            event is created when omitted; see :meth:`stop`.
    """

    def __init__(
        self,
        settings: DaemonSettings,
        client: TodoListClient,
        acquirer: TokenAcquirer,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._acquirer = acquirer
        self._stop = stop_event or asyncio.Event()

    def stop(self) -> None:
        """Ask the loop to finish after the phase in progress."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run(
        self,
        cycles: Optional[int] = None,
        interval: Optional[float] = None,
        *,
        forever: Optional[bool] = None,
        post_enabled: Optional[bool] = None,
    ) -> list[PhaseResult]:
        """Run the loop and return the outcome of every phase executed.

        Args:
            cycles: Number of cycles; defaults to ``settings.loop.cycles``.
            interval: Seconds waited before each phase slot; defaults to
                ``settings.loop.interval``.
            forever: Ignore *cycles* and run until stopped.
            post_enabled: Whether to run the POST phase each cycle.

        Returns:
            One :class:`PhaseResult` per phase, in execution order.
        """
        loop_config = self._settings.loop
        cycles = loop_config.cycles if cycles is None else cycles
        interval = loop_config.interval if interval is None else interval
        forever = loop_config.forever if forever is None else forever
        post_enabled = loop_config.post_enabled if post_enabled is None else post_enabled

        results: list[PhaseResult] = []
        cycle = 0
        while forever or cycle < cycles:
            cycle += 1
            debug(f"Starting cycle {cycle}" + ("" if forever else f"/{cycles}"))

            if await self._pause(interval):
                break
            if post_enabled:
                results.append(await self.run_post_phase(cycle))

            if await self._pause(interval):
                break
            results.append(await self.run_get_phase(cycle))

        if self.stopped:
            info(f"Polling stopped after {len(results)} phase(s).")
        return results

    async def run_post_phase(self, cycle: int = 1, title: Optional[str] = None) -> PhaseResult:
        """Post one new item.

        Args:
            cycle: Cycle number recorded in the result.
            title: Item title; defaults to ``"Task at time: <now>"``.
        """
        cancelled = await self._authorize(PHASE_POST, cycle)
        if cancelled is not None:
            return cancelled

        now = _timestamp()
        todo_text = title or f"Task at time: {now}"
        info(f"Posting to To Do list at {now}")
        try:
            await self._client.post_todo(todo_text)
        except ApiTransportError as exc:
            error(f"Failed to post a new To Do item. Error: {exc.reason}")
            return PhaseResult(
                phase=PHASE_POST, cycle=cycle, status=PhaseStatus.FAILED, error=str(exc),
                exit_code=exc.exit_code,
            )

        success(f"Successfully posted new To Do item: {todo_text}")
        return PhaseResult(
            phase=PHASE_POST, cycle=cycle, status=PhaseStatus.OK, items=[todo_text],
        )

    async def run_get_phase(self, cycle: int = 1) -> PhaseResult:
        """Fetch the list and report every title plus the total count."""
        cancelled = await self._authorize(PHASE_GET, cycle)
        if cancelled is not None:
            return cancelled

        info(f"Retrieving To Do list at {_timestamp()}")
        try:
            response = await self._client.get_todos()
            items = decode_todo_list(response.content)
        except ApiTransportError as exc:
            error(f"Failed to retrieve To Do list. Error: {exc.reason}")
            return PhaseResult(
                phase=PHASE_GET, cycle=cycle, status=PhaseStatus.FAILED, error=str(exc),
                exit_code=exc.exit_code,
            )
        except DecodeError as exc:
            error(f"Could not read To Do list. Error: {exc}")
            return PhaseResult(
                phase=PHASE_GET, cycle=cycle, status=PhaseStatus.FAILED, error=str(exc),
                exit_code=exc.exit_code,
            )

        titles = [item.title for item in items]
        print_items(titles, cycle)
        info(f"Total item count: {len(titles)}")
        return PhaseResult(phase=PHASE_GET, cycle=cycle, status=PhaseStatus.OK, items=titles)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _authorize(self, phase: str, cycle: int) -> Optional[PhaseResult]:
        """Fetch a token and install it on the client.

        Returns ``None`` on success, or the cancelled result to report.
        """
        try:
            token = await self._acquirer.acquire_token()
        except AuthError as exc:
            warning(f"{_CANCEL_MESSAGE} ({exc})")
            return PhaseResult(
                phase=phase, cycle=cycle, status=PhaseStatus.CANCELLED, error=str(exc),
                exit_code=exc.exit_code,
            )
        self._client.set_bearer(token)
        return None

    async def _pause(self, interval: float) -> bool:
        """Wait *interval* seconds; return True if the loop was stopped."""
        if self._stop.is_set():
            return True
        if interval <= 0:
            return False
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            return False
        return True


async def run_daemon(
    settings: DaemonSettings,
    *,
    cycles: Optional[int] = None,
    interval: Optional[float] = None,
    forever: Optional[bool] = None,
    post_enabled: Optional[bool] = None,
    stop_event: Optional[asyncio.Event] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[PhaseResult]:
    """Open the shared HTTP client, run the loop, and close the client.

    All keyword arguments left as ``None`` fall back to ``settings.loop``.
    """
    async with TodoListClient(settings, transport=transport) as client:
        stop_event = stop_event or asyncio.Event()
        acquirer = TokenAcquirer(settings, client.http, stop_event=stop_event)
        loop = PollingLoop(settings, client, acquirer, stop_event=stop_event)
        return await loop.run(
            cycles, interval, forever=forever, post_enabled=post_enabled,
        )


async def run_single_phase(
    settings: DaemonSettings,
    phase: str,
    *,
    title: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PhaseResult:
    """Run one GET or POST phase immediately, without waiting."""
    async with TodoListClient(settings, transport=transport) as client:
        loop = PollingLoop(settings, client, TokenAcquirer(settings, client.http))
        if phase == PHASE_POST:
            return await loop.run_post_phase(title=title)
        return await loop.run_get_phase()
