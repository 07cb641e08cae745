"""Asynchronous client for the to-do list API.

This module provides :class:`TodoListClient`, a thin wrapper over
:class:`httpx.AsyncClient` that layers on:

- **Bearer injection** -- the current token, set with
  :meth:`~TodoListClient.set_bearer`, is merged into every API request.
  The last token set wins; calls are sequential so no request ever sees a
  half-updated value.
- **Transport policy** -- an explicit request timeout and a TLS 1.2 floor,
  applied to every call made through the shared connection pool.
- **Error mapping** -- non-2xx responses and network failures become
  :class:`~todolist_daemon.exceptions.ApiTransportError` carrying the
  reason phrase.

The same underlying :class:`httpx.AsyncClient` is exposed as :attr:`http`
so the token acquirer can reuse the connection pool.
"""

from __future__ import annotations

import ssl
from typing import Any, Optional, Union

import httpx

from todolist_daemon.exceptions import ApiTransportError
from todolist_daemon.models import DaemonSettings, RequestConfig
from todolist_daemon.output import debug

TODO_LIST_PATH = "/api/todolist"


def build_verify(config: RequestConfig) -> Union[ssl.SSLContext, bool]:
    """Return the ``verify`` argument for httpx: a TLS 1.2+ context, or ``False``."""
    if not config.verify_ssl:
        return False
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


class TodoListClient:
    """Async client for ``{api_base_address}/api/todolist``.

    Must be used as an async context manager so that the connection pool is
    opened and closed around the daemon's lifetime.

    Args:
        settings: Resolved daemon settings (base address, request config).
        transport: Optional transport override, e.g. :class:`httpx.MockTransport`.

    Example::

        async with TodoListClient(settings) as client:
            client.set_bearer(token)
            response = await client.get_todos()
    """

    def __init__(
        self,
        settings: DaemonSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._bearer: Optional[str] = None
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> TodoListClient:
        config = self._settings.request
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_base_address,
            timeout=config.timeout,
            verify=build_verify(config),
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def http(self) -> httpx.AsyncClient:
        """The shared :class:`httpx.AsyncClient` (only valid inside the context)."""
        assert self._client is not None, "Client not initialised -- use as async context manager"
        return self._client

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def set_bearer(self, token: str) -> None:
        """Replace the bearer token sent with subsequent API calls."""
        self._bearer = token

    async def get_todos(self) -> httpx.Response:
        """GET the to-do list.

        Returns:
            The 2xx :class:`httpx.Response`; its body is the JSON item array.

        Raises:
            ApiTransportError: On non-2xx status or network failure.
        """
        return await self._send("GET")

    async def post_todo(self, title: str) -> httpx.Response:
        """POST a new item as the form-encoded field ``Title``.

        Raises:
            ApiTransportError: On non-2xx status or network failure.
        """
        return await self._send("POST", data={"Title": title})

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _send(
        self,
        method: str,
        data: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if self._bearer:
            headers["Authorization"] = f"Bearer {self._bearer}"

        debug(f"{method} {self._settings.api_base_address}{TODO_LIST_PATH}")
        try:
            response = await self.http.request(
                method, TODO_LIST_PATH, headers=headers, data=data,
            )
        except httpx.HTTPError as exc:
            raise ApiTransportError(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise ApiTransportError(response.reason_phrase, status_code=response.status_code)
        return response
