"""Shared test fixtures for todolist-daemon.

Provides reusable fixtures for building settings, isolating the config
environment, routing HTTP traffic through :class:`httpx.MockTransport`, and
managing output state. These fixtures are discovered automatically by pytest.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from todolist_daemon.config import ENV_VARS
from todolist_daemon.models import Credentials, DaemonSettings, LoopConfig
from todolist_daemon.output import OutputFormat, OutputManager, reset_output, set_output


TOKEN_URL = "https://login.example.com/contoso/oauth2/token"
API_BASE = "https://todo.example.com"


# ---------------------------------------------------------------------------
# Output state
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _plain_output() -> None:
    """Install a plain, colourless OutputManager for every test.

    Plain mode writes through ``print`` at call time, so ``capsys`` sees
    everything the daemon reports.
    """
    set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Settings fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        instance="https://login.example.com/{0}",
        tenant="contoso",
        api_client_id="api-client-id",
        app_client_id="app-client-id",
        client_secret="s3cret",
        username="alice@contoso.com",
        password="hunter2",
        app_key="app-key",
    )


@pytest.fixture
def settings(credentials: Credentials) -> DaemonSettings:
    """Password-grant settings with one cycle and no waits."""
    return DaemonSettings(
        credentials=credentials,
        api_base_address=API_BASE,
        loop=LoopConfig(cycles=1, interval=0),
    )


@pytest.fixture
def config_values() -> dict[str, Any]:
    """A complete flat config file mapping."""
    return {
        "instance": "https://login.example.com/{0}",
        "tenant": "contoso",
        "api_client_id": "api-client-id",
        "app_client_id": "app-client-id",
        "client_secret": "s3cret",
        "username": "alice@contoso.com",
        "password": "hunter2",
        "api_base_address": "https://todo.example.com/",
    }


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at *tmp_path*, clears every ``TODOD_*``
    variable, and changes the working directory to *tmp_path*.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("todolist_daemon.config._is_xdg_platform", lambda: True)

    for var in list(ENV_VARS.values()) + ["TODOD_CONFIG"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def write_config(isolated_config: Path) -> Callable[..., Path]:
    """Return a helper that writes a JSON config file and returns its path."""

    def _write(data: dict[str, Any], name: str = "todod.json") -> Path:
        path = isolated_config / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


class FakeServices:
    """Route MockTransport requests to a token endpoint and the to-do API.

    Each attribute is either an :class:`httpx.Response`, a callable taking
    the request, or a list consumed one item per request (the last item
    repeats). Every request is recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self.token: Any = httpx.Response(200, json={"access_token": "tok123"})
        self.get: Any = httpx.Response(200, json=[])
        self.post: Any = httpx.Response(201)
        self.requests: list[httpx.Request] = []
        self.on_request: Callable[[httpx.Request], None] | None = None

    def requests_to(self, method: str, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url) == url]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return self.requests_to("POST", TOKEN_URL)

    @property
    def get_requests(self) -> list[httpx.Request]:
        return self.requests_to("GET", f"{API_BASE}/api/todolist")

    @property
    def post_requests(self) -> list[httpx.Request]:
        return self.requests_to("POST", f"{API_BASE}/api/todolist")

    def _pick(self, canned: Any, count: int, request: httpx.Request) -> httpx.Response:
        if isinstance(canned, list):
            canned = canned[min(count, len(canned)) - 1]
        if callable(canned):
            return canned(request)
        # Fresh copy per request so one canned response can be served repeatedly.
        return httpx.Response(canned.status_code, headers=canned.headers, content=canned.content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        url = str(request.url)
        if url == TOKEN_URL:
            return self._pick(self.token, len(self.token_requests), request)
        if request.method == "GET":
            return self._pick(self.get, len(self.get_requests), request)
        return self._pick(self.post, len(self.post_requests), request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()
