"""OAuth2 token acquisition with bounded retry.

This module provides :class:`TokenAcquirer`, which exchanges the configured
credentials for an access token at ``{authority}/oauth2/token``. Three
grants are supported:

* ``password`` (default) -- the resource-owner password grant with a client
  secret (:rfc:`6749` section 4.3), requesting the ``openid`` scope for the
  protected API resource.
* ``public_password`` -- the same password grant sent as a public client:
  the daemon's own client id and no secret.
* ``client_credentials`` -- the application-only grant (:rfc:`6749`
  section 4.4) using the daemon's own client id and application key.

Every call performs a fresh exchange; no token is cached between calls.
Non-2xx responses and transport failures are retried up to
``RetryPolicy.max_attempts`` requests with a fixed ``retry_delay`` between
them, regardless of status code. A 2xx response whose body holds no token is
not retried. When the acquirer is given a stop event, setting it cuts the
retry wait short and ends the acquisition.

See Also:
    :class:`todolist_daemon.loop.PollingLoop`, the consumer of the token.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx
from pydantic import ValidationError

from todolist_daemon.client.api_client import build_verify
from todolist_daemon.exceptions import AuthDecodeError, AuthTransportError, ConfigError
from todolist_daemon.models import Credentials, DaemonSettings, GrantType, TokenResponse
from todolist_daemon.output import debug, warning

TOKEN_PATH = "/oauth2/token"


def build_authority(credentials: Credentials) -> str:
    """Substitute the tenant into the instance template.

    Raises:
        ConfigError: If the template has placeholders other than ``{0}``,
            ``{}`` or ``{tenant}``, or is otherwise malformed.
    """
    try:
        authority = credentials.instance.format(credentials.tenant, tenant=credentials.tenant)
    except (IndexError, KeyError, ValueError) as exc:
        raise ConfigError(
            f"Invalid instance template '{credentials.instance}': {exc}"
        ) from exc
    return authority.rstrip("/")


def build_token_endpoint(credentials: Credentials) -> str:
    return build_authority(credentials) + TOKEN_PATH


def build_token_request(settings: DaemonSettings) -> dict[str, str]:
    """Build the form fields sent to the token endpoint for the configured grant."""
    creds = settings.credentials
    if settings.grant_type == GrantType.CLIENT_CREDENTIALS:
        return {
            "grant_type": "client_credentials",
            "resource": creds.api_client_id,
            "client_id": creds.app_client_id,
            "client_secret": creds.app_key or "",
        }
    if settings.grant_type == GrantType.PUBLIC_PASSWORD:
        return {
            "grant_type": "password",
            "scope": "openid",
            "resource": creds.api_client_id,
            "client_id": creds.app_client_id,
            "username": creds.username,
            "password": creds.password,
        }
    # The API's own client id doubles as the requesting client here.
    return {
        "grant_type": "password",
        "scope": "openid",
        "resource": creds.api_client_id,
        "client_id": creds.api_client_id,
        "username": creds.username,
        "password": creds.password,
        "client_secret": creds.client_secret,
    }


@dataclass
class RetryState:
    """Per-acquisition attempt counter; never outlives one :meth:`TokenAcquirer.acquire_token` call."""

    attempt_count: int = 0


class TokenAcquirer:
    """Obtain bearer tokens from the identity provider.

    Args:
        settings: Resolved daemon settings (credentials, grant, retry policy).
        http: Shared async HTTP client. Token requests are sent with their
            own headers so no bearer header leaks into them.
        stop_event: Optional event that aborts the retry wait when set.

    Example::

        async with httpx.AsyncClient(timeout=30) as http:
            token = await TokenAcquirer(settings, http).acquire_token()
    """

    def __init__(
        self,
        settings: DaemonSettings,
        http: httpx.AsyncClient,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._settings = settings
        self._http = http
        self._stop = stop_event
        self._endpoint = build_token_endpoint(settings.credentials)

    @property
    def token_endpoint(self) -> str:
        return self._endpoint

    async def acquire_token(self) -> str:
        """Run the grant exchange and return the access token.

        Returns:
            The ``access_token`` string from the first successful response.

        Raises:
            AuthTransportError: Every attempt failed (non-2xx or transport
                error), or the stop event was set during a retry wait.
                ``attempts`` holds the number of requests made.
            AuthDecodeError: A 2xx response carried no usable token.
        """
        policy = self._settings.retry
        state = RetryState()
        form = build_token_request(self._settings)

        while True:
            status_code: Optional[int] = None
            try:
                debug(f"Requesting token from {self._endpoint} (grant: {form['grant_type']})")
                response = await self._http.post(
                    self._endpoint,
                    data=form,
                    headers={"Accept": "application/json"},
                )
            except httpx.HTTPError as exc:
                failure = str(exc) or type(exc).__name__
            else:
                if response.is_success:
                    return self._decode(response)
                status_code = response.status_code
                failure = f"HTTP {status_code} {response.reason_phrase}".rstrip()

            state.attempt_count += 1
            retry = state.attempt_count < policy.max_attempts
            warning(
                "An error occurred while acquiring a token "
                f"(time: {datetime.now():%Y-%m-%d %H:%M:%S}, error: {failure}, retry: {retry})"
            )
            if not retry:
                raise AuthTransportError(
                    f"Token request failed after {state.attempt_count} attempt(s): {failure}",
                    attempts=state.attempt_count,
                    status_code=status_code,
                )
            if await self._wait_or_stop(policy.retry_delay):
                raise AuthTransportError(
                    f"Token request cancelled after {state.attempt_count} attempt(s): {failure}",
                    attempts=state.attempt_count,
                    status_code=status_code,
                )

    async def _wait_or_stop(self, delay: float) -> bool:
        """Sleep *delay* seconds; return True if the stop event fired first."""
        if self._stop is None:
            await asyncio.sleep(delay)
            return False
        if self._stop.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    def _decode(self, response: httpx.Response) -> str:
        try:
            token = TokenResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise AuthDecodeError(
                "Token response missing a usable 'access_token' field"
            ) from exc
        return token.access_token


async def fetch_token(
    settings: DaemonSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Acquire one token with a short-lived HTTP client.

    Args:
        settings: Resolved daemon settings.
        transport: Optional transport override (tests, proxies).

    Returns:
        The access token.
    """
    async with httpx.AsyncClient(
        timeout=settings.request.timeout,
        verify=build_verify(settings.request),
        transport=transport,
    ) as http:
        return await TokenAcquirer(settings, http).acquire_token()
