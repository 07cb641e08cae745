"""Canonical Pydantic models shared across all todolist-daemon modules.

The models fall into three groups:

**Settings models** -- built once at process entry by
:func:`todolist_daemon.config.load_settings` and passed explicitly into the
token acquirer and the polling loop:
    :class:`Credentials`, :class:`RetryPolicy`, :class:`LoopConfig`,
    :class:`RequestConfig`, and :class:`DaemonSettings`.

**Wire models** -- typed views over JSON returned by remote services:
    :class:`TokenResponse` and :class:`TodoItem`.

**Report models** -- produced by the polling loop:
    :class:`PhaseResult`.

Settings models are frozen so that nothing inside the core can mutate the
configuration once the daemon is running.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# --- Settings ---


class GrantType(str, enum.Enum):
    """OAuth2 grant used to obtain the access token.

    ``password`` sends the API client id with a client secret;
    ``public_password`` sends the daemon's own client id and no secret.
    """

    PASSWORD = "password"
    PUBLIC_PASSWORD = "public_password"
    CLIENT_CREDENTIALS = "client_credentials"


class Credentials(BaseModel):
    """Identity provider and resource-owner credentials.

    ``instance`` is a URL template for the identity provider; the tenant is
    substituted into it to form the authority. ``{0}``, ``{}`` and
    ``{tenant}`` placeholders are all accepted.

    Example::

        Credentials(
            instance="https://login.microsoftonline.com/{0}",
            tenant="contoso.onmicrosoft.com",
            api_client_id="api-id",
            app_client_id="app-id",
            client_secret="s3cret",
            username="alice@contoso.onmicrosoft.com",
            password="hunter2",
        )
    """

    model_config = ConfigDict(frozen=True)

    instance: str = Field(description="Identity provider URL template")
    tenant: str
    api_client_id: str = Field(description="Client id of the protected API")
    app_client_id: str = Field(description="Client id of this daemon")
    client_secret: str = Field(default="", repr=False)
    username: str = ""
    password: str = Field(default="", repr=False)
    app_key: Optional[str] = Field(
        default=None,
        repr=False,
        description="Application key, used by the client_credentials grant",
    )


class RetryPolicy(BaseModel):
    """Bounded retry applied to token acquisition."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Token requests per acquisition")
    retry_delay: float = Field(default=3.0, ge=0, description="Seconds between attempts")


class LoopConfig(BaseModel):
    """Polling cadence."""

    model_config = ConfigDict(frozen=True)

    cycles: int = Field(default=10, ge=0)
    interval: float = Field(default=3.0, ge=0, description="Seconds slept before each phase")
    post_enabled: bool = Field(default=False, description="Post a new item every cycle")
    forever: bool = Field(default=False, description="Ignore cycles and run until stopped")


class RequestConfig(BaseModel):
    """HTTP request settings shared by the token and API calls."""

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")


class DaemonSettings(BaseModel):
    """Everything the daemon needs, resolved once at startup.

    See Also:
        :func:`~todolist_daemon.config.load_settings`: builds this from the
        config file, environment, and CLI overrides.
    """

    model_config = ConfigDict(frozen=True)

    credentials: Credentials
    api_base_address: str
    grant_type: GrantType = GrantType.PASSWORD
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Wire models ---


class TokenResponse(BaseModel):
    """Token endpoint response. Only ``access_token`` is required."""

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1)
    token_type: Optional[str] = None
    expires_in: Optional[int | str] = None


class TodoItem(BaseModel):
    """A single entry of the remote to-do list."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(validation_alias=AliasChoices("Title", "title"))


# --- Reports ---


class PhaseStatus(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PhaseResult(BaseModel):
    """Outcome of one POST or GET phase of the polling loop."""

    phase: str
    cycle: int
    status: PhaseStatus
    items: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    exit_code: Optional[int] = Field(
        default=None, description="Exit code of the error that ended the phase"
    )

    @property
    def count(self) -> int:
        return len(self.items)
