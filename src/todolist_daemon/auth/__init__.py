"""Authentication subsystem.

Provides :class:`~todolist_daemon.auth.token.TokenAcquirer`, which turns the
configured credentials into a bearer token through the identity provider's
``/oauth2/token`` endpoint, with bounded retry.
"""

from todolist_daemon.auth.token import (
    RetryState,
    TokenAcquirer,
    build_authority,
    build_token_endpoint,
    build_token_request,
    fetch_token,
)

__all__ = [
    "RetryState",
    "TokenAcquirer",
    "build_authority",
    "build_token_endpoint",
    "build_token_request",
    "fetch_token",
]
