"""Auth command -- acquire one token to verify identity provider settings.

Typical usage::

    todod token           # masked token, endpoint on stderr
    todod token --show    # full token on stdout, e.g. for curl
"""

from __future__ import annotations

import asyncio

import typer

from todolist_daemon.auth.token import build_token_endpoint, fetch_token
from todolist_daemon.commands import load_context_settings
from todolist_daemon.exceptions import AuthError
from todolist_daemon.output import error, info, print_data, print_record, success


def mask_token(token: str) -> str:
    """Keep the first and last four characters of *token*."""
    if len(token) <= 12:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


def token_command(
    ctx: typer.Context,
    show: bool = typer.Option(False, "--show", help="Print the full token to stdout."),
) -> None:
    """Acquire an access token using the configured grant.

    Applies the same bounded retry as the daemon. Exits with the
    auth-failure code when no token can be obtained.
    """
    settings = load_context_settings(ctx)
    info(f"Token endpoint: {build_token_endpoint(settings.credentials)}")

    try:
        token = asyncio.run(fetch_token(settings))
    except AuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    success(f"Acquired token ({len(token)} characters).")
    if show:
        print_data(token)
    else:
        print_record({"grant_type": settings.grant_type.value, "access_token": mask_token(token)})
