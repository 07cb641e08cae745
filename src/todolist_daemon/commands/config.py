"""Config commands -- inspect the resolved daemon settings.

Provides the ``todod config`` sub-command group. Settings are never written
by the daemon; edit the config file or the ``TODOD_*`` environment
variables instead.
"""

from __future__ import annotations

import os

import typer

from todolist_daemon.commands import load_context_settings
from todolist_daemon.output import info, print_data, print_record, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective settings with secrets masked.

    Example::

        todod config show
        todod --json config show
    """
    from todolist_daemon.config import redacted_settings

    settings = load_context_settings(ctx)
    print_record(redacted_settings(settings))


@config_app.command("check")
def config_check(ctx: typer.Context) -> None:
    """Verify that every required setting is present.

    Exits with the config-error code and lists the missing keys otherwise.
    No network request is made.
    """
    from todolist_daemon.auth.token import build_token_endpoint

    settings = load_context_settings(ctx)
    info(f"Token endpoint: {build_token_endpoint(settings.credentials)}")
    info(f"API address: {settings.api_base_address}")
    success(f"Configuration OK (grant: {settings.grant_type.value}).")


@config_app.command("path")
def config_path(ctx: typer.Context) -> None:
    """Print the config file path that would be read."""
    from todolist_daemon.config import CONFIG_PATH_ENV, default_config_path

    explicit = (ctx.obj or {}).get("config") or os.environ.get(CONFIG_PATH_ENV)
    print_data(str(explicit or default_config_path()))
