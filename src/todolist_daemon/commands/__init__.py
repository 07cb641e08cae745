"""Built-in CLI sub-commands for todolist-daemon.

* :mod:`~todolist_daemon.commands.daemon` -- ``run``, ``list`` and ``add``:
  the polling loop and its single-phase variants.
* :mod:`~todolist_daemon.commands.auth` -- ``token``: acquire one token to
  check the identity provider settings.
* :mod:`~todolist_daemon.commands.config` -- ``config show|check|path``.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or plain callback functions registered
directly on the root app.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from todolist_daemon.exceptions import ConfigError
from todolist_daemon.models import DaemonSettings
from todolist_daemon.output import error


def load_context_settings(
    ctx: typer.Context,
    overrides: Optional[dict[str, Any]] = None,
) -> DaemonSettings:
    """Resolve settings using the ``--config`` path stored by the root callback.

    Raises:
        typer.Exit: With the config-error exit code if resolution fails.
    """
    from todolist_daemon.config import load_settings

    config_path = ctx.obj.get("config") if ctx.obj else None
    try:
        return load_settings(config_path, overrides)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
