"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~todolist_daemon.exceptions.TodoDaemonError`
subclass. Supervisors (systemd, cron wrappers) can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ todod run --cycles 1
    $ echo $?
    2   # EXIT_CONFIG_ERROR -- a required setting is missing
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""A required setting is missing or the configuration file is invalid."""

EXIT_AUTH_FAILURE = 3
"""A token could not be obtained from the identity provider."""

EXIT_API_FAILURE = 5
"""The to-do list API returned a non-2xx status or was unreachable."""

EXIT_DECODE_ERROR = 6
"""The to-do list API returned a body that could not be decoded."""

EXIT_INTERRUPTED = 130
"""The process was interrupted (Ctrl-C)."""
