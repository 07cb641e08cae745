"""Exception hierarchy for todolist-daemon.

All exceptions inherit from :class:`TodoDaemonError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`todolist_daemon.exit_codes`. The polling loop catches the auth, API and
decode errors at each phase boundary and keeps running; only the CLI entry
point turns an error into a process exit.

Subclass hierarchy::

    TodoDaemonError (exit 1)
    +-- ConfigError          (exit 2)
    +-- AuthError            (exit 3)
    |   +-- AuthTransportError
    |   +-- AuthDecodeError
    +-- ApiTransportError    (exit 5)
    +-- DecodeError          (exit 6)
"""

from __future__ import annotations

from typing import Optional

from todolist_daemon.exit_codes import (
    EXIT_API_FAILURE,
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
)


class TodoDaemonError(Exception):
    """Base exception for all todolist-daemon errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(TodoDaemonError):
    """Raised when a required setting is missing or the config file is invalid."""

    exit_code = EXIT_CONFIG_ERROR


class AuthError(TodoDaemonError):
    """Raised when no usable access token could be obtained."""

    exit_code = EXIT_AUTH_FAILURE


class AuthTransportError(AuthError):
    """The token endpoint stayed unreachable or non-2xx for every attempt.

    Args:
        message: Human-readable description.
        attempts: Number of token requests that were made.
        status_code: Status of the last response, ``None`` on transport failure.
    """

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code


class AuthDecodeError(AuthError):
    """The token endpoint answered 2xx but the body held no usable token."""


class ApiTransportError(TodoDaemonError):
    """Raised when the to-do list API returns non-2xx or cannot be reached.

    Args:
        reason: Reason phrase of the response, or the transport error text.
        status_code: HTTP status, ``None`` when no response was received.
    """

    exit_code = EXIT_API_FAILURE

    def __init__(self, reason: str, status_code: Optional[int] = None):
        prefix = f"HTTP {status_code}" if status_code is not None else "Request failed"
        super().__init__(f"{prefix}: {reason}" if reason else prefix)
        self.reason = reason
        self.status_code = status_code


class DecodeError(TodoDaemonError):
    """Raised when a to-do list payload is not a JSON array of items."""

    exit_code = EXIT_DECODE_ERROR
