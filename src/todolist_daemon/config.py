"""Settings resolution with XDG paths and precedence handling.

This module turns the daemon's external configuration into one frozen
:class:`~todolist_daemon.models.DaemonSettings` object:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.todolist-daemon/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Config file** -- YAML (JSON is accepted, being a YAML subset) holding
  credentials and optional ``retry``, ``loop`` and ``request`` sections.
* **Precedence resolution** -- :func:`load_settings` merges CLI overrides,
  ``TODOD_*`` environment variables, the config file, and defaults.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts for ``<name>_source`` keys.

Every required value is checked before the settings object is returned, so
a missing tenant or secret surfaces as a :class:`ConfigError` before any
network activity.
"""

from __future__ import annotations

import getpass
import os
import platform
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from todolist_daemon.exceptions import ConfigError
from todolist_daemon.models import DaemonSettings, GrantType

_APP_NAME = "todolist-daemon"
_CONFIG_FILENAME = "config.yaml"

CONFIG_PATH_ENV = "TODOD_CONFIG"

# Flat keys that may come from the environment, mapped to their variable.
ENV_VARS: dict[str, str] = {
    "instance": "TODOD_INSTANCE",
    "tenant": "TODOD_TENANT",
    "app_client_id": "TODOD_APP_CLIENT_ID",
    "api_client_id": "TODOD_API_CLIENT_ID",
    "app_key": "TODOD_APP_KEY",
    "username": "TODOD_USERNAME",
    "password": "TODOD_PASSWORD",
    "client_secret": "TODOD_CLIENT_SECRET",
    "api_base_address": "TODOD_API_BASE_ADDRESS",
    "grant_type": "TODOD_GRANT_TYPE",
}

_CREDENTIAL_KEYS = (
    "instance",
    "tenant",
    "api_client_id",
    "app_client_id",
    "client_secret",
    "username",
    "password",
    "app_key",
)
_SECRET_KEYS = ("client_secret", "password", "app_key")
_SECTIONS = ("retry", "loop", "request")

_ALWAYS_REQUIRED = ("instance", "tenant", "api_client_id", "app_client_id", "api_base_address")
_REQUIRED_BY_GRANT: dict[GrantType, tuple[str, ...]] = {
    GrantType.PASSWORD: ("username", "password", "client_secret"),
    GrantType.PUBLIC_PASSWORD: ("username", "password"),
    GrantType.CLIENT_CREDENTIALS: ("app_key",),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory.

    On Linux/BSD: ``$XDG_CONFIG_HOME/todolist-daemon/`` (default
    ``~/.config/todolist-daemon/``). Elsewhere: ``~/.todolist-daemon/``.
    The directory is not created; the daemon only ever reads from it.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/todolist-daemon/`` (default
    ``~/.local/share/todolist-daemon/``). Elsewhere: ``~/.todolist-daemon/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_config_path() -> Path:
    """Path of the config file used when neither ``--config`` nor ``$TODOD_CONFIG`` is set."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Config file ---


def load_config_file(path: Optional[str] = None) -> dict[str, Any]:
    """Read the YAML/JSON config file.

    Args:
        path: Explicit file path. When ``None``, ``$TODOD_CONFIG`` is used,
            falling back to :func:`default_config_path`.

    Returns:
        The parsed mapping. An absent *default* file yields an empty dict.

    Raises:
        ConfigError: If an explicitly named file does not exist, cannot be
            parsed, or does not contain a mapping.
    """
    explicit = path or os.environ.get(CONFIG_PATH_ENV) or None
    file_path = Path(explicit).expanduser() if explicit else default_config_path()

    if not file_path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {file_path}")
        return {}

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config file at {file_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid config file at {file_path}: expected a mapping, got {type(data).__name__}"
        )
    return data


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Precedence resolution ---


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict):
            base_value = merged.get(key)
            merged[key] = _deep_merge(base_value if isinstance(base_value, dict) else {}, value)
        elif value is not None:
            merged[key] = value
    return merged


def _env_layer() -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for key, var in ENV_VARS.items():
        value = os.environ.get(var)
        if value:
            layer[key] = value
    return layer


def _resolve_sources(raw: dict[str, Any]) -> dict[str, Any]:
    """Replace ``<secret>_source`` descriptors by their resolved value.

    A literal value for the same key wins over the descriptor.
    """
    resolved = dict(raw)
    for key in _SECRET_KEYS:
        source = resolved.pop(f"{key}_source", None)
        if source and not resolved.get(key):
            resolved[key] = resolve_credential(str(source))
    return resolved


def _missing_keys(flat: dict[str, Any], grant: GrantType) -> list[str]:
    required = _ALWAYS_REQUIRED + _REQUIRED_BY_GRANT[grant]
    return [key for key in required if not flat.get(key)]


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> DaemonSettings:
    """Resolve the daemon settings with the full precedence chain.

    Precedence (high to low):
        1. *overrides* (CLI flags), same shape as the config file
        2. Environment variables (``TODOD_TENANT``, ``TODOD_PASSWORD``, ...)
        3. Config file (``--config``, ``$TODOD_CONFIG`` or the XDG default)
        4. Model defaults

    Args:
        config_path: Optional explicit config file path.
        overrides: Values that win over every other layer. ``None`` values
            are ignored so unset CLI options fall through.

    Returns:
        The frozen :class:`~todolist_daemon.models.DaemonSettings`.

    Raises:
        ConfigError: If a required value is missing, a credential source
            cannot be resolved, the instance template is malformed, or the
            values fail validation.
    """
    from todolist_daemon.auth.token import build_authority

    raw = load_config_file(config_path)
    raw = _deep_merge(raw, _env_layer())
    raw = _deep_merge(raw, overrides or {})
    raw = _resolve_sources(raw)

    try:
        grant = GrantType(raw.get("grant_type") or GrantType.PASSWORD.value)
    except ValueError:
        choices = ", ".join(g.value for g in GrantType)
        raise ConfigError(
            f"Unknown grant_type '{raw.get('grant_type')}' (expected one of: {choices})"
        ) from None

    missing = _missing_keys(raw, grant)
    if missing:
        hints = ", ".join(
            f"{key} (${ENV_VARS[key]})" if key in ENV_VARS else key for key in missing
        )
        raise ConfigError(f"Missing required configuration: {hints}")

    credentials = {key: str(raw[key]) for key in _CREDENTIAL_KEYS if raw.get(key)}
    data: dict[str, Any] = {
        "credentials": credentials,
        "api_base_address": str(raw["api_base_address"]).rstrip("/"),
        "grant_type": grant,
    }
    for section in _SECTIONS:
        if raw.get(section):
            data[section] = raw[section]

    try:
        settings = DaemonSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    # Surfaces a malformed template now rather than on the first token request.
    build_authority(settings.credentials)
    return settings


def redacted_settings(settings: DaemonSettings) -> dict[str, Any]:
    """Return the settings as a JSON-ready dict with secrets masked."""
    data = settings.model_dump(mode="json")
    for key in _SECRET_KEYS:
        if data["credentials"].get(key):
            data["credentials"][key] = "********"
    return data
