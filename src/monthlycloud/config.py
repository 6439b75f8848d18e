"""Settings for the builders and the CLI.

The effective :class:`~monthlycloud.models.ClientConfig` is layered by
:func:`resolve_config`, lowest priority first:

1. model defaults
2. the user file ``config.json`` in :func:`get_config_dir`
3. ``monthlycloud.json`` in the working directory
4. ``MONTHLYCLOUD_<FIELD>`` environment variables
5. explicit overrides (CLI flags)

The access token may instead be pulled from ``access_token_source``
(see :func:`resolve_credential`).  Directories follow the XDG base
directory layout on Linux/BSD and live under ``~/.monthlycloud`` elsewhere.
"""

from __future__ import annotations

import contextlib
import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from monthlycloud.exceptions import ConfigError
from monthlycloud.models import ClientConfig

_APP_NAME = "monthlycloud"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "monthlycloud.json"
_ENV_PREFIX = "MONTHLYCLOUD_"

# ClientConfig field -> environment variable suffix
_ENV_FIELDS = (
    "access_token",
    "api_url",
    "storage_url",
    "public_storage_url",
    "locale",
    "cache_ttl",
    "use_cache",
    "read_only",
)


# --- Directories ---

# kind -> (XDG variable, default under $HOME, subdirectory on other platforms)
_DIR_LAYOUT = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "data"),
}


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_default, fallback_sub = _DIR_LAYOUT[kind]
    if _is_xdg_platform():
        base = os.environ.get(env_var)
        path = Path(base) if base else Path.home().joinpath(*home_default)
        path = path / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``, created on first use.

    ``$XDG_CONFIG_HOME/monthlycloud`` on Linux/BSD, ``~/.monthlycloud``
    elsewhere.
    """
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Root of the :class:`~monthlycloud.cache.DiskCacheStore` used by the CLI."""
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("data")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


# --- User config ---


def _config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_config(path: Optional[Path] = None) -> ClientConfig:
    """Load the user configuration.

    Args:
        path: Explicit config file. Defaults to ``<config_dir>/config.json``.

    Returns:
        The deserialised :class:`~monthlycloud.models.ClientConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = path or _config_path()
    if not path.is_file():
        return ClientConfig()
    data = _read_json(path, "config")
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ClientConfig, path: Optional[Path] = None) -> None:
    """Persist the configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(path or _config_path(), json.dumps(data, indent=2) + "\n")


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./monthlycloud.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


def _env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for name in _ENV_FIELDS:
        value = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
        if value:
            overrides[name] = value
    return overrides


# --- Layering ---


def resolve_config(
    config_path: Optional[Path] = None,
    **cli_overrides: Any,
) -> ClientConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. Keyword overrides (CLI flags); ``None`` values are ignored
        2. Environment variables (``MONTHLYCLOUD_API_URL``, ...)
        3. Project config (``./monthlycloud.json``)
        4. User config (``~/.config/monthlycloud/config.json``)
        5. Defaults

    When ``access_token`` is still empty and ``access_token_source`` is
    set, the token is read through :func:`resolve_credential`.

    Raises:
        ConfigError: If any layer is invalid or the credential source
            cannot be resolved.
    """
    merged = load_config(config_path).model_dump()

    project = load_project_config()
    if project is not None:
        merged.update(project)

    merged.update(_env_overrides())
    merged.update({k: v for k, v in cli_overrides.items() if v is not None})

    try:
        config = ClientConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    if not config.access_token and config.access_token_source:
        config.access_token = resolve_credential(config.access_token_source)
    return config


# --- Access token sources ---


def resolve_credential(source: str) -> str:
    """Read the access token from ``env:<VAR>`` or ``file:<path>``.

    File contents are stripped of surrounding whitespace.

    Raises:
        ConfigError: For an unset variable, an unreadable file or an
            unrecognised scheme.
    """
    scheme, _, target = source.partition(":")
    if scheme == "env":
        try:
            return os.environ[target]
        except KeyError:
            raise ConfigError(f"Token variable {target} is not set ({source})") from None
    if scheme == "file":
        token_file = Path(target).expanduser()
        if not token_file.is_file():
            raise ConfigError(f"Token file not found: {token_file} ({source})")
        try:
            return token_file.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read token file {token_file}: {exc}") from exc
    raise ConfigError(f"Unknown credential source: {source} (use env:VAR or file:PATH)")
