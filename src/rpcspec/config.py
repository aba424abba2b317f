"""Configuration management with XDG paths and precedence resolution.

This module handles all persistent configuration for rpcspec:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.rpcspec/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~rpcspec.models.GlobalConfig` JSON
  file storing the default spec URL, request settings and output format.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from rpcspec.exceptions import ConfigError
from rpcspec.models import GlobalConfig

_APP_NAME = "rpcspec"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "rpcspec.json"

ENV_SPEC_URL = "RPCSPEC_SPEC_URL"
ENV_BASE_URL = "RPCSPEC_BASE_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/rpcspec/`` (default ``~/.config/rpcspec/``).
    On macOS/Windows: ``~/.rpcspec/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/rpcspec/`` (default ``~/.local/share/rpcspec/``).
    On macOS/Windows: ``~/.rpcspec/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~rpcspec.models.GlobalConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc

# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./rpcspec.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not a valid JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_spec_url: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_spec_url``, ``cli_base_url``, ``cli_format``)
        2. Environment variables (``RPCSPEC_SPEC_URL``, ``RPCSPEC_BASE_URL``)
        3. Project config (``./rpcspec.json``)
        4. User config (``~/.config/rpcspec/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~rpcspec.models.GlobalConfig`.
    """
    config = load_global_config()

    project = load_project_config()
    if project is not None:
        if project.get("spec_url"):
            config.spec_url = str(project["spec_url"])
        if project.get("base_url"):
            config.base_url = str(project["base_url"])

    env_spec_url = os.environ.get(ENV_SPEC_URL)
    if env_spec_url:
        config.spec_url = env_spec_url
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        config.base_url = env_base_url

    if cli_spec_url is not None:
        config.spec_url = cli_spec_url
    if cli_base_url is not None:
        config.base_url = cli_base_url
    if cli_format is not None:
        config.output.format = cli_format

    return config
