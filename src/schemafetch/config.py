"""Settings resolution with XDG paths and precedence handling.

This module turns CLI flags, environment variables, and an optional JSON
config file into one :class:`~schemafetch.models.Settings` object:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.schemafetch/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Config file** -- ``<config_dir>/config.json``, deserialised into
  :class:`~schemafetch.models.Settings`. See :func:`load_settings_file`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, the config file, and defaults.

Unlike most path helpers, the directory functions here never create
anything: the cache store creates its own group directory on open, and a
run with caching disabled must not touch the filesystem at all.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from schemafetch.exceptions import ConfigError
from schemafetch.models import Settings

_APP_NAME = "schemafetch"
_CONFIG_FILENAME = "config.json"

ENV_CACHE_DIR = "SCHEMAFETCH_CACHE_DIR"
ENV_NO_CACHE = "SCHEMAFETCH_NO_CACHE"
ENV_CATALOG_URL = "SCHEMAFETCH_CATALOG_URL"
ENV_LOG_LEVEL = "SCHEMAFETCH_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUTHY = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
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
    """Return the configuration directory.

    On Linux/BSD: ``$XDG_CONFIG_HOME/schemafetch/`` (default ``~/.config/schemafetch/``).
    On macOS/Windows: ``~/.schemafetch/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_cache_dir() -> Path:
    """Return the default cache root directory.

    Cached documents can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/schemafetch/`` (default ``~/.cache/schemafetch/``).
    On macOS/Windows: ``~/.schemafetch/cache/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


def get_data_dir() -> Path:
    """Return the data directory used for crash logs.

    On Linux/BSD: ``$XDG_DATA_HOME/schemafetch/`` (default ``~/.local/share/schemafetch/``).
    On macOS/Windows: ``~/.schemafetch/logs/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    return _fallback_base_dir() / "logs"


# --- Config file ---


def settings_file_path() -> Path:
    """Path to the optional JSON settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_settings_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the raw settings dict from the config file.

    Args:
        path: Explicit file to read.  Defaults to :func:`settings_file_path`.

    Returns:
        The parsed JSON object, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = path or settings_file_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def resolve_settings(
    cli_cache_dir: Optional[Path] = None,
    cli_no_cache: bool = False,
    cli_catalog_url: Optional[str] = None,
    cli_log_level: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> Settings:
    """Resolve settings with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``--cache-dir``, ``--no-cache``, ``--catalog-url``,
           ``--log-level``)
        2. Environment variables (``SCHEMAFETCH_CACHE_DIR``,
           ``SCHEMAFETCH_NO_CACHE``, ``SCHEMAFETCH_CATALOG_URL``,
           ``SCHEMAFETCH_LOG_LEVEL``)
        3. Config file (``~/.config/schemafetch/config.json``)
        4. Defaults

    When caching is enabled and no directory was given anywhere, the
    platform default from :func:`get_cache_dir` is filled in so that the
    returned settings always name a concrete cache root.

    Returns:
        The effective :class:`~schemafetch.models.Settings`.

    Raises:
        ConfigError: If the config file or the merged values fail validation.
    """
    # 4 + 3. Defaults overlaid with the config file
    data = load_settings_file(config_path)
    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc

    # 2. Environment
    env_cache_dir = os.environ.get(ENV_CACHE_DIR)
    if env_cache_dir:
        settings.cache.dir = Path(env_cache_dir)
    if _env_flag(ENV_NO_CACHE):
        settings.cache.enabled = False
    env_catalog = os.environ.get(ENV_CATALOG_URL)
    if env_catalog:
        settings.catalog_url = env_catalog
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        settings.log_level = env_level

    # 1. CLI flags
    if cli_cache_dir is not None:
        settings.cache.dir = cli_cache_dir
    if cli_no_cache:
        settings.cache.enabled = False
    if cli_catalog_url is not None:
        settings.catalog_url = cli_catalog_url
    if cli_log_level is not None:
        settings.log_level = cli_log_level

    settings.log_level = settings.log_level.upper()
    if settings.log_level not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level '{settings.log_level}' "
            f"(expected one of: {', '.join(LOG_LEVELS)})"
        )
    if settings.cache.enabled and settings.cache.dir is None:
        settings.cache.dir = get_cache_dir()

    return settings
