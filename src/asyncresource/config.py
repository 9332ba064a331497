"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for asyncresource:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.asyncresource/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~asyncresource.models.GlobalConfig`
  JSON file storing freshness, request, and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config into the effective
  configuration.

All file writes, including those of
:class:`~asyncresource.storage.FileStorage`, go through
:func:`atomic_write` (temp file then rename) so a crash never leaves a
half-written file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional, Union

from asyncresource.exceptions import ConfigError
from asyncresource.models import CacheStrategy, GlobalConfig

_APP_NAME = "asyncresource"
_CONFIG_FILENAME = "config.json"

ENV_MAX_AGE = "ASYNCRESOURCE_MAX_AGE"
ENV_STRATEGY = "ASYNCRESOURCE_STRATEGY"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/asyncresource/`` (default
    ``~/.config/asyncresource/``). On macOS/Windows: ``~/.asyncresource/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the key/value stores used by ``--key`` resources. Cached data can
    be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/asyncresource/`` (default
    ``~/.cache/asyncresource/``). On macOS/Windows:
    ``~/.asyncresource/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/asyncresource/`` (default
    ``~/.local/share/asyncresource/``). On macOS/Windows:
    ``~/.asyncresource/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: Union[str, bytes], encoding: str = "utf-8") -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. ``bytes`` are
    written as-is, ``str`` is encoded with *encoding*. On any failure the
    temp file is cleaned up and the exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data if isinstance(data, bytes) else data.encode(encoding)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(payload)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~asyncresource.models.GlobalConfig`. If
        the file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def parse_strategy(value: str) -> CacheStrategy:
    """Convert ``"network-first"`` / ``"cache-first"`` (underscores accepted) to a strategy.

    Raises:
        ConfigError: For any other value.
    """
    normalised = value.strip().lower().replace("_", "-")
    try:
        return CacheStrategy(normalised)
    except ValueError:
        choices = ", ".join(s.value for s in CacheStrategy)
        raise ConfigError(f"Unknown cache strategy '{value}' (expected one of: {choices})") from None


def resolve_config(
    cli_max_age: Optional[int] = None,
    cli_strategy: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_max_age``, ``cli_strategy``, ``cli_format``)
        2. Environment variables (``ASYNCRESOURCE_MAX_AGE``,
           ``ASYNCRESOURCE_STRATEGY``)
        3. User config (``~/.config/asyncresource/config.json``)
        4. Defaults

    Raises:
        ConfigError: If an environment variable holds an invalid value.
    """
    # 4 + 3. Load base global config (fills in defaults automatically)
    global_cfg = load_global_config()

    # 2. Environment variables
    env_max_age = os.environ.get(ENV_MAX_AGE)
    if env_max_age:
        try:
            seconds = int(env_max_age)
        except ValueError:
            seconds = -1
        if seconds < 0:
            raise ConfigError(
                f"{ENV_MAX_AGE} must be a whole number of seconds, got '{env_max_age}'"
            )
        global_cfg.cache.max_age_seconds = seconds
    env_strategy = os.environ.get(ENV_STRATEGY)
    if env_strategy:
        global_cfg.cache.strategy = parse_strategy(env_strategy)

    # 1. CLI flags (highest precedence)
    if cli_max_age is not None:
        if cli_max_age < 0:
            raise ConfigError(f"Maximum age must not be negative, got {cli_max_age}")
        global_cfg.cache.max_age_seconds = cli_max_age
    if cli_strategy is not None:
        global_cfg.cache.strategy = parse_strategy(cli_strategy)
    if cli_format is not None:
        global_cfg.output.format = cli_format

    return global_cfg
