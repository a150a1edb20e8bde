"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for pluginpack:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.pluginpack/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- a single :class:`~pluginpack.models.BuildConfig`
  JSON file with machine-wide defaults (e.g. a different Gradle task).
* **Project config** -- ``pluginpack.json`` next to the project's
  ``package.json``, overriding the user config for one project.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project config, and user config into the final
  effective configuration.

All JSON writes (configuration and manifests) go through
:func:`atomic_write_json`, which uses a temp-file-then-rename strategy so a
crash never leaves a half-written document behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pluginpack.exceptions import ConfigError
from pluginpack.models import BuildConfig

_APP_NAME = "pluginpack"
_CONFIG_FILENAME = "config.json"
PROJECT_CONFIG_FILENAME = "pluginpack.json"

_TRUTHY = {"1", "true", "yes", "on"}


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/pluginpack/`` (default
    ``~/.config/pluginpack/``). On macOS/Windows: ``~/.pluginpack/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/pluginpack/`` (default
    ``~/.local/share/pluginpack/``). On macOS/Windows: ``~/.pluginpack/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up and the original exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def atomic_write_json(path: Path, data: Any) -> None:
    """Serialise *data* as indented UTF-8 JSON and write it atomically."""
    atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Path) -> Any:
    """Read a JSON file, tolerating a UTF-8 byte-order mark.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the content is not valid JSON.
    """
    return json.loads(path.read_text(encoding="utf-8-sig"))


# --- Layered loading ---


def _load_layer(path: Path) -> dict[str, Any]:
    """Load one config layer, returning ``{}`` when the file is absent."""
    if not path.is_file():
        return {}
    try:
        data = read_json(path)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* updated recursively with *override*; nested dicts merge."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def user_config_path() -> Path:
    """Path to the user-level config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_user_config() -> dict[str, Any]:
    """Load the raw user-level config layer (``{}`` when absent)."""
    return _load_layer(user_config_path())


def load_project_config(project_root: Path) -> dict[str, Any]:
    """Load the raw ``pluginpack.json`` layer of *project_root* (``{}`` when absent)."""
    return _load_layer(project_root / PROJECT_CONFIG_FILENAME)


def _env_layer() -> dict[str, Any]:
    """Collect ``PLUGINPACK_*`` overrides from the environment."""
    native: dict[str, Any] = {}
    task = os.environ.get("PLUGINPACK_BUILD_TASK")
    if task:
        native["build_task"] = task
    require = os.environ.get("PLUGINPACK_REQUIRE_PACKAGES")
    if require:
        native["require_packages"] = require.strip().lower() in _TRUTHY
    skip = os.environ.get("PLUGINPACK_SKIP_NATIVE")
    if skip:
        native["skip"] = skip.strip().lower() in _TRUTHY
    return {"native": native} if native else {}


def resolve_config(
    project_root: Path,
    cli_build_task: Optional[str] = None,
    cli_require_packages: Optional[bool] = None,
    cli_skip_native: Optional[bool] = None,
) -> BuildConfig:
    """Resolve the effective build configuration.

    Precedence (high to low):
        1. CLI flags (``cli_build_task``, ``cli_require_packages``,
           ``cli_skip_native``); ``None`` means "not given"
        2. Environment variables (``PLUGINPACK_BUILD_TASK``,
           ``PLUGINPACK_REQUIRE_PACKAGES``, ``PLUGINPACK_SKIP_NATIVE``)
        3. Project config (``<project_root>/pluginpack.json``)
        4. User config (``~/.config/pluginpack/config.json``)
        5. Defaults

    Args:
        project_root: Root directory of the project being packaged.
        cli_build_task: Gradle task override from ``--build-task``.
        cli_require_packages: Strictness override from ``--require-packages``.
        cli_skip_native: ``--skip-native`` flag.

    Returns:
        The validated :class:`~pluginpack.models.BuildConfig`.

    Raises:
        ConfigError: If a layer contains invalid JSON or the merged result
            fails validation.
    """
    merged = _deep_merge(load_user_config(), load_project_config(project_root))
    merged = _deep_merge(merged, _env_layer())

    cli_native: dict[str, Any] = {}
    if cli_build_task is not None:
        cli_native["build_task"] = cli_build_task
    if cli_require_packages is not None:
        cli_native["require_packages"] = cli_require_packages
    if cli_skip_native is not None:
        cli_native["skip"] = cli_skip_native
    if cli_native:
        merged = _deep_merge(merged, {"native": cli_native})

    try:
        return BuildConfig.model_validate(merged)
    except ValueError as exc:
        raise ConfigError(f"Invalid build configuration: {exc}") from exc
