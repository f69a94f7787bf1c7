"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for kubeschema:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.kubeschema/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~kubeschema.models.GlobalConfig`
  JSON file storing which packages are enabled, their versions, extra
  bundle directories and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.
* **Bundle search path** -- :func:`default_search_paths` lists the
  directories :class:`~kubeschema.loader.SpecRepository` looks in.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from kubeschema.exceptions import ConfigError
from kubeschema.models import GlobalConfig, PackageConfig

_APP_NAME = "kubeschema"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "kubeschema.json"

PACKAGED_BUNDLE_DIR = Path(__file__).parent / "bundles"
"""Bundles shipped inside the installed package, searched last."""

_VERSION_ENV_VARS = {
    "kubernetes": "KUBESCHEMA_KUBERNETES_VERSION",
    "openshift": "KUBESCHEMA_OPENSHIFT_VERSION",
}
_BUNDLE_PATH_ENV_VAR = "KUBESCHEMA_BUNDLE_PATH"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/kubeschema/`` (default ``~/.config/kubeschema/``).
    On macOS/Windows: ``~/.kubeschema/``.

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
    """Return the data directory (user bundles, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/kubeschema/`` (default ``~/.local/share/kubeschema/``).
    On macOS/Windows: ``~/.kubeschema/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_user_bundle_dir() -> Path:
    """Return ``<data_dir>/bundles``, where users drop additional bundle archives."""
    return get_data_dir() / "bundles"


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
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
        fd = None
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


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~kubeschema.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./kubeschema.json``.

    A repository of manifests can pin the cluster version it targets, e.g.
    ``{"packages": {"kubernetes": {"version": "1.8"}}}``. Keys present here
    override the global config; see :func:`resolve_config`.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_bundle_paths: Optional[list[str]] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_bundle_paths``, ``cli_format``)
        2. Environment variables (``KUBESCHEMA_KUBERNETES_VERSION``,
           ``KUBESCHEMA_OPENSHIFT_VERSION``, ``KUBESCHEMA_BUNDLE_PATH``)
        3. Project config (``./kubeschema.json``)
        4. User config (``~/.config/kubeschema/config.json``)
        5. Defaults

    Bundle directories from the CLI and the environment are searched before
    the configured ones rather than replacing them.

    Returns:
        The effective :class:`~kubeschema.models.GlobalConfig`.

    Raises:
        ConfigError: If any config file is invalid.
    """
    global_cfg = load_global_config()

    project = load_project_config()
    if project is not None:
        try:
            global_cfg = GlobalConfig.model_validate(
                _merge(global_cfg.model_dump(mode="json"), project)
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid project config: {exc}") from exc

    for package_name, env_var in _VERSION_ENV_VARS.items():
        env_version = os.environ.get(env_var)
        if env_version:
            current = global_cfg.packages.get(package_name, PackageConfig())
            global_cfg.packages[package_name] = PackageConfig(
                enabled=current.enabled, version=env_version
            )

    extra_paths: list[str] = []
    if cli_bundle_paths:
        extra_paths.extend(cli_bundle_paths)
    env_paths = os.environ.get(_BUNDLE_PATH_ENV_VAR, "")
    extra_paths.extend(p for p in env_paths.split(os.pathsep) if p)
    if extra_paths:
        global_cfg.bundle_paths = extra_paths + global_cfg.bundle_paths

    if cli_format is not None:
        global_cfg.output.format = cli_format

    return global_cfg


def default_search_paths(config: GlobalConfig) -> list[Path]:
    """Directories searched for bundles, in priority order.

    Configured ``bundle_paths`` first, then the user bundle directory, then
    the bundles shipped with the package.
    """
    paths = [Path(p).expanduser() for p in config.bundle_paths]
    paths.append(get_user_bundle_dir())
    paths.append(PACKAGED_BUNDLE_DIR)
    return paths
