"""Config commands -- view and modify global configuration.

Provides the ``kubeschema config`` sub-command group for reading,
updating, and resetting the user's global configuration file
(:class:`~kubeschema.models.GlobalConfig`). Settings are persisted in
the kubeschema config directory and control which bundle packages are
loaded, their versions, extra bundle directories and the default output
format.
"""

from __future__ import annotations

import os
from typing import Any

import typer
from pydantic import ValidationError

from kubeschema.output import error, info, print_json, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Loads the global config from disk and prints the config directory
    path followed by the full configuration as JSON.

    Example::

        kubeschema config show
    """
    from kubeschema.config import get_config_dir, load_global_config
    from kubeschema.exceptions import ConfigError

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    print_json(config.model_dump(mode="json"))


def _coerce(key: str, current: Any, value: str) -> Any:
    """Convert *value* to the type of the field's *current* value.

    Raises:
        typer.Exit: With code 2 if the value cannot be converted.
    """
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, list):
        return [item for item in value.split(os.pathsep) if item]
    if isinstance(current, dict):
        error(f"{key} is a section; set one of its keys instead")
        raise typer.Exit(code=2)
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'packages.kubernetes.version')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, float, or str); list fields such as
    ``bundle_paths`` take an ``os.pathsep``-separated value. The updated
    config is validated against :class:`~kubeschema.models.GlobalConfig`
    before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or Pydantic validation fails.

    Example::

        kubeschema config set packages.kubernetes.version 1.8
        kubeschema config set packages.openshift.enabled true
        kubeschema config set output.format json
    """
    from kubeschema.config import load_global_config, save_global_config
    from kubeschema.exceptions import ConfigError
    from kubeschema.models import GlobalConfig

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation."),
) -> None:
    """Reset configuration to defaults.

    Replaces the persisted global config with a fresh
    :class:`~kubeschema.models.GlobalConfig` instance containing all
    default values. Asks for confirmation unless ``--force`` is given.

    Raises:
        typer.Exit: If the user declines confirmation.

    Example::

        kubeschema config reset
        kubeschema config reset --force
    """
    from kubeschema.config import save_global_config
    from kubeschema.models import GlobalConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
