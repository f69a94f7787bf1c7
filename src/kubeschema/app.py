"""Typer application factory and CLI entry point for kubeschema.

This module wires together the top-level Typer application and registers the
built-in commands: the schema queries (``versions``, ``kinds``,
``properties``, ``explain``), ``bundles``, ``lint`` and the ``config``
sub-command group.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`kubeschema.config`: Configuration resolution.
    :mod:`kubeschema.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from kubeschema import __version__
from kubeschema.commands.config import config_app
from kubeschema.commands.lint import lint_command
from kubeschema.commands.query import (
    bundles_command,
    explain_command,
    kinds_command,
    properties_command,
    versions_command,
)
from kubeschema.exit_codes import EXIT_GENERIC_FAILURE
from kubeschema.output import OutputFormat


app = typer.Typer(
    name="kubeschema",
    help="Query Kubernetes and OpenShift resource schemas.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.command("versions")(versions_command)
app.command("kinds")(kinds_command)
app.command("properties")(properties_command)
app.command("explain")(explain_command)
app.command("bundles")(bundles_command)
app.command("lint")(lint_command)
app.add_typer(config_app, name="config", help="Configuration management.")


_log_handler: Optional[logging.Handler] = None


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Route the ``kubeschema`` loggers to stderr through Rich.

    ``--verbose`` lowers the level to DEBUG so cache hits and bundle loads
    become visible. Re-invocations (as in tests) replace the handler rather
    than stacking another one.
    """
    global _log_handler
    package_logger = logging.getLogger("kubeschema")
    if _log_handler is not None:
        package_logger.removeHandler(_log_handler)
    _log_handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=False,
        show_path=False,
    )
    package_logger.addHandler(_log_handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _configured_format() -> OutputFormat:
    """Output format from the config files, ``AUTO`` if unset or unreadable.

    A broken config file is reported by the command that needs it, not here.
    """
    from kubeschema.config import resolve_config
    from kubeschema.exceptions import ConfigError

    try:
        configured = resolve_config().output.format
    except ConfigError:
        return OutputFormat.AUTO
    try:
        return OutputFormat(configured)
    except ValueError:
        return OutputFormat.AUTO


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"kubeschema {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    bundle_path: Optional[list[str]] = typer.Option(
        None,
        "--bundle-path",
        "-b",
        help="Directory containing <package>-<version>.zip bundles. Repeatable.",
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~kubeschema.output.OutputManager` and the
    package logger from CLI flags, and stores shared options in the Typer
    context so that commands can read them via ``ctx.obj``.
    """
    from kubeschema.output import OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = _configured_format()

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))
    _configure_logging(verbose, no_color)

    ctx.ensure_object(dict)
    ctx.obj["bundle_paths"] = list(bundle_path or [])
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from kubeschema.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``kubeschema`` console script.

    Unhandled :class:`~kubeschema.exceptions.KubeSchemaError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from kubeschema.exceptions import KubeSchemaError
        from kubeschema.output import error

        if isinstance(exc, KubeSchemaError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
