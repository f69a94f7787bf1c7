"""Rendering of query results and status messages.

Results (versions, kinds, property tables, field explanations, bundle
status and lint diagnostics) go to stdout in one of three shapes:

* **rich** -- a styled table on an interactive terminal;
* **plain** -- tab-separated lines without a header, for ``cut`` and ``awk``;
* **json** -- an array of records keyed by column name.

Status messages go to stderr so they never end up in a pipe. ``NO_COLOR``,
``TERM=dumb`` and ``--no-color`` turn off styling, and ``--quiet`` hides
everything but warnings and errors.

Commands render through the :class:`OutputManager` installed by
:func:`~kubeschema.app.main_callback`; :func:`get_output` returns it.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from kubeschema.lint import Diagnostic
    from kubeschema.models import Model, ResourceKey
    from kubeschema.provider import PropertyDescription


class OutputFormat(str, Enum):
    """Output formats. ``AUTO`` picks ``RICH`` on a colour terminal, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# kind -> (label, style, hidden by --quiet)
_MESSAGES: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", True),
    "success": ("", "green", True),
    "hint": ("Hint: ", "dim", True),
    "warning": ("Warning: ", "yellow", False),
    "error": ("Error: ", "bold red", False),
}

_SEVERITY_STYLES = {"error": "red", "warning": "yellow"}


class OutputManager:
    """Renders kubeschema results in the selected format.

    Args:
        format: Requested format; ``AUTO`` is resolved immediately.
        no_color: Disable styling even on a terminal.
        quiet: Hide info, success and hint messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format
        self._console = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._err_console = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    # ------------------------------------------------------------------ #
    # Results (stdout)
    # ------------------------------------------------------------------ #

    def print_versions(self, versions: Sequence[str]) -> None:
        """One row per API version, in the order given."""
        self._table(["API Version"], [[v] for v in versions], title="API versions")

    def print_kinds(self, keys: Iterable[ResourceKey]) -> None:
        """Kinds with the API version that offers them, sorted by kind."""
        rows = [[k.kind, k.api_version] for k in sorted(keys, key=lambda k: (k.kind, k.api_version))]
        self._table(["Kind", "API Version"], rows, title=f"Kinds ({len(rows)})")

    def print_properties(self, model: Model) -> None:
        """Properties of *model* by name, with type, required flag and the first line of the description."""
        from kubeschema.resolver import type_string_for

        rows = [
            [
                name,
                type_string_for(prop),
                "yes" if name in model.required_properties else "",
                _first_line(prop.description),
            ]
            for name, prop in sorted(model.properties.items())
        ]
        self._table(["Property", "Type", "Required", "Description"], rows, title=model.id)

    def print_field(self, field: PropertyDescription) -> None:
        """The ``explain`` layout: a FIELD line, a REQUIRED line, then the full description.

        JSON mode prints the description object instead.
        """
        if self._format == OutputFormat.JSON:
            self.print_json(field.model_dump(mode="json"))
            return
        required = "yes" if field.required else "no"
        if self._format == OutputFormat.RICH:
            self._console.print(f"[bold]FIELD:[/bold]    {escape(field.name)} [cyan]<{escape(field.type)}>[/cyan]")
            self._console.print(f"[bold]REQUIRED:[/bold] {required}")
            if field.description:
                self._console.print()
                self._console.print(escape(field.description))
            return
        self._write(f"FIELD:    {field.name} <{field.type}>")
        self._write(f"REQUIRED: {required}")
        if field.description:
            self._write("")
            self._write(field.description)

    def print_bundles(self, rows: Sequence[Sequence[str]]) -> None:
        """Package, enabled flag, version and resolved bundle location per configured package."""
        self._table(["Package", "Enabled", "Version", "Bundle"], rows, title="Bundles")

    def print_diagnostics(self, results: Sequence[tuple[Path, Diagnostic]]) -> None:
        """Lint findings, one per row.

        JSON records carry the file name plus every :class:`~kubeschema.lint.Diagnostic`
        field. Table locations are prefixed with ``#<n>`` for documents after
        the first one in a file.
        """
        if self._format == OutputFormat.JSON:
            self.print_json(
                [{"file": str(path), **diagnostic.model_dump(mode="json")} for path, diagnostic in results]
            )
            return
        rows = [
            [
                str(path),
                f"#{d.document} {d.location}" if d.document else d.location,
                d.severity.value,
                d.message,
            ]
            for path, d in results
        ]
        styles = [_SEVERITY_STYLES.get(d.severity.value, "") for _, d in results]
        self._table(["File", "Location", "Severity", "Message"], rows, title="Problems", row_styles=styles)

    def print_json(self, data: Any) -> None:
        """Indented JSON; syntax-highlighted in rich mode."""
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.RICH:
            self._console.print(Syntax(text, "json", word_wrap=True))
        else:
            self._write(text)

    def _table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        title: Optional[str] = None,
        row_styles: Optional[Sequence[str]] = None,
    ) -> None:
        if self._format == OutputFormat.JSON:
            self._write(json.dumps([dict(zip(headers, row)) for row in rows], indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for row in rows:
                self._write("\t".join(row))
        else:
            table = Table(title=title, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for index, row in enumerate(rows):
                style = row_styles[index] if row_styles else None
                table.add_row(*(escape(cell) for cell in row), style=style or None)
            self._console.print(table)

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Status messages (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._notify("info", message)

    def success(self, message: str) -> None:
        self._notify("success", message)

    def hint(self, message: str) -> None:
        """A suggested next command."""
        self._notify("hint", message)

    def warning(self, message: str) -> None:
        self._notify("warning", message)

    def error(self, message: str) -> None:
        self._notify("error", message)

    def _notify(self, kind: str, message: str) -> None:
        label, style, quietable = _MESSAGES[kind]
        if quietable and self._quiet:
            return
        if self._no_color:
            print(f"{label}{message}", file=sys.stderr, flush=True)
        elif not style:
            self._err_console.print(escape(message))
        elif label:
            self._err_console.print(f"[{style}]{escape(label)}[/{style}]{escape(message)}")
        else:
            self._err_console.print(f"[{style}]{escape(message)}[/{style}]")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


def _first_line(text: Optional[str]) -> str:
    if not text:
        return ""
    return text.strip().splitlines()[0]


# ------------------------------------------------------------------ #
# Installed instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; the next :func:`get_output` builds a fresh one."""
    global _output
    _output = None


def print_json(data: Any) -> None:
    get_output().print_json(data)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def hint(message: str) -> None:
    get_output().hint(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)
