"""Lint command -- check resource manifests against the loaded schemas.

``kubeschema lint deploy.yaml svc.yaml`` parses every YAML document in the
given files and reports duplicated keys, values of the wrong shape and
missing required properties (see :mod:`kubeschema.lint`). The command
exits with :data:`~kubeschema.exit_codes.EXIT_LINT_FAILURE` when at least
one error was found; warnings alone do not fail the run.
"""

from __future__ import annotations

from pathlib import Path

import typer

from kubeschema.exceptions import KubeSchemaError, LintFailure
from kubeschema.lint import (
    Diagnostic,
    Severity,
    check_document,
    find_resource_key,
    is_kubernetes_document,
    load_documents,
)
from kubeschema.output import error, get_output, success, warning
from kubeschema.provider import SchemaProvider


def _lint_file(provider: SchemaProvider, path: Path) -> list[Diagnostic]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise KubeSchemaError(f"Cannot read {path}: {exc.strerror or exc}") from exc

    diagnostics: list[Diagnostic] = []
    for loaded in load_documents(text):
        if is_kubernetes_document(loaded.document):
            key = find_resource_key(loaded.document)
            if key is None or provider.find_model(key, []) is None:
                diagnostics.append(
                    Diagnostic(
                        severity=Severity.WARNING,
                        message=f"Unknown resource {key}" if key else "Missing apiVersion or kind",
                        document=loaded.index,
                    )
                )
        diagnostics.extend(check_document(provider, loaded))
    return diagnostics


def lint_command(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(help="YAML manifests to check."),
) -> None:
    """Check Kubernetes manifests against the active schemas.

    Example::

        kubeschema lint deployment.yaml
        kubeschema --json lint manifests/*.yaml
    """
    from kubeschema.commands.query import build_provider

    provider = build_provider(ctx)
    results: list[tuple[Path, Diagnostic]] = []
    try:
        for path in files:
            results.extend((path, d) for d in _lint_file(provider, path))
    except KubeSchemaError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if results:
        get_output().print_diagnostics(results)

    errors = sum(1 for _, d in results if d.severity is Severity.ERROR)
    if errors:
        failure = LintFailure(f"{errors} error(s) found")
        error(str(failure))
        raise typer.Exit(code=failure.exit_code)
    if results:
        warning(f"{len(results)} warning(s) found")
    else:
        success("No problems found")
