"""Query commands -- look up API versions, kinds and properties.

Provides the read-only top-level commands ``versions``, ``kinds``,
``properties``, ``explain`` and ``bundles``. Each resolves the effective
configuration, builds a :class:`~kubeschema.provider.SchemaProvider` and
prints its answer as a table (or JSON with ``--json``).

Field paths are given in dotted form, e.g. ``spec.template.spec.containers``.
Array fields are navigated transparently: ``containers.ports`` reaches the
ports of a container.
"""

from __future__ import annotations

from typing import Optional

import typer

from kubeschema.exceptions import InvalidUsageError, KubeSchemaError, NotFoundError
from kubeschema.models import ResourceKey
from kubeschema.output import error, get_output, hint, info, warning
from kubeschema.provider import SchemaProvider
from kubeschema.versions import api_version_key


def split_path(path: Optional[str]) -> list[str]:
    """Split a dotted field path into segments, ignoring empty ones."""
    if not path:
        return []
    return [segment for segment in path.split(".") if segment]


def build_provider(ctx: typer.Context) -> SchemaProvider:
    """Create a provider from the effective configuration and ``--bundle-path`` flags.

    Raises:
        typer.Exit: With the error's exit code when the configuration
            cannot be loaded.
    """
    from kubeschema.config import resolve_config

    bundle_paths = ctx.obj.get("bundle_paths") if ctx.obj else None
    try:
        config = resolve_config(cli_bundle_paths=bundle_paths)
    except KubeSchemaError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return SchemaProvider.from_config(config)


def _guard(exc: KubeSchemaError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def versions_command(ctx: typer.Context) -> None:
    """List the API versions offered by the active schema bundles.

    Example::

        kubeschema versions
    """
    provider = build_provider(ctx)
    try:
        versions = sorted(provider.suggest_api_versions(), key=api_version_key)
    except KubeSchemaError as exc:
        raise _guard(exc) from None

    if not versions:
        warning("No schemas loaded.")
        hint("Run: kubeschema bundles")
        return
    get_output().print_versions(versions)


def kinds_command(
    ctx: typer.Context,
    api_version: Optional[str] = typer.Option(
        None, "--api-version", "-a", help="Only list kinds of this API version."
    ),
) -> None:
    """List creatable resource kinds and the newest API version offering each.

    Example::

        kubeschema kinds
        kubeschema kinds --api-version apps/v1beta1
    """
    provider = build_provider(ctx)
    try:
        keys = provider.suggest_kinds(api_version)
    except KubeSchemaError as exc:
        raise _guard(exc) from None

    if not keys:
        warning("No kinds found." if api_version is None else f"No kinds found for {api_version}.")
        return
    get_output().print_kinds(keys)


def properties_command(
    ctx: typer.Context,
    api_version: str = typer.Argument(help="Resource apiVersion, e.g. 'apps/v1beta1'."),
    kind: str = typer.Argument(help="Resource kind, e.g. 'Deployment'."),
    path: Optional[str] = typer.Argument(
        None, help="Dotted field path below the resource root, e.g. 'spec.template'."
    ),
) -> None:
    """List the properties allowed below a field of a resource.

    Example::

        kubeschema properties v1 Pod
        kubeschema properties batch/v1 Job spec.template.spec
    """
    provider = build_provider(ctx)
    key = ResourceKey(api_version=api_version, kind=kind)
    segments = split_path(path)
    try:
        model = provider.find_model(key, segments)
    except KubeSchemaError as exc:
        raise _guard(exc) from None

    if model is None:
        location = ".".join(segments) or "<root>"
        raise _guard(NotFoundError(f"No schema found for {key} at {location}"))

    if not model.properties:
        info(f"{model.id} declares no properties.")
        return
    get_output().print_properties(model)


def explain_command(
    ctx: typer.Context,
    api_version: str = typer.Argument(help="Resource apiVersion, e.g. 'v1'."),
    kind: str = typer.Argument(help="Resource kind, e.g. 'Pod'."),
    path: str = typer.Argument(help="Dotted path of the field to explain, e.g. 'spec.restartPolicy'."),
) -> None:
    """Show the type and documentation of a single field.

    Example::

        kubeschema explain v1 Pod spec.containers
    """
    provider = build_provider(ctx)
    key = ResourceKey(api_version=api_version, kind=kind)
    segments = split_path(path)
    if not segments:
        raise _guard(InvalidUsageError("A field path is required."))
    try:
        description = provider.describe_property(key, segments)
    except KubeSchemaError as exc:
        raise _guard(exc) from None

    if description is None:
        raise _guard(NotFoundError(f"No field '{path}' on {key}"))

    get_output().print_field(description)


def bundles_command(ctx: typer.Context) -> None:
    """Show which bundle each configured package resolves to.

    Example::

        kubeschema bundles
    """
    from kubeschema.loader import bundle_filename, effective_version

    provider = build_provider(ctx)
    repository = provider.repository
    rows: list[list[str]] = []
    for name, package in provider.packages.items():
        version = effective_version(name, package)
        if version is None:
            location = "no version configured"
        else:
            found = repository.locate_bundle(name, version)
            location = str(found) if found else f"missing ({bundle_filename(name, version)})"
        rows.append([name, "yes" if package.enabled else "no", version or "-", location])

    get_output().print_bundles(rows)
    info("Search path: " + ", ".join(str(p) for p in repository.search_paths))
