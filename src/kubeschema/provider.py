"""Query facade over the spec repository and the resolver.

:class:`SchemaProvider` is the one object consumers talk to: the CLI
commands, the document checker in :mod:`kubeschema.lint`, and any editor
integration that feeds ``(resource key, path)`` queries in. It holds a
:class:`~kubeschema.loader.SpecRepository` and the package configuration,
fetches the active specs on every call (a cache hit after the first load)
and delegates to :mod:`kubeschema.resolver`.

The provider owns no mutable state of its own, so a single instance can
serve queries from any number of threads.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Optional

from pydantic import BaseModel

from kubeschema import resolver
from kubeschema.loader.repository import SpecRepository
from kubeschema.models import GlobalConfig, Model, PackageConfig, Property, ResourceKey, Spec


class PropertyDescription(BaseModel):
    """Documentation for a single property, as shown by ``kubeschema explain``."""

    name: str
    type: str
    description: Optional[str] = None
    required: bool = False


class SchemaProvider:
    """Answers schema queries against the currently active specs.

    Args:
        repository: Loads and caches bundles.
        packages: Package name to configuration; decides which bundles are
            active.

    Example::

        provider = SchemaProvider(SpecRepository(["bundles"]), config.packages)
        provider.suggest_kinds("apps/v1beta1")
    """

    def __init__(
        self,
        repository: SpecRepository,
        packages: Mapping[str, PackageConfig],
    ) -> None:
        self._repository = repository
        self._packages = dict(packages)

    @classmethod
    def from_config(cls, config: GlobalConfig) -> "SchemaProvider":
        """Build a provider with a fresh repository over the configured search path."""
        from kubeschema.config import default_search_paths

        repository = SpecRepository(
            default_search_paths(config),
            load_timeout=config.load_timeout_seconds,
        )
        return cls(repository, config.packages)

    @property
    def repository(self) -> SpecRepository:
        """The underlying spec repository."""
        return self._repository

    @property
    def packages(self) -> dict[str, PackageConfig]:
        """A copy of the package configuration in use."""
        return dict(self._packages)

    def specs(self) -> list[Spec]:
        """Return the active specs, loading bundles on first use."""
        return self._repository.get_active_specs(self._packages)

    def find_model(self, key: ResourceKey, path: Sequence[str]) -> Optional[Model]:
        """Model governing the value at *path*; see :func:`~kubeschema.resolver.resolve_model`."""
        return resolver.resolve_model(self.specs(), key, path)

    def find_properties(self, key: ResourceKey, path: Sequence[str]) -> dict[str, Property]:
        """Properties allowed below *path*; see :func:`~kubeschema.resolver.resolve_properties`."""
        return resolver.resolve_properties(self.specs(), key, path)

    def find_property(self, key: ResourceKey, path: Sequence[str]) -> Optional[Property]:
        """The property *path* itself names; see :func:`~kubeschema.resolver.resolve_property`."""
        return resolver.resolve_property(self.specs(), key, path)

    def suggest_api_versions(self) -> set[str]:
        """All API versions offered by the active specs."""
        return resolver.suggest_api_versions(self.specs())

    def suggest_kinds(self, api_version: Optional[str] = None) -> set[ResourceKey]:
        """Creatable kinds, optionally restricted to one API version."""
        return resolver.suggest_kinds(self.specs(), api_version)

    def describe_property(
        self, key: ResourceKey, path: Sequence[str]
    ) -> Optional[PropertyDescription]:
        """Describe the property named by the last element of *path*.

        Returns:
            Its name, display type, description and whether the declaring
            model requires it, or ``None`` if it cannot be resolved.
        """
        specs = self.specs()
        prop = resolver.resolve_property(specs, key, path)
        if prop is None:
            return None
        parent = resolver.resolve_model(specs, key, path[:-1])
        return PropertyDescription(
            name=path[-1],
            type=resolver.type_string_for(prop),
            description=prop.description,
            required=parent is not None and path[-1] in parent.required_properties,
        )
