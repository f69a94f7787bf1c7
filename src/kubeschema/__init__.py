"""kubeschema -- Query Kubernetes/OpenShift resource schemas from Swagger bundles.

This package loads versioned Swagger 1.2 schema bundles (zip archives of JSON
API declarations, one per package and version) and answers structural
questions about Kubernetes resource documents: which model a path of field
names leads to, which properties may appear under a key, and which API
versions and resource kinds exist.

Typical usage::

    from kubeschema import ResourceKey, SchemaProvider
    from kubeschema.config import load_global_config

    provider = SchemaProvider.from_config(load_global_config())
    key = ResourceKey(api_version="batch/v1", kind="Job")
    provider.find_properties(key, ["spec", "template"])

Modules:
    models: Pydantic models for schema bundles and configuration.
    versions: Ordering of API version strings.
    loader: Bundle decoding, lookup and the caching spec repository.
    resolver: Path navigation and kind/version suggestions.
    provider: The query facade used by every consumer.
    lint: Schema checks over parsed YAML resource documents.
    config: XDG-aware configuration and precedence resolution.
    app: Typer application and CLI entry point.
"""

from kubeschema.models import Model, Property, ResourceKey, Spec
from kubeschema.provider import SchemaProvider

__version__ = "0.1.0"

__all__ = ["Model", "Property", "ResourceKey", "SchemaProvider", "Spec", "__version__"]
