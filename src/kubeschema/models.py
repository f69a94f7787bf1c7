"""Canonical Pydantic models shared across all kubeschema modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`PackageConfig`, :class:`OutputConfig` and :class:`GlobalConfig`.

**Schema models** -- decoded from the Swagger 1.2 API declarations inside a
bundle and consumed by the resolver:
    :class:`FieldType`, :class:`ApiOperation`, :class:`Api`,
    :class:`ArrayItems`, :class:`Property`, :class:`Model`, :class:`Spec` and
    the query key :class:`ResourceKey`.

Schema models are frozen and their mappings are read-only proxies: once a
bundle is decoded its specs are shared between threads without further
synchronisation. Field-name mismatches with
the wire format (``$ref``, ``required``, ``apiVersion``) are handled with
aliases, and unknown extra keys in the JSON are ignored.
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Configuration ---


DEFAULT_PACKAGE_VERSIONS: dict[str, str] = {
    "kubernetes": "1.9",
    "openshift": "3.6",
}
"""Bundle version used for a package whose config does not pin one."""


class PackageConfig(BaseModel):
    """Whether a bundle package is active and which version to load.

    Example::

        PackageConfig(enabled=True, version="1.9")
    """

    enabled: bool = Field(default=True, description="Load this package's bundle")
    version: Optional[str] = Field(
        default=None,
        description="Bundle version; the package default is used when unset",
    )


def _default_packages() -> dict[str, PackageConfig]:
    return {
        "kubernetes": PackageConfig(enabled=True),
        "openshift": PackageConfig(enabled=False),
    }


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/kubeschema/config.json``.

    Loaded and saved by :func:`~kubeschema.config.load_global_config` and
    :func:`~kubeschema.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~kubeschema.config.resolve_config`
    for the full precedence chain.

    ``packages`` is iterated in insertion order when collecting active
    specs, so the order of entries decides which bundle is consulted first.
    """

    packages: dict[str, PackageConfig] = Field(default_factory=_default_packages)
    bundle_paths: list[str] = Field(
        default_factory=list,
        description="Extra directories searched for <package>-<version>.zip bundles",
    )
    load_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Maximum time to wait for another thread's cold bundle load",
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Schema models ---


class FieldType(str, enum.Enum):
    """Primitive data types a :class:`Property` or :class:`ArrayItems` may declare."""

    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


def _coerce_field_type(value: Any) -> Any:
    # Unknown type names decode to None rather than failing the whole bundle.
    if value is None or isinstance(value, FieldType):
        return value
    try:
        return FieldType(value)
    except ValueError:
        return None


class _SchemaModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ApiOperation(_SchemaModel):
    """One operation of an API declaration: an HTTP method and its data type."""

    method: Optional[str] = None
    type: Optional[str] = None


class Api(_SchemaModel):
    """A named collection of operations.

    Only used to work out which models are creatable resource kinds (those
    returned by a ``POST`` operation).
    """

    path: Optional[str] = None
    operations: tuple[ApiOperation, ...] = ()

    @field_validator("operations", mode="before")
    @classmethod
    def _null_operations(cls, value: Any) -> Any:
        return () if value is None else value


class ArrayItems(_SchemaModel):
    """Schema of the elements of an array property.

    Either ``ref`` or ``type`` is expected to be set; both or neither is
    tolerated.
    """

    ref: Optional[str] = Field(default=None, alias="$ref")
    type: Optional[FieldType] = None

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type(cls, value: Any) -> Any:
        return _coerce_field_type(value)


class Property(_SchemaModel):
    """Schema of a single field within a :class:`Model`.

    When ``ref`` is set it names the model describing the field's children
    and ``type`` is ignored by consumers. ``items`` is only meaningful when
    ``type`` is :attr:`FieldType.ARRAY`.
    """

    description: Optional[str] = None
    type: Optional[FieldType] = None
    ref: Optional[str] = Field(default=None, alias="$ref")
    items: Optional[ArrayItems] = None

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type(cls, value: Any) -> Any:
        return _coerce_field_type(value)


class Model(_SchemaModel):
    """Schema for one object type, keyed by ``id`` within a :class:`Spec`.

    ``required_properties`` keeps the declaration order with duplicates
    removed. It may name properties that are not declared in
    ``properties``.
    """

    id: Optional[str] = None
    description: Optional[str] = None
    properties: Mapping[str, Property] = Field(default_factory=dict, validate_default=True)
    required_properties: tuple[str, ...] = Field(default=(), alias="required")

    @field_validator("properties", mode="before")
    @classmethod
    def _null_properties(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("properties")
    @classmethod
    def _freeze_properties(cls, value: Mapping[str, Property]) -> Mapping[str, Property]:
        return MappingProxyType(dict(value))

    @field_validator("required_properties", mode="before")
    @classmethod
    def _dedupe_required(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(dict.fromkeys(value))
        return value


class Spec(_SchemaModel):
    """One Swagger API declaration: the schema bundle member for a single API version.

    Produced by :func:`~kubeschema.loader.decoder.decode_spec` and never
    mutated afterwards.
    """

    api_version: Optional[str] = Field(default=None, alias="apiVersion")
    apis: tuple[Api, ...] = ()
    models: Mapping[str, Model] = Field(default_factory=dict, validate_default=True)

    @field_validator("apis", mode="before")
    @classmethod
    def _null_apis(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("models", mode="before")
    @classmethod
    def _null_models(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("models")
    @classmethod
    def _freeze_models(cls, value: Mapping[str, Model]) -> Mapping[str, Model]:
        return MappingProxyType(dict(value))


class ResourceKey(BaseModel):
    """Identifies a resource type by its ``apiVersion`` and ``kind`` fields.

    Value object: frozen, hashable and equal when both fields are equal.

    Example::

        ResourceKey(api_version="batch/v1", kind="Job")
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_version: str = Field(alias="apiVersion")
    kind: str

    def __str__(self) -> str:
        return f"{self.api_version} {self.kind}"
