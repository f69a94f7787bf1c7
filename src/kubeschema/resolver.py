"""Navigate resource schemas and derive suggestions from loaded specs.

Every resource document starts at a *root model* identified by its
:class:`~kubeschema.models.ResourceKey`: ``batch/v1`` + ``Job`` maps to the
model id ``v1.Job`` inside the spec whose ``apiVersion`` is ``batch/v1``.
From there a path of field names is followed one property at a time. A
property leads to another model through its ``$ref``, or, for arrays,
through the ``$ref`` of its items. Any other property ends the walk: a
string field has no children to navigate into.

Nothing in this module raises for unknown input. An unknown resource key or
a path that cannot be followed yields ``None`` or an empty mapping, since
callers treat both as "no information available".

All functions are pure over the ``specs`` they are given and never mutate
them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Optional

from kubeschema.models import FieldType, Model, Property, ResourceKey, Spec
from kubeschema.versions import compare_api_versions


def model_id_for(key: ResourceKey) -> str:
    """Return the id of the root model for *key*.

    The group (everything up to the last ``/``) is dropped from the API
    version and the kind appended: ``batch/v1`` + ``Job`` gives
    ``v1.Job``, ``v1`` + ``Pod`` gives ``v1.Pod``.
    """
    version = key.api_version.rsplit("/", 1)[-1]
    return f"{version}.{key.kind}"


def strip_model_id_prefix(model_id: str) -> str:
    """Remove the version prefix from a model id: ``v1beta1.Deployment`` -> ``Deployment``."""
    return model_id.split(".", 1)[-1]


def find_spec(specs: Iterable[Spec], key: ResourceKey) -> Optional[Spec]:
    """Return the spec declaring the root model of *key*, or ``None``."""
    model_id = model_id_for(key)
    for spec in specs:
        if spec.api_version == key.api_version and _lookup_model(spec, model_id) is not None:
            return spec
    return None


def _lookup_model(spec: Spec, model_id: str) -> Optional[Model]:
    model = spec.models.get(model_id)
    if model is not None:
        return model
    for candidate in spec.models.values():
        if candidate.id == model_id:
            return candidate
    return None


def _child_ref(prop: Optional[Property]) -> Optional[str]:
    """The model id a property's children conform to, if any."""
    if prop is None:
        return None
    if prop.ref is not None:
        return prop.ref
    if prop.type is FieldType.ARRAY and prop.items is not None:
        return prop.items.ref
    return None


def _walk(spec: Spec, key: ResourceKey, path: Sequence[str]) -> Optional[Model]:
    model = _lookup_model(spec, model_id_for(key))
    for segment in path:
        if model is None:
            return None
        ref = _child_ref(model.properties.get(segment))
        model = _lookup_model(spec, ref) if ref is not None else None
    return model


def resolve_model(
    specs: Iterable[Spec], key: ResourceKey, path: Sequence[str]
) -> Optional[Model]:
    """Find the model governing the value at *path* below the root of *key*.

    Args:
        specs: The active specs.
        key: The resource type whose root model starts the walk.
        path: Field names to follow, outermost first. An empty path returns
            the root model itself.

    Returns:
        The model reached after the whole path, or ``None`` if the key is
        unknown or some segment cannot be followed. Once a segment fails,
        the remaining segments are not consulted.

    Example::

        resolve_model(specs, ResourceKey(api_version="v1", kind="Pod"), ["spec", "containers"])
        # Model(id="v1.Container", ...)
    """
    spec = find_spec(specs, key)
    if spec is None:
        return None
    return _walk(spec, key, path)


def resolve_properties(
    specs: Iterable[Spec], key: ResourceKey, path: Sequence[str]
) -> dict[str, Property]:
    """Return the properties that may appear as children of *path*.

    This is what completion offers below a key: the properties of the model
    reached by walking the full *path*.

    Returns:
        A new dict of property name to :class:`~kubeschema.models.Property`.
        Empty when nothing can be resolved.
    """
    model = resolve_model(specs, key, path)
    if model is None:
        return {}
    return dict(model.properties)


def resolve_property(
    specs: Iterable[Spec], key: ResourceKey, path: Sequence[str]
) -> Optional[Property]:
    """Return the property an exact key refers to.

    *path* names the key itself as its last element. Only the parent chain
    (``path[:-1]``) is walked; the last element is looked up by name on the
    model reached, so this also works for leaf fields that have no model of
    their own.

    Returns:
        The property, or ``None`` when *path* is empty or any part of it
        cannot be resolved.
    """
    if not path:
        return None
    return resolve_properties(specs, key, path[:-1]).get(path[-1])


def suggest_api_versions(specs: Iterable[Spec]) -> set[str]:
    """Return every non-empty ``apiVersion`` declared by *specs*."""
    return {spec.api_version for spec in specs if spec.api_version}


def suggest_kinds(
    specs: Iterable[Spec], api_version: Optional[str] = None
) -> set[ResourceKey]:
    """Suggest resource kinds that can be created.

    A kind is suggested when some API of its spec has a ``POST`` operation
    returning it *and* the spec declares a model for it. When several API
    versions offer the same bare kind name, only the newest version (per
    :func:`~kubeschema.versions.compare_api_versions`) is kept.

    Two API groups declaring the same bare kind shadow each other; only the
    newer version survives.

    Args:
        specs: The active specs.
        api_version: Restrict suggestions to specs with exactly this API
            version. ``None`` considers all specs.

    Returns:
        One :class:`~kubeschema.models.ResourceKey` per kind.
    """
    newest: dict[str, str] = {}
    for spec in specs:
        if not spec.api_version:
            continue
        if api_version is not None and spec.api_version != api_version:
            continue

        created = {
            operation.type
            for api in spec.apis
            for operation in api.operations
            if operation.method == "POST" and operation.type
        }
        model_ids = {model.id for model in spec.models.values()}

        for model_id in created & model_ids:
            kind = strip_model_id_prefix(model_id)
            current = newest.get(kind)
            if current is None or compare_api_versions(current, spec.api_version) <= 0:
                newest[kind] = spec.api_version

    return {ResourceKey(api_version=version, kind=kind) for kind, version in newest.items()}


def type_string_for(prop: Property) -> str:
    """Describe the type of a property for display.

    Referenced models are shown by id and primitive types by name. Arrays
    show their item type followed by ``[]``.

    Example::

        type_string_for(Property(type="array", items=ArrayItems(ref="v1.Container")))
        # 'v1.Container[]'
    """
    if prop.type is FieldType.ARRAY and prop.items is not None:
        items = prop.items
        if items.ref is not None:
            return f"{items.ref}[]"
        return f"{items.type.value if items.type else 'unknown'}[]"
    if prop.ref is not None:
        return prop.ref
    return prop.type.value if prop.type else "unknown"


def missing_required_properties(model: Model, present_keys: Iterable[str]) -> list[str]:
    """Return the required properties of *model* absent from *present_keys*.

    The result keeps the model's declaration order.
    """
    present = set(present_keys)
    return [name for name in model.required_properties if name not in present]
