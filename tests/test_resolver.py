"""Tests for kubeschema.resolver -- schema navigation and suggestions."""

from __future__ import annotations

import pytest

from kubeschema.models import ArrayItems, FieldType, Model, Property, ResourceKey, Spec
from kubeschema.resolver import (
    find_spec,
    missing_required_properties,
    model_id_for,
    resolve_model,
    resolve_properties,
    resolve_property,
    strip_model_id_prefix,
    suggest_api_versions,
    suggest_kinds,
    type_string_for,
)


POD = ResourceKey(api_version="v1", kind="Pod")
JOB = ResourceKey(api_version="batch/v1", kind="Job")


def _creatable_spec(api_version: str, model_id: str) -> Spec:
    """A spec with one POST operation returning *model_id* and a model for it."""
    return Spec.model_validate(
        {
            "apiVersion": api_version,
            "apis": [{"path": "/x", "operations": [{"method": "POST", "type": model_id}]}],
            "models": {model_id: {"id": model_id}},
        }
    )


# ---------------------------------------------------------------------------
# Model ids
# ---------------------------------------------------------------------------


class TestModelIds:
    def test_grouped_version_drops_group(self) -> None:
        assert model_id_for(JOB) == "v1.Job"

    def test_groupless_version_kept_whole(self) -> None:
        assert model_id_for(POD) == "v1.Pod"

    def test_dotted_group(self) -> None:
        key = ResourceKey(api_version="rbac.authorization.k8s.io/v1beta1", kind="Role")
        assert model_id_for(key) == "v1beta1.Role"

    def test_strip_prefix(self) -> None:
        assert strip_model_id_prefix("v1beta1.Deployment") == "Deployment"
        assert strip_model_id_prefix("Deployment") == "Deployment"


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


class TestResolveModel:
    def test_empty_path_is_root(self, kubernetes_specs: list[Spec]) -> None:
        model = resolve_model(kubernetes_specs, POD, [])
        assert model is not None
        assert model.id == "v1.Pod"

    def test_follows_ref(self, kubernetes_specs: list[Spec]) -> None:
        model = resolve_model(kubernetes_specs, POD, ["spec"])
        assert model is not None
        assert model.id == "v1.PodSpec"

    def test_follows_array_items(self, kubernetes_specs: list[Spec]) -> None:
        model = resolve_model(kubernetes_specs, POD, ["spec", "containers", "ports"])
        assert model is not None
        assert model.id == "v1.ContainerPort"

    def test_grouped_key_selects_matching_spec(self, kubernetes_specs: list[Spec]) -> None:
        model = resolve_model(kubernetes_specs, JOB, ["spec", "template", "spec", "containers"])
        assert model is not None
        assert model.id == "v1.Container"
        # batch/v1 declares its own, smaller Container model.
        assert set(model.properties) == {"name", "image"}

    def test_api_version_must_match_exactly(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_model(kubernetes_specs, ResourceKey(api_version="v1", kind="Job"), []) is None

    def test_unknown_kind(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_model(kubernetes_specs, ResourceKey(api_version="v1", kind="Nope"), []) is None

    def test_no_specs(self) -> None:
        assert resolve_model([], POD, []) is None

    def test_primitive_property_ends_walk(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_model(kubernetes_specs, POD, ["spec", "restartPolicy"]) is None

    def test_primitive_array_ends_walk(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_model(kubernetes_specs, POD, ["spec", "containers", "args"]) is None

    def test_dangling_ref(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_model(kubernetes_specs, POD, ["spec", "containers", "resources"]) is None
        assert resolve_model(kubernetes_specs, POD, ["spec", "volumes"]) is None

    @pytest.mark.parametrize(
        "path",
        [
            ["bogus"],
            ["bogus", "spec"],
            ["spec", "bogus", "containers"],
            ["spec", "bogus", "containers", "ports", "protocol"],
        ],
    )
    def test_unresolvable_segment_stays_unresolved(
        self, kubernetes_specs: list[Spec], path: list[str]
    ) -> None:
        assert resolve_model(kubernetes_specs, POD, path) is None
        assert resolve_properties(kubernetes_specs, POD, path) == {}

    def test_resolution_is_idempotent(self, kubernetes_specs: list[Spec]) -> None:
        before = [s.model_copy(deep=True) for s in kubernetes_specs]
        first = resolve_properties(kubernetes_specs, POD, ["spec", "containers"])
        second = resolve_properties(kubernetes_specs, POD, ["spec", "containers"])
        assert first == second
        assert kubernetes_specs == before

    def test_model_found_by_id_when_key_differs(self) -> None:
        spec = Spec.model_validate(
            {"apiVersion": "v1", "models": {"pod": {"id": "v1.Pod", "properties": {"x": {"type": "string"}}}}}
        )
        model = resolve_model([spec], POD, [])
        assert model is not None
        assert "x" in model.properties

    def test_find_spec(self, kubernetes_specs: list[Spec]) -> None:
        spec = find_spec(kubernetes_specs, JOB)
        assert spec is not None
        assert spec.api_version == "batch/v1"


class TestResolveProperties:
    def test_children_of_path(self, kubernetes_specs: list[Spec]) -> None:
        props = resolve_properties(kubernetes_specs, POD, ["spec", "containers"])
        assert set(props) == {"name", "image", "args", "ports", "resources"}

    def test_returns_a_copy(self, kubernetes_specs: list[Spec]) -> None:
        props = resolve_properties(kubernetes_specs, POD, [])
        props.clear()
        assert resolve_properties(kubernetes_specs, POD, [])

    def test_end_to_end_pod_metadata(self) -> None:
        spec = Spec.model_validate(
            {
                "apiVersion": "v1",
                "models": {
                    "v1.Pod": {
                        "properties": {
                            "metadata": {"$ref": "v1.ObjectMeta"},
                            "spec": {"type": "object"},
                        }
                    },
                    "v1.ObjectMeta": {"properties": {"name": {"type": "string"}}},
                },
            }
        )
        assert resolve_properties([spec], POD, ["metadata"]) == {
            "name": Property(type=FieldType.STRING)
        }


class TestResolveProperty:
    def test_leaf_property_via_parent_chain(self, kubernetes_specs: list[Spec]) -> None:
        prop = resolve_property(kubernetes_specs, POD, ["spec", "restartPolicy"])
        assert prop is not None
        assert prop.type is FieldType.STRING

    def test_top_level_property(self, kubernetes_specs: list[Spec]) -> None:
        prop = resolve_property(kubernetes_specs, POD, ["metadata"])
        assert prop is not None
        assert prop.ref == "v1.ObjectMeta"

    def test_differs_from_full_path_variant(self, kubernetes_specs: list[Spec]) -> None:
        # The full-path walk finds the model *below* "containers", the
        # parent-chain lookup finds the property "containers" itself.
        prop = resolve_property(kubernetes_specs, POD, ["spec", "containers"])
        assert prop is not None
        assert prop.type is FieldType.ARRAY
        assert "name" in resolve_properties(kubernetes_specs, POD, ["spec", "containers"])

    def test_inside_array_items(self, kubernetes_specs: list[Spec]) -> None:
        prop = resolve_property(kubernetes_specs, POD, ["spec", "containers", "ports", "containerPort"])
        assert prop is not None
        assert prop.type is FieldType.INTEGER

    def test_empty_path(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_property(kubernetes_specs, POD, []) is None

    def test_unknown_leaf(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_property(kubernetes_specs, POD, ["spec", "nope"]) is None

    def test_unresolvable_parent(self, kubernetes_specs: list[Spec]) -> None:
        assert resolve_property(kubernetes_specs, POD, ["bogus", "name"]) is None


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


class TestSuggestApiVersions:
    def test_all_versions(self, kubernetes_specs: list[Spec]) -> None:
        assert suggest_api_versions(kubernetes_specs) == {
            "v1",
            "batch/v1",
            "apps/v1beta1",
            "extensions/v1beta1",
        }

    def test_empty_versions_ignored(self) -> None:
        specs = [Spec.model_validate({}), Spec.model_validate({"apiVersion": ""})]
        assert suggest_api_versions(specs) == set()


class TestSuggestKinds:
    def test_fixture_kinds(self, kubernetes_specs: list[Spec]) -> None:
        assert suggest_kinds(kubernetes_specs) == {
            ResourceKey(api_version="v1", kind="Pod"),
            ResourceKey(api_version="batch/v1", kind="Job"),
            ResourceKey(api_version="apps/v1beta1", kind="StatefulSet"),
            ResourceKey(api_version="extensions/v1beta1", kind="Deployment"),
        }

    def test_model_without_post_not_suggested(self, kubernetes_specs: list[Spec]) -> None:
        kinds = {k.kind for k in suggest_kinds(kubernetes_specs)}
        assert "PodList" not in kinds
        assert "ObjectMeta" not in kinds

    def test_post_without_model_not_suggested(self, kubernetes_specs: list[Spec]) -> None:
        assert "Service" not in {k.kind for k in suggest_kinds(kubernetes_specs)}

    def test_filter_by_api_version(self, kubernetes_specs: list[Spec]) -> None:
        assert suggest_kinds(kubernetes_specs, "apps/v1beta1") == {
            ResourceKey(api_version="apps/v1beta1", kind="Deployment"),
            ResourceKey(api_version="apps/v1beta1", kind="StatefulSet"),
        }

    def test_filter_matches_nothing(self, kubernetes_specs: list[Spec]) -> None:
        assert suggest_kinds(kubernetes_specs, "v2") == set()

    @pytest.mark.parametrize(
        ("older", "newer"),
        [("v1beta1", "v1"), ("v1", "v2"), ("apps/v1beta1", "apps/v1beta2"), ("v1", "apps/v1")],
    )
    def test_newest_version_wins(self, older: str, newer: str) -> None:
        older_id = f"{older.rsplit('/', 1)[-1]}.Deployment"
        newer_id = f"{newer.rsplit('/', 1)[-1]}.Deployment"
        for specs in (
            [_creatable_spec(older, older_id), _creatable_spec(newer, newer_id)],
            [_creatable_spec(newer, newer_id), _creatable_spec(older, older_id)],
        ):
            assert suggest_kinds(specs) == {ResourceKey(api_version=newer, kind="Deployment")}

    def test_spec_without_api_version_ignored(self) -> None:
        spec = Spec.model_validate(
            {
                "apis": [{"operations": [{"method": "POST", "type": "v1.Pod"}]}],
                "models": {"v1.Pod": {"id": "v1.Pod"}},
            }
        )
        assert suggest_kinds([spec]) == set()

    def test_matches_model_id_not_dict_key(self) -> None:
        spec = Spec.model_validate(
            {
                "apiVersion": "v1",
                "apis": [{"operations": [{"method": "POST", "type": "v1.Pod"}]}],
                "models": {"v1.Pod": {}},
            }
        )
        assert suggest_kinds([spec]) == set()


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


class TestTypeStringFor:
    def test_ref(self) -> None:
        assert type_string_for(Property(ref="v1.ObjectMeta")) == "v1.ObjectMeta"

    def test_primitive(self) -> None:
        assert type_string_for(Property(type=FieldType.BOOLEAN)) == "boolean"

    def test_array_of_refs(self) -> None:
        prop = Property(type=FieldType.ARRAY, items=ArrayItems(ref="v1.Container"))
        assert type_string_for(prop) == "v1.Container[]"

    def test_array_of_primitives(self) -> None:
        prop = Property(type=FieldType.ARRAY, items=ArrayItems(type=FieldType.STRING))
        assert type_string_for(prop) == "string[]"

    def test_array_of_unknown(self) -> None:
        assert type_string_for(Property(type=FieldType.ARRAY, items=ArrayItems())) == "unknown[]"

    def test_untyped(self) -> None:
        assert type_string_for(Property()) == "unknown"


class TestMissingRequiredProperties:
    def test_declaration_order(self) -> None:
        model = Model(id="v1.X", required_properties=("b", "a", "c"))
        assert missing_required_properties(model, ["a"]) == ["b", "c"]

    def test_nothing_missing(self) -> None:
        model = Model(id="v1.X", required_properties=("a",))
        assert missing_required_properties(model, iter(["a", "z"])) == []
