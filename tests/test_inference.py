"""
tests/test_inference.py
Unit tests for docschema.unifier and docschema.inference.

Tests cover:
- Field coverage, required/optional flags and scalar resolution
- Nested object naming and array element unification
- Order independence of inference and observation merging
- Conflict widening and partition-key pattern detection
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, List

import pytest

from docschema.inference import SchemaInferrer, detect_partition_key_pattern, infer_schema
from docschema.models import (
    ArrayType,
    InferenceConfig,
    InferredSchema,
    ObjectTypeRef,
    PartitionKeyKind,
    ScalarKind,
    ScalarType,
)
from docschema.unifier import (
    FieldObservation,
    classify,
    merge_observations,
    observe_document,
    resolve_scalar,
)


def _scalar(schema: InferredSchema, type_name: str, field_name: str) -> str:
    fld = schema.get_type(type_name).get_field(field_name)
    assert isinstance(fld.type, ScalarType)
    return fld.type.scalar


def _tree(documents: List[Dict[str, Any]]) -> FieldObservation:
    root = FieldObservation()
    for doc in documents:
        observe_document(root, doc)
    return root


# ---------------------------------------------------------------------------
# Inferred File schema
# ---------------------------------------------------------------------------


class TestFileSchema:
    def test_every_path_present(self, file_schema: InferredSchema) -> None:
        assert file_schema.root_type.field_names == [
            "id",
            "tenantId",
            "name",
            "size",
            "tags",
            "metadata",
            "downloads",
            "checksum",
        ]
        assert list(file_schema.nested_types) == ["FileMetadata"]

    def test_required_only_when_always_present(self, file_schema: InferredSchema) -> None:
        root = file_schema.root_type
        assert root.get_field("name").is_required
        assert root.get_field("tags").is_required
        # absent in f1, null in f2
        assert not root.get_field("checksum").is_required
        assert not file_schema.get_type("FileMetadata").get_field("pages").is_required

    def test_scalar_kinds(self, file_schema: InferredSchema) -> None:
        assert _scalar(file_schema, "File", "name") == ScalarKind.STRING
        assert _scalar(file_schema, "File", "size") == ScalarKind.FLOAT
        assert _scalar(file_schema, "File", "downloads") == ScalarKind.INTEGER
        assert _scalar(file_schema, "File", "checksum") == ScalarKind.STRING

    def test_array_element(self, file_schema: InferredSchema) -> None:
        tags = file_schema.root_type.get_field("tags")
        assert isinstance(tags.type, ArrayType)
        assert tags.type.element.scalar == ScalarKind.STRING
        assert tags.is_array

    def test_nested_reference(self, file_schema: InferredSchema) -> None:
        metadata = file_schema.root_type.get_field("metadata")
        assert isinstance(metadata.type, ObjectTypeRef)
        assert metadata.custom_type_name == "FileMetadata"
        nested = file_schema.get_type("FileMetadata")
        assert nested.parent == "File"
        assert nested.path == ["metadata"]
        assert nested.sample_count == 3

    def test_stats(self, file_schema: InferredSchema) -> None:
        assert file_schema.stats.documents_analyzed == 3
        assert file_schema.stats.types_generated == 2
        assert file_schema.stats.conflicts_resolved == 0

    def test_partition_pattern(self, file_schema: InferredSchema) -> None:
        pattern = file_schema.partition_key_pattern
        assert pattern.kind == PartitionKeyKind.HIERARCHICAL
        assert pattern.separator == "/"
        assert (pattern.min_depth, pattern.max_depth) == (2, 3)
        assert pattern.distinct_values == 3


# ---------------------------------------------------------------------------
# Order independence
# ---------------------------------------------------------------------------


class TestOrderIndependence:
    def test_permutations_agree_on_types_and_flags(self, file_documents: List[Dict[str, Any]]) -> None:
        def signature(schema: InferredSchema) -> Dict[str, Any]:
            return {
                t.name: sorted((f.name, f.is_required, repr(f.type)) for f in t.fields)
                for t in schema.all_types
            }

        expected = signature(infer_schema(file_documents, "File"))
        for perm in itertools.permutations(file_documents):
            assert signature(infer_schema(list(perm), "File")) == expected

    def test_merge_matches_single_pass(self, file_documents: List[Dict[str, Any]]) -> None:
        whole = _tree(file_documents)
        merged = merge_observations(_tree(file_documents[:1]), _tree(file_documents[1:]))
        swapped = merge_observations(_tree(file_documents[1:]), _tree(file_documents[:1]))
        for tree in (merged, swapped):
            assert tree.total == whole.total
            assert set(tree.children) == set(whole.children)
            for key, child in whole.children.items():
                assert tree.children[key].presence == child.presence
                assert tree.children[key].total == child.total

    def test_merge_with_none(self) -> None:
        tree = _tree([{"a": 1}])
        copied = merge_observations(None, tree)
        assert copied is not tree
        assert copied.children["a"].presence == 1
        assert merge_observations(None, None) is None


# ---------------------------------------------------------------------------
# Scalar resolution & conflicts
# ---------------------------------------------------------------------------


class TestScalarResolution:
    @pytest.mark.parametrize(
        "value, kind",
        [(None, "null"), (True, "boolean"), (1, "number"), (1.5, "number"), ("x", "string"),
         ({}, "object"), ([], "array")],
    )
    def test_classify(self, value: Any, kind: str) -> None:
        assert classify(value).value == kind

    def test_integral_floats_stay_integer(self) -> None:
        schema = infer_schema([{"n": 1}, {"n": 2.0}], "T")
        assert _scalar(schema, "T", "n") == ScalarKind.INTEGER

    def test_beyond_int32_is_float(self) -> None:
        schema = infer_schema([{"n": 1}, {"n": 2 ** 31}], "T")
        assert _scalar(schema, "T", "n") == ScalarKind.FLOAT

    def test_booleans_are_not_numbers(self) -> None:
        schema = infer_schema([{"flag": True}, {"flag": False}], "T")
        assert _scalar(schema, "T", "flag") == ScalarKind.BOOLEAN

    def test_only_nulls_resolve_to_optional_string(self) -> None:
        schema = infer_schema([{"x": None}], "T")
        assert _scalar(schema, "T", "x") == ScalarKind.STRING
        assert not schema.root_type.get_field("x").is_required

    def test_mixed_scalars_widen_to_string(self) -> None:
        schema = infer_schema([{"code": 1}, {"code": "A1"}], "T")
        assert _scalar(schema, "T", "code") == ScalarKind.STRING
        assert len(schema.conflicts) == 1
        conflict = schema.conflicts[0]
        assert conflict.path == "code"
        assert conflict.observed_kinds == ["number", "string"]

    def test_object_and_scalar_widen_to_unknown(self) -> None:
        schema = infer_schema([{"v": {"a": 1}}, {"v": 3}], "T")
        assert _scalar(schema, "T", "v") == ScalarKind.UNKNOWN
        assert schema.stats.conflicts_resolved == 1

    def test_resolve_scalar_empty(self) -> None:
        assert resolve_scalar(FieldObservation()) == (ScalarKind.STRING, False)


# ---------------------------------------------------------------------------
# Nesting
# ---------------------------------------------------------------------------


class TestNesting:
    def test_array_of_objects_unions_fields(self) -> None:
        docs = [{"lines": [{"sku": "a", "qty": 1}, {"sku": "b", "note": "gift"}]}]
        schema = infer_schema(docs, "Order")
        line = schema.get_type("OrderLines")
        assert line.field_names == ["sku", "qty", "note"]
        assert line.get_field("sku").is_required
        assert not line.get_field("qty").is_required
        lines = schema.root_type.get_field("lines")
        assert lines.custom_type_name == "OrderLines"

    def test_deep_names_concatenate(self) -> None:
        schema = infer_schema([{"owner": {"address": {"city": "Oslo"}}}], "User")
        assert list(schema.nested_types) == ["UserOwner", "UserOwnerAddress"]

    def test_name_collision_gets_suffix(self) -> None:
        schema = infer_schema([{"a": {"b": {"x": 1}}, "aB": {"y": 2}}], "T")
        assert set(schema.nested_types) == {"TA", "TAB", "TAB2"}

    def test_empty_arrays_default_to_string(self) -> None:
        schema = infer_schema([{"tags": []}], "T")
        assert schema.root_type.get_field("tags").type.element.scalar == ScalarKind.STRING

    def test_max_depth_collapses_to_unknown(self) -> None:
        inferrer = SchemaInferrer(InferenceConfig(max_nesting_depth=1))
        schema = inferrer.infer([{"a": {"b": {"c": 1}}}], "T")
        assert list(schema.nested_types) == ["TA"]
        assert _scalar(schema, "TA", "b") == ScalarKind.UNKNOWN

    def test_non_objects_skipped(self) -> None:
        schema = infer_schema([{"a": 1}, "junk", 5], "T")
        assert schema.stats.documents_analyzed == 1

    def test_required_threshold(self) -> None:
        inferrer = SchemaInferrer(InferenceConfig(required_threshold=0.5))
        schema = inferrer.infer([{"a": 1}, {"a": 2}, {"b": 1}], "T")
        assert schema.root_type.get_field("a").is_required
        assert not schema.root_type.get_field("b").is_required


# ---------------------------------------------------------------------------
# Partition-key pattern detection
# ---------------------------------------------------------------------------


class TestPartitionPattern:
    def test_compound(self) -> None:
        pattern = detect_partition_key_pattern(["user-1", "user-2", "org-9"])
        assert pattern.kind == PartitionKeyKind.COMPOUND
        assert pattern.separator == "-"
        assert (pattern.min_depth, pattern.max_depth) == (2, 2)

    def test_static_when_identical(self) -> None:
        pattern = detect_partition_key_pattern(["eu", "eu", "eu"])
        assert pattern.kind == PartitionKeyKind.STATIC
        assert pattern.sample_count == 3
        assert pattern.distinct_values == 1

    def test_static_without_separator(self) -> None:
        assert detect_partition_key_pattern(["eu", "us"]).kind == PartitionKeyKind.STATIC

    def test_nulls_ignored(self) -> None:
        pattern = detect_partition_key_pattern([None, "", "a"])
        assert pattern.kind == PartitionKeyKind.STATIC
        assert pattern.sample_count == 1

    def test_no_path_no_pattern(self, file_documents: List[Dict[str, Any]]) -> None:
        assert infer_schema(file_documents, "File").partition_key_pattern is None
