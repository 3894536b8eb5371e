# File: docschema/inference.py
"""
docschema - Schema Inferrer
===========================
Turns sampled documents into an immutable ``InferredSchema``.

Workflow::

    1. Fold every document into one FieldObservation tree (unifier.py).
    2. Walk the tree depth-first, in first-observed field order:
         - object paths become named nested types (Parent + Field),
         - array paths wrap their unified element type,
         - everything else resolves to a scalar kind.
    3. Classify the sampled partition-key values.

Inference never fails on messy data: conflicting kinds widen and are
recorded as ``TypeConflict`` diagnostics, non-object documents are skipped
with a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from docschema.models import (
    ArrayType,
    InferenceConfig,
    InferenceStats,
    InferredField,
    InferredSchema,
    InferredType,
    ObjectTypeDefinition,
    ObjectTypeRef,
    ObservedKind,
    PartitionKeyKind,
    PartitionKeyPattern,
    ScalarKind,
    ScalarType,
    TypeConflict,
)
from docschema.unifier import FieldObservation, observe_document, resolve_scalar
from docschema.utils import extract_path_value, nested_type_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.inference")

# ---------------------------------------------------------------------------
# Partition-key pattern constants
# ---------------------------------------------------------------------------

# Checked in this order; the first separator present in every value decides.
_PARTITION_SEPARATORS: Tuple[str, ...] = ("/", "#", ":", "|", ".", "_", "-")
_MAX_COMPOUND_SEGMENTS: int = 4


# ---------------------------------------------------------------------------
# Partition-key pattern detection
# ---------------------------------------------------------------------------


def detect_partition_key_pattern(values: Sequence[Any]) -> PartitionKeyPattern:
    """
    Classify sampled partition-key values.

    * ``hierarchical`` — a separator present in every value splits them
      into a varying number of segments (``tenant/a``, ``tenant/a/b``).
    * ``compound`` — the separator splits every value into the same
      small number (2–4) of segments (``user-1``, ``user-2``).
    * ``static`` — all values identical, or no separator qualifies.
    """
    cleaned: List[str] = [str(v) for v in values if v is not None and str(v) != ""]
    distinct: List[str] = list(dict.fromkeys(cleaned))

    if len(distinct) <= 1:
        return PartitionKeyPattern(
            kind=PartitionKeyKind.STATIC,
            sample_count=len(cleaned),
            distinct_values=len(distinct),
        )

    for separator in _PARTITION_SEPARATORS:
        if not all(separator in value for value in distinct):
            continue

        depths: List[int] = [len(value.strip(separator).split(separator)) for value in distinct]
        lo: int = min(depths)
        hi: int = max(depths)

        if lo != hi:
            kind: PartitionKeyKind = PartitionKeyKind.HIERARCHICAL
        elif 2 <= lo <= _MAX_COMPOUND_SEGMENTS:
            kind = PartitionKeyKind.COMPOUND
        else:
            continue

        logger.debug(
            "Partition-key pattern %s via %r (depth %d..%d, %d distinct).",
            kind.value,
            separator,
            lo,
            hi,
            len(distinct),
        )
        return PartitionKeyPattern(
            kind=kind,
            separator=separator,
            min_depth=lo,
            max_depth=hi,
            sample_count=len(cleaned),
            distinct_values=len(distinct),
        )

    return PartitionKeyPattern(
        kind=PartitionKeyKind.STATIC,
        sample_count=len(cleaned),
        distinct_values=len(distinct),
    )


# ---------------------------------------------------------------------------
# Type graph builder
# ---------------------------------------------------------------------------


class _TypeGraphBuilder:
    """Converts one observation tree into named object types."""

    def __init__(self, root_name: str, config: InferenceConfig) -> None:
        self._root_name: str = root_name
        self._config: InferenceConfig = config
        self._types: Dict[str, Optional[ObjectTypeDefinition]] = {}
        self._conflicts: List[TypeConflict] = []
        self._field_count: int = 0

    # -- Public -------------------------------------------------------------

    def build(self, root: FieldObservation) -> Tuple[ObjectTypeDefinition, Dict[str, ObjectTypeDefinition]]:
        root_type: ObjectTypeDefinition = self._build_object(
            self._root_name, root, parent=None, path=[], depth=0
        )
        nested: Dict[str, ObjectTypeDefinition] = {
            name: type_def for name, type_def in self._types.items() if type_def is not None
        }
        return root_type, nested

    @property
    def conflicts(self) -> List[TypeConflict]:
        return list(self._conflicts)

    @property
    def field_count(self) -> int:
        return self._field_count

    # -- Internal -----------------------------------------------------------

    def _unique_name(self, candidate: str) -> str:
        if candidate not in self._types and candidate != self._root_name:
            return candidate
        suffix: int = 2
        while f"{candidate}{suffix}" in self._types or f"{candidate}{suffix}" == self._root_name:
            suffix += 1
        logger.warning(
            "Type name '%s' already taken; using '%s%d'.", candidate, candidate, suffix
        )
        return f"{candidate}{suffix}"

    def _build_object(
        self,
        name: str,
        observation: FieldObservation,
        parent: Optional[str],
        path: List[str],
        depth: int,
    ) -> ObjectTypeDefinition:
        if parent is not None:
            # reserve the slot so nested types follow their parent (pre-order)
            self._types[name] = None

        fields: List[InferredField] = []
        for field_name, child in observation.children.items():
            child_path: List[str] = path + [field_name]
            field_type: InferredType = self._resolve(child, name, field_name, child_path, depth)
            fields.append(
                InferredField(
                    name=field_name,
                    type=field_type,
                    is_required=self._is_required(child),
                )
            )
            self._field_count += 1

        type_def: ObjectTypeDefinition = ObjectTypeDefinition(
            name=name,
            fields=fields,
            parent=parent,
            path=path,
            sample_count=observation.object_count,
        )
        if parent is not None:
            self._types[name] = type_def
        return type_def

    def _is_required(self, observation: FieldObservation) -> bool:
        if observation.total <= 0:
            return False
        return observation.presence / observation.total >= self._config.required_threshold

    def _resolve(
        self,
        observation: FieldObservation,
        owner: str,
        field_name: str,
        path: List[str],
        depth: int,
    ) -> InferredType:
        kinds: List[str] = observation.observed_kinds

        if kinds == [ObservedKind.OBJECT.value]:
            if depth + 1 > self._config.max_nesting_depth:
                logger.debug("Path %s exceeds max nesting depth; typed as JSON.", _dotted(path))
                return ScalarType(scalar=ScalarKind.UNKNOWN)
            type_name: str = self._unique_name(nested_type_name(owner, field_name))
            self._build_object(type_name, observation, owner, path, depth + 1)
            return ObjectTypeRef(name=type_name)

        if kinds == [ObservedKind.ARRAY.value]:
            element: Optional[FieldObservation] = observation.element
            if element is None or not element.observed_kinds:
                return ArrayType(element=ScalarType(scalar=ScalarKind.STRING))
            return ArrayType(
                element=self._resolve(element, owner, field_name, path + ["[]"], depth)
            )

        scalar, conflicted = resolve_scalar(observation)
        if conflicted:
            self._conflicts.append(
                TypeConflict(
                    path=_dotted(path),
                    observed_kinds=sorted(kinds),
                    resolved_as=scalar,
                )
            )
            logger.info(
                "Type conflict at %s: observed %s, widened to %s.",
                _dotted(path),
                "/".join(sorted(kinds)),
                scalar.value,
            )
        return ScalarType(scalar=scalar)


def _dotted(path: List[str]) -> str:
    return ".".join(path).replace(".[]", "[]")


# ---------------------------------------------------------------------------
# SchemaInferrer
# ---------------------------------------------------------------------------


class SchemaInferrer:
    """
    Infers an ``InferredSchema`` from sampled documents.

    Usage::

        inferrer = SchemaInferrer(InferenceConfig())
        schema = inferrer.infer(documents, "File", partition_key_path="/tenantId")

    Instances hold only configuration and may be reused.
    """

    def __init__(self, config: Optional[InferenceConfig] = None) -> None:
        self._config: InferenceConfig = config or InferenceConfig()

    def infer(
        self,
        documents: Iterable[Any],
        type_name: str,
        partition_key_path: Optional[str] = None,
    ) -> InferredSchema:
        """
        Build the schema for *type_name* from *documents*.

        Args:
            documents: Decoded JSON documents; non-objects are skipped.
            type_name: Root GraphQL type name.
            partition_key_path: Optional ``/field`` path whose values are
                                classified into a ``PartitionKeyPattern``.
        """
        root: FieldObservation = FieldObservation()
        partition_values: List[Any] = []
        analyzed: int = 0
        skipped: int = 0

        for document in documents:
            if not isinstance(document, Mapping):
                skipped += 1
                continue
            observe_document(root, document)
            analyzed += 1
            if partition_key_path:
                partition_values.append(extract_path_value(document, partition_key_path))

        if skipped:
            logger.warning(
                "Skipped %d non-object sample(s) while inferring %s.", skipped, type_name
            )

        builder: _TypeGraphBuilder = _TypeGraphBuilder(type_name, self._config)
        root_type, nested_types = builder.build(root)

        pattern: Optional[PartitionKeyPattern] = None
        if partition_key_path:
            pattern = detect_partition_key_pattern(partition_values)

        conflicts: List[TypeConflict] = builder.conflicts
        schema: InferredSchema = InferredSchema(
            root_type=root_type,
            nested_types=nested_types,
            partition_key_pattern=pattern,
            conflicts=conflicts,
            stats=InferenceStats(
                documents_analyzed=analyzed,
                fields_analyzed=builder.field_count,
                types_generated=1 + len(nested_types),
                conflicts_resolved=len(conflicts),
            ),
        )

        logger.info(
            "Inferred %s from %d document(s): %d nested type(s), %d field(s), %d conflict(s).",
            type_name,
            analyzed,
            len(nested_types),
            builder.field_count,
            len(conflicts),
        )
        return schema


def infer_schema(
    documents: Iterable[Any],
    type_name: str,
    partition_key_path: Optional[str] = None,
    config: Optional[InferenceConfig] = None,
) -> InferredSchema:
    """Functional shortcut for ``SchemaInferrer(config).infer(...)``."""
    return SchemaInferrer(config).infer(documents, type_name, partition_key_path)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaInferrer",
    "infer_schema",
    "detect_partition_key_pattern",
]

logger.debug("docschema.inference loaded — %d public symbols.", len(__all__))
