# File: docschema/models.py
"""
docschema - Core Data Models
============================
Pydantic V2 models shared by every stage of the pipeline:

    Sampling → Unification → InferredSchema → SDL / Input types → Resolvers

Three groups live here:

* the inferred type graph (``InferredType`` variants, ``InferredField``,
  ``ObjectTypeDefinition``, ``InferredSchema``), frozen once built;
* operation contracts (``OperationConfig``, ``ArrayOperation``, input
  type definitions and payload shapes);
* configuration (``InferenceConfig``, ``ContainerConfig``,
  ``DocSchemaConfig``) loaded from YAML/JSON by the generator.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class ObservedKind(str, Enum):
    """Primitive kinds a raw JSON value can be observed as."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"


class ScalarKind(str, Enum):
    """Resolved scalar kinds; each maps to exactly one GraphQL scalar."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    UNKNOWN = "unknown"


class OperationKind(str, Enum):
    """Every operation key recognised by ``OperationConfig``."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    REPLACE = "replace"
    UPSERT = "upsert"
    DELETE = "delete"
    SOFT_DELETE = "softDelete"
    RESTORE = "restore"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    CREATE_MANY = "createMany"
    UPDATE_MANY = "updateMany"
    DELETE_MANY = "deleteMany"


class ArrayOperationType(str, Enum):
    """Closed set of array transformations accepted by update mutations."""

    SET = "set"
    APPEND = "append"
    PREPEND = "prepend"
    REMOVE = "remove"
    INSERT = "insert"
    SPLICE = "splice"


class PartitionKeyKind(str, Enum):
    """Structural classification of sampled partition-key values."""

    HIERARCHICAL = "hierarchical"
    COMPOUND = "compound"
    STATIC = "static"


class SamplingStrategy(str, Enum):
    """How documents are drawn from a container before inference."""

    TOP = "top"
    RANDOM = "random"
    PARTITION = "partition"
    SCHEMA = "schema"


class OrderDirection(str, Enum):
    """Sort direction for list queries."""

    ASC = "ASC"
    DESC = "DESC"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)

_PAYLOAD_CONFIG: ConfigDict = ConfigDict(
    populate_by_name=True,
    alias_generator=to_camel,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Inferred type graph
# ---------------------------------------------------------------------------


class ScalarType(BaseModel):
    """A leaf value."""

    model_config = _FROZEN_CONFIG

    kind: Literal["scalar"] = "scalar"
    scalar: ScalarKind = Field(..., description="Resolved scalar kind.")

    def __repr__(self) -> str:
        return f"<Scalar {self.scalar}>"


class ObjectTypeRef(BaseModel):
    """Reference to a named object type in the same ``InferredSchema``."""

    model_config = _FROZEN_CONFIG

    kind: Literal["object"] = "object"
    name: str = Field(..., min_length=1, description="Referenced type name.")

    def __repr__(self) -> str:
        return f"<ObjectRef {self.name}>"


class ArrayType(BaseModel):
    """Homogeneous list whose element type is the unified element observation."""

    model_config = _FROZEN_CONFIG

    kind: Literal["array"] = "array"
    element: "InferredType" = Field(..., description="Element type.")

    def __repr__(self) -> str:
        return f"<Array of {self.element!r}>"


InferredType = Annotated[
    Union[ScalarType, ObjectTypeRef, ArrayType],
    Field(discriminator="kind"),
]

ArrayType.model_rebuild()


class InferredField(BaseModel):
    """One field of a named object type."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Field name as stored.")
    type: InferredType = Field(..., description="Tagged type variant.")
    is_required: bool = Field(
        default=False,
        description="True only when present (non-null) in every sample of its type.",
    )

    @computed_field  # type: ignore[misc]
    @property
    def is_array(self) -> bool:
        return isinstance(self.type, ArrayType)

    @computed_field  # type: ignore[misc]
    @property
    def custom_type_name(self) -> Optional[str]:
        """Name of the referenced object type, looking through array wrappers."""
        current: Any = self.type
        while isinstance(current, ArrayType):
            current = current.element
        if isinstance(current, ObjectTypeRef):
            return current.name
        return None

    def __repr__(self) -> str:
        flag: str = "!" if self.is_required else "?"
        return f"<Field {self.name}{flag} {self.type!r}>"


class ObjectTypeDefinition(BaseModel):
    """A named object type with its ordered fields."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Globally unique type name.")
    fields: List[InferredField] = Field(
        default_factory=list, description="Fields in first-observed order."
    )
    parent: Optional[str] = Field(
        default=None, description="Enclosing type name (None for the root)."
    )
    path: List[str] = Field(
        default_factory=list,
        description="Structural path from the document root.",
    )
    sample_count: int = Field(
        default=0, ge=0, description="Number of objects merged into this type."
    )

    def get_field(self, name: str) -> Optional[InferredField]:
        for fld in self.fields:
            if fld.name == name:
                return fld
        return None

    @computed_field  # type: ignore[misc]
    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def __repr__(self) -> str:
        return f"<ObjectType {self.name} ({len(self.fields)} fields)>"


class PartitionKeyPattern(BaseModel):
    """Structural classification of sampled partition-key values."""

    model_config = _FROZEN_CONFIG

    kind: PartitionKeyKind = Field(..., description="hierarchical / compound / static.")
    separator: Optional[str] = Field(
        default=None, description="Delimiter that drove the classification."
    )
    min_depth: int = Field(default=1, ge=0)
    max_depth: int = Field(default=1, ge=0)
    sample_count: int = Field(default=0, ge=0, description="Values inspected.")
    distinct_values: int = Field(default=0, ge=0)


class TypeConflict(BaseModel):
    """Diagnostic note for a path that was observed with incompatible kinds."""

    model_config = _FROZEN_CONFIG

    path: str = Field(..., description="Dotted structural path (arrays as '[]').")
    observed_kinds: List[ObservedKind] = Field(default_factory=list)
    resolved_as: ScalarKind = Field(..., description="Kind the conflict widened to.")


class InferenceStats(BaseModel):
    """Counters collected during one inference run."""

    model_config = _FROZEN_CONFIG

    documents_analyzed: int = Field(default=0, ge=0)
    fields_analyzed: int = Field(default=0, ge=0)
    types_generated: int = Field(default=0, ge=0)
    conflicts_resolved: int = Field(default=0, ge=0)


class InferredSchema(BaseModel):
    """
    Result of one inference run: a root type plus all nested named types.

    Invariant: ``nested_types`` keys are unique and never collide with the
    root type name.  The model is frozen; downstream generators read it only.
    """

    model_config = _FROZEN_CONFIG

    root_type: ObjectTypeDefinition = Field(..., description="The document type.")
    nested_types: Dict[str, ObjectTypeDefinition] = Field(
        default_factory=dict, description="Nested object types in pre-order."
    )
    partition_key_pattern: Optional[PartitionKeyPattern] = Field(default=None)
    conflicts: List[TypeConflict] = Field(default_factory=list)
    stats: InferenceStats = Field(default_factory=InferenceStats)

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "InferredSchema":
        if self.root_type.name in self.nested_types:
            raise ValueError(
                f"Nested type name '{self.root_type.name}' collides with the root type."
            )
        for key, type_def in self.nested_types.items():
            if key != type_def.name:
                raise ValueError(
                    f"Nested type registered as '{key}' but named '{type_def.name}'."
                )
        return self

    def get_type(self, name: str) -> Optional[ObjectTypeDefinition]:
        """Lookup by name across root and nested types."""
        if name == self.root_type.name:
            return self.root_type
        return self.nested_types.get(name)

    @property
    def all_types(self) -> List[ObjectTypeDefinition]:
        return [self.root_type, *self.nested_types.values()]

    @property
    def array_field_names(self) -> List[str]:
        """Root fields inferred as arrays (the ones updated through ArrayOperation)."""
        return [f.name for f in self.root_type.fields if f.is_array]

    def __repr__(self) -> str:
        return (
            f"<InferredSchema {self.root_type.name} "
            f"+{len(self.nested_types)} nested, "
            f"{self.stats.documents_analyzed} docs>"
        )


# ---------------------------------------------------------------------------
# Operation contracts
# ---------------------------------------------------------------------------


class OperationConfig(BaseModel):
    """
    Operation enablement: either an inclusion list or an exclusion list.

    A key that is not mentioned is enabled, unless an inclusion list is
    present, in which case only the listed keys are enabled.
    """

    model_config = _SHARED_CONFIG

    include: Optional[List[OperationKind]] = Field(
        default=None, description="Only these operations are enabled."
    )
    exclude: Optional[List[OperationKind]] = Field(
        default=None, description="These operations are disabled."
    )

    @model_validator(mode="after")
    def _include_xor_exclude(self) -> "OperationConfig":
        if self.include is not None and self.exclude is not None:
            raise ValueError(
                "OperationConfig accepts either 'include' or 'exclude', not both."
            )
        return self

    def is_enabled(self, operation: Union[OperationKind, str]) -> bool:
        """True if *operation* is enabled under this config."""
        key: str = OperationKind(operation).value
        if self.exclude is not None and key in [OperationKind(o).value for o in self.exclude]:
            return False
        if self.include is not None:
            return key in [OperationKind(o).value for o in self.include]
        return True

    def enabled_operations(self) -> List[str]:
        """All enabled keys, in declaration order of ``OperationKind``."""
        return [op.value for op in OperationKind if self.is_enabled(op)]


class ArrayOperation(BaseModel):
    """Pure value object describing one array transformation."""

    model_config = _FROZEN_CONFIG

    type: ArrayOperationType = Field(..., description="Operation kind.")
    value: Any = Field(default=None, description="Value or list of values.")
    index: Optional[int] = Field(default=None, description="Position for insert/splice.")
    delete_count: Optional[int] = Field(
        default=None, alias="deleteCount", description="Elements removed by splice."
    )

    @field_validator("type", mode="before")
    @classmethod
    def _lowercase_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.lower()
        return v


class InputFieldDefinition(BaseModel):
    """One field of a generated GraphQL input type."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="SDL type reference, e.g. '[String]!'.")
    required: bool = Field(default=False)
    is_array: bool = Field(default=False)


class InputTypeDefinition(BaseModel):
    """A generated GraphQL input type."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    fields: List[InputFieldDefinition] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def array_field_names(self) -> List[str]:
        return [f.name for f in self.fields if f.is_array]


class InputTypeGenerationResult(BaseModel):
    """Root input type plus the nested input types it references."""

    model_config = _FROZEN_CONFIG

    root_input_type: Optional[InputTypeDefinition] = Field(default=None)
    nested_input_types: List[InputTypeDefinition] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.root_input_type is None

    @classmethod
    def empty(cls) -> "InputTypeGenerationResult":
        return cls()


# ---------------------------------------------------------------------------
# Resolver payloads (dumped by alias into GraphQL-shaped dicts)
# ---------------------------------------------------------------------------


class DocumentPayload(BaseModel):
    """Payload for create / read / update / replace."""

    model_config = _PAYLOAD_CONFIG

    data: Dict[str, Any]
    etag: str
    request_charge: float = 0.0


class UpsertPayload(DocumentPayload):
    was_created: bool


class RestorePayload(DocumentPayload):
    restored_at: str


class IncrementPayload(DocumentPayload):
    previous_value: float
    new_value: float


class DeletePayload(BaseModel):
    model_config = _PAYLOAD_CONFIG

    success: bool
    deleted_id: str
    request_charge: float = 0.0


class SoftDeletePayload(DeletePayload):
    etag: str
    deleted_at: Optional[str] = None
    delete_reason: Optional[str] = None
    deleted_by: Optional[str] = None


class ListPayload(BaseModel):
    model_config = _PAYLOAD_CONFIG

    items: List[Dict[str, Any]]
    continuation_token: Optional[str] = None
    has_more: bool = False
    request_charge: float = 0.0


class BatchSuccess(BaseModel):
    model_config = _PAYLOAD_CONFIG

    id: str
    data: Dict[str, Any]
    etag: str


class BatchDeleteSuccess(BaseModel):
    model_config = _PAYLOAD_CONFIG

    deleted_id: str


class BatchFailure(BaseModel):
    """One failed batch item; the batch itself still succeeds."""

    model_config = _PAYLOAD_CONFIG

    index: int
    id: Optional[str] = None
    partition_key: Optional[str] = None
    error: str


class BatchPayload(BaseModel):
    model_config = _PAYLOAD_CONFIG

    succeeded: List[Union[BatchSuccess, BatchDeleteSuccess]] = Field(default_factory=list)
    failed: List[BatchFailure] = Field(default_factory=list)
    total_request_charge: float = 0.0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_SYSTEM_FIELDS: List[str] = [
    "id",
    "_etag",
    "_ts",
    "_rid",
    "_self",
    "_attachments",
    "_createdAt",
    "_updatedAt",
    "_deleted",
    "_deletedAt",
    "_deletedBy",
    "_deleteReason",
    "_restoredAt",
]


class InferenceConfig(BaseModel):
    """Tuning knobs for the schema inferrer."""

    model_config = _SHARED_CONFIG

    required_threshold: float = Field(
        default=1.0,
        gt=0.0,
        le=1.0,
        description="Presence ratio at or above which a field is required.",
    )
    max_nesting_depth: int = Field(
        default=10,
        ge=1,
        le=64,
        description="Objects nested deeper than this collapse to JSON.",
    )


class ContainerConfig(BaseModel):
    """One sampled container and the GraphQL type it becomes."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Container name.")
    type_name: str = Field(..., min_length=1, description="GraphQL type name.")
    partition_key_path: str = Field(
        default="/pk", description="Partition-key path, e.g. '/tenantId'."
    )
    sample_size: int = Field(default=500, ge=1, le=100_000)
    sampling_strategy: SamplingStrategy = Field(default=SamplingStrategy.PARTITION)
    seed: Optional[int] = Field(
        default=None, description="Seed for the random strategy (None = unseeded)."
    )
    operations: Optional[OperationConfig] = Field(
        default=None, description="Container-level override of operation enablement."
    )
    exclude_fields: List[str] = Field(
        default_factory=list, description="Fields never exposed in input types."
    )

    @field_validator("partition_key_path")
    @classmethod
    def _leading_slash(cls, v: str) -> str:
        if not v.startswith("/") or len(v) < 2:
            raise ValueError(f"partition_key_path must look like '/field', got '{v}'.")
        return v

    @property
    def partition_key_field(self) -> str:
        """Top-level field name of the partition key ('/tenant/id' → 'tenant')."""
        return self.partition_key_path.lstrip("/").split("/")[0]


class DocSchemaConfig(BaseModel):
    """
    Master configuration for one generation run.

    A single instance, plus either live containers or sample documents,
    is all the generator needs.
    """

    model_config = _SHARED_CONFIG

    containers: List[ContainerConfig] = Field(..., min_length=1)
    operations: OperationConfig = Field(
        default_factory=OperationConfig, description="Global operation enablement."
    )
    type_operations: Dict[str, OperationConfig] = Field(
        default_factory=dict, description="Per-type operation enablement."
    )
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    system_fields: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SYSTEM_FIELDS),
        description="Fields always removed from generated input types.",
    )
    max_batch_size: int = Field(default=100, ge=1, le=10_000)
    default_list_limit: int = Field(default=100, ge=1)
    max_list_limit: int = Field(default=10_000, ge=1)

    @model_validator(mode="after")
    def _validate_unique_types(self) -> "DocSchemaConfig":
        names: List[str] = [c.type_name for c in self.containers]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate type names across containers: {dupes}")
        return self

    @model_validator(mode="after")
    def _validate_list_limits(self) -> "DocSchemaConfig":
        if self.default_list_limit > self.max_list_limit:
            raise ValueError(
                f"default_list_limit ({self.default_list_limit}) must be "
                f"<= max_list_limit ({self.max_list_limit})."
            )
        return self

    def resolve_operations(self, container: ContainerConfig) -> OperationConfig:
        """Most specific wins: container > type > global."""
        if container.operations is not None:
            return container.operations
        if container.type_name in self.type_operations:
            return self.type_operations[container.type_name]
        return self.operations

    def get_container(self, name: str) -> Optional[ContainerConfig]:
        for container in self.containers:
            if container.name == name:
                return container
        return None


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ObservedKind",
    "ScalarKind",
    "OperationKind",
    "ArrayOperationType",
    "PartitionKeyKind",
    "SamplingStrategy",
    "OrderDirection",
    "ScalarType",
    "ObjectTypeRef",
    "ArrayType",
    "InferredType",
    "InferredField",
    "ObjectTypeDefinition",
    "PartitionKeyPattern",
    "TypeConflict",
    "InferenceStats",
    "InferredSchema",
    "OperationConfig",
    "ArrayOperation",
    "InputFieldDefinition",
    "InputTypeDefinition",
    "InputTypeGenerationResult",
    "DocumentPayload",
    "UpsertPayload",
    "RestorePayload",
    "IncrementPayload",
    "DeletePayload",
    "SoftDeletePayload",
    "ListPayload",
    "BatchSuccess",
    "BatchDeleteSuccess",
    "BatchFailure",
    "BatchPayload",
    "DEFAULT_SYSTEM_FIELDS",
    "InferenceConfig",
    "ContainerConfig",
    "DocSchemaConfig",
]

logger.debug("docschema.models loaded — %d public symbols.", len(__all__))
