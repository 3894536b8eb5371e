# File: docschema/validators.py
"""
docschema - Configuration, Schema & Argument Validators
=======================================================
Two families of checks live here.

**Accumulating checks** (``validate_config``, ``validate_schema``,
``validate_full``) inspect a whole ``DocSchemaConfig`` / ``InferredSchema``
and collect every problem into a ``ValidationResult``.  Pydantic already
enforces per-field structure; these add cross-entity semantics such as
GraphQL naming rules and collisions with the built-in shared types.

**Guard checks** (``require_identifier``, ``validate_partition_key``,
``validate_list_limit`` ...) run inside resolvers before any container
I/O and raise ``docschema.errors.ValidationError`` on the first problem.

Usage by downstream modules:
    from docschema.validators import validate_config
    result = validate_config(config)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Set

from docschema.errors import ValidationError
from docschema.models import (
    DocSchemaConfig,
    InferredSchema,
    OrderDirection,
    SamplingStrategy,
)
from docschema.utils import is_graphql_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances; truthy when error-free."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> Set[str]:
        return {item.code for item in self._items}

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Names the composed SDL already defines once for every type.
RESERVED_TYPE_NAMES: FrozenSet[str] = frozenset(
    {
        "String",
        "Int",
        "Float",
        "Boolean",
        "ID",
        "JSON",
        "Query",
        "Mutation",
        "Subscription",
        "ArrayOperation",
        "ArrayOperationType",
        "OrderDirection",
        "BatchFailure",
        "BatchDeleteSuccess",
        "DocumentReferenceInput",
    }
)

MAX_PARTITION_KEY_LENGTH: int = 2048
MAX_CONTINUATION_TOKEN_LENGTH: int = 8192
MAX_DOCUMENT_BYTES: int = 2 * 1024 * 1024

_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f]")
_ORDER_BY_RE: re.Pattern[str] = re.compile(r"^[A-Za-z0-9_-]+$")
_PARTITION_PATH_SEGMENT_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ---------------------------------------------------------------------------
# Accumulating checks: configuration
# ---------------------------------------------------------------------------


def validate_type_names(config: DocSchemaConfig) -> ValidationResult:
    """Every container type name must be a legal, non-reserved GraphQL name."""
    result: ValidationResult = ValidationResult()

    for container in config.containers:
        ctx: Dict[str, Any] = {"container": container.name, "type_name": container.type_name}
        name: str = container.type_name

        if not is_graphql_name(name):
            result.add_error(
                "INVALID_TYPE_NAME",
                f"Type name '{name}' is not a valid GraphQL name.",
                ctx,
            )
            continue

        if name in RESERVED_TYPE_NAMES:
            result.add_error(
                "TYPE_NAME_RESERVED",
                f"Type name '{name}' collides with a built-in or shared SDL type.",
                ctx,
            )

        if not name[0].isupper():
            result.add_warning(
                "TYPE_NAME_NOT_PASCAL_CASE",
                f"Type name '{name}' does not start with an upper-case letter.",
                ctx,
            )

    logger.debug(
        "validate_type_names: checked %d container(s), %d issue(s).",
        len(config.containers),
        len(result),
    )
    return result


def validate_partition_paths(config: DocSchemaConfig) -> ValidationResult:
    """Partition paths must be ``/segment[/segment...]`` of plain identifiers."""
    result: ValidationResult = ValidationResult()

    for container in config.containers:
        segments: List[str] = container.partition_key_path.strip("/").split("/")
        ctx: Dict[str, Any] = {
            "container": container.name,
            "partition_key_path": container.partition_key_path,
        }
        if not all(_PARTITION_PATH_SEGMENT_RE.match(s) for s in segments):
            result.add_error(
                "INVALID_PARTITION_PATH",
                f"Partition key path '{container.partition_key_path}' of container "
                f"'{container.name}' contains an invalid segment.",
                ctx,
            )
        elif len(segments) > 1:
            result.add_warning(
                "NESTED_PARTITION_PATH",
                f"Container '{container.name}' uses a nested partition key; "
                f"partition sampling falls back to 'top'.",
                ctx,
            )
        if container.partition_key_field in container.exclude_fields:
            result.add_warning(
                "PARTITION_FIELD_EXCLUDED",
                f"Partition field '{container.partition_key_field}' is excluded from "
                f"inputs of '{container.type_name}'; creates will fail.",
                ctx,
            )

    return result


def validate_operation_overrides(config: DocSchemaConfig) -> ValidationResult:
    """Per-type operation configs must target a configured type."""
    result: ValidationResult = ValidationResult()
    type_names: Set[str] = {c.type_name for c in config.containers}

    for type_name in config.type_operations:
        if type_name not in type_names:
            result.add_warning(
                "OPERATIONS_UNKNOWN_TYPE",
                f"Operation override defined for type '{type_name}' "
                f"which no container produces.",
                {"type_name": type_name},
            )

    for container in config.containers:
        enabled: List[str] = config.resolve_operations(container).enabled_operations()
        if not enabled:
            result.add_warning(
                "NO_OPERATIONS_ENABLED",
                f"Every operation is disabled for '{container.type_name}'; "
                f"only the output type will be emitted.",
                {"type_name": container.type_name},
            )

    return result


def validate_sampling(config: DocSchemaConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for container in config.containers:
        if container.seed is not None and container.sampling_strategy != SamplingStrategy.RANDOM.value:
            result.add_info(
                "SEED_UNUSED",
                f"Container '{container.name}' sets a seed but samples with "
                f"'{container.sampling_strategy}'.",
                {"container": container.name},
            )
    return result


def validate_system_fields(config: DocSchemaConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if "id" not in config.system_fields:
        result.add_warning(
            "ID_NOT_SYSTEM_FIELD",
            "'id' is not a system field; callers could overwrite generated ids.",
        )
    seen: Set[str] = set()
    for name in config.system_fields:
        if name in seen:
            result.add_info(
                "DUPLICATE_SYSTEM_FIELD",
                f"System field '{name}' is listed more than once.",
                {"field": name},
            )
        seen.add(name)
    return result


def validate_config(config: DocSchemaConfig) -> ValidationResult:
    """Run every configuration check."""
    result: ValidationResult = ValidationResult()
    result.merge(validate_type_names(config))
    result.merge(validate_partition_paths(config))
    result.merge(validate_operation_overrides(config))
    result.merge(validate_sampling(config))
    result.merge(validate_system_fields(config))
    return result


# ---------------------------------------------------------------------------
# Accumulating checks: inferred schemas
# ---------------------------------------------------------------------------


def validate_schema(schema: InferredSchema) -> ValidationResult:
    """
    Flag inferred fields that cannot be expressed as-is in GraphQL.

    Inference never fails on data, so these are warnings and infos only.
    """
    result: ValidationResult = ValidationResult()

    for type_def in schema.all_types:
        for fld in type_def.fields:
            if not is_graphql_name(fld.name):
                result.add_warning(
                    "FIELD_NAME_NOT_GRAPHQL",
                    f"Field '{fld.name}' on '{type_def.name}' is not a legal "
                    f"GraphQL field name.",
                    {"type": type_def.name, "field": fld.name},
                )
        if not type_def.fields:
            result.add_warning(
                "EMPTY_TYPE",
                f"Type '{type_def.name}' has no fields.",
                {"type": type_def.name},
            )

    for conflict in schema.conflicts:
        result.add_info(
            "TYPE_CONFLICT",
            f"Path '{conflict.path}' observed as {'/'.join(conflict.observed_kinds)}; "
            f"resolved as {conflict.resolved_as}.",
            {"type": schema.root_type.name, "path": conflict.path},
        )

    if schema.stats.documents_analyzed == 0:
        result.add_warning(
            "NO_SAMPLES",
            f"No documents were analysed for '{schema.root_type.name}'.",
            {"type": schema.root_type.name},
        )

    return result


def validate_full(
    schemas: Mapping[str, InferredSchema],
    config: DocSchemaConfig,
    *,
    include_config: bool = True,
) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs the config checks, the per-schema checks, and the cross-schema
    check that no two schemas define the same type name.  Pass
    ``include_config=False`` when the config was already validated.
    """
    logger.info("Starting full validation — %d schema(s).", len(schemas))

    result: ValidationResult = ValidationResult()
    if include_config:
        result.merge(validate_config(config))

    owners: Dict[str, str] = {}
    for root_name, schema in schemas.items():
        result.merge(validate_schema(schema))
        for type_def in schema.all_types:
            previous: Optional[str] = owners.get(type_def.name)
            if previous is not None and previous != root_name:
                result.add_error(
                    "TYPE_NAME_COLLISION",
                    f"Type '{type_def.name}' is produced by both '{previous}' "
                    f"and '{root_name}'.",
                    {"type": type_def.name},
                )
            owners.setdefault(type_def.name, root_name)

    if result.has_errors:
        logger.error("Validation FAILED with %d error(s). %s", result.error_count, result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Guard checks (raise before any I/O)
# ---------------------------------------------------------------------------


def require_identifier(value: Any, field_name: str, component: str) -> str:
    """Non-empty, non-whitespace-only string."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} is required and must be a non-empty string",
            component=component,
            metadata={"field": field_name},
        )
    return value


def validate_partition_key(value: Any, component: str) -> str:
    """Identifier rules plus a length cap and no control characters."""
    key: str = require_identifier(value, "partitionKey", component)
    if len(key) > MAX_PARTITION_KEY_LENGTH:
        raise ValidationError(
            f"partitionKey exceeds {MAX_PARTITION_KEY_LENGTH} characters",
            component=component,
            metadata={"field": "partitionKey", "length": len(key)},
        )
    if _CONTROL_CHAR_RE.search(key):
        raise ValidationError(
            "partitionKey contains control characters",
            component=component,
            metadata={"field": "partitionKey"},
        )
    return key


def validate_list_limit(value: Any, default: int, maximum: int, component: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= maximum:
        raise ValidationError(
            f"limit must be an integer between 1 and {maximum}",
            component=component,
            metadata={"field": "limit", "value": value},
        )
    return value


def validate_order_by(value: Any, component: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not _ORDER_BY_RE.match(value):
        raise ValidationError(
            f"orderBy '{value}' must contain only letters, digits, '_' or '-'",
            component=component,
            metadata={"field": "orderBy"},
        )
    return value


def validate_order_direction(value: Any, component: str) -> str:
    if value is None:
        return OrderDirection.ASC.value
    candidate: str = str(value).upper()
    if candidate not in (OrderDirection.ASC.value, OrderDirection.DESC.value):
        raise ValidationError(
            f"orderDirection must be ASC or DESC, got '{value}'",
            component=component,
            metadata={"field": "orderDirection"},
        )
    return candidate


def validate_finite_number(value: Any, field_name: str, component: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(
            f"{field_name} must be a finite number",
            component=component,
            metadata={"field": field_name, "value": value},
        )
    return value


def validate_continuation_token(value: Any, component: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > MAX_CONTINUATION_TOKEN_LENGTH:
        raise ValidationError(
            f"continuationToken must be a string of at most "
            f"{MAX_CONTINUATION_TOKEN_LENGTH} characters",
            component=component,
            metadata={"field": "continuationToken"},
        )
    return value


def validate_document_size(
    document: Mapping[str, Any],
    component: str,
    max_bytes: int = MAX_DOCUMENT_BYTES,
) -> int:
    """Serialised UTF-8 size of *document*; raises when it exceeds *max_bytes*."""
    size: int = len(json.dumps(document, default=str).encode("utf-8"))
    if size > max_bytes:
        raise ValidationError(
            f"Document size {size} bytes exceeds the {max_bytes}-byte limit",
            component=component,
            metadata={"size": size, "maxSize": max_bytes},
        )
    return size


# ---------------------------------------------------------------------------
# ETag helpers
# ---------------------------------------------------------------------------


def normalize_etag(etag: Optional[str]) -> Optional[str]:
    """Strip whitespace and one layer of surrounding quotes; never parsed."""
    if etag is None:
        return None
    cleaned: str = etag.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] == '"':
        cleaned = cleaned[1:-1]
    return cleaned.strip()


def etags_match(provided: Optional[str], current: Optional[str]) -> bool:
    return normalize_etag(provided) == normalize_etag(current)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "RESERVED_TYPE_NAMES",
    "MAX_PARTITION_KEY_LENGTH",
    "MAX_CONTINUATION_TOKEN_LENGTH",
    "MAX_DOCUMENT_BYTES",
    "validate_type_names",
    "validate_partition_paths",
    "validate_operation_overrides",
    "validate_sampling",
    "validate_system_fields",
    "validate_config",
    "validate_schema",
    "validate_full",
    "require_identifier",
    "validate_partition_key",
    "validate_list_limit",
    "validate_order_by",
    "validate_order_direction",
    "validate_finite_number",
    "validate_continuation_token",
    "validate_document_size",
    "normalize_etag",
    "etags_match",
]

logger.debug("docschema.validators loaded — %d public symbols.", len(__all__))
