# File: docschema/array_ops.py
"""
docschema - Array Operation Processor
=====================================
Applies one ``ArrayOperation`` to a list and returns a new list.

    set      value                   replace entirely (scalar → [value])
    append   value                   current + value(s)
    prepend  value                   value(s) + current
    remove   value                   drop every element equal to any value
    insert   value, index 0..len     insert value at index
    splice   index 0..len-1,         remove deleteCount (default 1) at index,
             deleteCount >= 0,       optionally inserting value(s) there
             value?

The input list is never mutated and a failing operation never partially
applies: every check runs before the result is built.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from docschema.errors import ValidationError
from docschema.models import ArrayOperation, ArrayOperationType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.array_ops")

_COMPONENT: str = "array-operations"


def _fail(message: str, kind: str) -> ValidationError:
    return ValidationError(message, component=_COMPONENT, metadata={"operation": kind})


def _as_values(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_array_operation(operation: Union[ArrayOperation, Mapping]) -> ArrayOperation:
    """Coerce a GraphQL argument mapping into an ``ArrayOperation``."""
    if isinstance(operation, ArrayOperation):
        return operation
    if not isinstance(operation, Mapping):
        raise _fail(
            f"Array operation must be an object, got {type(operation).__name__}",
            "unknown",
        )
    raw_kind: str = str(operation.get("type", ""))
    try:
        return ArrayOperation.model_validate(dict(operation))
    except PydanticValidationError as exc:
        if raw_kind.lower() not in [t.value for t in ArrayOperationType]:
            raise _fail(f"Invalid array operation type: {raw_kind}", raw_kind.lower()) from exc
        first: str = exc.errors()[0]["msg"] if exc.errors() else str(exc)
        raise _fail(f"Invalid {raw_kind.upper()} operation: {first}", raw_kind.lower()) from exc


def apply_array_operation(
    current: Sequence[Any],
    operation: Union[ArrayOperation, Mapping],
) -> List[Any]:
    """
    Return the result of applying *operation* to *current*.

    Raises:
        ValidationError: missing parameter, index out of range, negative
                         ``deleteCount`` or unknown operation type.  The
                         error metadata carries ``{"operation": kind}``.
    """
    op: ArrayOperation = parse_array_operation(operation)
    kind: str = ArrayOperationType(op.type).value
    label: str = kind.upper()
    items: List[Any] = list(current)

    if kind != ArrayOperationType.SPLICE.value and op.value is None:
        raise _fail(f"{label} operation requires a value", kind)

    if kind == ArrayOperationType.SET.value:
        result: List[Any] = _as_values(op.value)

    elif kind == ArrayOperationType.APPEND.value:
        result = items + _as_values(op.value)

    elif kind == ArrayOperationType.PREPEND.value:
        result = _as_values(op.value) + items

    elif kind == ArrayOperationType.REMOVE.value:
        unwanted: List[Any] = _as_values(op.value)
        result = [item for item in items if item not in unwanted]

    elif kind == ArrayOperationType.INSERT.value:
        if op.index is None:
            raise _fail("INSERT operation requires an index", kind)
        if op.index < 0 or op.index > len(items):
            raise _fail(f"INSERT index {op.index} out of bounds (0-{len(items)})", kind)
        result = items[: op.index] + [op.value] + items[op.index:]

    else:
        if op.index is None:
            raise _fail("SPLICE operation requires an index", kind)
        if op.index < 0 or op.index >= len(items):
            raise _fail(
                f"SPLICE index {op.index} out of bounds (0-{len(items) - 1})", kind
            )
        delete_count: int = 1 if op.delete_count is None else op.delete_count
        if delete_count < 0:
            raise _fail("SPLICE deleteCount must be non-negative", kind)
        replacement: List[Any] = [] if op.value is None else _as_values(op.value)
        result = items[: op.index] + replacement + items[op.index + delete_count:]

    logger.debug("Applied %s: %d → %d element(s).", kind, len(items), len(result))
    return result


def is_array_operation(value: Any) -> bool:
    """True for a mapping that looks like an ``ArrayOperation`` argument."""
    return isinstance(value, ArrayOperation) or (isinstance(value, Mapping) and "type" in value)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "apply_array_operation",
    "parse_array_operation",
    "is_array_operation",
]

logger.debug("docschema.array_ops loaded — %d public symbols.", len(__all__))
