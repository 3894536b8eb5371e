# File: docschema/sdl.py
"""
docschema - SDL Rendering
=========================
Pure string rendering of GraphQL schema-definition text.

* ``render_type`` / ``render_output_types`` turn an ``InferredSchema`` into
  ``type`` blocks, one line per field, in the schema's field order.
* ``render_input_type`` turns an ``InputTypeDefinition`` into an ``input``
  block.
* The ``*_SDL`` constants are the shared definitions every composed schema
  carries exactly once (``scalar JSON``, ``ArrayOperation`` ...).

**Rendering contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Blocks are ``<keyword> Name {\\n  field: Type\\n}``; consecutive
      blocks are separated by one blank line.
    - Output is a pure function of the input models: identical schemas give
      byte-identical text.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from docschema.models import (
    ArrayOperationType,
    ArrayType,
    InferredSchema,
    InputTypeDefinition,
    ObjectTypeDefinition,
    ObjectTypeRef,
    OrderDirection,
    ScalarKind,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.sdl")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "  "

SCALAR_SDL_NAMES: Dict[str, str] = {
    ScalarKind.STRING.value: "String",
    ScalarKind.INTEGER.value: "Int",
    ScalarKind.FLOAT.value: "Float",
    ScalarKind.BOOLEAN.value: "Boolean",
    ScalarKind.UNKNOWN.value: "JSON",
}


# ---------------------------------------------------------------------------
# Block primitives
# ---------------------------------------------------------------------------


def render_block(keyword: str, name: str, lines: Iterable[str]) -> str:
    """``keyword Name {`` + indented lines + ``}``."""
    parts: List[str] = [f"{keyword} {name} {{"]
    parts.extend(f"{_INDENT}{line}" for line in lines)
    parts.append("}")
    return "\n".join(parts)


def render_fields_block(keyword: str, name: str, fields: Sequence[Tuple[str, str]]) -> str:
    """Block whose lines are ``field: Type`` pairs."""
    return render_block(keyword, name, (f"{fname}: {ftype}" for fname, ftype in fields))


def join_blocks(blocks: Iterable[str]) -> str:
    return "\n\n".join(b for b in blocks if b)


# ---------------------------------------------------------------------------
# Output types
# ---------------------------------------------------------------------------


def type_reference(inferred: Any) -> str:
    """SDL reference for an inferred type, without the non-null marker."""
    if isinstance(inferred, ArrayType):
        return f"[{type_reference(inferred.element)}]"
    if isinstance(inferred, ObjectTypeRef):
        return inferred.name
    scalar: Any = inferred.scalar
    return SCALAR_SDL_NAMES[getattr(scalar, "value", scalar)]


def render_type(type_def: ObjectTypeDefinition) -> str:
    """Render one ``type`` block, keeping the definition's field order."""
    fields: List[Tuple[str, str]] = [
        (fld.name, type_reference(fld.type) + ("!" if fld.is_required else ""))
        for fld in type_def.fields
    ]
    return render_fields_block("type", type_def.name, fields)


def render_output_types(schema: InferredSchema) -> str:
    """Root type first, then nested types in the schema's (pre-)order."""
    sdl: str = join_blocks(render_type(t) for t in schema.all_types)
    logger.debug(
        "Rendered %d output type(s) for %s (%d chars).",
        len(schema.all_types),
        schema.root_type.name,
        len(sdl),
    )
    return sdl


# ---------------------------------------------------------------------------
# Input types
# ---------------------------------------------------------------------------


def render_input_type(input_def: InputTypeDefinition) -> str:
    return render_fields_block(
        "input", input_def.name, [(f.name, f.type) for f in input_def.fields]
    )


# ---------------------------------------------------------------------------
# Shared definitions (emitted once per composed schema)
# ---------------------------------------------------------------------------

JSON_SCALAR_SDL: str = "scalar JSON"

ARRAY_OPERATION_TYPE_SDL: str = render_block(
    "enum", "ArrayOperationType", [t.value.upper() for t in ArrayOperationType]
)

ARRAY_OPERATION_SDL: str = render_fields_block(
    "input",
    "ArrayOperation",
    [
        ("type", "ArrayOperationType!"),
        ("value", "JSON"),
        ("index", "Int"),
        ("deleteCount", "Int"),
    ],
)

ORDER_DIRECTION_SDL: str = render_block(
    "enum", "OrderDirection", [d.value for d in OrderDirection]
)

BATCH_FAILURE_SDL: str = render_fields_block(
    "type",
    "BatchFailure",
    [
        ("index", "Int!"),
        ("id", "String"),
        ("partitionKey", "String"),
        ("error", "String!"),
    ],
)

BATCH_DELETE_SUCCESS_SDL: str = render_fields_block(
    "type", "BatchDeleteSuccess", [("deletedId", "String!")]
)

DOCUMENT_REFERENCE_INPUT_SDL: str = render_fields_block(
    "input",
    "DocumentReferenceInput",
    [("id", "String!"), ("partitionKey", "String!")],
)

SHARED_DEFINITIONS: Tuple[Tuple[str, str], ...] = (
    ("JSON", JSON_SCALAR_SDL),
    ("ArrayOperationType", ARRAY_OPERATION_TYPE_SDL),
    ("ArrayOperation", ARRAY_OPERATION_SDL),
    ("OrderDirection", ORDER_DIRECTION_SDL),
    ("BatchFailure", BATCH_FAILURE_SDL),
    ("BatchDeleteSuccess", BATCH_DELETE_SUCCESS_SDL),
    ("DocumentReferenceInput", DOCUMENT_REFERENCE_INPUT_SDL),
)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SCALAR_SDL_NAMES",
    "render_block",
    "render_fields_block",
    "join_blocks",
    "type_reference",
    "render_type",
    "render_output_types",
    "render_input_type",
    "JSON_SCALAR_SDL",
    "ARRAY_OPERATION_TYPE_SDL",
    "ARRAY_OPERATION_SDL",
    "ORDER_DIRECTION_SDL",
    "BATCH_FAILURE_SDL",
    "BATCH_DELETE_SUCCESS_SDL",
    "DOCUMENT_REFERENCE_INPUT_SDL",
    "SHARED_DEFINITIONS",
]

logger.debug("docschema.sdl loaded — %d public symbols.", len(__all__))
