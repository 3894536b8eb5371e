# File: docschema/composer.py
"""
docschema - Schema Composer
===========================
Assembles one complete SDL document from any number of inferred types.

Emission order::

    1. shared definitions   scalar JSON, ArrayOperationType, ArrayOperation,
                            OrderDirection, BatchFailure, BatchDeleteSuccess,
                            DocumentReferenceInput
    2. per type, in add() order
         output types → input types → payload types →
         <T>BatchSuccess → <T>Connection
    3. type Query, type Mutation   (merged across all types)

Every block is keyed by its type name; a name already emitted is skipped,
which is how ``Create<T>Input`` is shared by ``create`` and ``createMany``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from docschema.inputs import (
    batch_item_input_name,
    generate_payload_sdl,
    input_blocks,
    input_type_name,
    list_field_name,
    operation_field_name,
    payload_type_name,
)
from docschema.models import InferredSchema, OperationConfig, OperationKind
from docschema.sdl import (
    SHARED_DEFINITIONS,
    join_blocks,
    render_fields_block,
    render_type,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.composer")

_KEY_ARGS: str = "id: String!, partitionKey: String!"


def _mutation_arguments(type_name: str, op: OperationKind) -> str:
    """Argument list of the root mutation field for *op*."""
    if op is OperationKind.CREATE:
        return f"input: {input_type_name(type_name, op)}!"
    if op in (OperationKind.UPDATE, OperationKind.REPLACE):
        return f"{_KEY_ARGS}, input: {input_type_name(type_name, op)}!, etag: String"
    if op is OperationKind.UPSERT:
        return f"{_KEY_ARGS}, input: {input_type_name(type_name, op)}!"
    if op in (OperationKind.DELETE, OperationKind.RESTORE):
        return f"{_KEY_ARGS}, etag: String"
    if op is OperationKind.SOFT_DELETE:
        return f"{_KEY_ARGS}, etag: String, deleteReason: String, deletedBy: String"
    if op in (OperationKind.INCREMENT, OperationKind.DECREMENT):
        return f"{_KEY_ARGS}, field: String!, by: Float, etag: String"
    if op is OperationKind.CREATE_MANY:
        return f"input: [{input_type_name(type_name, op)}!]!"
    if op is OperationKind.UPDATE_MANY:
        return f"input: [{batch_item_input_name(type_name)}!]!"
    return "input: [DocumentReferenceInput!]!"


@dataclass(frozen=True, slots=True)
class ComposedType:
    """One root type registered with the composer."""

    schema: InferredSchema
    operation_config: OperationConfig = field(default_factory=OperationConfig)
    exclude_fields: Tuple[str, ...] = ()

    @property
    def type_name(self) -> str:
        return self.schema.root_type.name


class SchemaComposer:
    """
    Collects inferred types and renders the merged SDL document.

    Usage::

        composer = SchemaComposer(system_fields=config.system_fields)
        composer.add(file_schema, OperationConfig(exclude=["delete"]))
        sdl = composer.compose()
    """

    def __init__(self, system_fields: Optional[Iterable[str]] = None) -> None:
        self._system_fields: Optional[List[str]] = (
            list(system_fields) if system_fields is not None else None
        )
        self._types: List[ComposedType] = []

    def add(
        self,
        schema: InferredSchema,
        operation_config: Optional[OperationConfig] = None,
        exclude_fields: Sequence[str] = (),
    ) -> "SchemaComposer":
        self._types.append(
            ComposedType(
                schema=schema,
                operation_config=operation_config or OperationConfig(),
                exclude_fields=tuple(exclude_fields),
            )
        )
        return self

    @property
    def type_names(self) -> List[str]:
        return [t.type_name for t in self._types]

    # -- Rendering ----------------------------------------------------------

    def compose(self) -> str:
        """Render the full SDL document (deterministic for identical input)."""
        blocks: Dict[str, str] = {}

        def emit(name: str, sdl: str) -> None:
            if not sdl:
                return
            if name in blocks:
                if blocks[name] != sdl:
                    logger.warning("Type '%s' defined twice with different shapes; keeping the first.", name)
                return
            blocks[name] = sdl

        for name, sdl in SHARED_DEFINITIONS:
            emit(name, sdl)

        query_fields: List[Tuple[str, str]] = []
        mutation_fields: List[Tuple[str, str]] = []

        for composed in self._types:
            self._emit_type(composed, emit, query_fields, mutation_fields)

        if not query_fields:
            query_fields.append(("_empty", "Boolean"))
        emit("Query", render_fields_block("type", "Query", query_fields))
        if mutation_fields:
            emit("Mutation", render_fields_block("type", "Mutation", mutation_fields))

        sdl: str = join_blocks(blocks.values()) + "\n"
        logger.info(
            "Composed SDL for %d type(s): %d block(s), %d root field(s).",
            len(self._types),
            len(blocks),
            len(query_fields) + len(mutation_fields),
        )
        return sdl

    def _emit_type(
        self,
        composed: ComposedType,
        emit: Callable[[str, str], None],
        query_fields: List[Tuple[str, str]],
        mutation_fields: List[Tuple[str, str]],
    ) -> None:
        type_name: str = composed.type_name
        config: OperationConfig = composed.operation_config
        enabled: List[OperationKind] = [
            OperationKind(op) for op in config.enabled_operations()
        ]

        for type_def in composed.schema.all_types:
            emit(type_def.name, render_type(type_def))

        for op in enabled:
            for name, sdl in input_blocks(
                composed.schema,
                type_name,
                op,
                config,
                composed.exclude_fields,
                self._system_fields,
            ):
                emit(name, sdl)

        for op in enabled:
            emit(payload_type_name(type_name, op), generate_payload_sdl(type_name, op, config))

        if OperationKind.CREATE_MANY in enabled or OperationKind.UPDATE_MANY in enabled:
            emit(
                f"{type_name}BatchSuccess",
                render_fields_block(
                    "type",
                    f"{type_name}BatchSuccess",
                    [("id", "String!"), ("data", f"{type_name}!"), ("etag", "String!")],
                ),
            )

        if OperationKind.READ in enabled:
            emit(
                f"{type_name}Connection",
                render_fields_block(
                    "type",
                    f"{type_name}Connection",
                    [
                        ("items", f"[{type_name}!]!"),
                        ("continuationToken", "String"),
                        ("hasMore", "Boolean!"),
                        ("requestCharge", "Float!"),
                    ],
                ),
            )
            query_fields.append(
                (
                    f"{operation_field_name(type_name, OperationKind.READ)}({_KEY_ARGS})",
                    payload_type_name(type_name, OperationKind.READ),
                )
            )
            query_fields.append(
                (
                    f"{list_field_name(type_name)}(limit: Int, partitionKey: String, "
                    f"orderBy: String, orderDirection: OrderDirection, continuationToken: String)",
                    f"{type_name}Connection!",
                )
            )

        for op in enabled:
            if op is OperationKind.READ:
                continue
            mutation_fields.append(
                (
                    f"{operation_field_name(type_name, op)}({_mutation_arguments(type_name, op)})",
                    f"{payload_type_name(type_name, op)}!",
                )
            )


def compose_schema(
    schemas: Sequence[InferredSchema],
    operation_config: Optional[OperationConfig] = None,
    system_fields: Optional[Iterable[str]] = None,
) -> str:
    """Shortcut: one operation config for every schema."""
    composer: SchemaComposer = SchemaComposer(system_fields)
    for schema in schemas:
        composer.add(schema, operation_config)
    return composer.compose()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ComposedType",
    "SchemaComposer",
    "compose_schema",
]

logger.debug("docschema.composer loaded — %d public symbols.", len(__all__))
