# File: docschema/inputs.py
"""
docschema - Input & Payload Type Generator
==========================================
Derives the GraphQL ``input`` and payload ``type`` definitions for each
enabled operation of an inferred type.

Input rules
-----------
create / upsert / createMany
    Remaining root fields keep their required flag.  Object fields recurse
    into ``<Operation><NestedType>Input`` types.
update / replace / updateMany
    Every field is optional.  Top-level array fields take the shared
    ``ArrayOperation`` input instead of a literal list.

System fields and caller-excluded fields are removed from the root input
and from every nested input type.  Nested input types are registered in an
explicit ``processed`` registry (input name → definition) threaded through
the recursion, so a nested type referenced from several places is generated
once per pass.

Payload names follow ``<Operation><Type>Payload``; batch operations use
``Batch<Operation>Many<Type>Payload``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from docschema.models import (
    DEFAULT_SYSTEM_FIELDS,
    ArrayType,
    InferredField,
    InferredSchema,
    InputFieldDefinition,
    InputTypeDefinition,
    InputTypeGenerationResult,
    ObjectTypeDefinition,
    ObjectTypeRef,
    OperationConfig,
    OperationKind,
)
from docschema.sdl import (
    SCALAR_SDL_NAMES,
    join_blocks,
    render_fields_block,
    render_input_type,
)
from docschema.utils import capitalize_first, to_camel_case, to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.inputs")

# ---------------------------------------------------------------------------
# Operation tables
# ---------------------------------------------------------------------------

# Operations that take a document body, and the input prefix they share.
INPUT_PREFIXES: Dict[str, str] = {
    OperationKind.CREATE.value: "Create",
    OperationKind.UPSERT.value: "Upsert",
    OperationKind.UPDATE.value: "Update",
    OperationKind.REPLACE.value: "Replace",
    OperationKind.CREATE_MANY.value: "Create",
    OperationKind.UPDATE_MANY.value: "Update",
}

_PARTIAL_OPERATIONS: Set[str] = {
    OperationKind.UPDATE.value,
    OperationKind.REPLACE.value,
    OperationKind.UPDATE_MANY.value,
}

BATCH_OPERATIONS: Set[str] = {
    OperationKind.CREATE_MANY.value,
    OperationKind.UPDATE_MANY.value,
    OperationKind.DELETE_MANY.value,
}

_DOCUMENT_FIELDS: Tuple[Tuple[str, str], ...] = (("etag", "String!"),)


def _op_key(operation: Union[OperationKind, str]) -> str:
    return OperationKind(operation).value


def input_type_name(type_name: str, operation: Union[OperationKind, str]) -> Optional[str]:
    """``Create<T>Input`` style name, or None for operations without a body."""
    prefix: Optional[str] = INPUT_PREFIXES.get(_op_key(operation))
    if prefix is None:
        return None
    return f"{prefix}{type_name}Input"


def payload_type_name(type_name: str, operation: Union[OperationKind, str]) -> str:
    """
    Examples:
        >>> payload_type_name("File", "softDelete")
        'SoftDeleteFilePayload'
        >>> payload_type_name("File", "createMany")
        'BatchCreateManyFilePayload'
    """
    key: str = _op_key(operation)
    if key in BATCH_OPERATIONS:
        base: str = capitalize_first(key[: -len("Many")])
        return f"Batch{base}Many{type_name}Payload"
    return f"{capitalize_first(key)}{type_name}Payload"


def batch_item_input_name(type_name: str) -> str:
    return f"UpdateMany{type_name}ItemInput"


def operation_field_name(type_name: str, operation: Union[OperationKind, str]) -> str:
    """
    Root field name for an operation.

    Examples:
        >>> operation_field_name("File", "read")
        'file'
        >>> operation_field_name("File", "softDelete")
        'softDeleteFile'
    """
    key: str = _op_key(operation)
    if key == OperationKind.READ.value:
        return to_camel_case(type_name)
    return f"{key}{type_name}"


def list_field_name(type_name: str) -> str:
    """Plural query name, e.g. ``File`` → ``files``."""
    return to_plural(to_camel_case(type_name))


# ---------------------------------------------------------------------------
# InputTypeGenerator
# ---------------------------------------------------------------------------


class InputTypeGenerator:
    """
    Builds ``InputTypeGenerationResult`` values from an ``InferredSchema``.

    Configuration (the system-field set) is passed in, never read from
    module state, so instances are cheap and side-effect free.
    """

    def __init__(self, system_fields: Optional[Iterable[str]] = None) -> None:
        self._system_fields: Set[str] = set(
            DEFAULT_SYSTEM_FIELDS if system_fields is None else system_fields
        )

    def generate(
        self,
        schema: InferredSchema,
        root_input_type_name: str,
        operation: Union[OperationKind, str],
        operation_config: Optional[OperationConfig] = None,
        exclude_fields: Sequence[str] = (),
        processed: Optional[Dict[str, InputTypeDefinition]] = None,
    ) -> InputTypeGenerationResult:
        """
        Generate the root input type plus its nested input types.

        Returns the empty contract when *operation* is disabled or takes no
        document body.
        """
        key: str = _op_key(operation)
        config: OperationConfig = operation_config or OperationConfig()
        if not config.is_enabled(key):
            logger.debug("Operation %s disabled for %s; no input.", key, schema.root_type.name)
            return InputTypeGenerationResult.empty()
        prefix: Optional[str] = INPUT_PREFIXES.get(key)
        if prefix is None:
            return InputTypeGenerationResult.empty()

        registry: Dict[str, InputTypeDefinition] = {} if processed is None else processed
        nested: List[InputTypeDefinition] = []
        partial: bool = key in _PARTIAL_OPERATIONS
        excluded: Set[str] = self._system_fields | set(exclude_fields)

        root_fields: List[InputFieldDefinition] = [
            self._convert_field(fld, schema, prefix, partial, True, excluded, registry, nested)
            for fld in schema.root_type.fields
            if fld.name not in excluded
        ]

        return InputTypeGenerationResult(
            root_input_type=InputTypeDefinition(name=root_input_type_name, fields=root_fields),
            nested_input_types=nested,
        )

    # -- Internal -----------------------------------------------------------

    def _convert_field(
        self,
        fld: InferredField,
        schema: InferredSchema,
        prefix: str,
        partial: bool,
        top_level: bool,
        excluded: Set[str],
        registry: Dict[str, InputTypeDefinition],
        nested: List[InputTypeDefinition],
    ) -> InputFieldDefinition:
        if partial and top_level and fld.is_array:
            return InputFieldDefinition(
                name=fld.name, type="ArrayOperation", required=False, is_array=True
            )

        reference: str = self._input_reference(
            fld.type, schema, prefix, partial, excluded, registry, nested
        )
        required: bool = fld.is_required and not partial
        return InputFieldDefinition(
            name=fld.name,
            type=reference + ("!" if required else ""),
            required=required,
            is_array=fld.is_array,
        )

    def _input_reference(
        self,
        inferred: Any,
        schema: InferredSchema,
        prefix: str,
        partial: bool,
        excluded: Set[str],
        registry: Dict[str, InputTypeDefinition],
        nested: List[InputTypeDefinition],
    ) -> str:
        if isinstance(inferred, ArrayType):
            inner: str = self._input_reference(
                inferred.element, schema, prefix, partial, excluded, registry, nested
            )
            return f"[{inner}]"
        if isinstance(inferred, ObjectTypeRef):
            return self._nested_input(
                inferred.name, schema, prefix, partial, excluded, registry, nested
            )
        scalar: Any = inferred.scalar
        return SCALAR_SDL_NAMES[getattr(scalar, "value", scalar)]

    def _nested_input(
        self,
        output_name: str,
        schema: InferredSchema,
        prefix: str,
        partial: bool,
        excluded: Set[str],
        registry: Dict[str, InputTypeDefinition],
        nested: List[InputTypeDefinition],
    ) -> str:
        name: str = f"{prefix}{output_name}Input"
        if name in registry:
            return name

        type_def: Optional[ObjectTypeDefinition] = schema.get_type(output_name)
        # placeholder first: breaks cycles and fixes pre-order position
        registry[name] = InputTypeDefinition(name=name)
        slot: int = len(nested)
        nested.append(registry[name])

        fields: List[InputFieldDefinition] = []
        if type_def is not None:
            fields = [
                self._convert_field(fld, schema, prefix, partial, False, excluded, registry, nested)
                for fld in type_def.fields
                if fld.name not in excluded
            ]
        definition: InputTypeDefinition = InputTypeDefinition(name=name, fields=fields)
        registry[name] = definition
        nested[slot] = definition
        return name


# ---------------------------------------------------------------------------
# SDL entry points
# ---------------------------------------------------------------------------


def input_blocks(
    schema: InferredSchema,
    type_name: str,
    operation: Union[OperationKind, str],
    operation_config: Optional[OperationConfig] = None,
    exclude_fields: Sequence[str] = (),
    system_fields: Optional[Iterable[str]] = None,
) -> List[Tuple[str, str]]:
    """``(type name, SDL block)`` pairs for one operation; empty when disabled."""
    key: str = _op_key(operation)
    root_name: Optional[str] = input_type_name(type_name, key)
    if root_name is None:
        return []

    result: InputTypeGenerationResult = InputTypeGenerator(system_fields).generate(
        schema, root_name, key, operation_config, exclude_fields
    )
    if result.is_empty or result.root_input_type is None:
        return []

    blocks: List[Tuple[str, str]] = [(root_name, render_input_type(result.root_input_type))]
    blocks.extend((t.name, render_input_type(t)) for t in result.nested_input_types)

    if key == OperationKind.UPDATE_MANY.value:
        item_name: str = batch_item_input_name(type_name)
        blocks.append(
            (
                item_name,
                render_fields_block(
                    "input",
                    item_name,
                    [
                        ("id", "String!"),
                        ("partitionKey", "String!"),
                        ("data", f"{root_name}!"),
                    ],
                ),
            )
        )
    return blocks


def generate_input_sdl(
    schema: InferredSchema,
    type_name: str,
    operation: Union[OperationKind, str],
    operation_config: Optional[OperationConfig] = None,
    exclude_fields: Sequence[str] = (),
    system_fields: Optional[Iterable[str]] = None,
) -> str:
    """
    Render the ``input`` blocks for one operation of *type_name*.

    Returns ``""`` when the operation is disabled or takes no document body.
    """
    return join_blocks(
        sdl
        for _, sdl in input_blocks(
            schema, type_name, operation, operation_config, exclude_fields, system_fields
        )
    )


def payload_fields(type_name: str, operation: Union[OperationKind, str]) -> List[Tuple[str, str]]:
    """Field list of the payload type for *operation*."""
    key: str = _op_key(operation)
    data: Tuple[str, str] = ("data", f"{type_name}!")
    charge: Tuple[str, str] = ("requestCharge", "Float!")

    if key in (
        OperationKind.CREATE.value,
        OperationKind.READ.value,
        OperationKind.UPDATE.value,
        OperationKind.REPLACE.value,
    ):
        return [data, *_DOCUMENT_FIELDS, charge]
    if key == OperationKind.UPSERT.value:
        return [data, *_DOCUMENT_FIELDS, charge, ("wasCreated", "Boolean!")]
    if key == OperationKind.DELETE.value:
        return [("success", "Boolean!"), ("deletedId", "String!"), charge]
    if key == OperationKind.SOFT_DELETE.value:
        return [
            ("success", "Boolean!"),
            ("deletedId", "String!"),
            ("etag", "String!"),
            ("deletedAt", "String"),
            ("deleteReason", "String"),
            ("deletedBy", "String"),
            charge,
        ]
    if key == OperationKind.RESTORE.value:
        return [data, *_DOCUMENT_FIELDS, ("restoredAt", "String!"), charge]
    if key in (OperationKind.INCREMENT.value, OperationKind.DECREMENT.value):
        return [
            data,
            *_DOCUMENT_FIELDS,
            ("previousValue", "Float!"),
            ("newValue", "Float!"),
            charge,
        ]

    success_type: str = (
        "BatchDeleteSuccess" if key == OperationKind.DELETE_MANY.value else f"{type_name}BatchSuccess"
    )
    return [
        ("succeeded", f"[{success_type}!]!"),
        ("failed", "[BatchFailure!]!"),
        ("totalRequestCharge", "Float!"),
    ]


def generate_payload_sdl(
    type_name: str,
    operation: Union[OperationKind, str],
    operation_config: Optional[OperationConfig] = None,
) -> str:
    """Render the payload ``type`` block, or ``""`` when the operation is disabled."""
    key: str = _op_key(operation)
    config: OperationConfig = operation_config or OperationConfig()
    if not config.is_enabled(key):
        return ""
    return render_fields_block(
        "type", payload_type_name(type_name, key), payload_fields(type_name, key)
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "INPUT_PREFIXES",
    "BATCH_OPERATIONS",
    "input_type_name",
    "payload_type_name",
    "batch_item_input_name",
    "operation_field_name",
    "list_field_name",
    "InputTypeGenerator",
    "input_blocks",
    "generate_input_sdl",
    "payload_fields",
    "generate_payload_sdl",
]

logger.debug("docschema.inputs loaded — %d public symbols.", len(__all__))
