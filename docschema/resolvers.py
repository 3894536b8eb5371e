# File: docschema/resolvers.py
"""
docschema - Mutation & Query Resolver Builder
=============================================
Builds the executable resolvers for one inferred type bound to one
``DocumentContainer``.

Every resolver has the GraphQL shape ``async (parent, args) -> dict`` and
returns a payload dumped by alias (``requestCharge``, ``wasCreated`` ...).
``build_<operation>()`` returns ``None`` when ``OperationConfig`` disables
that operation, so the serving layer simply omits the field.

State machines (one document each)::

    create       validate → write if-none-match *          → payload
    update       validate → read → etag? → merge/array ops → write if-match
    replace      validate → read → etag? → swap body       → write if-match
    upsert       validate → read (existed?) → write         → payload + wasCreated
    delete       validate → read → etag? → delete if-match
    softDelete   validate → read → already deleted? → return stored markers, 0 RU
                                  → etag? → set markers → write if-match
    restore      validate → read → must be deleted → etag? → clear markers → write
    increment    validate → read → etag? → numeric field → write if-match

Identifiers and partition keys are validated before any container I/O.
Container failures propagate untouched except ``ItemNotFound``,
``PreconditionFailed`` and ``ItemAlreadyExists``, which are translated into
the docschema error taxonomy with ``raise ... from``.  Nothing retries.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from docschema.array_ops import apply_array_operation, is_array_operation
from docschema.container import (
    DocumentContainer,
    ItemAlreadyExists,
    ItemNotFound,
    PreconditionFailed,
    QueryResult,
    QuerySpec,
    ReadResult,
    WriteResult,
)
from docschema.errors import (
    ConcurrencyConflictError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from docschema.inputs import list_field_name, operation_field_name
from docschema.models import (
    BatchDeleteSuccess,
    BatchFailure,
    BatchPayload,
    BatchSuccess,
    DeletePayload,
    DocumentPayload,
    IncrementPayload,
    ListPayload,
    OperationConfig,
    OperationKind,
    RestorePayload,
    SoftDeletePayload,
    UpsertPayload,
)
from docschema.utils import extract_path_value
from docschema.validators import (
    MAX_DOCUMENT_BYTES,
    etags_match,
    require_identifier,
    validate_continuation_token,
    validate_document_size,
    validate_finite_number,
    validate_list_limit,
    validate_order_by,
    validate_order_direction,
    validate_partition_key,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.resolvers")

Resolver = Callable[[Any, Mapping], Awaitable[Dict[str, Any]]]

_COMPONENT: str = "resolver-builder"

# Document markers written by the soft-delete family.
DELETED: str = "_deleted"
DELETED_AT: str = "_deletedAt"
DELETED_BY: str = "_deletedBy"
DELETE_REASON: str = "_deleteReason"
RESTORED_AT: str = "_restoredAt"
CREATED_AT: str = "_createdAt"
UPDATED_AT: str = "_updatedAt"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResolverBuilder:
    """
    Resolver factory for one type and one container.

    Usage::

        builder = ResolverBuilder(container, "File", "/tenantId",
                                  OperationConfig(exclude=["delete"]),
                                  array_fields=schema.array_field_names)
        resolvers = builder.build_resolver_map()
        payload = await resolvers["Mutation"]["createFile"](None, {"input": {...}})

    The builder holds configuration only; resolvers share no mutable state.
    """

    def __init__(
        self,
        container: DocumentContainer,
        type_name: str,
        partition_key_path: str,
        operation_config: Optional[OperationConfig] = None,
        *,
        array_fields: Sequence[str] = (),
        max_batch_size: int = 100,
        default_list_limit: int = 100,
        max_list_limit: int = 10_000,
        max_document_bytes: int = MAX_DOCUMENT_BYTES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._container: DocumentContainer = container
        self._type_name: str = type_name
        self._partition_key_path: str = partition_key_path
        self._partition_segments: List[str] = partition_key_path.strip("/").split("/")
        self._config: OperationConfig = operation_config or OperationConfig()
        # top-level fields whose update argument is an ArrayOperation
        self._array_fields: frozenset = frozenset(array_fields)
        self._max_batch_size: int = max_batch_size
        self._default_list_limit: int = default_list_limit
        self._max_list_limit: int = max_list_limit
        self._max_document_bytes: int = max_document_bytes
        self._clock: Callable[[], datetime] = clock or _utc_now

        logger.debug(
            "ResolverBuilder for %s (partition %s, %d operation(s) enabled).",
            type_name,
            partition_key_path,
            len(self._config.enabled_operations()),
        )

    # ===================================================================
    # Shared helpers
    # ===================================================================

    @property
    def type_name(self) -> str:
        return self._type_name

    def _enabled(self, operation: OperationKind) -> bool:
        return self._config.is_enabled(operation)

    def _timestamp(self) -> str:
        return self._clock().isoformat()

    def _validate_key(self, item_id: Any, partition_key: Any) -> Tuple[str, str]:
        return (
            require_identifier(item_id, "id", _COMPONENT),
            validate_partition_key(partition_key, _COMPONENT),
        )

    def _require_mapping(self, value: Any, operation: str) -> Dict[str, Any]:
        if not isinstance(value, Mapping):
            raise ValidationError(
                f"{operation} input for {self._type_name} must be a non-null object",
                component=_COMPONENT,
                metadata={"typeName": self._type_name, "operation": operation},
            )
        return dict(value)

    def _set_partition_value(self, document: Dict[str, Any], partition_key: str) -> None:
        target: Dict[str, Any] = document
        for segment in self._partition_segments[:-1]:
            child: Any = target.get(segment)
            if not isinstance(child, dict):
                child = {}
                target[segment] = child
            target = child
        target[self._partition_segments[-1]] = partition_key

    def _check_size(self, document: Dict[str, Any]) -> None:
        validate_document_size(document, _COMPONENT, self._max_document_bytes)

    async def _read_existing(
        self, item_id: str, partition_key: str
    ) -> Tuple[Dict[str, Any], str, float]:
        result: ReadResult = await self._container.read(item_id, partition_key)
        if result.document is None:
            raise NotFoundError(
                f'Document with id "{item_id}" not found in {self._type_name}',
                component=_COMPONENT,
                metadata={
                    "typeName": self._type_name,
                    "documentId": item_id,
                    "partitionKey": partition_key,
                },
            )
        etag: str = result.etag or result.document.get("_etag", "")
        return result.document, etag, result.request_charge

    def _check_etag(self, provided: Optional[str], current: str, item_id: str) -> None:
        if provided is None or etags_match(provided, current):
            return
        raise ConcurrencyConflictError(
            f'ETag mismatch for {self._type_name} document "{item_id}". '
            f"Document has been modified.",
            component=_COMPONENT,
            provided_etag=provided,
            current_etag=current,
            metadata={"typeName": self._type_name, "documentId": item_id},
        )

    async def _write_if_match(
        self, document: Dict[str, Any], current_etag: str, item_id: str
    ) -> WriteResult:
        try:
            return await self._container.write(document, if_match=current_etag)
        except PreconditionFailed as exc:
            raise ConcurrencyConflictError(
                f'{self._type_name} document "{item_id}" changed during the write.',
                component=_COMPONENT,
                current_etag=current_etag,
                metadata={"typeName": self._type_name, "documentId": item_id},
            ) from exc
        except ItemNotFound as exc:
            raise NotFoundError(
                f'Document with id "{item_id}" was removed during the write.',
                component=_COMPONENT,
                metadata={"typeName": self._type_name, "documentId": item_id},
            ) from exc

    @staticmethod
    def _dump(payload: Any) -> Dict[str, Any]:
        return payload.model_dump(by_alias=True)

    # ===================================================================
    # Core operations (shared by single and batch resolvers)
    # ===================================================================

    def _partition_key_of(self, document: Dict[str, Any], item_id: str) -> str:
        if self._partition_segments == ["id"]:
            return item_id
        value: Any = extract_path_value(document, self._partition_key_path)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(
                f"Partition key field '{self._partition_key_path}' is required and "
                f"must be a non-empty string for {self._type_name}",
                component=_COMPONENT,
                metadata={"typeName": self._type_name, "partitionKeyPath": self._partition_key_path},
            )
        return validate_partition_key(value, _COMPONENT)

    async def _create(self, data: Any) -> DocumentPayload:
        document: Dict[str, Any] = self._require_mapping(data, "create")
        item_id: str = str(uuid.uuid4())
        document["id"] = item_id
        self._partition_key_of(document, item_id)

        now: str = self._timestamp()
        document[CREATED_AT] = now
        document[UPDATED_AT] = now
        self._check_size(document)

        try:
            written: WriteResult = await self._container.write(document, if_none_match="*")
        except ItemAlreadyExists as exc:
            raise ConflictError(
                f'{self._type_name} document "{item_id}" already exists.',
                component=_COMPONENT,
                metadata={"typeName": self._type_name, "documentId": item_id},
            ) from exc

        logger.debug("Created %s %s (%.2f RU).", self._type_name, item_id, written.request_charge)
        return DocumentPayload(
            data=written.document, etag=written.etag, request_charge=written.request_charge
        )

    def _apply_input(
        self,
        current: Dict[str, Any],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Resolve ``ArrayOperation`` arguments on the declared array fields.

        Every other field is taken as given, so a nested object carrying a
        ``type`` key is stored as an object.  ``None`` clears an array field.
        """
        resolved: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in self._array_fields or value is None:
                resolved[key] = value
                continue
            if not is_array_operation(value):
                raise ValidationError(
                    f"Field '{key}' of {self._type_name} must be updated with an "
                    f"ArrayOperation, not {type(value).__name__}",
                    component=_COMPONENT,
                    metadata={"typeName": self._type_name, "field": key},
                )
            existing: Any = current.get(key)
            if existing is not None and not isinstance(existing, list):
                raise ValidationError(
                    f"Field '{key}' of {self._type_name} holds a stored "
                    f"{type(existing).__name__}; array operations need a list",
                    component=_COMPONENT,
                    metadata={"typeName": self._type_name, "field": key},
                )
            resolved[key] = apply_array_operation(existing or [], value)
        return resolved

    async def _update(
        self,
        item_id: Any,
        partition_key: Any,
        data: Any,
        etag: Optional[str] = None,
        *,
        replace: bool = False,
    ) -> DocumentPayload:
        operation: str = "replace" if replace else "update"
        item_id, partition_key = self._validate_key(item_id, partition_key)
        body: Dict[str, Any] = self._require_mapping(data, operation)

        current, current_etag, _ = await self._read_existing(item_id, partition_key)
        self._check_etag(etag, current_etag, item_id)

        changes: Dict[str, Any] = self._apply_input(current, body)
        if replace:
            document: Dict[str, Any] = dict(changes)
            if CREATED_AT in current:
                document[CREATED_AT] = current[CREATED_AT]
        else:
            document = {**current, **changes}
        document["id"] = item_id
        self._set_partition_value(document, partition_key)
        document[UPDATED_AT] = self._timestamp()
        self._check_size(document)

        written: WriteResult = await self._write_if_match(document, current_etag, item_id)
        logger.debug("%s %s %s.", operation.capitalize(), self._type_name, item_id)
        return DocumentPayload(
            data=written.document, etag=written.etag, request_charge=written.request_charge
        )

    async def _delete(
        self, item_id: Any, partition_key: Any, etag: Optional[str] = None
    ) -> DeletePayload:
        item_id, partition_key = self._validate_key(item_id, partition_key)
        _, current_etag, _ = await self._read_existing(item_id, partition_key)
        self._check_etag(etag, current_etag, item_id)

        try:
            result = await self._container.delete(item_id, partition_key, if_match=current_etag)
        except PreconditionFailed as exc:
            raise ConcurrencyConflictError(
                f'{self._type_name} document "{item_id}" changed before the delete.',
                component=_COMPONENT,
                current_etag=current_etag,
                metadata={"typeName": self._type_name, "documentId": item_id},
            ) from exc
        except ItemNotFound as exc:
            raise NotFoundError(
                f'Document with id "{item_id}" not found in {self._type_name}',
                component=_COMPONENT,
                metadata={"typeName": self._type_name, "documentId": item_id},
            ) from exc

        return DeletePayload(success=True, deleted_id=item_id, request_charge=result.request_charge)

    async def _adjust(
        self,
        item_id: Any,
        partition_key: Any,
        field_name: Any,
        by: float,
        etag: Optional[str],
        operation: str,
    ) -> IncrementPayload:
        current, current_etag, _ = await self._read_existing(item_id, partition_key)
        self._check_etag(etag, current_etag, item_id)

        if field_name not in current:
            raise ValidationError(
                f'Field "{field_name}" does not exist in {self._type_name} document',
                component="atomic-operations",
                metadata={"typeName": self._type_name, "field": field_name, "operation": operation},
            )
        previous: Any = current[field_name]
        validate_finite_number(previous, field_name, "atomic-operations")

        new_value: Union[int, float] = previous + by
        document: Dict[str, Any] = copy.deepcopy(current)
        document[field_name] = new_value
        document[UPDATED_AT] = self._timestamp()

        written: WriteResult = await self._write_if_match(document, current_etag, item_id)
        return IncrementPayload(
            data=written.document,
            etag=written.etag,
            request_charge=written.request_charge,
            previous_value=previous,
            new_value=new_value,
        )

    # ===================================================================
    # Single-document resolvers
    # ===================================================================

    def build_create(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.CREATE):
            return None

        async def create_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            return self._dump(await self._create(args.get("input")))

        return create_resolver

    def build_read(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.READ):
            return None

        async def read_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            item_id, partition_key = self._validate_key(args.get("id"), args.get("partitionKey"))
            document, etag, charge = await self._read_existing(item_id, partition_key)
            return self._dump(DocumentPayload(data=document, etag=etag, request_charge=charge))

        return read_resolver

    def build_list(self) -> Optional[Resolver]:
        """List query; enabled together with ``read``."""
        if not self._enabled(OperationKind.READ):
            return None

        async def list_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            limit: int = validate_list_limit(
                args.get("limit"), self._default_list_limit, self._max_list_limit, _COMPONENT
            )
            partition_key: Optional[str] = None
            if args.get("partitionKey") is not None:
                partition_key = validate_partition_key(args.get("partitionKey"), _COMPONENT)
            order_by: Optional[str] = validate_order_by(args.get("orderBy"), _COMPONENT)
            direction: str = validate_order_direction(args.get("orderDirection"), _COMPONENT)
            token: Optional[str] = validate_continuation_token(
                args.get("continuationToken"), _COMPONENT
            )

            filters: Dict[str, Any] = {}
            if partition_key is not None and len(self._partition_segments) == 1:
                filters[self._partition_segments[0]] = partition_key

            result: QueryResult = await self._container.query(
                QuerySpec(
                    filters=filters,
                    order_by=order_by,
                    order_direction=direction,
                    limit=limit,
                    continuation_token=token,
                )
            )
            items: List[Dict[str, Any]] = list(result.items)
            if partition_key is not None and len(self._partition_segments) > 1:
                items = [
                    doc
                    for doc in items
                    if extract_path_value(doc, self._partition_key_path) == partition_key
                ]
            return self._dump(
                ListPayload(
                    items=items,
                    continuation_token=result.continuation_token,
                    has_more=result.continuation_token is not None,
                    request_charge=result.request_charge,
                )
            )

        return list_resolver

    def build_update(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.UPDATE):
            return None

        async def update_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            payload: DocumentPayload = await self._update(
                args.get("id"), args.get("partitionKey"), args.get("input"), args.get("etag")
            )
            return self._dump(payload)

        return update_resolver

    def build_replace(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.REPLACE):
            return None

        async def replace_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            payload: DocumentPayload = await self._update(
                args.get("id"),
                args.get("partitionKey"),
                args.get("input"),
                args.get("etag"),
                replace=True,
            )
            return self._dump(payload)

        return replace_resolver

    def build_upsert(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.UPSERT):
            return None

        async def upsert_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            item_id, partition_key = self._validate_key(args.get("id"), args.get("partitionKey"))
            document: Dict[str, Any] = self._require_mapping(args.get("input"), "upsert")

            existing: ReadResult = await self._container.read(item_id, partition_key)
            existed: bool = existing.document is not None

            now: str = self._timestamp()
            document["id"] = item_id
            self._set_partition_value(document, partition_key)
            if existed and CREATED_AT in existing.document:
                document[CREATED_AT] = existing.document[CREATED_AT]
            else:
                document[CREATED_AT] = now
            document[UPDATED_AT] = now
            self._check_size(document)

            written: WriteResult = await self._container.write(document)
            return self._dump(
                UpsertPayload(
                    data=written.document,
                    etag=written.etag,
                    request_charge=written.request_charge,
                    was_created=not existed,
                )
            )

        return upsert_resolver

    def build_delete(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.DELETE):
            return None

        async def delete_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            payload: DeletePayload = await self._delete(
                args.get("id"), args.get("partitionKey"), args.get("etag")
            )
            return self._dump(payload)

        return delete_resolver

    def build_soft_delete(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.SOFT_DELETE):
            return None

        async def soft_delete_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            item_id, partition_key = self._validate_key(args.get("id"), args.get("partitionKey"))
            current, current_etag, _ = await self._read_existing(item_id, partition_key)

            if current.get(DELETED) is True:
                logger.debug("%s %s already soft-deleted; no write.", self._type_name, item_id)
                return self._dump(
                    SoftDeletePayload(
                        success=True,
                        deleted_id=item_id,
                        etag=current_etag,
                        deleted_at=current.get(DELETED_AT),
                        delete_reason=current.get(DELETE_REASON),
                        deleted_by=current.get(DELETED_BY),
                        request_charge=0.0,
                    )
                )

            self._check_etag(args.get("etag"), current_etag, item_id)

            now: str = self._timestamp()
            document: Dict[str, Any] = copy.deepcopy(current)
            document[DELETED] = True
            document[DELETED_AT] = now
            document[UPDATED_AT] = now
            if args.get("deleteReason"):
                document[DELETE_REASON] = args["deleteReason"]
            if args.get("deletedBy"):
                document[DELETED_BY] = args["deletedBy"]
            self._check_size(document)

            written: WriteResult = await self._write_if_match(document, current_etag, item_id)
            return self._dump(
                SoftDeletePayload(
                    success=True,
                    deleted_id=item_id,
                    etag=written.etag,
                    deleted_at=now,
                    delete_reason=document.get(DELETE_REASON),
                    deleted_by=document.get(DELETED_BY),
                    request_charge=written.request_charge,
                )
            )

        return soft_delete_resolver

    def build_restore(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.RESTORE):
            return None

        async def restore_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            item_id, partition_key = self._validate_key(args.get("id"), args.get("partitionKey"))
            current, current_etag, _ = await self._read_existing(item_id, partition_key)

            if current.get(DELETED) is not True:
                raise ValidationError(
                    f'Document "{item_id}" is not soft-deleted and cannot be restored',
                    component=_COMPONENT,
                    metadata={
                        "typeName": self._type_name,
                        "documentId": item_id,
                        "deletedStatus": current.get(DELETED),
                    },
                )
            self._check_etag(args.get("etag"), current_etag, item_id)

            now: str = self._timestamp()
            document: Dict[str, Any] = copy.deepcopy(current)
            document[DELETED] = False
            document[DELETED_AT] = None
            document[DELETED_BY] = None
            document[DELETE_REASON] = None
            document[RESTORED_AT] = now
            document[UPDATED_AT] = now

            written: WriteResult = await self._write_if_match(document, current_etag, item_id)
            return self._dump(
                RestorePayload(
                    data=written.document,
                    etag=written.etag,
                    request_charge=written.request_charge,
                    restored_at=now,
                )
            )

        return restore_resolver

    def _build_adjust(self, operation: OperationKind, sign: int) -> Optional[Resolver]:
        if not self._enabled(operation):
            return None
        label: str = operation.value

        async def adjust_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            item_id, partition_key = self._validate_key(args.get("id"), args.get("partitionKey"))
            field_name: str = require_identifier(args.get("field"), "field", "atomic-operations")
            raw_by: Any = args.get("by")
            by: float = validate_finite_number(
                1 if raw_by is None else raw_by, "by", "atomic-operations"
            )
            payload: IncrementPayload = await self._adjust(
                item_id, partition_key, field_name, sign * by, args.get("etag"), label
            )
            return self._dump(payload)

        return adjust_resolver

    def build_increment(self) -> Optional[Resolver]:
        return self._build_adjust(OperationKind.INCREMENT, 1)

    def build_decrement(self) -> Optional[Resolver]:
        return self._build_adjust(OperationKind.DECREMENT, -1)

    # ===================================================================
    # Batch resolvers
    # ===================================================================

    def _batch_input(self, args: Mapping, operation: str) -> List[Any]:
        items: Any = args.get("input")
        if items is None:
            return []
        if not isinstance(items, (list, tuple)):
            raise ValidationError(
                f"{operation} input for {self._type_name} must be a list",
                component=_COMPONENT,
                metadata={"typeName": self._type_name, "operation": operation},
            )
        if len(items) > self._max_batch_size:
            raise ValidationError(
                f"{operation} accepts at most {self._max_batch_size} items, got {len(items)}",
                component=_COMPONENT,
                metadata={
                    "typeName": self._type_name,
                    "operation": operation,
                    "maxBatchSize": self._max_batch_size,
                },
            )
        return list(items)

    async def _run_batch(
        self,
        operation: str,
        items: Sequence[Any],
        run_one: Callable[[Any], Awaitable[Tuple[Any, float]]],
        key_of: Callable[[Any], Tuple[Optional[str], Optional[str]]],
    ) -> Dict[str, Any]:
        outcomes: List[Any] = await asyncio.gather(
            *(run_one(item) for item in items), return_exceptions=True
        )

        succeeded: List[Any] = []
        failed: List[BatchFailure] = []
        total: float = 0.0
        for index, (item, outcome) in enumerate(zip(items, outcomes)):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                item_id, partition_key = key_of(item)
                failed.append(
                    BatchFailure(
                        index=index,
                        id=item_id,
                        partition_key=partition_key,
                        error=str(outcome),
                    )
                )
                continue
            success, charge = outcome
            succeeded.append(success)
            total += charge

        if failed:
            logger.warning(
                "%s %s: %d of %d item(s) failed.",
                operation,
                self._type_name,
                len(failed),
                len(items),
            )
        return self._dump(
            BatchPayload(succeeded=succeeded, failed=failed, total_request_charge=total)
        )

    @staticmethod
    def _reference_key(item: Any) -> Tuple[Optional[str], Optional[str]]:
        if not isinstance(item, Mapping):
            return None, None
        item_id: Any = item.get("id")
        partition_key: Any = item.get("partitionKey")
        return (
            item_id if isinstance(item_id, str) else None,
            partition_key if isinstance(partition_key, str) else None,
        )

    def build_create_many(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.CREATE_MANY):
            return None

        async def run_one(item: Any) -> Tuple[BatchSuccess, float]:
            created: DocumentPayload = await self._create(item)
            return (
                BatchSuccess(id=created.data["id"], data=created.data, etag=created.etag),
                created.request_charge,
            )

        def key_of(item: Any) -> Tuple[Optional[str], Optional[str]]:
            if not isinstance(item, Mapping):
                return None, None
            value: Any = extract_path_value(item, self._partition_key_path)
            return None, value if isinstance(value, str) else None

        async def create_many_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            items: List[Any] = self._batch_input(args, OperationKind.CREATE_MANY.value)
            return await self._run_batch(OperationKind.CREATE_MANY.value, items, run_one, key_of)

        return create_many_resolver

    def build_update_many(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.UPDATE_MANY):
            return None

        async def run_one(item: Any) -> Tuple[BatchSuccess, float]:
            if not isinstance(item, Mapping):
                raise ValidationError(
                    "updateMany item must be an object with id, partitionKey and data",
                    component=_COMPONENT,
                )
            updated: DocumentPayload = await self._update(
                item.get("id"), item.get("partitionKey"), item.get("data"), item.get("etag")
            )
            return (
                BatchSuccess(id=updated.data["id"], data=updated.data, etag=updated.etag),
                updated.request_charge,
            )

        async def update_many_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            items: List[Any] = self._batch_input(args, OperationKind.UPDATE_MANY.value)
            return await self._run_batch(
                OperationKind.UPDATE_MANY.value, items, run_one, self._reference_key
            )

        return update_many_resolver

    def build_delete_many(self) -> Optional[Resolver]:
        if not self._enabled(OperationKind.DELETE_MANY):
            return None

        async def run_one(item: Any) -> Tuple[BatchDeleteSuccess, float]:
            if not isinstance(item, Mapping):
                raise ValidationError(
                    "deleteMany item must be an object with id and partitionKey",
                    component=_COMPONENT,
                )
            deleted: DeletePayload = await self._delete(item.get("id"), item.get("partitionKey"))
            return BatchDeleteSuccess(deleted_id=deleted.deleted_id), deleted.request_charge

        async def delete_many_resolver(parent: Any, args: Mapping) -> Dict[str, Any]:
            items: List[Any] = self._batch_input(args, OperationKind.DELETE_MANY.value)
            return await self._run_batch(
                OperationKind.DELETE_MANY.value, items, run_one, self._reference_key
            )

        return delete_many_resolver

    # ===================================================================
    # Resolver map
    # ===================================================================

    def build_resolver_map(self) -> Dict[str, Dict[str, Resolver]]:
        """``{"Query": {...}, "Mutation": {...}}`` holding enabled resolvers only."""
        builders: Dict[OperationKind, Callable[[], Optional[Resolver]]] = {
            OperationKind.CREATE: self.build_create,
            OperationKind.UPDATE: self.build_update,
            OperationKind.REPLACE: self.build_replace,
            OperationKind.UPSERT: self.build_upsert,
            OperationKind.DELETE: self.build_delete,
            OperationKind.SOFT_DELETE: self.build_soft_delete,
            OperationKind.RESTORE: self.build_restore,
            OperationKind.INCREMENT: self.build_increment,
            OperationKind.DECREMENT: self.build_decrement,
            OperationKind.CREATE_MANY: self.build_create_many,
            OperationKind.UPDATE_MANY: self.build_update_many,
            OperationKind.DELETE_MANY: self.build_delete_many,
        }

        query: Dict[str, Resolver] = {}
        read: Optional[Resolver] = self.build_read()
        listing: Optional[Resolver] = self.build_list()
        if read is not None:
            query[operation_field_name(self._type_name, OperationKind.READ)] = read
        if listing is not None:
            query[list_field_name(self._type_name)] = listing

        mutation: Dict[str, Resolver] = {}
        for operation, build in builders.items():
            resolver: Optional[Resolver] = build()
            if resolver is not None:
                mutation[operation_field_name(self._type_name, operation)] = resolver

        logger.info(
            "Built %d query and %d mutation resolver(s) for %s.",
            len(query),
            len(mutation),
            self._type_name,
        )
        return {"Query": query, "Mutation": mutation}


def merge_resolver_maps(
    maps: Sequence[Dict[str, Dict[str, Resolver]]],
) -> Dict[str, Dict[str, Resolver]]:
    """Combine per-type resolver maps into one; later duplicates are ignored."""
    merged: Dict[str, Dict[str, Resolver]] = {"Query": {}, "Mutation": {}}
    for resolver_map in maps:
        for root, fields in resolver_map.items():
            target: Dict[str, Resolver] = merged.setdefault(root, {})
            for name, resolver in fields.items():
                if name in target:
                    logger.warning("Resolver %s.%s defined twice; keeping the first.", root, name)
                    continue
                target[name] = resolver
    return merged


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Resolver",
    "ResolverBuilder",
    "merge_resolver_maps",
]

logger.debug("docschema.resolvers loaded — %d public symbols.", len(__all__))
