"""
tests/test_resolvers.py
Tests for docschema.resolvers.ResolverBuilder against InMemoryContainer.

Covers:
- create / read / list / update / replace / upsert / delete
- optimistic concurrency (stale etags leave documents untouched)
- soft delete idempotence and restore
- increment / decrement
- batch partial failure reporting
- operation enablement in the resolver map
"""

from __future__ import annotations

from typing import Any, Dict

import pytest

from docschema.container import InMemoryContainer
from docschema.errors import (
    ConcurrencyConflictError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)
from docschema.models import OperationConfig
from docschema.resolvers import ResolverBuilder, merge_resolver_maps

# fixed_clock in conftest.py
NOW: str = "2024-03-01T12:00:00+00:00"


def _mutation(resolvers: Dict[str, Dict[str, Any]], name: str) -> Any:
    return resolvers["Mutation"][name]


# ===========================================================================
# Resolver map & enablement
# ===========================================================================


class TestResolverMap:
    """Field naming and operation enablement."""

    def test_all_operations_enabled_by_default(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        assert set(resolvers["Query"]) == {"file", "files"}
        assert set(resolvers["Mutation"]) == {
            "createFile",
            "updateFile",
            "replaceFile",
            "upsertFile",
            "deleteFile",
            "softDeleteFile",
            "restoreFile",
            "incrementFile",
            "decrementFile",
            "createManyFile",
            "updateManyFile",
            "deleteManyFile",
        }

    def test_excluded_operation_has_no_resolver(self, container: InMemoryContainer) -> None:
        builder = ResolverBuilder(
            container, "File", "/tenantId", OperationConfig(exclude=["delete", "createMany"])
        )
        assert builder.build_delete() is None
        assert builder.build_create_many() is None
        mutation = builder.build_resolver_map()["Mutation"]
        assert "deleteFile" not in mutation
        assert "createManyFile" not in mutation
        assert "softDeleteFile" in mutation

    def test_include_list_enables_only_listed(self, container: InMemoryContainer) -> None:
        builder = ResolverBuilder(
            container, "File", "/tenantId", OperationConfig(include=["read", "create"])
        )
        resolver_map = builder.build_resolver_map()
        assert set(resolver_map["Query"]) == {"file", "files"}
        assert set(resolver_map["Mutation"]) == {"createFile"}

    def test_list_disabled_with_read(self, container: InMemoryContainer) -> None:
        builder = ResolverBuilder(
            container, "File", "/tenantId", OperationConfig(exclude=["read"])
        )
        assert builder.build_read() is None
        assert builder.build_list() is None
        assert builder.build_resolver_map()["Query"] == {}

    def test_merge_keeps_first_definition(self, container: InMemoryContainer) -> None:
        first = ResolverBuilder(container, "File", "/tenantId").build_resolver_map()
        second = ResolverBuilder(container, "File", "/tenantId").build_resolver_map()
        merged = merge_resolver_maps([first, second])
        assert merged["Mutation"]["createFile"] is first["Mutation"]["createFile"]


# ===========================================================================
# create / read
# ===========================================================================


class TestCreateAndRead:
    """Document creation and point reads."""

    @pytest.mark.asyncio
    async def test_create_stamps_id_and_timestamps(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await _mutation(resolvers, "createFile")(
            None, {"input": {"tenantId": "acme/eu", "name": "new.txt"}}
        )
        data = payload["data"]
        assert data["id"]
        assert data["tenantId"] == "acme/eu"
        assert data["_createdAt"] == NOW
        assert data["_updatedAt"] == NOW
        assert payload["etag"] == data["_etag"]
        assert payload["requestCharge"] == 1.0

    @pytest.mark.asyncio
    async def test_create_requires_partition_key(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError, match="tenantId"):
            await _mutation(resolvers, "createFile")(None, {"input": {"name": "orphan.txt"}})

    @pytest.mark.asyncio
    async def test_create_rejects_non_object_input(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError):
            await _mutation(resolvers, "createFile")(None, {"input": None})

    @pytest.mark.asyncio
    async def test_create_with_id_partition_key(self, fixed_clock: Any) -> None:
        users = InMemoryContainer("users", "/id")
        builder = ResolverBuilder(users, "User", "/id", clock=fixed_clock)
        payload = await builder.build_create()(None, {"input": {"email": "a@b.c"}})
        assert len(users) == 1
        stored = await users.read(payload["data"]["id"], payload["data"]["id"])
        assert stored.document["email"] == "a@b.c"

    @pytest.mark.asyncio
    async def test_read_existing(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await resolvers["Query"]["file"](None, {"id": "f1", "partitionKey": "acme/eu"})
        assert payload["data"]["name"] == "report.pdf"
        assert payload["etag"] == '"1"'

    @pytest.mark.asyncio
    async def test_read_missing_raises_not_found(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(NotFoundError) as excinfo:
            await resolvers["Query"]["file"](None, {"id": "nope", "partitionKey": "acme/eu"})
        assert excinfo.value.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("item_id", ["", "   ", None])
    async def test_blank_id_rejected_before_io(
        self, resolvers: Dict[str, Dict[str, Any]], item_id: Any
    ) -> None:
        with pytest.raises(ValidationError):
            await resolvers["Query"]["file"](None, {"id": item_id, "partitionKey": "acme/eu"})


# ===========================================================================
# list
# ===========================================================================


class TestList:
    """Paginated list query."""

    @pytest.mark.asyncio
    async def test_pagination_with_continuation(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        list_files = resolvers["Query"]["files"]
        first = await list_files(None, {"limit": 2, "orderBy": "name"})
        assert [d["name"] for d in first["items"]] == ["notes.txt", "photo.png"]
        assert first["hasMore"] is True
        assert first["continuationToken"] == "2"

        second = await list_files(
            None, {"limit": 2, "orderBy": "name", "continuationToken": first["continuationToken"]}
        )
        assert [d["name"] for d in second["items"]] == ["report.pdf"]
        assert second["hasMore"] is False
        assert second["continuationToken"] is None

    @pytest.mark.asyncio
    async def test_partition_filter(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await resolvers["Query"]["files"](None, {"partitionKey": "acme/us"})
        assert [d["id"] for d in payload["items"]] == ["f2"]

    @pytest.mark.asyncio
    async def test_descending_order(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await resolvers["Query"]["files"](
            None, {"orderBy": "downloads", "orderDirection": "desc"}
        )
        assert [d["downloads"] for d in payload["items"]] == [7, 3, 0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args",
        [
            {"limit": 0},
            {"limit": 10_001},
            {"orderBy": "name; DROP"},
            {"orderDirection": "sideways"},
        ],
    )
    async def test_invalid_arguments(
        self, resolvers: Dict[str, Dict[str, Any]], args: Dict[str, Any]
    ) -> None:
        with pytest.raises(ValidationError):
            await resolvers["Query"]["files"](None, args)


# ===========================================================================
# update / replace / upsert
# ===========================================================================


class TestUpdate:
    """Partial updates, array operations and concurrency."""

    @pytest.mark.asyncio
    async def test_shallow_merge(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await _mutation(resolvers, "updateFile")(
            None, {"id": "f1", "partitionKey": "acme/eu", "input": {"name": "renamed.pdf"}}
        )
        data = payload["data"]
        assert data["name"] == "renamed.pdf"
        assert data["size"] == 1024
        assert data["_updatedAt"] == NOW

    @pytest.mark.asyncio
    async def test_array_operation_applied_to_current_value(
        self, resolvers: Dict[str, Dict[str, Any]]
    ) -> None:
        payload = await _mutation(resolvers, "updateFile")(
            None,
            {
                "id": "f1",
                "partitionKey": "acme/eu",
                "input": {"tags": {"type": "APPEND", "value": ["audit"]}},
            },
        )
        assert payload["data"]["tags"] == ["finance", "q1", "audit"]

    @pytest.mark.asyncio
    async def test_raw_list_rejected(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError, match="ArrayOperation"):
            await _mutation(resolvers, "updateFile")(
                None, {"id": "f1", "partitionKey": "acme/eu", "input": {"tags": ["x"]}}
            )

    @pytest.mark.asyncio
    async def test_invalid_array_operation_leaves_document(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        with pytest.raises(ValidationError, match="out of bounds"):
            await _mutation(resolvers, "updateFile")(
                None,
                {
                    "id": "f1",
                    "partitionKey": "acme/eu",
                    "input": {"name": "x", "tags": {"type": "insert", "value": "z", "index": 9}},
                },
            )
        stored = await container.read("f1", "acme/eu")
        assert stored.document["name"] == "report.pdf"
        assert stored.etag == '"1"'

    @pytest.mark.asyncio
    async def test_object_with_type_key_is_not_an_array_operation(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        container.load([{"id": "bare", "tenantId": "acme/eu", "name": "bare.txt"}])
        payload = await _mutation(resolvers, "updateFile")(
            None,
            {
                "id": "bare",
                "partitionKey": "acme/eu",
                "input": {"metadata": {"type": "pdf", "pages": 3}},
            },
        )
        assert payload["data"]["metadata"] == {"type": "pdf", "pages": 3}

    @pytest.mark.asyncio
    async def test_array_operation_on_stored_scalar_rejected(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        container.load([{"id": "legacy", "tenantId": "acme/eu", "tags": "legacy"}])
        with pytest.raises(ValidationError, match="array operations need a list") as excinfo:
            await _mutation(resolvers, "updateFile")(
                None,
                {
                    "id": "legacy",
                    "partitionKey": "acme/eu",
                    "input": {"tags": {"type": "append", "value": ["x"]}},
                },
            )
        assert excinfo.value.metadata["field"] == "tags"
        stored = await container.read("legacy", "acme/eu")
        assert stored.document["tags"] == "legacy"

    @pytest.mark.asyncio
    async def test_array_field_needs_an_operation(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError, match="must be updated with an ArrayOperation"):
            await _mutation(resolvers, "updateFile")(
                None, {"id": "f1", "partitionKey": "acme/eu", "input": {"tags": "x"}}
            )

    @pytest.mark.asyncio
    async def test_stale_etag_conflicts_and_leaves_document_unchanged(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        update = _mutation(resolvers, "updateFile")
        await update(None, {"id": "f1", "partitionKey": "acme/eu", "input": {"name": "v2"}})
        before = await container.read("f1", "acme/eu")

        with pytest.raises(ConcurrencyConflictError) as excinfo:
            await update(
                None,
                {"id": "f1", "partitionKey": "acme/eu", "input": {"name": "v3"}, "etag": '"1"'},
            )

        assert excinfo.value.retryable is True
        assert excinfo.value.current_etag == before.etag
        after = await container.read("f1", "acme/eu")
        assert after.document == before.document
        assert after.etag == before.etag

    @pytest.mark.asyncio
    async def test_matching_etag_accepted_with_or_without_quotes(
        self, resolvers: Dict[str, Dict[str, Any]]
    ) -> None:
        payload = await _mutation(resolvers, "updateFile")(
            None, {"id": "f2", "partitionKey": "acme/us", "input": {"downloads": 1}, "etag": "2"}
        )
        assert payload["data"]["downloads"] == 1

    @pytest.mark.asyncio
    async def test_update_missing_document(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(NotFoundError):
            await _mutation(resolvers, "updateFile")(
                None, {"id": "ghost", "partitionKey": "acme/eu", "input": {"name": "x"}}
            )

    @pytest.mark.asyncio
    async def test_replace_swaps_body_and_keeps_created_at(
        self, resolvers: Dict[str, Dict[str, Any]]
    ) -> None:
        created = await _mutation(resolvers, "createFile")(
            None, {"input": {"tenantId": "t9", "name": "a", "size": 1}}
        )
        item_id = created["data"]["id"]
        replaced = await _mutation(resolvers, "replaceFile")(
            None, {"id": item_id, "partitionKey": "t9", "input": {"name": "b"}}
        )
        data = replaced["data"]
        assert data["name"] == "b"
        assert "size" not in data
        assert data["tenantId"] == "t9"
        assert data["_createdAt"] == created["data"]["_createdAt"]

    @pytest.mark.asyncio
    async def test_upsert_reports_was_created(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        upsert = _mutation(resolvers, "upsertFile")
        first = await upsert(None, {"id": "u1", "partitionKey": "t1", "input": {"name": "one"}})
        second = await upsert(None, {"id": "u1", "partitionKey": "t1", "input": {"name": "two"}})

        assert first["wasCreated"] is True
        assert second["wasCreated"] is False
        assert second["data"]["name"] == "two"
        assert second["data"]["_createdAt"] == first["data"]["_createdAt"]


# ===========================================================================
# delete / softDelete / restore
# ===========================================================================


class TestDeletion:
    """Hard delete, idempotent soft delete and restore."""

    @pytest.mark.asyncio
    async def test_delete(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        payload = await _mutation(resolvers, "deleteFile")(
            None, {"id": "f3", "partitionKey": "globex/eu/hr"}
        )
        assert payload == {"success": True, "deletedId": "f3", "requestCharge": 1.0}
        assert len(container) == 2

    @pytest.mark.asyncio
    async def test_delete_with_stale_etag(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        with pytest.raises(ConcurrencyConflictError):
            await _mutation(resolvers, "deleteFile")(
                None, {"id": "f3", "partitionKey": "globex/eu/hr", "etag": '"99"'}
            )
        assert len(container) == 3

    @pytest.mark.asyncio
    async def test_soft_delete_is_idempotent(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        soft_delete = _mutation(resolvers, "softDeleteFile")
        args = {"id": "f1", "partitionKey": "acme/eu", "deleteReason": "gdpr", "deletedBy": "ops"}

        first = await soft_delete(None, args)
        stored = await container.read("f1", "acme/eu")
        second = await soft_delete(None, args)

        assert first["success"] is True
        assert first["deletedAt"] == NOW
        assert first["deleteReason"] == "gdpr"
        assert first["deletedBy"] == "ops"
        assert stored.document["_deleted"] is True

        assert second["success"] is True
        assert second["etag"] == first["etag"]
        assert second["deletedAt"] == first["deletedAt"]
        assert second["deleteReason"] == "gdpr"
        assert second["requestCharge"] == 0.0

        after = await container.read("f1", "acme/eu")
        assert after.etag == stored.etag

    @pytest.mark.asyncio
    async def test_soft_delete_stale_etag(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ConcurrencyConflictError):
            await _mutation(resolvers, "softDeleteFile")(
                None, {"id": "f1", "partitionKey": "acme/eu", "etag": '"42"'}
            )

    @pytest.mark.asyncio
    async def test_restore_clears_markers(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        await _mutation(resolvers, "softDeleteFile")(
            None, {"id": "f2", "partitionKey": "acme/us", "deleteReason": "spam"}
        )
        payload = await _mutation(resolvers, "restoreFile")(
            None, {"id": "f2", "partitionKey": "acme/us"}
        )
        data = payload["data"]
        assert data["_deleted"] is False
        assert data["_deletedAt"] is None
        assert data["_deleteReason"] is None
        assert data["_restoredAt"] == NOW
        assert payload["restoredAt"] == NOW

    @pytest.mark.asyncio
    async def test_restore_requires_soft_deleted(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError, match="not soft-deleted"):
            await _mutation(resolvers, "restoreFile")(None, {"id": "f1", "partitionKey": "acme/eu"})


# ===========================================================================
# increment / decrement
# ===========================================================================


class TestAtomicCounters:
    """Numeric field adjustments."""

    @pytest.mark.asyncio
    async def test_increment(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await _mutation(resolvers, "incrementFile")(
            None, {"id": "f1", "partitionKey": "acme/eu", "field": "downloads", "by": 2}
        )
        assert payload["previousValue"] == 3
        assert payload["newValue"] == 5
        assert payload["data"]["downloads"] == 5

    @pytest.mark.asyncio
    async def test_decrement_defaults_to_one(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await _mutation(resolvers, "decrementFile")(
            None, {"id": "f3", "partitionKey": "globex/eu/hr", "field": "downloads"}
        )
        assert payload["previousValue"] == 7
        assert payload["newValue"] == 6

    @pytest.mark.asyncio
    async def test_missing_field(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError, match="does not exist"):
            await _mutation(resolvers, "incrementFile")(
                None, {"id": "f1", "partitionKey": "acme/eu", "field": "likes"}
            )

    @pytest.mark.asyncio
    async def test_non_numeric_field(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        with pytest.raises(ValidationError):
            await _mutation(resolvers, "incrementFile")(
                None, {"id": "f1", "partitionKey": "acme/eu", "field": "name"}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("by", [float("inf"), float("nan"), "2", True])
    async def test_non_finite_by(self, resolvers: Dict[str, Dict[str, Any]], by: Any) -> None:
        with pytest.raises(ValidationError):
            await _mutation(resolvers, "incrementFile")(
                None, {"id": "f1", "partitionKey": "acme/eu", "field": "downloads", "by": by}
            )


# ===========================================================================
# Batch operations
# ===========================================================================


class TestBatch:
    """createMany / updateMany / deleteMany partial-failure reporting."""

    @pytest.mark.asyncio
    async def test_create_many_partial_failure(
        self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer
    ) -> None:
        payload = await _mutation(resolvers, "createManyFile")(
            None,
            {
                "input": [
                    {"tenantId": "t1", "name": "a"},
                    {"name": "no-partition"},
                    {"tenantId": "t2", "name": "c"},
                ]
            },
        )
        assert len(payload["succeeded"]) == 2
        assert [s["data"]["name"] for s in payload["succeeded"]] == ["a", "c"]
        assert len(payload["failed"]) == 1
        failure = payload["failed"][0]
        assert failure["index"] == 1
        assert failure["id"] is None
        assert "tenantId" in failure["error"]
        assert payload["totalRequestCharge"] == 2.0
        assert len(container) == 5

    @pytest.mark.asyncio
    async def test_update_many_reports_failing_item(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await _mutation(resolvers, "updateManyFile")(
            None,
            {
                "input": [
                    {"id": "f1", "partitionKey": "acme/eu", "data": {"name": "x"}},
                    {"id": "missing", "partitionKey": "acme/eu", "data": {"name": "y"}},
                ]
            },
        )
        assert [s["id"] for s in payload["succeeded"]] == ["f1"]
        assert payload["failed"][0]["index"] == 1
        assert payload["failed"][0]["id"] == "missing"
        assert payload["failed"][0]["partitionKey"] == "acme/eu"

    @pytest.mark.asyncio
    async def test_delete_many(self, resolvers: Dict[str, Dict[str, Any]], container: InMemoryContainer) -> None:
        payload = await _mutation(resolvers, "deleteManyFile")(
            None,
            {
                "input": [
                    {"id": "f1", "partitionKey": "acme/eu"},
                    {"id": "f2", "partitionKey": "wrong"},
                ]
            },
        )
        assert payload["succeeded"] == [{"deletedId": "f1"}]
        assert payload["failed"][0]["id"] == "f2"
        assert len(container) == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        payload = await _mutation(resolvers, "createManyFile")(None, {"input": []})
        assert payload == {"succeeded": [], "failed": [], "totalRequestCharge": 0.0}

    @pytest.mark.asyncio
    async def test_batch_size_limit(self, resolvers: Dict[str, Dict[str, Any]]) -> None:
        items = [{"tenantId": "t", "name": str(i)} for i in range(6)]
        with pytest.raises(ValidationError, match="at most 5"):
            await _mutation(resolvers, "createManyFile")(None, {"input": items})
