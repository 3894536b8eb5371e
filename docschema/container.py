# File: docschema/container.py
"""
docschema - Document Container Protocol
=======================================
The four capabilities the resolver layer needs from a document store,
plus an in-memory implementation.

    read(id, partition_key)                  -> ReadResult
    write(document, if_match=, if_none_match=) -> WriteResult
    delete(id, partition_key, if_match=)     -> DeleteResult
    query(QuerySpec)                         -> QueryResult

Every result carries the per-call ``request_charge``.  Store-level
failures are expressed with the ``ContainerError`` family below; the
resolver layer translates the three well-known ones into its own taxonomy
and lets everything else propagate untouched.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from docschema.utils import extract_path_value

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.container")


# ---------------------------------------------------------------------------
# Container-level errors
# ---------------------------------------------------------------------------


class ContainerError(Exception):
    """Failure reported by the document store."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ItemNotFound(ContainerError):
    status_code = 404


class ItemAlreadyExists(ContainerError):
    status_code = 409


class PreconditionFailed(ContainerError):
    status_code = 412


# ---------------------------------------------------------------------------
# Call results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReadResult:
    """``document`` is None when the item does not exist."""

    document: Optional[Dict[str, Any]]
    etag: Optional[str]
    request_charge: float = 0.0


@dataclass(frozen=True, slots=True)
class WriteResult:
    document: Dict[str, Any]
    etag: str
    request_charge: float = 0.0
    created: bool = False


@dataclass(frozen=True, slots=True)
class DeleteResult:
    request_charge: float = 0.0


@dataclass(frozen=True, slots=True)
class QueryResult:
    items: List[Any]
    request_charge: float = 0.0
    continuation_token: Optional[str] = None


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """
    Transport-neutral query description.

    ``filters`` are top-level equality predicates.  When ``distinct_field``
    is set the result items are the distinct values of that field instead
    of documents.
    """

    filters: Dict[str, Any] = field(default_factory=dict)
    order_by: Optional[str] = None
    order_direction: str = "ASC"
    limit: Optional[int] = None
    distinct_field: Optional[str] = None
    continuation_token: Optional[str] = None


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentContainer(Protocol):
    """What the resolvers and the sampler require from a store."""

    partition_key_path: str

    async def read(self, item_id: str, partition_key: str) -> ReadResult:
        ...

    async def write(
        self,
        document: Dict[str, Any],
        *,
        if_match: Optional[str] = None,
        if_none_match: Optional[str] = None,
    ) -> WriteResult:
        ...

    async def delete(
        self,
        item_id: str,
        partition_key: str,
        *,
        if_match: Optional[str] = None,
    ) -> DeleteResult:
        ...

    async def query(self, spec: QuerySpec) -> QueryResult:
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryContainer:
    """
    Dictionary-backed container with version-counter etags.

    Etags are quoted (``"7"``) the way most HTTP document stores return
    them.  Documents are deep-copied on the way in and out, so callers can
    never mutate stored state by accident.

    Usage::

        container = InMemoryContainer("files", "/tenantId")
        container.load([{"id": "a", "tenantId": "t1", "name": "x"}])
    """

    def __init__(
        self,
        name: str,
        partition_key_path: str = "/pk",
        *,
        request_charge: float = 1.0,
    ) -> None:
        self.name: str = name
        self.partition_key_path: str = partition_key_path
        self._request_charge: float = request_charge
        self._items: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._version: int = 0

        logger.debug(
            "InMemoryContainer '%s' initialised (partition key %s).",
            name,
            partition_key_path,
        )

    # -- Helpers ------------------------------------------------------------

    def _key_of(self, document: Dict[str, Any]) -> Tuple[str, str]:
        item_id: Any = document.get("id")
        if not isinstance(item_id, str) or not item_id:
            raise ContainerError("Document is missing a string 'id'.", status_code=400)
        partition_value: Any = extract_path_value(document, self.partition_key_path)
        if partition_value is None:
            raise ContainerError(
                f"Document '{item_id}' has no value at {self.partition_key_path}.",
                status_code=400,
            )
        return item_id, str(partition_value)

    def _next_etag(self) -> str:
        self._version += 1
        return f'"{self._version}"'

    def load(self, documents: Iterable[Dict[str, Any]]) -> int:
        """Bulk-insert documents without conditions; returns the count."""
        count: int = 0
        for document in documents:
            stored: Dict[str, Any] = copy.deepcopy(dict(document))
            stored["_etag"] = self._next_etag()
            stored.setdefault("_ts", int(time.time()))
            self._items[self._key_of(stored)] = stored
            count += 1
        logger.debug("Loaded %d document(s) into '%s'.", count, self.name)
        return count

    def __len__(self) -> int:
        return len(self._items)

    # -- Capabilities -------------------------------------------------------

    async def read(self, item_id: str, partition_key: str) -> ReadResult:
        stored: Optional[Dict[str, Any]] = self._items.get((item_id, partition_key))
        if stored is None:
            return ReadResult(document=None, etag=None, request_charge=self._request_charge)
        return ReadResult(
            document=copy.deepcopy(stored),
            etag=stored["_etag"],
            request_charge=self._request_charge,
        )

    async def write(
        self,
        document: Dict[str, Any],
        *,
        if_match: Optional[str] = None,
        if_none_match: Optional[str] = None,
    ) -> WriteResult:
        key: Tuple[str, str] = self._key_of(document)
        existing: Optional[Dict[str, Any]] = self._items.get(key)

        if if_none_match == "*" and existing is not None:
            raise ItemAlreadyExists(f"Item '{key[0]}' already exists in '{self.name}'.")
        if if_match is not None:
            if existing is None:
                raise ItemNotFound(f"Item '{key[0]}' not found in '{self.name}'.")
            if existing["_etag"] != if_match:
                raise PreconditionFailed(
                    f"Etag mismatch on '{key[0]}': expected {if_match}, "
                    f"stored {existing['_etag']}."
                )

        stored: Dict[str, Any] = copy.deepcopy(dict(document))
        stored["_etag"] = self._next_etag()
        stored["_ts"] = int(time.time())
        self._items[key] = stored

        return WriteResult(
            document=copy.deepcopy(stored),
            etag=stored["_etag"],
            request_charge=self._request_charge,
            created=existing is None,
        )

    async def delete(
        self,
        item_id: str,
        partition_key: str,
        *,
        if_match: Optional[str] = None,
    ) -> DeleteResult:
        existing: Optional[Dict[str, Any]] = self._items.get((item_id, partition_key))
        if existing is None:
            raise ItemNotFound(f"Item '{item_id}' not found in '{self.name}'.")
        if if_match is not None and existing["_etag"] != if_match:
            raise PreconditionFailed(
                f"Etag mismatch on '{item_id}': expected {if_match}, stored {existing['_etag']}."
            )
        del self._items[(item_id, partition_key)]
        return DeleteResult(request_charge=self._request_charge)

    async def query(self, spec: QuerySpec) -> QueryResult:
        documents: List[Dict[str, Any]] = [
            doc
            for doc in self._items.values()
            if all(doc.get(k) == v for k, v in spec.filters.items())
        ]

        if spec.order_by:
            present: List[Dict[str, Any]] = [d for d in documents if d.get(spec.order_by) is not None]
            missing: List[Dict[str, Any]] = [d for d in documents if d.get(spec.order_by) is None]
            present.sort(
                key=lambda d: (type(d[spec.order_by]).__name__, d[spec.order_by]),
                reverse=spec.order_direction.upper() == "DESC",
            )
            documents = present + missing

        items: List[Any]
        if spec.distinct_field:
            items = list(
                dict.fromkeys(
                    doc[spec.distinct_field]
                    for doc in documents
                    if doc.get(spec.distinct_field) is not None
                )
            )
        else:
            items = [copy.deepcopy(doc) for doc in documents]

        offset: int = 0
        if spec.continuation_token:
            try:
                offset = int(spec.continuation_token)
            except ValueError as exc:
                raise ContainerError(
                    f"Malformed continuation token {spec.continuation_token!r}.", status_code=400
                ) from exc
        items = items[offset:]
        next_token: Optional[str] = None
        if spec.limit is not None and len(items) > spec.limit:
            items = items[: spec.limit]
            next_token = str(offset + spec.limit)

        return QueryResult(
            items=items,
            request_charge=self._request_charge,
            continuation_token=next_token,
        )

    def __repr__(self) -> str:
        return f"<InMemoryContainer {self.name} ({len(self._items)} items)>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ContainerError",
    "ItemNotFound",
    "ItemAlreadyExists",
    "PreconditionFailed",
    "ReadResult",
    "WriteResult",
    "DeleteResult",
    "QueryResult",
    "QuerySpec",
    "DocumentContainer",
    "InMemoryContainer",
]

logger.debug("docschema.container loaded — %d public symbols.", len(__all__))
