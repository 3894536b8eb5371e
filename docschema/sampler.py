# File: docschema/sampler.py
"""
docschema - Document Sampler
============================
Draws a bounded, representative sample from a ``DocumentContainer`` so the
inferrer sees the shapes that actually exist in the store.

Strategies
----------
top        First N documents, as the container returns them.
random     Over-sample the most recent documents (3x), then a seeded shuffle.
partition  Spread the sample evenly across distinct partition-key values.
           Falls back to ``top`` when no partition values are found.
schema     Group documents by their top-level key signature and take them
           round-robin across signatures, so rare shapes are not drowned out.

All strategies go through ``container.query(QuerySpec)`` and are
deterministic for a fixed seed.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from docschema.container import DocumentContainer, QueryResult, QuerySpec
from docschema.models import SamplingStrategy

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.sampler")

_RANDOM_OVERSAMPLE: int = 3


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class SampleResult:
    """Sampled documents plus what it cost to fetch them."""

    documents: List[Dict[str, Any]] = field(default_factory=list)
    request_charge: float = 0.0
    strategy: str = SamplingStrategy.TOP.value
    partitions_covered: int = 0
    schema_variants: int = 0

    def summary(self) -> str:
        extra: str = ""
        if self.strategy == SamplingStrategy.PARTITION.value:
            extra = f", {self.partitions_covered} partition(s)"
        elif self.strategy == SamplingStrategy.SCHEMA.value:
            extra = f", {self.schema_variants} shape(s)"
        return (
            f"{len(self.documents)} document(s) via {self.strategy}{extra}, "
            f"{self.request_charge:.2f} RU"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def schema_signature(document: Mapping) -> str:
    """Sorted top-level keys, system (underscore) fields excluded."""
    return "|".join(sorted(k for k in document.keys() if not str(k).startswith("_")))


async def _run_query(container: DocumentContainer, spec: QuerySpec) -> QueryResult:
    result: QueryResult = await container.query(spec)
    logger.debug(
        "Sample query %s returned %d item(s) (%.2f RU).",
        spec,
        len(result.items),
        result.request_charge,
    )
    return result


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


async def _sample_top(container: DocumentContainer, sample_size: int) -> SampleResult:
    result: QueryResult = await _run_query(container, QuerySpec(limit=sample_size))
    return SampleResult(
        documents=list(result.items),
        request_charge=result.request_charge,
        strategy=SamplingStrategy.TOP.value,
    )


async def _sample_random(
    container: DocumentContainer, sample_size: int, seed: Optional[int]
) -> SampleResult:
    result: QueryResult = await _run_query(
        container,
        QuerySpec(
            order_by="_ts",
            order_direction="DESC",
            limit=sample_size * _RANDOM_OVERSAMPLE,
        ),
    )
    pool: List[Dict[str, Any]] = list(result.items)
    random.Random(seed).shuffle(pool)
    return SampleResult(
        documents=pool[:sample_size],
        request_charge=result.request_charge,
        strategy=SamplingStrategy.RANDOM.value,
    )


async def _sample_partition(
    container: DocumentContainer,
    sample_size: int,
    partition_key_path: str,
) -> SampleResult:
    segments: List[str] = partition_key_path.strip("/").split("/")
    if len(segments) != 1:
        logger.warning(
            "Nested partition key %s cannot be filtered on; sampling with 'top'.",
            partition_key_path,
        )
        return await _sample_top(container, sample_size)
    partition_field: str = segments[0]

    distinct: QueryResult = await _run_query(
        container, QuerySpec(distinct_field=partition_field)
    )
    partition_values: List[Any] = [v for v in distinct.items if v is not None]

    if not partition_values:
        logger.info("No partition values found; falling back to 'top' sampling.")
        fallback: SampleResult = await _sample_top(container, sample_size)
        fallback.request_charge += distinct.request_charge
        return fallback

    per_partition: int = max(1, sample_size // len(partition_values))
    remainder: int = sample_size - per_partition * len(partition_values)

    specs: List[QuerySpec] = [
        QuerySpec(
            filters={partition_field: value},
            limit=per_partition + (1 if index < remainder else 0),
        )
        for index, value in enumerate(partition_values)
    ]
    results: List[QueryResult] = await asyncio.gather(
        *(_run_query(container, spec) for spec in specs)
    )

    documents: List[Dict[str, Any]] = []
    charge: float = distinct.request_charge
    for result in results:
        charge += result.request_charge
        documents.extend(result.items)

    return SampleResult(
        documents=documents[:sample_size],
        request_charge=charge,
        strategy=SamplingStrategy.PARTITION.value,
        partitions_covered=len(partition_values),
    )


async def _sample_schema(container: DocumentContainer, sample_size: int) -> SampleResult:
    result: QueryResult = await _run_query(container, QuerySpec())

    groups: Dict[str, List[Dict[str, Any]]] = {}
    for document in result.items:
        if isinstance(document, Mapping):
            groups.setdefault(schema_signature(document), []).append(document)

    documents: List[Dict[str, Any]] = []
    queues: List[List[Dict[str, Any]]] = [list(g) for g in groups.values()]
    while len(documents) < sample_size and any(queues):
        for queue in queues:
            if queue and len(documents) < sample_size:
                documents.append(queue.pop(0))

    return SampleResult(
        documents=documents,
        request_charge=result.request_charge,
        strategy=SamplingStrategy.SCHEMA.value,
        schema_variants=len(groups),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def sample_documents(
    container: DocumentContainer,
    sample_size: int,
    strategy: Union[SamplingStrategy, str] = SamplingStrategy.PARTITION,
    seed: Optional[int] = None,
    partition_key_path: Optional[str] = None,
) -> SampleResult:
    """
    Sample up to *sample_size* documents from *container*.

    Args:
        container:          Any ``DocumentContainer`` implementation.
        sample_size:        Upper bound on returned documents (>= 1).
        strategy:           One of ``SamplingStrategy``.
        seed:               Seed for the random strategy.
        partition_key_path: Partition path for the partition strategy;
                            defaults to ``container.partition_key_path``.
    """
    if sample_size < 1:
        raise ValueError(f"sample_size must be >= 1, got {sample_size}.")

    kind: SamplingStrategy = SamplingStrategy(strategy)
    result: SampleResult

    if kind is SamplingStrategy.TOP:
        result = await _sample_top(container, sample_size)
    elif kind is SamplingStrategy.RANDOM:
        result = await _sample_random(container, sample_size, seed)
    elif kind is SamplingStrategy.PARTITION:
        path: str = partition_key_path or container.partition_key_path
        result = await _sample_partition(container, sample_size, path)
    else:
        result = await _sample_schema(container, sample_size)

    logger.info("Sampled %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SampleResult",
    "schema_signature",
    "sample_documents",
]

logger.debug("docschema.sampler loaded — %d public symbols.", len(__all__))
