# File: docschema/unifier.py
"""
docschema - Type Unifier
========================
Merges raw JSON observations into one ``FieldObservation`` per structural
path.

The observation tree mirrors the documents:

    root (object scope)
     ├── children["title"]      ── string ×40, null ×2
     ├── children["metadata"]   ── object ×42
     │     └── children[...]
     └── children["tags"]       ── array ×38
           └── element          ── string ×91

Resolution is a function of the *set* of observed kinds plus two sticky
flags, never of observation order, so unification is commutative and
associative.  Nothing here raises: conflicting kinds widen instead.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from docschema.models import ObservedKind, ScalarKind

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.unifier")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# GraphQL Int is a signed 32-bit integer.
INT32_MIN: int = -(2 ** 31)
INT32_MAX: int = 2 ** 31 - 1

_SCALAR_OBSERVED: Tuple[str, ...] = (
    ObservedKind.STRING.value,
    ObservedKind.NUMBER.value,
    ObservedKind.BOOLEAN.value,
)


# ---------------------------------------------------------------------------
# FieldObservation
# ---------------------------------------------------------------------------


class FieldObservation:
    """
    Aggregated observations for one structural path.

    ``presence`` counts non-null observations and ``total`` counts the
    enclosing objects seen, so ``presence <= total`` always holds and a
    field is optional iff ``presence < total``.
    """

    __slots__ = (
        "kinds",
        "presence",
        "total",
        "non_integral",
        "out_of_int32",
        "children",
        "object_count",
        "element",
    )

    def __init__(self) -> None:
        self.kinds: Dict[str, int] = {}
        self.presence: int = 0
        self.total: int = 0
        self.non_integral: bool = False
        self.out_of_int32: bool = False
        self.children: Dict[str, FieldObservation] = {}
        self.object_count: int = 0
        self.element: Optional[FieldObservation] = None

    @property
    def observed_kinds(self) -> List[str]:
        """Kinds other than null, in first-observed order."""
        return [k for k, n in self.kinds.items() if n > 0 and k != ObservedKind.NULL.value]

    @property
    def is_optional(self) -> bool:
        return self.presence < self.total

    def __repr__(self) -> str:
        kinds: str = ",".join(f"{k}×{n}" for k, n in self.kinds.items())
        return f"<FieldObservation {kinds} {self.presence}/{self.total}>"


# ---------------------------------------------------------------------------
# Observation
# ---------------------------------------------------------------------------


def classify(value: Any) -> ObservedKind:
    """Map a raw decoded JSON value to its observed kind."""
    if value is None:
        return ObservedKind.NULL
    # bool is a subclass of int: test it first
    if isinstance(value, bool):
        return ObservedKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ObservedKind.NUMBER
    if isinstance(value, str):
        return ObservedKind.STRING
    if isinstance(value, Mapping):
        return ObservedKind.OBJECT
    if isinstance(value, (list, tuple)):
        return ObservedKind.ARRAY
    # dates from YAML, Decimals, ... behave like strings once serialised
    return ObservedKind.STRING


def observe(observation: FieldObservation, value: Any) -> FieldObservation:
    """
    Fold *value* into *observation* and return it.

    The caller owns ``total`` for this path; object scopes maintain the
    ``total`` of their own children.
    """
    kind: ObservedKind = classify(value)
    observation.kinds[kind.value] = observation.kinds.get(kind.value, 0) + 1

    if kind is ObservedKind.NULL:
        return observation

    observation.presence += 1

    if kind is ObservedKind.NUMBER:
        _observe_number(observation, value)
    elif kind is ObservedKind.OBJECT:
        _observe_object(observation, value)
    elif kind is ObservedKind.ARRAY:
        _observe_array(observation, value)

    return observation


def _observe_number(observation: FieldObservation, value: Any) -> None:
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            observation.non_integral = True
            return
        value = int(value)
    if value < INT32_MIN or value > INT32_MAX:
        observation.out_of_int32 = True


def _observe_object(observation: FieldObservation, value: Mapping) -> None:
    observation.object_count += 1
    for key, child_value in value.items():
        child: Optional[FieldObservation] = observation.children.get(key)
        if child is None:
            child = FieldObservation()
            observation.children[key] = child
        observe(child, child_value)
    # children first seen now still count every earlier object as "absent"
    for child in observation.children.values():
        child.total = observation.object_count


def _observe_array(observation: FieldObservation, value: Any) -> None:
    if observation.element is None:
        observation.element = FieldObservation()
    for item in value:
        observation.element.total += 1
        observe(observation.element, item)


def observe_document(root: FieldObservation, document: Mapping) -> FieldObservation:
    """Fold one sampled document into the root object scope."""
    root.total += 1
    return observe(root, document)


# ---------------------------------------------------------------------------
# Merge (associative, commutative)
# ---------------------------------------------------------------------------


def merge_observations(
    left: Optional[FieldObservation],
    right: Optional[FieldObservation],
) -> Optional[FieldObservation]:
    """
    Combine two observation trees gathered over disjoint sample sets.

    ``merge(a, b)`` describes the same population as observing both sample
    sets into one tree.  Kind order follows *left* first.
    """
    if left is None:
        return _copy(right)
    if right is None:
        return _copy(left)

    merged: FieldObservation = FieldObservation()
    for source in (left, right):
        for kind, count in source.kinds.items():
            merged.kinds[kind] = merged.kinds.get(kind, 0) + count
    merged.presence = left.presence + right.presence
    merged.total = left.total + right.total
    merged.non_integral = left.non_integral or right.non_integral
    merged.out_of_int32 = left.out_of_int32 or right.out_of_int32
    merged.object_count = left.object_count + right.object_count

    for key in list(left.children) + [k for k in right.children if k not in left.children]:
        left_child: Optional[FieldObservation] = left.children.get(key)
        right_child: Optional[FieldObservation] = right.children.get(key)
        child: Optional[FieldObservation] = merge_observations(left_child, right_child)
        if child is not None:
            child.total = merged.object_count
            merged.children[key] = child

    merged.element = merge_observations(left.element, right.element)
    return merged


def _copy(source: Optional[FieldObservation]) -> Optional[FieldObservation]:
    if source is None:
        return None
    clone: FieldObservation = FieldObservation()
    clone.kinds = dict(source.kinds)
    clone.presence = source.presence
    clone.total = source.total
    clone.non_integral = source.non_integral
    clone.out_of_int32 = source.out_of_int32
    clone.object_count = source.object_count
    clone.children = {k: _copy(v) for k, v in source.children.items()}  # type: ignore[misc]
    clone.element = _copy(source.element)
    return clone


# ---------------------------------------------------------------------------
# Scalar resolution
# ---------------------------------------------------------------------------


def resolve_scalar(observation: FieldObservation) -> Tuple[ScalarKind, bool]:
    """
    Resolve a non-object, non-array path to a scalar kind.

    Returns ``(kind, conflicted)``.  Precedence:

    * only nulls (or nothing)              → string
    * numbers only                         → integer, or float once any value
                                             was non-integral or beyond int32
    * mixed string / number / boolean      → string   (conflict)
    * object or array mixed with anything  → unknown  (conflict)
    """
    kinds: List[str] = observation.observed_kinds
    distinct = set(kinds)

    if not distinct:
        return ScalarKind.STRING, False

    if len(distinct) == 1:
        only: str = kinds[0]
        if only == ObservedKind.NUMBER.value:
            if observation.non_integral or observation.out_of_int32:
                return ScalarKind.FLOAT, False
            return ScalarKind.INTEGER, False
        if only == ObservedKind.BOOLEAN.value:
            return ScalarKind.BOOLEAN, False
        if only == ObservedKind.STRING.value:
            return ScalarKind.STRING, False
        # a lone object/array kind is not a scalar; callers handle those
        return ScalarKind.UNKNOWN, False

    if distinct.issubset(_SCALAR_OBSERVED):
        return ScalarKind.STRING, True

    return ScalarKind.UNKNOWN, True


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "INT32_MIN",
    "INT32_MAX",
    "FieldObservation",
    "classify",
    "observe",
    "observe_document",
    "merge_observations",
    "resolve_scalar",
]

logger.debug("docschema.unifier loaded — %d public symbols.", len(__all__))
