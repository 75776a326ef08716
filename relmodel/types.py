"""
relmodel — Shared Types

Data classes used across schema reader, reducer, actions and inverse.
These are the contracts that bind the package together.

State shape:
  {entity_type: {id: {rel_field: None | id | [id, ...]}}}

Operations are immutable values. The reducer reads them, never changes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel

# ---------------------------------------------------------------------------
# Schema model
# ---------------------------------------------------------------------------


class Cardinality(str, Enum):
    """How many ids a relation field holds."""

    ONE = "one"
    MANY = "many"


class RelationDescriptor(BaseModel):
    """
    One relation field of an entity type.

    entity      — target entity type
    cardinality — ONE (single optional id) or MANY (ordered list of ids)
    reciprocal  — field on the target entity type that mirrors this one
    """

    model_config = {"extra": "forbid", "frozen": True}

    entity: str
    cardinality: Cardinality
    reciprocal: str | None = None


@dataclass(frozen=True)
class Reciprocal:
    """The mirror side of a relation, resolved by the schema reader."""

    entity: str
    field: str
    cardinality: Cardinality


EntitySchema = dict[str, Union[RelationDescriptor, dict[str, Any]]]
Schema = dict[str, EntitySchema]

Record = dict[str, Any]
EntityState = dict[str, Record]
State = dict[str, EntityState]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attachable:
    """
    Request to link a newly added entity to an existing one.

    index is the position of `id` inside the new entity's MANY list.
    reciprocal_index is the position of the new entity's id inside the
    target's MANY list. Both are ignored for ONE fields.
    """

    rel: str
    id: str
    index: int | None = None
    reciprocal_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"rel": self.rel, "id": self.id}
        if self.index is not None:
            d["index"] = self.index
        if self.reciprocal_index is not None:
            d["reciprocal_index"] = self.reciprocal_index
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Attachable:
        return cls(
            rel=d["rel"],
            id=d["id"],
            index=d.get("index"),
            reciprocal_index=d.get("reciprocal_index"),
        )


@dataclass(frozen=True)
class Add:
    entity: str
    id: str
    attachables: tuple[Attachable, ...] = ()


@dataclass(frozen=True)
class Remove:
    entity: str
    id: str


@dataclass(frozen=True)
class Attach:
    entity: str
    id: str
    rel: str
    target: str
    index: int | None = None
    reciprocal_index: int | None = None


@dataclass(frozen=True)
class Detach:
    entity: str
    id: str
    rel: str
    target: str


@dataclass(frozen=True)
class Batch:
    """Operations applied in order as a single state transition."""

    operations: tuple[Operation, ...] = field(default_factory=tuple)


Operation = Union[Add, Remove, Attach, Detach, Batch]

OPERATION_TYPES: tuple[type, ...] = (Add, Remove, Attach, Detach, Batch)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_operation(value: Any) -> bool:
    """True if value is one of the reducer's operation types."""
    return isinstance(value, OPERATION_TYPES)


def _is_index(value: Any) -> bool:
    return value is None or (isinstance(value, int) and not isinstance(value, bool))


def _is_attachable(value: Any) -> bool:
    return (
        isinstance(value, Attachable)
        and isinstance(value.rel, str)
        and isinstance(value.id, str)
        and _is_index(value.index)
        and _is_index(value.reciprocal_index)
    )


def is_well_formed(value: Any) -> bool:
    """
    True if value is an operation whose names and ids are strings and whose
    indexes are ints. Batch members are checked one by one as they are applied.
    """
    if isinstance(value, Batch):
        return isinstance(value.operations, (tuple, list))
    if not is_operation(value):
        return False
    if not (isinstance(value.entity, str) and isinstance(value.id, str)):
        return False
    if isinstance(value, Add):
        return isinstance(value.attachables, (tuple, list)) and all(_is_attachable(a) for a in value.attachables)
    if isinstance(value, Attach):
        return (
            isinstance(value.rel, str)
            and isinstance(value.target, str)
            and _is_index(value.index)
            and _is_index(value.reciprocal_index)
        )
    if isinstance(value, Detach):
        return isinstance(value.rel, str) and isinstance(value.target, str)
    return True
