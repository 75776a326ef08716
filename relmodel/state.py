"""
relmodel — State shape helpers

empty_state, record initialization, and the copy-on-write Draft the reducer
writes through. A Draft never touches the state it was opened on: the first
write to a record copies the record, its entity map and the top-level dict,
once each. Everything else stays shared with the input, so untouched
branches keep their identity.
"""

from __future__ import annotations

from typing import Any

from relmodel.schema import ModelSchemaReader
from relmodel.types import Cardinality, Record, State


def empty_state(reader: ModelSchemaReader) -> State:
    """Every declared entity type mapped to an empty id → record map."""
    return {entity_type: {} for entity_type in reader.entity_types}


def empty_value(cardinality: Cardinality) -> Any:
    return [] if cardinality is Cardinality.MANY else None


def new_record(reader: ModelSchemaReader, entity_type: str) -> Record:
    """A record with every relation field of entity_type initialized."""
    return {field: empty_value(desc.cardinality) for field, desc in reader.relations(entity_type).items()}


# ---------------------------------------------------------------------------
# Ordered id lists (never mutated in place)
# ---------------------------------------------------------------------------


def as_id_list(value: Any) -> list[str]:
    """MANY field value as a list; a missing or malformed value reads as empty."""
    if isinstance(value, list):
        return value
    return []


def with_id(ids: list[str], value: str, index: int | None = None) -> list[str]:
    """Copy of ids with value inserted at index, or appended."""
    out = list(ids)
    if index is None:
        out.append(value)
    else:
        out.insert(index, value)
    return out


def without_id(ids: list[str], value: str) -> list[str]:
    """Copy of ids with every occurrence of value removed, order preserved."""
    return [i for i in ids if i != value]


def without_last(ids: list[str], value: str) -> list[str]:
    """Copy of ids with the last occurrence of value removed."""
    out = list(ids)
    if value in out:
        del out[len(out) - 1 - out[::-1].index(value)]
    return out


def holds(value: Any, cardinality: Cardinality, target: str) -> bool:
    """True if a relation field value references target."""
    if cardinality is Cardinality.MANY:
        return target in as_id_list(value)
    return value == target


# ---------------------------------------------------------------------------
# Draft
# ---------------------------------------------------------------------------


class Draft:
    """
    Copy-on-write view of a state for the duration of one reduce call.

    Reads see earlier writes. commit() returns the input state itself when
    nothing was written.
    """

    def __init__(self, base: State) -> None:
        self._base = base
        self._state: State | None = None
        self._copied_maps: set[str] = set()
        self._copied_records: set[tuple[str, str]] = set()

    @property
    def current(self) -> State:
        return self._state if self._state is not None else self._base

    @property
    def changed(self) -> bool:
        return self._state is not None

    def get(self, entity_type: str, entity_id: str) -> Record | None:
        records = self.current.get(entity_type)
        if not isinstance(records, dict):
            return None
        record = records.get(entity_id)
        return record if isinstance(record, dict) else None

    def exists(self, entity_type: str, entity_id: str) -> bool:
        return self.get(entity_type, entity_id) is not None

    def ids(self, entity_type: str) -> list[str]:
        records = self.current.get(entity_type)
        return list(records) if isinstance(records, dict) else []

    def _records(self, entity_type: str) -> dict[str, Record]:
        if self._state is None:
            self._state = dict(self._base)
        if entity_type not in self._copied_maps:
            existing = self._state.get(entity_type)
            self._state[entity_type] = dict(existing) if isinstance(existing, dict) else {}
            self._copied_maps.add(entity_type)
        return self._state[entity_type]

    def put(self, entity_type: str, entity_id: str, record: Record) -> None:
        """Store a record this draft owns (freshly built by the caller)."""
        self._records(entity_type)[entity_id] = record
        self._copied_records.add((entity_type, entity_id))

    def set_field(self, entity_type: str, entity_id: str, field: str, value: Any) -> None:
        """Write one field of an existing record, copying the record first."""
        record = self.get(entity_type, entity_id)
        if record is not None and field in record and record[field] == value:
            return
        records = self._records(entity_type)
        key = (entity_type, entity_id)
        if key not in self._copied_records:
            records[entity_id] = dict(records[entity_id])
            self._copied_records.add(key)
        records[entity_id][field] = value

    def delete(self, entity_type: str, entity_id: str) -> None:
        del self._records(entity_type)[entity_id]
        self._copied_records.discard((entity_type, entity_id))

    def commit(self) -> State:
        return self.current
