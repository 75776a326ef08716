"""
relmodel — Selectors

Direct id lookups over a state. Nothing here writes.
"""

from __future__ import annotations

from typing import Any

from relmodel.schema import ModelSchemaReader
from relmodel.state import as_id_list, holds
from relmodel.types import Cardinality, Record, State


def get_record(state: State, entity_type: str, entity_id: str) -> Record | None:
    records = state.get(entity_type)
    if not isinstance(records, dict):
        return None
    return records.get(entity_id)


def get_related(
    reader: ModelSchemaReader,
    state: State,
    entity_type: str,
    entity_id: str,
    rel: str,
) -> Any:
    """
    The ids entity_type/entity_id holds under rel.

    MANY → list of ids ([] if the record or field is missing)
    ONE  → id or None
    """
    desc = reader.describe(entity_type, rel)
    record = get_record(state, entity_type, entity_id) or {}
    if desc.cardinality is Cardinality.MANY:
        return list(as_id_list(record.get(rel)))
    return record.get(rel)


def is_attached(
    reader: ModelSchemaReader,
    state: State,
    entity_type: str,
    entity_id: str,
    rel: str,
    target_id: str,
) -> bool:
    """True if entity_type/entity_id references target_id under rel."""
    desc = reader.find(entity_type, rel)
    record = get_record(state, entity_type, entity_id)
    if desc is None or record is None:
        return False
    return holds(record.get(rel), desc.cardinality, target_id)
