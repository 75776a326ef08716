"""
relmodel — Reducer

Pure function: (state, operation) → state
No side effects. No IO. Never raises for a well-typed operation.

Both sides of every relation with a declared reciprocal are written together.
Missing ids and unknown relations are no-ops; a no-op returns the input
state object itself. Reasons are logged at DEBUG.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from relmodel.schema import ModelSchemaReader
from relmodel.state import Draft, as_id_list, holds, new_record, with_id, without_id, without_last
from relmodel.types import (
    Add,
    Attach,
    Attachable,
    Batch,
    Cardinality,
    Detach,
    Operation,
    Remove,
    State,
    is_well_formed,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reduce(reader: ModelSchemaReader, state: State, operation: Operation) -> State:
    """
    Apply one operation (or a Batch) to state and return the next state.

    The input state is never modified. Branches the operation does not touch
    are shared with the input.
    """
    draft = Draft(state)
    _apply(reader, draft, operation)
    return draft.commit()


def reduce_all(reader: ModelSchemaReader, state: State, operations: Iterable[Operation]) -> State:
    """Apply operations in order as one transition. Same as reduce(Batch(...))."""
    return reduce(reader, state, Batch(tuple(operations)))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _apply(reader: ModelSchemaReader, draft: Draft, operation: Any) -> None:
    handler = _HANDLERS.get(type(operation))
    if handler is None:
        logger.debug("reduce: ignoring unknown operation %r", operation)
        return
    if not is_well_formed(operation):
        logger.debug("reduce: ignoring malformed operation %r", operation)
        return
    handler(reader, draft, operation)


def _link(
    draft: Draft,
    entity_type: str,
    entity_id: str,
    field: str,
    cardinality: Cardinality,
    value: str,
    index: int | None,
) -> None:
    """ONE overwrites; MANY inserts at index or appends. A missing field is initialized."""
    if cardinality is Cardinality.ONE:
        draft.set_field(entity_type, entity_id, field, value)
        return
    record = draft.get(entity_type, entity_id) or {}
    draft.set_field(entity_type, entity_id, field, with_id(as_id_list(record.get(field)), value, index))


def _unlink(
    draft: Draft,
    entity_type: str,
    entity_id: str,
    field: str,
    cardinality: Cardinality,
    value: str,
    every: bool = False,
) -> bool:
    """
    Drop value from a relation field. Returns False if it was not there.
    MANY fields lose their last occurrence, or every occurrence with every=True.
    """
    record = draft.get(entity_type, entity_id)
    if record is None or not holds(record.get(field), cardinality, value):
        return False
    if cardinality is Cardinality.ONE:
        draft.set_field(entity_type, entity_id, field, None)
    else:
        drop = without_id if every else without_last
        draft.set_field(entity_type, entity_id, field, drop(as_id_list(record.get(field)), value))
    return True


def _attach(
    reader: ModelSchemaReader,
    draft: Draft,
    entity_type: str,
    entity_id: str,
    rel: str,
    target_id: str,
    index: int | None,
    reciprocal_index: int | None,
) -> None:
    """Write source → target and, if declared, target → source. Caller checked the source."""
    desc = reader.find(entity_type, rel)
    if desc is None:
        logger.debug("attach: %s.%s is not a relation", entity_type, rel)
        return
    if not draft.exists(desc.entity, target_id):
        logger.debug("attach: target %s/%s does not exist", desc.entity, target_id)
        return

    _link(draft, entity_type, entity_id, rel, desc.cardinality, target_id, index)

    recip = reader.reciprocal_of(entity_type, rel)
    if recip is not None:
        _link(draft, recip.entity, target_id, recip.field, recip.cardinality, entity_id, reciprocal_index)


# ---------------------------------------------------------------------------
# Operation handlers
# ---------------------------------------------------------------------------


def _handle_add(reader: ModelSchemaReader, draft: Draft, op: Add) -> None:
    if not reader.has_entity(op.entity):
        logger.debug("add: unknown entity type %r", op.entity)
        return
    if draft.exists(op.entity, op.id):
        logger.debug("add: %s/%s already exists", op.entity, op.id)
        return

    draft.put(op.entity, op.id, new_record(reader, op.entity))
    for attachable in _effective_attachables(reader, draft, op):
        _attach(
            reader,
            draft,
            op.entity,
            op.id,
            attachable.rel,
            attachable.id,
            attachable.index,
            attachable.reciprocal_index,
        )


def _effective_attachables(reader: ModelSchemaReader, draft: Draft, op: Add) -> list[Attachable]:
    """
    Attachables that will actually be written.

    Unknown relations and missing targets are dropped. For a ONE field only
    the last remaining attachable is kept, so an overwritten target never
    gets a reciprocal pointing at the new entity.
    """
    usable: list[Attachable] = []
    for attachable in op.attachables:
        desc = reader.find(op.entity, attachable.rel)
        if desc is None:
            logger.debug("add: %s.%s is not a relation", op.entity, attachable.rel)
            continue
        if not draft.exists(desc.entity, attachable.id):
            logger.debug("add: attachable target %s/%s does not exist", desc.entity, attachable.id)
            continue
        usable.append(attachable)

    last_for_one: dict[str, int] = {}
    for i, attachable in enumerate(usable):
        if reader.find(op.entity, attachable.rel).cardinality is Cardinality.ONE:
            last_for_one[attachable.rel] = i

    return [
        attachable
        for i, attachable in enumerate(usable)
        if last_for_one.get(attachable.rel, i) == i
    ]


def _handle_remove(reader: ModelSchemaReader, draft: Draft, op: Remove) -> None:
    if not draft.exists(op.entity, op.id):
        logger.debug("remove: %s/%s does not exist", op.entity, op.id)
        return

    draft.delete(op.entity, op.id)

    # Any relation targeting this entity type may still hold the id
    for source_type, field, desc in reader.incoming(op.entity):
        for source_id in draft.ids(source_type):
            _unlink(draft, source_type, source_id, field, desc.cardinality, op.id, every=True)


def _handle_attach(reader: ModelSchemaReader, draft: Draft, op: Attach) -> None:
    if not draft.exists(op.entity, op.id):
        logger.debug("attach: %s/%s does not exist", op.entity, op.id)
        return
    _attach(reader, draft, op.entity, op.id, op.rel, op.target, op.index, op.reciprocal_index)


def _handle_detach(reader: ModelSchemaReader, draft: Draft, op: Detach) -> None:
    source = draft.get(op.entity, op.id)
    if source is None:
        logger.debug("detach: %s/%s does not exist", op.entity, op.id)
        return
    desc = reader.find(op.entity, op.rel)
    if desc is None:
        logger.debug("detach: %s.%s is not a relation", op.entity, op.rel)
        return

    forward = holds(source.get(op.rel), desc.cardinality, op.target)

    recip = reader.reciprocal_of(op.entity, op.rel)
    backward = False
    if recip is not None:
        target = draft.get(recip.entity, op.target)
        backward = target is not None and holds(target.get(recip.field), recip.cardinality, op.id)

    if not forward and not backward:
        logger.debug("detach: %s/%s.%s does not reference %s", op.entity, op.id, op.rel, op.target)
        return
    if recip is not None and forward != backward:
        logger.debug(
            "detach: %s/%s.%s ↔ %s is only attached on one side, removing what remains",
            op.entity,
            op.id,
            op.rel,
            op.target,
        )

    _unlink(draft, op.entity, op.id, op.rel, desc.cardinality, op.target)
    if recip is not None:
        _unlink(draft, recip.entity, op.target, recip.field, recip.cardinality, op.id)


def _handle_batch(reader: ModelSchemaReader, draft: Draft, op: Batch) -> None:
    for operation in op.operations:
        _apply(reader, draft, operation)


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[type, Callable[[ModelSchemaReader, Draft, Any], None]] = {
    Add: _handle_add,
    Remove: _handle_remove,
    Attach: _handle_attach,
    Detach: _handle_detach,
    Batch: _handle_batch,
}
