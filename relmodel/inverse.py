"""
relmodel — Inverse operations

invert(reader, state, op) returns the operation that, applied right after
`op`, brings the state back to `state`. Used for undo/redo: the pair
(op, invert(...)) dispatched as one Batch is a no-op.

`state` is the state *before* `op`. Positions inside MANY lists are read from
it and threaded through index / reciprocal_index so order is restored too,
duplicate entries included.

Restoration is exact when both sides of every touched edge were consistent
before `op`. Half-attached edges and dangling ids are restored on a
best-effort basis.
"""

from __future__ import annotations

from relmodel.reducer import reduce
from relmodel.schema import ModelSchemaReader
from relmodel.selectors import get_record
from relmodel.state import as_id_list
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

NOOP = Batch(())


def invert(reader: ModelSchemaReader, state: State, operation: Operation) -> Operation:
    handler = _INVERTERS.get(type(operation))
    if handler is None or not is_well_formed(operation):
        return NOOP
    return handler(reader, state, operation)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _positions(
    state: State,
    entity_type: str,
    entity_id: str,
    field: str,
    cardinality: Cardinality,
    value: str,
) -> list[int | None]:
    """
    Where value sits in a relation field: every index for MANY, [None] for a
    ONE field holding it, [] when absent.
    """
    record = get_record(state, entity_type, entity_id) or {}
    if cardinality is Cardinality.MANY:
        return [i for i, v in enumerate(as_id_list(record.get(field))) if v == value]
    return [None] if record.get(field) == value else []


def _edge_positions(
    reader: ModelSchemaReader,
    state: State,
    entity_type: str,
    entity_id: str,
    rel: str,
    target_id: str,
) -> tuple[list[int | None], list[int | None]]:
    """Positions of the edge on the source side and on the reciprocal side."""
    desc = reader.find(entity_type, rel)
    forward = _positions(state, entity_type, entity_id, rel, desc.cardinality, target_id) if desc else []
    recip = reader.reciprocal_of(entity_type, rel)
    backward: list[int | None] = []
    if recip is not None:
        backward = _positions(state, recip.entity, target_id, recip.field, recip.cardinality, entity_id)
    return forward, backward


def _relinked(
    reader: ModelSchemaReader,
    before: State,
    after: State,
    entity_type: str,
    entity_id: str,
    rel: str,
    target_id: str,
) -> list[Operation]:
    """
    Detach every occurrence of an edge found in `after`, then attach it again
    at each position it had in `before`, lowest first.
    """
    forward, backward = _edge_positions(reader, after, entity_type, entity_id, rel, target_id)
    ops: list[Operation] = [
        Detach(entity=entity_type, id=entity_id, rel=rel, target=target_id)
        for _ in range(max(len(forward), len(backward)))
    ]

    forward, backward = _edge_positions(reader, before, entity_type, entity_id, rel, target_id)
    for i in range(max(len(forward), len(backward))):
        ops.append(
            Attach(
                entity=entity_type,
                id=entity_id,
                rel=rel,
                target=target_id,
                index=forward[i] if i < len(forward) else None,
                reciprocal_index=backward[i] if i < len(backward) else None,
            )
        )
    return ops


def _overwritten_reciprocals(
    reader: ModelSchemaReader,
    before: State,
    after: State,
    entity_type: str,
    entity_id: str,
    rel: str,
    target_id: str,
) -> list[Operation]:
    """Restore the edge a ONE reciprocal on target_id held before being overwritten."""
    recip = reader.reciprocal_of(entity_type, rel)
    if recip is None or recip.cardinality is not Cardinality.ONE:
        return []
    target = get_record(before, recip.entity, target_id) or {}
    previous = target.get(recip.field)
    if previous is None or previous == entity_id:
        return []
    return _relinked(reader, before, after, entity_type, previous, rel, target_id)


# ---------------------------------------------------------------------------
# Per-operation inverters
# ---------------------------------------------------------------------------


def _invert_add(reader: ModelSchemaReader, state: State, op: Add) -> Operation:
    after = reduce(reader, state, op)
    if after is state:
        return NOOP

    ops: list[Operation] = [Remove(entity=op.entity, id=op.id)]
    record = get_record(after, op.entity, op.id) or {}
    for rel, desc in reader.relations(op.entity).items():
        value = record.get(rel)
        targets = as_id_list(value) if desc.cardinality is Cardinality.MANY else [value] if value else []
        for target_id in targets:
            ops.extend(_overwritten_reciprocals(reader, state, after, op.entity, op.id, rel, target_id))
    return Batch(tuple(ops))


def _invert_remove(reader: ModelSchemaReader, state: State, op: Remove) -> Operation:
    record = get_record(state, op.entity, op.id)
    if record is None:
        return NOOP

    attachables: list[Attachable] = []
    for rel, desc in reader.relations(op.entity).items():
        recip = reader.reciprocal_of(op.entity, rel)
        value = record.get(rel)
        if desc.cardinality is Cardinality.MANY:
            pairs = list(enumerate(as_id_list(value)))
        else:
            pairs = [(None, value)] if value is not None else []
        # The n-th attachable to a target takes the n-th position on its side
        seen: dict[str, int] = {}
        for index, target_id in pairs:
            reciprocal_index = None
            if recip is not None:
                backward = _positions(state, recip.entity, target_id, recip.field, recip.cardinality, op.id)
                n = seen.get(target_id, 0)
                reciprocal_index = backward[n] if n < len(backward) else None
                seen[target_id] = n + 1
            attachables.append(Attachable(rel=rel, id=target_id, index=index, reciprocal_index=reciprocal_index))

    ops: list[Operation] = [Add(entity=op.entity, id=op.id, attachables=tuple(attachables))]

    # One-way relations pointing at the removed id are not covered by the attachables
    for source_type, field, desc in reader.incoming(op.entity):
        if reader.reciprocal_of(source_type, field) is not None:
            continue
        for source_id in state.get(source_type, {}):
            if source_type == op.entity and source_id == op.id:
                continue
            for index in _positions(state, source_type, source_id, field, desc.cardinality, op.id):
                ops.append(Attach(entity=source_type, id=source_id, rel=field, target=op.id, index=index))
    return Batch(tuple(ops))


def _invert_attach(reader: ModelSchemaReader, state: State, op: Attach) -> Operation:
    after = reduce(reader, state, op)
    if after is state:
        return NOOP

    ops = _relinked(reader, state, after, op.entity, op.id, op.rel, op.target)

    desc = reader.find(op.entity, op.rel)
    previous = (get_record(state, op.entity, op.id) or {}).get(op.rel)
    if desc.cardinality is Cardinality.ONE and previous is not None and previous != op.target:
        ops.extend(_relinked(reader, state, after, op.entity, op.id, op.rel, previous))

    ops.extend(_overwritten_reciprocals(reader, state, after, op.entity, op.id, op.rel, op.target))
    return Batch(tuple(ops))


def _invert_detach(reader: ModelSchemaReader, state: State, op: Detach) -> Operation:
    if get_record(state, op.entity, op.id) is None:
        return NOOP
    forward, backward = _edge_positions(reader, state, op.entity, op.id, op.rel, op.target)
    if not forward and not backward:
        return NOOP
    # Detach drops the last occurrence on each side
    return Attach(
        entity=op.entity,
        id=op.id,
        rel=op.rel,
        target=op.target,
        index=forward[-1] if forward else None,
        reciprocal_index=backward[-1] if backward else None,
    )


def _invert_batch(reader: ModelSchemaReader, state: State, op: Batch) -> Operation:
    inverses: list[Operation] = []
    current = state
    for operation in op.operations:
        inverses.append(invert(reader, current, operation))
        current = reduce(reader, current, operation)
    return Batch(tuple(reversed(inverses)))


_INVERTERS = {
    Add: _invert_add,
    Remove: _invert_remove,
    Attach: _invert_attach,
    Detach: _invert_detach,
    Batch: _invert_batch,
}
