"""
relmodel — normalized in-memory relational store.

Components:
  schema    — ModelSchemaReader: validated relation lookups, reciprocals
  reducer   — (state, operation) → state  (pure, never mutates its input)
  actions   — namespaced {"type", "payload"} actions and their creators
  inverse   — the operation that undoes another (undo/redo)
  model     — make_model(schema) bundles all of the above

Lookup helpers (from selectors):
  get_record, get_related, is_attached
"""

from relmodel.config import ModelOptions, Settings, default_namespaced
from relmodel.model import Model, make_model
from relmodel.reducer import reduce, reduce_all
from relmodel.schema import (
    InvalidEntityError,
    InvalidRelError,
    ModelSchemaReader,
    SchemaError,
    log_invalid_entity,
    log_invalid_rel,
    raise_invalid_entity,
    raise_invalid_rel,
)
from relmodel.selectors import get_record, get_related, is_attached
from relmodel.state import empty_state
from relmodel.types import (
    Add,
    Attach,
    Attachable,
    Batch,
    Cardinality,
    Detach,
    RelationDescriptor,
    Remove,
)

__all__ = [
    "make_model",
    "Model",
    "ModelOptions",
    "Settings",
    "default_namespaced",
    "ModelSchemaReader",
    "SchemaError",
    "InvalidEntityError",
    "InvalidRelError",
    "raise_invalid_entity",
    "raise_invalid_rel",
    "log_invalid_entity",
    "log_invalid_rel",
    "reduce",
    "reduce_all",
    "empty_state",
    "get_record",
    "get_related",
    "is_attached",
    "Cardinality",
    "RelationDescriptor",
    "Attachable",
    "Add",
    "Remove",
    "Attach",
    "Detach",
    "Batch",
]
