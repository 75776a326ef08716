"""
relmodel — Model

Bundles one schema with its reader, action types, action creators and
reducer:

  model = make_model(FORUM_SCHEMA)
  state = model.reduce(model.empty_state, model.creators.add("account", "a1"))
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import Any

from relmodel import inverse, reducer
from relmodel.actions import Action, ActionCreators, ActionTypes, make_actions
from relmodel.config import ModelOptions
from relmodel.schema import ModelSchemaReader
from relmodel.state import empty_state
from relmodel.types import Operation, Schema, State, is_operation

logger = logging.getLogger(__name__)


class Model:
    """A schema plus everything needed to build and apply actions against it."""

    def __init__(self, schema: Schema, options: ModelOptions | None = None) -> None:
        self.options = options or ModelOptions()
        self.reader = ModelSchemaReader(
            schema,
            on_invalid_entity=self.options.on_invalid_entity,
            on_invalid_rel=self.options.on_invalid_rel,
        )
        self.creators: ActionCreators
        self.types: ActionTypes
        self.creators, self.types = make_actions(self.reader, self.options.namespaced)

    @property
    def empty_state(self) -> State:
        """A fresh empty state on every access."""
        return empty_state(self.reader)

    def to_operation(self, action: Action | Operation) -> Operation | None:
        if is_operation(action):
            return action
        return self.types.parse(action)

    def reduce(self, state: State, action: Action | Operation) -> State:
        """
        Apply one action dict or Operation. Total: anything that does not parse
        leaves the state unchanged.
        """
        operation = self.to_operation(action)
        if operation is None:
            return state
        return reducer.reduce(self.reader, state, operation)

    def replay(self, actions: Iterable[Action | Operation], state: State | None = None) -> State:
        """
        Rebuild a state by reducing over actions, starting from empty.
        replay(actions) == reduce(reduce(reduce(empty, a1), a2), a3)...
        """
        snapshot = self.empty_state if state is None else state
        for action in actions:
            snapshot = self.reduce(snapshot, action)
        return snapshot

    def invert(self, state: State, action: Action | Operation) -> Action:
        """The action that undoes `action` when dispatched right after it."""
        operation = self.to_operation(action)
        if operation is None:
            return self.creators.batch()
        return self.types.build(inverse.invert(self.reader, state, operation))


def make_model(schema: Schema, options: ModelOptions | None = None, **overrides: Any) -> Model:
    """
    Build a Model. Keyword overrides replace single ModelOptions fields:

      make_model(schema, on_invalid_rel=log_invalid_rel)
    """
    if overrides:
        options = dataclasses.replace(options or ModelOptions(), **overrides)
    logger.debug("make_model: %d entity types", len(schema))
    return Model(schema, options)
