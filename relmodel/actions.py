"""
relmodel — Actions

Builds and reads the {"type", "payload"} actions a model consumes.

Action types are namespaced per entity type, e.g. "account.add", so several
models can share one dispatch channel. Batches use the "model" scope.

  creators.add("account", "a1", [{"rel": "profile_id", "id": "p1"}])
  → {"type": "account.add",
     "payload": {"entity": "account", "id": "a1",
                 "attachables": [{"rel": "profile_id", "id": "p1"}]}}
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from relmodel.primitives import validate_action
from relmodel.schema import ModelSchemaReader
from relmodel.types import Add, Attach, Attachable, Batch, Detach, Operation, Remove

logger = logging.getLogger(__name__)

BATCH_SCOPE = "model"
ENTITY_VERBS: tuple[str, ...] = ("add", "remove", "attach", "detach")

Action = dict[str, Any]


class ActionTypes:
    """Maps (entity_type, verb) to namespaced type strings and back."""

    def __init__(self, reader: ModelSchemaReader, namespaced: Callable[[str, str], str]) -> None:
        self._namespaced = namespaced
        self._resolved: dict[str, tuple[str | None, str]] = {}
        for entity_type in reader.entity_types:
            for verb in ENTITY_VERBS:
                self._resolved[namespaced(entity_type, verb)] = (entity_type, verb)
        self.batch = namespaced(BATCH_SCOPE, "batch")
        self._resolved[self.batch] = (None, "batch")

    def of(self, entity_type: str, verb: str) -> str:
        return self._namespaced(entity_type, verb)

    def resolve(self, action_type: Any) -> tuple[str | None, str] | None:
        """(entity_type, verb) for a known type string, else None."""
        if not isinstance(action_type, str):
            return None
        return self._resolved.get(action_type)

    def __contains__(self, action_type: object) -> bool:
        return isinstance(action_type, str) and action_type in self._resolved

    # -- operation <-> action ----------------------------------------------

    def parse(self, action: Any) -> Operation | None:
        """
        Turn an action dict into an Operation.
        Unknown types and malformed payloads return None (the reducer's no-op).
        """
        if not isinstance(action, dict):
            return None
        resolved = self.resolve(action.get("type"))
        if resolved is None:
            logger.debug("actions: unknown action type %r", action.get("type"))
            return None
        entity_type, verb = resolved

        payload = action.get("payload")
        errors = validate_action(verb, payload)
        if errors:
            logger.debug("actions: invalid %s payload: %s", action["type"], "; ".join(errors))
            return None

        if verb == "batch":
            parsed = (self.parse(a) for a in payload["actions"])
            return Batch(tuple(op for op in parsed if op is not None))

        if payload["entity"] != entity_type:
            logger.debug("actions: %s payload names entity %r", action["type"], payload["entity"])
            return None

        if verb == "add":
            return Add(
                entity=entity_type,
                id=payload["id"],
                attachables=tuple(Attachable.from_dict(a) for a in payload.get("attachables", [])),
            )
        if verb == "remove":
            return Remove(entity=entity_type, id=payload["id"])
        if verb == "attach":
            return Attach(
                entity=entity_type,
                id=payload["id"],
                rel=payload["rel"],
                target=payload["target"],
                index=payload.get("index"),
                reciprocal_index=payload.get("reciprocal_index"),
            )
        return Detach(entity=entity_type, id=payload["id"], rel=payload["rel"], target=payload["target"])

    def build(self, operation: Operation) -> Action:
        """Inverse of parse: the action dict for an Operation."""
        if isinstance(operation, Batch):
            return {"type": self.batch, "payload": {"actions": [self.build(op) for op in operation.operations]}}

        payload: dict[str, Any] = {"entity": operation.entity, "id": operation.id}
        if isinstance(operation, Add):
            verb = "add"
            payload["attachables"] = [a.to_dict() for a in operation.attachables]
        elif isinstance(operation, Remove):
            verb = "remove"
        elif isinstance(operation, Attach):
            verb = "attach"
            payload["rel"] = operation.rel
            payload["target"] = operation.target
            if operation.index is not None:
                payload["index"] = operation.index
            if operation.reciprocal_index is not None:
                payload["reciprocal_index"] = operation.reciprocal_index
        else:
            verb = "detach"
            payload["rel"] = operation.rel
            payload["target"] = operation.target
        return {"type": self.of(operation.entity, verb), "payload": payload}


class ActionCreators:
    """
    Action constructors.

    Entity types and relation names are checked against the schema reader
    first, so the configured handlers see a bad reference at dispatch time.
    The action is built either way; the reducer treats it as a no-op.
    """

    def __init__(self, reader: ModelSchemaReader, types: ActionTypes) -> None:
        self._reader = reader
        self._types = types

    def add(
        self,
        entity_type: str,
        entity_id: str,
        attachables: Iterable[Attachable | dict[str, Any]] | None = None,
    ) -> Action:
        items = [a if isinstance(a, Attachable) else Attachable.from_dict(a) for a in attachables or ()]
        if self._reader.check_entity(entity_type):
            for a in items:
                self._reader.check_rel(entity_type, a.rel)
        return self._types.build(Add(entity=entity_type, id=entity_id, attachables=tuple(items)))

    def remove(self, entity_type: str, entity_id: str) -> Action:
        self._reader.check_entity(entity_type)
        return self._types.build(Remove(entity=entity_type, id=entity_id))

    def attach(
        self,
        entity_type: str,
        entity_id: str,
        rel: str,
        target_id: str,
        index: int | None = None,
        reciprocal_index: int | None = None,
    ) -> Action:
        self._reader.check_rel(entity_type, rel)
        return self._types.build(
            Attach(
                entity=entity_type,
                id=entity_id,
                rel=rel,
                target=target_id,
                index=index,
                reciprocal_index=reciprocal_index,
            )
        )

    def detach(self, entity_type: str, entity_id: str, rel: str, target_id: str) -> Action:
        self._reader.check_rel(entity_type, rel)
        return self._types.build(Detach(entity=entity_type, id=entity_id, rel=rel, target=target_id))

    def batch(self, *actions: Action) -> Action:
        return {"type": self._types.batch, "payload": {"actions": list(actions)}}


def make_actions(
    reader: ModelSchemaReader, namespaced: Callable[[str, str], str]
) -> tuple[ActionCreators, ActionTypes]:
    types = ActionTypes(reader, namespaced)
    return ActionCreators(reader, types), types
