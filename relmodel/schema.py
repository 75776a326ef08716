"""
relmodel — Schema Reader

Validates a Schema once, at construction, and answers relation lookups:

  describe(entity_type, field)      → RelationDescriptor (raises SchemaError)
  find(entity_type, field)          → RelationDescriptor | None
  reciprocal_of(entity_type, field) → Reciprocal | None
  incoming(entity_type)             → every relation targeting entity_type

Schema problems go to the injected handlers. A handler that raises makes the
reader strict; a handler that returns lets the reader degrade the offending
relation (dropped, or kept one-way when only the reciprocal is wrong).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from relmodel.types import Reciprocal, RelationDescriptor, Schema

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SchemaError(Exception):
    """Base class for schema declaration and lookup errors."""


class InvalidEntityError(SchemaError):
    """An entity type is referenced but not declared."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(f"INVALID_ENTITY: '{entity_type}' is not declared in the schema")
        self.entity_type = entity_type


class InvalidRelError(SchemaError):
    """A relation field is unknown, malformed or disagrees with its reciprocal."""

    def __init__(self, entity_type: str, field: str) -> None:
        super().__init__(f"INVALID_REL: '{entity_type}.{field}' is not a valid relation")
        self.entity_type = entity_type
        self.field = field


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def raise_invalid_entity(entity_type: str) -> None:
    raise InvalidEntityError(entity_type)


def raise_invalid_rel(entity_type: str, field: str) -> None:
    raise InvalidRelError(entity_type, field)


def log_invalid_entity(entity_type: str) -> None:
    logger.warning("Schema: entity type %r is not declared", entity_type)


def log_invalid_rel(entity_type: str, field: str) -> None:
    logger.warning("Schema: relation %r on %r is invalid", field, entity_type)


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class ModelSchemaReader:
    """
    Read-only view over a validated schema.

    Lookups are plain dict reads; the reader holds no state beyond what
    construction computed.
    """

    def __init__(
        self,
        schema: Schema,
        *,
        on_invalid_entity: Callable[[str], None] = raise_invalid_entity,
        on_invalid_rel: Callable[[str, str], None] = raise_invalid_rel,
    ) -> None:
        self._on_invalid_entity = on_invalid_entity
        self._on_invalid_rel = on_invalid_rel

        descriptors = self._coerce(schema)
        self._relations: dict[str, dict[str, RelationDescriptor]] = {}
        self._reciprocals: dict[tuple[str, str], Reciprocal] = {}
        self._incoming: dict[str, list[tuple[str, str, RelationDescriptor]]] = {
            entity_type: [] for entity_type in descriptors
        }

        for entity_type, fields in descriptors.items():
            valid: dict[str, RelationDescriptor] = {}
            for field, desc in fields.items():
                if desc.entity not in descriptors:
                    self._on_invalid_entity(desc.entity)
                    continue
                if desc.reciprocal is not None and not self._pair(descriptors, entity_type, field, desc):
                    self._on_invalid_rel(entity_type, field)
                    desc = desc.model_copy(update={"reciprocal": None})
                valid[field] = desc
                self._incoming[desc.entity].append((entity_type, field, desc))
            self._relations[entity_type] = valid

        logger.debug(
            "Schema: %d entity types, %d relations, %d reciprocal fields",
            len(self._relations),
            sum(len(f) for f in self._relations.values()),
            len(self._reciprocals),
        )

    def _coerce(self, schema: Schema) -> dict[str, dict[str, RelationDescriptor]]:
        """Turn plain-dict descriptors into RelationDescriptors, dropping malformed ones."""
        out: dict[str, dict[str, RelationDescriptor]] = {}
        for entity_type, fields in schema.items():
            out[entity_type] = {}
            for field, raw in (fields or {}).items():
                if isinstance(raw, RelationDescriptor):
                    out[entity_type][field] = raw
                    continue
                try:
                    out[entity_type][field] = RelationDescriptor.model_validate(raw)
                except ValidationError:
                    self._on_invalid_rel(entity_type, field)
        return out

    def _pair(
        self,
        descriptors: dict[str, dict[str, RelationDescriptor]],
        entity_type: str,
        field: str,
        desc: RelationDescriptor,
    ) -> bool:
        """
        Register both directions of a reciprocal pair.

        The mirror field is paired even when it leaves its own reciprocal
        unset. Returns False when the mirror disagrees, or is already paired
        with another field.
        """
        if not self._reciprocal_agrees(descriptors, entity_type, field, desc):
            return False
        mirror = (desc.entity, desc.reciprocal)
        existing = self._reciprocals.get(mirror)
        if existing is not None and (existing.entity, existing.field) != (entity_type, field):
            return False
        self._reciprocals[(entity_type, field)] = Reciprocal(
            entity=desc.entity,
            field=desc.reciprocal,
            cardinality=descriptors[desc.entity][desc.reciprocal].cardinality,
        )
        self._reciprocals[mirror] = Reciprocal(entity=entity_type, field=field, cardinality=desc.cardinality)
        return True

    @staticmethod
    def _reciprocal_agrees(
        descriptors: dict[str, dict[str, RelationDescriptor]],
        entity_type: str,
        field: str,
        desc: RelationDescriptor,
    ) -> bool:
        target_desc = descriptors[desc.entity].get(desc.reciprocal or "")
        if target_desc is None:
            return False
        if target_desc.entity != entity_type:
            return False
        # The mirror may leave its own reciprocal unset, but must not name another field
        return target_desc.reciprocal in (None, field)

    # -- lookup -------------------------------------------------------------

    @property
    def entity_types(self) -> tuple[str, ...]:
        return tuple(self._relations)

    def has_entity(self, entity_type: str) -> bool:
        return isinstance(entity_type, str) and entity_type in self._relations

    def relations(self, entity_type: str) -> Mapping[str, RelationDescriptor]:
        """All valid relation fields of entity_type (empty if undeclared)."""
        return MappingProxyType(self._relations.get(entity_type, {}))

    def find(self, entity_type: str, field: str) -> RelationDescriptor | None:
        return self._relations.get(entity_type, {}).get(field)

    def describe(self, entity_type: str, field: str) -> RelationDescriptor:
        if entity_type not in self._relations:
            raise InvalidEntityError(entity_type)
        desc = self._relations[entity_type].get(field)
        if desc is None:
            raise InvalidRelError(entity_type, field)
        return desc

    def reciprocal_of(self, entity_type: str, field: str) -> Reciprocal | None:
        return self._reciprocals.get((entity_type, field))

    def incoming(self, entity_type: str) -> tuple[tuple[str, str, RelationDescriptor], ...]:
        """Every (source_entity, field, descriptor) whose target is entity_type."""
        return tuple(self._incoming.get(entity_type, ()))

    # -- lazy validation ----------------------------------------------------

    def check_entity(self, entity_type: Any) -> bool:
        """Report an undeclared entity type to the handler. True if declared."""
        if isinstance(entity_type, str) and entity_type in self._relations:
            return True
        self._on_invalid_entity(entity_type)
        return False

    def check_rel(self, entity_type: Any, field: Any) -> bool:
        """Report an unknown relation to the handlers. True if valid."""
        if not self.check_entity(entity_type):
            return False
        if isinstance(field, str) and field in self._relations[entity_type]:
            return True
        self._on_invalid_rel(entity_type, field)
        return False
