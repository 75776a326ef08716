"""
relmodel configuration — environment variables and model options.

Settings are read from the environment at access time. ModelOptions is the
explicit configuration handed to a model: nothing in the reducer reads
process-wide state.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass

from relmodel.schema import (
    log_invalid_entity,
    log_invalid_rel,
    raise_invalid_entity,
    raise_invalid_rel,
)

DEFAULT_DELIMITER = "."

Namespaced = Callable[[str, str], str]
InvalidEntityHandler = Callable[[str], None]
InvalidRelHandler = Callable[[str, str], None]


def default_namespaced(entity_type: str, verb: str, delimiter: str = DEFAULT_DELIMITER) -> str:
    """account + add -> "account.add" """
    return f"{entity_type}{delimiter}{verb}"


def make_namespaced(delimiter: str) -> Namespaced:
    def namespaced(entity_type: str, verb: str) -> str:
        return default_namespaced(entity_type, verb, delimiter)

    return namespaced


class Settings:
    """
    Library settings from environment variables.

    Opt-in only: the reducer and the schema reader never read them. Pass
    ModelOptions.from_settings(Settings()) to a model to apply them.
    """

    @property
    def NAMESPACE_DELIMITER(self) -> str:
        return os.environ.get("RELMODEL_NAMESPACE_DELIMITER", DEFAULT_DELIMITER)

    @property
    def STRICT_SCHEMA(self) -> bool:
        # false: schema problems are logged and the offending relation degraded
        return os.environ.get("RELMODEL_STRICT_SCHEMA", "true").lower() == "true"


@dataclass(frozen=True)
class ModelOptions:
    """
    Configuration for one model instance.

    namespaced        — builds action type strings from (entity_type, verb)
    on_invalid_entity — called with an undeclared entity type
    on_invalid_rel    — called with (entity_type, field) for a bad relation
    """

    namespaced: Namespaced = default_namespaced
    on_invalid_entity: InvalidEntityHandler = raise_invalid_entity
    on_invalid_rel: InvalidRelHandler = raise_invalid_rel

    @classmethod
    def from_settings(cls, settings: Settings) -> ModelOptions:
        if settings.STRICT_SCHEMA:
            entity_handler, rel_handler = raise_invalid_entity, raise_invalid_rel
        else:
            entity_handler, rel_handler = log_invalid_entity, log_invalid_rel
        return cls(
            namespaced=make_namespaced(settings.NAMESPACE_DELIMITER),
            on_invalid_entity=entity_handler,
            on_invalid_rel=rel_handler,
        )
