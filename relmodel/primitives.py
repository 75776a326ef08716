"""
relmodel — Action Validation

Validates action payloads before they reach the reducer.
Validation is structural (well-formed?) not semantic (will it apply?).
The reducer handles semantic checks (does the record exist? etc.).
"""

from __future__ import annotations

from typing import Any

VERBS: tuple[str, ...] = ("add", "remove", "attach", "detach", "batch")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_action(verb: str, payload: Any) -> list[str]:
    """
    Validate an action's verb and payload structure.
    Returns a list of error strings. Empty list = valid.

    It does NOT check whether referenced entities exist.
    That's the reducer's job.
    """
    errors: list[str] = []

    if verb not in VERBS:
        errors.append(f"Unknown verb: {verb}")
        return errors

    if not isinstance(payload, dict):
        errors.append("Payload must be a non-null object")
        return errors

    errors.extend(_VALIDATORS[verb](payload))
    return errors


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_id(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_index(value: Any) -> bool:
    return value is None or (isinstance(value, int) and not isinstance(value, bool))


def _require_ids(p: dict, verb: str, *keys: str) -> list[str]:
    errors: list[str] = []
    for key in keys:
        if key not in p:
            errors.append(f"{verb} requires '{key}'")
        elif not _is_id(p[key]):
            errors.append(f"{verb}: '{key}' must be a non-empty string")
    return errors


# ---------------------------------------------------------------------------
# Per-verb validators
# ---------------------------------------------------------------------------


def _validate_add(p: dict) -> list[str]:
    errors = _require_ids(p, "add", "entity", "id")
    attachables = p.get("attachables", [])
    if not isinstance(attachables, list):
        errors.append("add: 'attachables' must be a list")
        return errors
    for i, a in enumerate(attachables):
        if not isinstance(a, dict):
            errors.append(f"add: attachable {i} must be an object")
            continue
        errors.extend(_require_ids(a, f"add: attachable {i}", "rel", "id"))
        for key in ("index", "reciprocal_index"):
            if not _is_index(a.get(key)):
                errors.append(f"add: attachable {i} '{key}' must be an int")
    return errors


def _validate_remove(p: dict) -> list[str]:
    return _require_ids(p, "remove", "entity", "id")


def _validate_attach(p: dict) -> list[str]:
    errors = _require_ids(p, "attach", "entity", "id", "rel", "target")
    for key in ("index", "reciprocal_index"):
        if not _is_index(p.get(key)):
            errors.append(f"attach: '{key}' must be an int")
    return errors


def _validate_detach(p: dict) -> list[str]:
    return _require_ids(p, "detach", "entity", "id", "rel", "target")


def _validate_batch(p: dict) -> list[str]:
    actions = p.get("actions")
    if not isinstance(actions, list):
        return ["batch requires 'actions' list"]
    errors: list[str] = []
    for i, action in enumerate(actions):
        if not isinstance(action, dict) or "type" not in action:
            errors.append(f"batch: action {i} must be an object with 'type'")
    return errors


_VALIDATORS = {
    "add": _validate_add,
    "remove": _validate_remove,
    "attach": _validate_attach,
    "detach": _validate_detach,
    "batch": _validate_batch,
}
