# src/formfuzz/engine/modifiers.py
"""Evaluation of per-occurrence field modifiers (invisible, readonly, required).

Modifiers come from two places, in order of preference:

1. the live form (``FormCollaborator.field_modifiers``), already evaluated
   against the record's current values
2. the view node: a JSON ``modifiers`` attribute and/or plain ``invisible``,
   ``readonly`` and ``required`` attributes

Values that cannot be read as a boolean (e.g. an unevaluated domain) fall
back to the default: visible, the field-level readonly flag, and the
field-level required flag.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from formfuzz.contracts import FieldDescriptor

_MODIFIER_NAMES: tuple[str, ...] = ("invisible", "readonly", "required")
_TRUE_STRINGS = frozenset({"1", "true"})
_FALSE_STRINGS = frozenset({"0", "false", ""})


@dataclass(frozen=True, slots=True)
class Modifiers:
    invisible: bool = False
    readonly: bool = False
    required: bool | None = None

    @property
    def editable(self) -> bool:
        return not self.invisible and not self.readonly


def to_bool_else(value: Any, default: bool | None) -> bool | None:
    """Read ``value`` as a boolean, or return ``default`` when it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


def declared_modifiers(attrs: Mapping[str, str]) -> dict[str, Any]:
    """Raw modifiers declared on a view node.

    Plain attributes win over entries of the JSON ``modifiers`` attribute.

    Raises:
        ValueError: If the ``modifiers`` attribute is not a JSON object
    """
    declared: dict[str, Any] = {}
    raw = attrs.get("modifiers")
    if raw:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid modifiers attribute {raw!r}: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError(f"modifiers attribute must be a JSON object, got {raw!r}")
        declared.update(parsed)
    for name in _MODIFIER_NAMES:
        if name in attrs:
            declared[name] = attrs[name]
    return declared


def resolve_modifiers(
    live: Mapping[str, Any] | None,
    attrs: Mapping[str, str],
    descriptor: FieldDescriptor | None = None,
) -> Modifiers:
    """Combine live and declared modifiers of one field occurrence."""
    source: Mapping[str, Any] = live if live is not None else declared_modifiers(attrs)
    field_readonly = descriptor.readonly if descriptor is not None else False

    invisible = to_bool_else(source.get("invisible"), False)
    readonly = to_bool_else(source.get("readonly"), field_readonly)
    required = to_bool_else(source.get("required"), None)
    return Modifiers(
        invisible=bool(invisible),
        readonly=bool(readonly),
        required=required,
    )
