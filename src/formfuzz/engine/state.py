# src/formfuzz/engine/state.py
"""Mutable bookkeeping of one fuzz run.

A RunState is created when a fuzz session starts and dropped when it ends,
whatever the outcome. It is passed explicitly to everything that reads or
updates it; nothing holds one at module scope.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from formfuzz.contracts import GeneratedValue, plain_value


@dataclass
class RunState:
    """Fields claimed by reconciliation, values applied, and used row values.

    Attributes:
        ignored: Fields a previous write's reconciliation changed; they are
            never generated or applied again in this run
        processed: Last value successfully applied per field
        required_processed: Processed fields whose effective required flag is set
        ignored_occurrences: View leaves skipped because they were ignored,
            in visit order
        required_value_store: Per one2many parent, the values already used
            for each required sub-field. Only lives while that parent's rows
            are being generated.
    """

    ignored: set[str] = field(default_factory=set)
    processed: dict[str, GeneratedValue] = field(default_factory=dict)
    required_processed: set[str] = field(default_factory=set)
    ignored_occurrences: list[str] = field(default_factory=list)
    required_value_store: dict[str, dict[str, list[Any]]] = field(default_factory=dict)

    def is_ignored(self, field_name: str) -> bool:
        return field_name in self.ignored

    def skip_ignored(self, field_name: str) -> None:
        self.ignored_occurrences.append(field_name)

    def absorb(self, applied_field: str, affected: Iterable[str]) -> frozenset[str]:
        """Fold a write's side effects into ``ignored``.

        Returns:
            The names newly marked as ignored (the applied field excluded).
        """
        newly = frozenset(name for name in affected if name != applied_field and name not in self.ignored)
        self.ignored.update(newly)
        return newly

    def record_processed(self, field_name: str, value: GeneratedValue, *, required: bool) -> None:
        self.processed[field_name] = value
        if required:
            self.required_processed.add(field_name)

    def committed_bindings(self) -> dict[str, Any]:
        """Plain values applied so far, keyed by field name."""
        return {name: plain_value(value) for name, value in self.processed.items()}

    # === one2many required-value store ===

    def excluded_for(self, parent_name: str, sub_field: str) -> tuple[Any, ...]:
        """Values already used by ``sub_field`` in earlier rows of ``parent_name``."""
        return tuple(self.required_value_store.get(parent_name, {}).get(sub_field, ()))

    def remember_required(self, parent_name: str, sub_field: str, value: GeneratedValue) -> None:
        per_parent = self.required_value_store.setdefault(parent_name, {})
        per_parent.setdefault(sub_field, []).append(plain_value(value))

    def forget_required(self, parent_name: str) -> None:
        """Drop the store of a parent whose rows are finished."""
        self.required_value_store.pop(parent_name, None)
