# src/formfuzz/engine/reconciler.py
"""Applies one generated value to the live record and reports side effects.

The reconciler is the only component that writes to the record. It turns a
GeneratedValue into the write shape the form collaborator expects, awaits
the write, and returns the *other* fields the form's reactive recomputation
changed as a result.
"""

from __future__ import annotations

from typing import Any

from formfuzz.contracts import (
    ApplyRejected,
    FormCollaborator,
    GeneratedValue,
    Unavailable,
    to_write_value,
)
from formfuzz.core.logging import get_logger

logger = get_logger(__name__)


class Reconciler:
    """Sequences field writes against one form collaborator."""

    def __init__(self, collaborator: FormCollaborator) -> None:
        self._collaborator = collaborator

    async def apply(self, record: Any, field_name: str, value: GeneratedValue) -> frozenset[str]:
        """Write ``value`` to ``field_name`` and return the affected siblings.

        Args:
            record: Opaque record handle from the collaborator
            field_name: Field to write
            value: Generated value (never Unavailable)

        Returns:
            Names of fields changed by the write's side effects, without
            ``field_name`` itself.

        Raises:
            ApplyRejected: If the collaborator refused the write (logged here)
            ValueError: If ``value`` is Unavailable
        """
        if isinstance(value, Unavailable):
            raise ValueError(f"Refusing to apply Unavailable to '{field_name}': {value.reason}")

        try:
            ack = await self._collaborator.apply_field_change(record, field_name, to_write_value(value))
        except ApplyRejected as exc:
            logger.warning("apply_rejected", field=field_name, error=str(exc))
            raise

        return frozenset(name for name in ack.affected_field_names if name != field_name)
