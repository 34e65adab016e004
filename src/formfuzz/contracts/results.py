"""Result of one fuzz run."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from formfuzz.contracts.enums import RunOutcome
from formfuzz.contracts.errors import ErrorInfo
from formfuzz.contracts.fields import RecordId
from formfuzz.contracts.values import GeneratedValue, plain_value


@dataclass(frozen=True, slots=True)
class FuzzResult:
    """Summary of a completed fuzz run.

    Attributes:
        outcome: SUCCESS when the record was saved, FAILURE otherwise
        model: Model the form was opened for
        record_id: Id returned by the save (SUCCESS only)
        processed_count: Fields that received a generated value
        required_processed_count: Processed fields that are required
        ignored_count: Field occurrences skipped because an earlier write's
            reconciliation changed them
        processed: Last value applied per processed field
        ignored_fields: Names of the skipped occurrences, in visit order
        error: Underlying error payload (FAILURE only)
    """

    outcome: RunOutcome
    model: str
    processed_count: int
    required_processed_count: int
    ignored_count: int
    record_id: RecordId | None = None
    processed: Mapping[str, GeneratedValue] = field(default_factory=dict)
    ignored_fields: tuple[str, ...] = ()
    error: ErrorInfo | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == RunOutcome.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly rendering (relation tags stripped from values)."""
        return {
            "outcome": self.outcome.value,
            "model": self.model,
            "record_id": self.record_id,
            "processed_count": self.processed_count,
            "required_processed_count": self.required_processed_count,
            "ignored_count": self.ignored_count,
            "processed": {name: plain_value(value) for name, value in self.processed.items()},
            "ignored_fields": list(self.ignored_fields),
            "error": dict(self.error) if self.error is not None else None,
        }
