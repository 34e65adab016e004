"""Protocol for the external form collaborator.

The fuzz engine never touches a form directly. Everything it needs (opening
a record, fetching candidate ids, writing a field, saving) goes through an
object implementing ``FormCollaborator``. The record handle it returns is
opaque to the engine and only ever passed back to the same collaborator.

Lifecycle of one run:
1. open_form_record() - Open a new record in a form view
2. search_candidate_ids() / field_modifiers() - Queried per field
3. apply_field_change() - One call per generated value, in field order
4. save_record() - Exactly once, after every field was visited
5. close_form_dialog() - Only after a successful save
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from formfuzz.contracts.fields import DomainExpr, FieldDescriptor, RecordId, ViewNode


@dataclass(frozen=True, slots=True)
class OpenedForm:
    """What opening a form yields.

    Attributes:
        record: Opaque handle to the live record
        view: Root of the form's view tree
        fields: Field metadata keyed by field name
    """

    record: Any
    view: ViewNode
    fields: Mapping[str, FieldDescriptor]


@dataclass(frozen=True, slots=True)
class ApplyAck:
    """Acknowledgement of a field write.

    Attributes:
        affected_field_names: Fields whose value the form's own reactive
            recomputation changed as a result of the write. May include the
            written field itself; the reconciler drops it.
    """

    affected_field_names: frozenset[str] = field(default_factory=frozenset)


@runtime_checkable
class FormCollaborator(Protocol):
    """Contract between the fuzz engine and the form machinery it drives."""

    async def open_form_record(self, model: str, view_ref: str | None = None) -> OpenedForm:
        """Open a new record of ``model`` in its form view."""
        ...

    async def search_candidate_ids(
        self,
        relation_model: str,
        domain: DomainExpr,
        context_bindings: Mapping[str, Any],
    ) -> Sequence[RecordId]:
        """Return ids of ``relation_model`` matching ``domain``.

        ``domain`` is evaluated against ``context_bindings`` (current sibling
        values, plus ``parent`` for rows of a one2many field).

        Raises:
            CandidateSearchFailed: If the candidates cannot be listed; the
                engine skips the field and carries on
        """
        ...

    def field_modifiers(self, record: Any, field_name: str) -> Mapping[str, Any] | None:
        """Return current evaluated modifiers (invisible/readonly/required).

        None means the form cannot say; the engine then falls back to the
        modifiers declared on the view node.
        """
        ...

    async def apply_field_change(self, record: Any, field_name: str, value: Any) -> ApplyAck:
        """Write ``value`` (already in write shape) to ``field_name``.

        Raises:
            ApplyRejected: If the form refuses the write
        """
        ...

    async def save_record(self, record: Any) -> RecordId:
        """Persist the record and return its id.

        Raises:
            SaveFailed: If the form refuses to save
        """
        ...

    def close_form_dialog(self, record: Any) -> None:
        """Close the dialog holding the record (best effort)."""
        ...
