"""Fuzz run error taxonomy and structured error payloads.

Per-field errors (FieldSkipped subclasses, ApplyRejected) are non-fatal:
they are converted into a skip decision where they occur and never abort
the walk over the form. SaveFailed is the only error that ends a run with
a failure outcome.
"""

from typing import NotRequired, TypedDict


class ErrorInfo(TypedDict):
    """Schema for the error payload attached to a failed run."""

    exception: str  # String representation of the exception
    type: str  # Exception class name (e.g., "SaveFailed")
    field: NotRequired[str]  # Field name if the error concerns one field


class FuzzError(Exception):
    """Base class for every error the fuzz engine raises on purpose."""


class FieldSkipped(FuzzError):
    """A field cannot receive a generated value this attempt.

    Raised inside the value generator and converted into an Unavailable
    value at its public boundary.
    """

    def __init__(self, field_name: str, reason: str) -> None:
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Field '{field_name}' skipped: {reason}")


class EmptyCandidateSet(FieldSkipped):
    """A relational or selection field has no eligible values."""

    def __init__(self, field_name: str, detail: str = "no eligible values") -> None:
        super().__init__(field_name, detail)


class UnsupportedField(FieldSkipped):
    """No generator exists for the field's type/widget combination."""

    def __init__(self, field_name: str, field_type: str, widget: str | None = None) -> None:
        self.field_type = field_type
        self.widget = widget
        detail = f"no generator for type '{field_type}'"
        if widget:
            detail += f" (widget '{widget}')"
        super().__init__(field_name, detail)


class CandidateSearchFailed(FieldSkipped):
    """The form could not list candidates for a relational field.

    Raised by form collaborators from ``search_candidate_ids`` (for example
    when the field's domain cannot be evaluated). The field is skipped.
    """

    def __init__(self, relation_model: str, detail: str, field_name: str | None = None) -> None:
        self.relation_model = relation_model
        super().__init__(field_name or relation_model, f"candidate search on '{relation_model}' failed: {detail}")


class ApplyRejected(FuzzError):
    """The form collaborator rejected a field write.

    The field is left unset for the remainder of the run.
    """

    def __init__(self, field_name: str, message: str) -> None:
        self.field_name = field_name
        super().__init__(f"Can't write the value for '{field_name}': {message}")


class SaveFailed(FuzzError):
    """The final save of the fuzzed record was rejected."""


def error_info(exc: BaseException, *, field: str | None = None) -> ErrorInfo:
    """Build the structured payload for an exception."""
    info: ErrorInfo = {"exception": str(exc), "type": type(exc).__name__}
    if field is not None:
        info["field"] = field
    return info
