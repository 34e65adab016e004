"""Shared contracts for cross-boundary data types.

Enums, descriptors, generated values, errors, results and the form
collaborator protocol live here. This package is a leaf: it imports nothing
from ``formfuzz.core``, ``formfuzz.engine`` or ``formfuzz.forms``.

Import patterns:
    from formfuzz.contracts import FieldDescriptor, FieldType, ViewNode
    from formfuzz.contracts import Scalar, SingleRelation, Unavailable
"""

from formfuzz.contracts.enums import (
    FieldType,
    GeneratorKind,
    RelationOperation,
    RunOutcome,
    SessionPhase,
)
from formfuzz.contracts.errors import (
    ApplyRejected,
    CandidateSearchFailed,
    EmptyCandidateSet,
    ErrorInfo,
    FieldSkipped,
    FuzzError,
    SaveFailed,
    UnsupportedField,
    error_info,
)
from formfuzz.contracts.fields import (
    DomainExpr,
    FieldDescriptor,
    NestedView,
    RecordId,
    ScalarValue,
    ViewNode,
    descriptors_from_metadata,
)
from formfuzz.contracts.protocols import ApplyAck, FormCollaborator, OpenedForm
from formfuzz.contracts.results import FuzzResult
from formfuzz.contracts.values import (
    GeneratedValue,
    MultiRelation,
    NestedCreate,
    Scalar,
    SingleRelation,
    Unavailable,
    plain_value,
    to_write_value,
)

__all__ = [
    "ApplyAck",
    "ApplyRejected",
    "CandidateSearchFailed",
    "DomainExpr",
    "EmptyCandidateSet",
    "ErrorInfo",
    "FieldDescriptor",
    "FieldSkipped",
    "FieldType",
    "FormCollaborator",
    "FuzzError",
    "FuzzResult",
    "GeneratedValue",
    "GeneratorKind",
    "MultiRelation",
    "NestedCreate",
    "NestedView",
    "OpenedForm",
    "RecordId",
    "RelationOperation",
    "RunOutcome",
    "Scalar",
    "ScalarValue",
    "SaveFailed",
    "SessionPhase",
    "SingleRelation",
    "Unavailable",
    "UnsupportedField",
    "ViewNode",
    "descriptors_from_metadata",
    "error_info",
    "plain_value",
    "to_write_value",
]
