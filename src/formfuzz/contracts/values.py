# src/formfuzz/contracts/values.py
"""Generated values: the tagged union produced by the value generator.

Every generated value is one of:

- Scalar: a plain value for char/text/number/boolean/date/selection fields
- SingleRelation: one related id (many2one)
- MultiRelation: several related ids (many2many)
- NestedCreate: the data of one new related row (one2many)
- Unavailable: no valid value could be produced this attempt

Two renderings exist. ``to_write_value()`` produces the shape the form
collaborator expects for a write; ``plain_value()`` strips the relation tags
and is used for domain bindings, de-duplication and logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, assert_never

from formfuzz.contracts.enums import RelationOperation
from formfuzz.contracts.fields import RecordId, ScalarValue


@dataclass(frozen=True, slots=True)
class Scalar:
    value: ScalarValue


@dataclass(frozen=True, slots=True)
class SingleRelation:
    op: ClassVar[RelationOperation] = RelationOperation.ADD

    id: RecordId


@dataclass(frozen=True, slots=True)
class MultiRelation:
    op: ClassVar[RelationOperation] = RelationOperation.ADD_MANY

    ids: tuple[RecordId, ...]


@dataclass(frozen=True, slots=True)
class NestedCreate:
    op: ClassVar[RelationOperation] = RelationOperation.CREATE

    data: Mapping[str, GeneratedValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Unavailable:
    """No valid value could be produced for a field this attempt.

    Attributes:
        field_name: Field the generator was asked about
        reason: Human-readable cause (empty candidate set, unsupported type, ...)
    """

    field_name: str
    reason: str


type GeneratedValue = Scalar | SingleRelation | MultiRelation | NestedCreate | Unavailable


def to_write_value(value: GeneratedValue) -> Any:
    """Render a generated value in the shape a field write expects.

    Raises:
        ValueError: If called with Unavailable (there is nothing to write)
    """
    match value:
        case Scalar(value=scalar):
            return scalar
        case SingleRelation(id=record_id):
            return {"operation": SingleRelation.op.value, "id": record_id}
        case MultiRelation(ids=ids):
            return {"operation": MultiRelation.op.value, "ids": [{"id": record_id} for record_id in ids]}
        case NestedCreate(data=data):
            return {"operation": NestedCreate.op.value, "data": {name: to_write_value(sub) for name, sub in data.items()}}
        case Unavailable(field_name=name, reason=reason):
            raise ValueError(f"No value to write for '{name}': {reason}")
        case _:
            assert_never(value)


def plain_value(value: GeneratedValue) -> Any:
    """Strip relation tags: ids for relations, dicts for nested rows.

    Unavailable renders as None.
    """
    match value:
        case Scalar(value=scalar):
            return scalar
        case SingleRelation(id=record_id):
            return record_id
        case MultiRelation(ids=ids):
            return list(ids)
        case NestedCreate(data=data):
            return {name: plain_value(sub) for name, sub in data.items()}
        case Unavailable():
            return None
        case _:
            assert_never(value)
