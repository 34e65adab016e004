# src/formfuzz/engine/value_generator.py
"""Type-directed synthesis of one random value per field descriptor.

The generator is pure apart from its random source and clock: it never
talks to the form. Candidate sets for relational fields must already be
attached to the descriptor (see ``FieldDescriptor.with_candidates``).

Dispatch:
    A recognized widget (phone, email, url) wins over the field type;
    otherwise the field type selects the generator. Types without a
    generator produce ``Unavailable``, not an error.

Usage:
    generator = ValueGenerator(FuzzSettings(), rng=random.Random(7))
    value = generator.generate(descriptor)
    if isinstance(value, Unavailable):
        ...  # skip the field
"""

from __future__ import annotations

import random as random_module
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, assert_never

from formfuzz.contracts import (
    EmptyCandidateSet,
    FieldDescriptor,
    FieldSkipped,
    FieldType,
    GeneratedValue,
    GeneratorKind,
    MultiRelation,
    NestedCreate,
    Scalar,
    SingleRelation,
    Unavailable,
    UnsupportedField,
    plain_value,
)
from formfuzz.core.config import FuzzSettings
from formfuzz.engine.form_walker import nested_fields
from formfuzz.engine.parameters import ParameterGenerator

type DateFormatter = Callable[[datetime], str]

_WIDGET_KINDS: Mapping[str, GeneratorKind] = {
    "phone": GeneratorKind.PHONE,
    "email": GeneratorKind.EMAIL,
    "url": GeneratorKind.URL,
}

_TYPE_KINDS: Mapping[str, GeneratorKind] = {
    FieldType.CHAR: GeneratorKind.CHAR,
    FieldType.TEXT: GeneratorKind.TEXT,
    FieldType.INTEGER: GeneratorKind.INTEGER,
    FieldType.FLOAT: GeneratorKind.FLOAT,
    FieldType.MONETARY: GeneratorKind.FLOAT,
    FieldType.BOOLEAN: GeneratorKind.BOOLEAN,
    FieldType.DATE: GeneratorKind.DATE,
    FieldType.DATETIME: GeneratorKind.DATETIME,
    FieldType.SELECTION: GeneratorKind.SELECTION,
    FieldType.MANY2ONE: GeneratorKind.MANY2ONE,
    FieldType.MANY2MANY: GeneratorKind.MANY2MANY,
    FieldType.ONE2MANY: GeneratorKind.ONE2MANY,
}


def server_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def server_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def resolve_kind(descriptor: FieldDescriptor) -> GeneratorKind | None:
    """Pick the generator for a descriptor, or None when there is none."""
    if descriptor.widget is not None and descriptor.widget in _WIDGET_KINDS:
        return _WIDGET_KINDS[descriptor.widget]
    return _TYPE_KINDS.get(str(descriptor.type))


class ValueGenerator:
    """Synthesizes schema-valid random values.

    Every value matches its descriptor's type/widget by construction. When no
    valid value exists (empty candidate set, unsupported type, empty
    many2many subset, one2many without sub-fields) the result is an
    ``Unavailable`` carrying the reason.
    """

    def __init__(
        self,
        settings: FuzzSettings | None = None,
        *,
        rng: random_module.Random | None = None,
        time_func: Callable[[], float] | None = None,
        date_formatter: DateFormatter = server_date,
        datetime_formatter: DateFormatter = server_datetime,
    ) -> None:
        """Initialize the generator.

        Args:
            settings: Generator bounds (defaults to FuzzSettings()).
            rng: Random instance (default: seeded from settings.seed).
            time_func: Clock returning POSIX seconds (default: time.time).
            date_formatter: Renders generated dates.
            datetime_formatter: Renders generated datetimes.
        """
        self._settings = settings if settings is not None else FuzzSettings()
        if rng is None:
            rng = random_module.Random(self._settings.seed)
        self._params = ParameterGenerator(rng=rng)
        self._time_func = time_func if time_func is not None else time.time
        self._date_formatter = date_formatter
        self._datetime_formatter = datetime_formatter

    @property
    def params(self) -> ParameterGenerator:
        return self._params

    def generate(self, descriptor: FieldDescriptor, excluded: Sequence[Any] = ()) -> GeneratedValue:
        """Generate one value for ``descriptor``.

        Args:
            descriptor: Field to generate for, candidate ids attached.
            excluded: Values that must not be picked. Honored by many2one
                generation, which is where one2many rows de-duplicate
                required sub-fields.

        Returns:
            A value matching the descriptor, or Unavailable.
        """
        kind = resolve_kind(descriptor)
        try:
            if kind is None:
                raise UnsupportedField(descriptor.name, str(descriptor.type), descriptor.widget)
            return self._dispatch(kind, descriptor, excluded)
        except FieldSkipped as exc:
            return Unavailable(field_name=descriptor.name, reason=exc.reason)

    def new_row(self, parent_name: str) -> NestedRowBuilder:
        """Start building one nested row for the one2many field ``parent_name``."""
        return NestedRowBuilder(self, parent_name)

    def _dispatch(self, kind: GeneratorKind, descriptor: FieldDescriptor, excluded: Sequence[Any]) -> GeneratedValue:
        strings = self._settings.strings
        numbers = self._settings.numbers

        match kind:
            case GeneratorKind.CHAR:
                return Scalar(self._params.generate_string(strings.min_length, strings.max_length))
            case GeneratorKind.TEXT:
                return Scalar(self._params.generate_string(strings.min_length, strings.text_max_length))
            case GeneratorKind.INTEGER:
                return Scalar(self._params.generate_int(numbers.minimum, numbers.maximum))
            case GeneratorKind.FLOAT:
                return Scalar(self._params.generate_float(numbers.minimum, numbers.maximum, numbers.float_digits))
            case GeneratorKind.BOOLEAN:
                return Scalar(self._params.choice((True, False)))
            case GeneratorKind.DATE:
                return Scalar(self._date_formatter(self._random_instant()))
            case GeneratorKind.DATETIME:
                return Scalar(self._datetime_formatter(self._random_instant()))
            case GeneratorKind.SELECTION:
                return self._generate_selection(descriptor)
            case GeneratorKind.MANY2ONE:
                return self._generate_many2one(descriptor, excluded)
            case GeneratorKind.MANY2MANY:
                return self._generate_many2many(descriptor)
            case GeneratorKind.ONE2MANY:
                return self._generate_one2many(descriptor)
            case GeneratorKind.PHONE:
                return Scalar(self._params.generate_digits(self._settings.phone_digits))
            case GeneratorKind.EMAIL:
                return Scalar(
                    self._params.generate_email(strings.min_length, strings.max_length, self._settings.email_domains)
                )
            case GeneratorKind.URL:
                return Scalar(
                    self._params.generate_url(
                        strings.min_length,
                        strings.max_length,
                        self._settings.url_schemes,
                        self._settings.url_tlds,
                    )
                )
            case _:
                assert_never(kind)

    def _random_instant(self) -> datetime:
        """Instant uniform between now/2 and now."""
        now = self._time_func()
        return self._params.generate_datetime(now / 2, now)

    def _generate_selection(self, descriptor: FieldDescriptor) -> Scalar:
        if not descriptor.selection_values:
            raise EmptyCandidateSet(descriptor.name, "selection has no options")
        return Scalar(self._params.choice(descriptor.selection_values))

    def _generate_many2one(self, descriptor: FieldDescriptor, excluded: Sequence[Any]) -> SingleRelation:
        candidates = [record_id for record_id in descriptor.candidate_ids if record_id not in excluded]
        if not candidates:
            detail = "all candidates already used" if descriptor.candidate_ids else "no candidate records"
            raise EmptyCandidateSet(descriptor.name, detail)
        return SingleRelation(id=self._params.choice(candidates))

    def _generate_many2many(self, descriptor: FieldDescriptor) -> MultiRelation:
        candidates = descriptor.candidate_ids
        if not candidates:
            raise EmptyCandidateSet(descriptor.name, "no candidate records")
        # Upper bound excludes the full candidate set
        count = self._params.generate_int(0, len(candidates) - 1)
        if count == 0:
            raise FieldSkipped(descriptor.name, "drew an empty subset")
        return MultiRelation(ids=tuple(self._params.sample(candidates, count)))

    def _generate_one2many(self, descriptor: FieldDescriptor) -> NestedCreate | Unavailable:
        sub_descriptors = [sub_descriptor for _, sub_descriptor in nested_fields(descriptor)]
        if not sub_descriptors:
            raise FieldSkipped(descriptor.name, "no nested sub-fields")
        row = self.new_row(descriptor.name)
        for sub_descriptor in sub_descriptors:
            row.add(sub_descriptor)
            if row.dead:
                break
        return row.build()


class NestedRowBuilder:
    """Accumulates the sub-field values of one one2many row.

    Sub-fields are added one at a time so the caller can fetch each
    sub-field's candidates with the row's values so far in scope.

    Rules:
    - an Unavailable optional sub-field is left out of the row
    - an Unavailable required sub-field kills the row
    - a row without any value is Unavailable
    """

    def __init__(self, generator: ValueGenerator, parent_name: str) -> None:
        self._generator = generator
        self._parent_name = parent_name
        self._data: dict[str, GeneratedValue] = {}
        self._required: set[str] = set()
        self._failure: Unavailable | None = None

    @property
    def dead(self) -> bool:
        """True once a required sub-field could not be generated."""
        return self._failure is not None

    @property
    def required_names(self) -> frozenset[str]:
        """Required sub-fields that received a value."""
        return frozenset(self._required)

    def add(self, descriptor: FieldDescriptor, excluded: Sequence[Any] = ()) -> GeneratedValue:
        """Generate and record a value for one sub-field."""
        return self.record(descriptor, self._generator.generate(descriptor, excluded))

    def skip(self, descriptor: FieldDescriptor, reason: str) -> Unavailable:
        """Record that a sub-field cannot get a value in this row."""
        value = Unavailable(field_name=descriptor.name, reason=reason)
        self.record(descriptor, value)
        return value

    def record(self, descriptor: FieldDescriptor, value: GeneratedValue) -> GeneratedValue:
        if isinstance(value, Unavailable):
            if descriptor.required:
                self._failure = Unavailable(
                    field_name=self._parent_name,
                    reason=f"required sub-field '{descriptor.name}': {value.reason}",
                )
            return value
        self._data[descriptor.name] = value
        if descriptor.required:
            self._required.add(descriptor.name)
        return value

    def bindings(self) -> dict[str, Any]:
        """Plain values of the row so far (for domain evaluation)."""
        return {name: plain_value(value) for name, value in self._data.items()}

    def build(self) -> NestedCreate | Unavailable:
        if self._failure is not None:
            return self._failure
        if not self._data:
            return Unavailable(field_name=self._parent_name, reason="no nested sub-field produced a value")
        return NestedCreate(data=dict(self._data))
