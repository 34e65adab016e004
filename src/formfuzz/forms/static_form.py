# src/formfuzz/forms/static_form.py
"""In-memory form collaborator driven by a YAML form definition.

StaticFormBackend needs no server: the view arch, field metadata, related
records and onchange rules all come from one definition file. It is what
the CLI runs against and what the end-to-end tests use.

Example definition:
    model: res.partner
    arch: |
      <form><sheet><group>
        <field name="name"/>
        <field name="email" widget="email"/>
      </group></sheet></form>
    fields:
      name: {type: char, required: true}
      email: {type: char}
    records:
      res.partner.category: [{id: 1, name: VIP}]
    onchange:
      is_company: {company_type: company}
"""

from __future__ import annotations

import itertools
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from formfuzz.contracts import (
    ApplyAck,
    ApplyRejected,
    CandidateSearchFailed,
    DomainExpr,
    FieldDescriptor,
    OpenedForm,
    RecordId,
    RelationOperation,
    SaveFailed,
    ViewNode,
    descriptors_from_metadata,
)
from formfuzz.core.config_loader import load_yaml_mapping
from formfuzz.core.logging import get_logger
from formfuzz.engine.form_walker import walk
from formfuzz.engine.modifiers import declared_modifiers, resolve_modifiers, to_bool_else
from formfuzz.forms.domain import DomainError, filter_records, matches

logger = get_logger(__name__)

_MODIFIER_NAMES: tuple[str, ...] = ("invisible", "readonly", "required")


class FormDefinition(BaseModel):
    """Validated form definition.

    Attributes:
        model: Model the form edits
        arch: Default form view (XML string or nested mapping)
        views: Alternative form views keyed by view reference
        fields: ``fields_get``-style metadata keyed by field name
        records: Related records per model, each with an integer ``id``
        defaults: Initial values of a new record
        onchange: Per trigger field, the values its write assigns to others
        reject: Fields whose writes the form refuses
    """

    model_config = {"frozen": True, "extra": "forbid"}

    model: str = Field(min_length=1)
    arch: str | dict[str, Any]
    views: dict[str, str | dict[str, Any]] = Field(default_factory=dict)
    fields: dict[str, dict[str, Any]]
    records: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    defaults: dict[str, Any] = Field(default_factory=dict)
    onchange: dict[str, dict[str, Any]] = Field(default_factory=dict)
    reject: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_references(self) -> FormDefinition:
        """Ensure arches parse, fields are typed, records carry ids and rules only name declared fields."""
        for view_ref, arch in (("arch", self.arch), *self.views.items()):
            _check_arch(view_ref, arch)
        _check_field_metadata(self.fields)

        for model_name, rows in self.records.items():
            for row in rows:
                if not isinstance(row.get("id"), int):
                    raise ValueError(f"Every record of '{model_name}' needs an integer 'id', got {row!r}")

        for trigger, targets in self.onchange.items():
            unknown = [name for name in (trigger, *targets) if name not in self.fields]
            if unknown:
                raise ValueError(f"onchange rule '{trigger}' names undeclared fields: {unknown}")

        unknown_rejects = [name for name in self.reject if name not in self.fields]
        if unknown_rejects:
            raise ValueError(f"reject names undeclared fields: {unknown_rejects}")
        return self


def _check_arch(view_ref: str, arch: str | Mapping[str, Any]) -> None:
    try:
        ViewNode.parse(arch)
    except (ET.ParseError, KeyError) as e:
        raise ValueError(f"View '{view_ref}' is not a valid arch: {e}") from e


def _check_field_metadata(fields: Mapping[str, Any], prefix: str = "") -> None:
    for name, meta in fields.items():
        if not isinstance(meta, Mapping) or not isinstance(meta.get("type"), str):
            raise ValueError(f"Field '{prefix}{name}' needs a string 'type', got {meta!r}")
        for mode, view in (meta.get("views") or {}).items():
            if not isinstance(view, Mapping) or "arch" not in view:
                raise ValueError(f"Field '{prefix}{name}' view '{mode}' needs an 'arch'")
            _check_arch(f"{prefix}{name}.{mode}", view["arch"])
            _check_field_metadata(view.get("fields") or {}, prefix=f"{prefix}{name}.")


@dataclass
class StaticRecord:
    """Live record handle returned by ``open_form_record``."""

    model: str
    view: ViewNode
    values: dict[str, Any] = field(default_factory=dict)
    record_id: RecordId | None = None
    closed: bool = False


class StaticFormBackend:
    """FormCollaborator over an in-memory FormDefinition."""

    def __init__(self, definition: FormDefinition) -> None:
        self._definition = definition
        self._fields = descriptors_from_metadata(definition.fields)
        self._records: dict[str, list[dict[str, Any]]] = {
            model: [dict(row) for row in rows] for model, rows in definition.records.items()
        }
        self._ids = itertools.count(1)
        self.saved: list[StaticRecord] = []

    @classmethod
    def from_yaml(cls, path: Path) -> StaticFormBackend:
        """Load a backend from a YAML form definition.

        Raises:
            FileNotFoundError: If the file does not exist
            pydantic.ValidationError: If the definition is invalid
        """
        return cls(FormDefinition(**load_yaml_mapping(path)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> StaticFormBackend:
        return cls(FormDefinition(**data))

    @property
    def definition(self) -> FormDefinition:
        return self._definition

    # === FormCollaborator ===

    async def open_form_record(self, model: str, view_ref: str | None = None) -> OpenedForm:
        if model != self._definition.model:
            raise ValueError(f"This form edits '{self._definition.model}', not '{model}'")

        if view_ref is None:
            arch = self._definition.arch
        elif view_ref in self._definition.views:
            arch = self._definition.views[view_ref]
        else:
            raise ValueError(f"Unknown view reference '{view_ref}'. Available: {sorted(self._definition.views)}")

        record = StaticRecord(model=model, view=ViewNode.parse(arch), values=dict(self._definition.defaults))
        logger.debug("static_form_opened", model=model, view_ref=view_ref)
        return OpenedForm(record=record, view=record.view, fields=self._fields)

    async def search_candidate_ids(
        self,
        relation_model: str,
        domain: DomainExpr,
        context_bindings: Mapping[str, Any],
    ) -> Sequence[RecordId]:
        rows = self._records.get(relation_model, [])
        try:
            matching = filter_records(rows, domain, self._domain_bindings(context_bindings))
        except DomainError as e:
            raise CandidateSearchFailed(relation_model, str(e)) from e
        return [row["id"] for row in matching]

    def field_modifiers(self, record: StaticRecord, field_name: str) -> Mapping[str, Any] | None:
        leaf = self._leaf_for(record.view, field_name)
        if leaf is None:
            return None

        declared = declared_modifiers(leaf.attrs)
        evaluated: dict[str, Any] = {}
        for name in _MODIFIER_NAMES:
            if name not in declared:
                continue
            raw = declared[name]
            flag = to_bool_else(raw, None)
            if flag is None and isinstance(raw, str | list | tuple):
                # Anything that is not a plain flag is a domain over the record
                flag = matches(raw, record.values, self._domain_bindings(record.values))
            if flag is not None:
                evaluated[name] = flag
        return evaluated

    async def apply_field_change(self, record: StaticRecord, field_name: str, value: Any) -> ApplyAck:
        if field_name in self._definition.reject:
            raise ApplyRejected(field_name, "the form refused the value")
        if field_name not in self._fields:
            raise ApplyRejected(field_name, "no such field on the form")

        record.values[field_name] = _unwrap(value, record.values.get(field_name))
        affected = {field_name}
        for target, new_value in self._definition.onchange.get(field_name, {}).items():
            if record.values.get(target) != new_value:
                record.values[target] = new_value
                affected.add(target)
        return ApplyAck(affected_field_names=frozenset(affected))

    async def save_record(self, record: StaticRecord) -> RecordId:
        missing = [
            name
            for name in self._required_visible_fields(record)
            if record.values.get(name) in (None, False, "", [])
        ]
        if missing:
            raise SaveFailed(f"The following fields are invalid: {', '.join(missing)}")

        record.record_id = next(self._ids)
        self.saved.append(record)
        self._records.setdefault(record.model, []).append({"id": record.record_id, **record.values})
        logger.debug("static_form_saved", model=record.model, record_id=record.record_id)
        return record.record_id

    def close_form_dialog(self, record: StaticRecord) -> None:
        record.closed = True

    # === Internals ===

    def _required_visible_fields(self, record: StaticRecord) -> list[str]:
        names: list[str] = []
        for leaf in walk(record.view):
            name = leaf.name
            descriptor = self._fields.get(name or "")
            if name is None or descriptor is None or name in names:
                continue
            modifiers = resolve_modifiers(self.field_modifiers(record, name), leaf.attrs, descriptor)
            required = descriptor.required if modifiers.required is None else modifiers.required
            if required and not modifiers.invisible:
                names.append(name)
        return names

    def _domain_bindings(self, bindings: Mapping[str, Any]) -> dict[str, Any]:
        """Every declared field name is bound (unset reads as False)."""
        padded: dict[str, Any] = {name: False for name in self._all_field_names(self._fields)}
        padded["parent"] = {}
        padded.update(bindings)
        return padded

    @staticmethod
    def _all_field_names(fields: Mapping[str, FieldDescriptor]) -> set[str]:
        names = set(fields)
        for descriptor in fields.values():
            if descriptor.nested_view is not None:
                names |= StaticFormBackend._all_field_names(descriptor.nested_view.fields)
        return names

    @staticmethod
    def _leaf_for(view: ViewNode, field_name: str) -> ViewNode | None:
        return next((leaf for leaf in walk(view) if leaf.name == field_name), None)


def _unwrap(value: Any, current: Any) -> Any:
    """Turn a write-shaped value into what the record stores."""
    if not isinstance(value, Mapping) or "operation" not in value:
        return value

    match RelationOperation(value["operation"]):
        case RelationOperation.ADD:
            return value["id"]
        case RelationOperation.ADD_MANY:
            existing = list(current) if isinstance(current, list) else []
            return existing + [item["id"] for item in value["ids"] if item["id"] not in existing]
        case RelationOperation.CREATE:
            rows = list(current) if isinstance(current, list) else []
            rows.append({name: _unwrap(sub, None) for name, sub in value["data"].items()})
            return rows
