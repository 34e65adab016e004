# src/formfuzz/contracts/fields.py
"""Form structure contracts: view trees and field descriptors.

A form is described by two things the form collaborator hands over when it
opens a record:

- the view tree (``ViewNode``), whose ``field`` leaves are the unit of work
- the field metadata, one ``FieldDescriptor`` per field name

Descriptors are immutable. Candidate sets fetched at run time are attached
with ``with_candidates()``, which returns a new descriptor.
"""

from __future__ import annotations

import dataclasses
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from formfuzz.contracts.enums import FieldType

type RecordId = int
type ScalarValue = str | int | float | bool
type DomainExpr = str | Sequence[Any]

# Preferred order when an inline one2many field ships several sub-views
_NESTED_VIEW_MODES: tuple[str, ...] = ("tree", "list", "form")


@dataclass(frozen=True, slots=True, eq=False)
class ViewNode:
    """One node of a view tree.

    Identity matters: the form walker never yields the same node object
    twice, so equality is identity (``eq=False``).

    Attributes:
        tag: Element name ("form", "group", "notebook", "field", ...)
        attrs: Element attributes as declared in the view
        children: Child nodes in declaration order
    """

    tag: str
    attrs: Mapping[str, str] = field(default_factory=dict)
    children: tuple[ViewNode, ...] = ()

    @property
    def is_field(self) -> bool:
        return self.tag == "field"

    @property
    def name(self) -> str | None:
        return self.attrs.get("name")

    @classmethod
    def from_xml(cls, arch: str) -> ViewNode:
        """Build a view tree from an XML arch string."""
        return cls._from_element(ET.fromstring(arch))

    @classmethod
    def _from_element(cls, element: ET.Element) -> ViewNode:
        return cls(
            tag=element.tag,
            attrs=dict(element.attrib),
            children=tuple(cls._from_element(child) for child in element),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ViewNode:
        """Build a view tree from nested ``{tag, attrs, children}`` mappings."""
        return cls(
            tag=str(data["tag"]),
            attrs={str(k): str(v) for k, v in data.get("attrs", {}).items()},
            children=tuple(cls.from_dict(child) for child in data.get("children", ())),
        )

    @classmethod
    def parse(cls, arch: str | Mapping[str, Any]) -> ViewNode:
        """Build a view tree from either an XML string or a mapping."""
        if isinstance(arch, str):
            return cls.from_xml(arch)
        return cls.from_dict(arch)


@dataclass(frozen=True, slots=True)
class NestedView:
    """Inline sub-view of a one2many field: its own arch and field metadata."""

    arch: ViewNode
    fields: Mapping[str, FieldDescriptor]


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Everything the value generator needs to know about one field.

    Attributes:
        name: Field name on the model
        type: Declared field type; unrecognized type names are kept verbatim
        relation_model: Target model of relational fields
        widget: Widget of this field occurrence (phone, email, url, ...)
        required: Effective required flag
        readonly: Field-level readonly flag (modifiers may override it)
        selection_values: Keys of a selection field's options
        candidate_ids: Domain-restricted ids eligible for a relational field
        domain: Raw domain expression restricting the relational candidates
        nested: Resolved sub-field descriptors used to build one2many rows
        nested_view: Inline sub-view of a one2many field, if the form has one
    """

    name: str
    type: FieldType | str
    relation_model: str | None = None
    widget: str | None = None
    required: bool = False
    readonly: bool = False
    selection_values: tuple[ScalarValue, ...] = ()
    candidate_ids: tuple[RecordId, ...] = ()
    domain: DomainExpr = ()
    nested: Mapping[str, FieldDescriptor] = field(default_factory=dict)
    nested_view: NestedView | None = None

    def with_candidates(self, candidate_ids: Sequence[RecordId]) -> FieldDescriptor:
        """Return a copy carrying the given candidate ids."""
        return dataclasses.replace(self, candidate_ids=tuple(candidate_ids))

    def with_occurrence(self, attrs: Mapping[str, str], required: bool | None = None) -> FieldDescriptor:
        """Return a copy adjusted to one occurrence of the field in a view.

        The occurrence's ``widget`` attribute overrides the metadata widget and
        an evaluated ``required`` modifier overrides the field-level flag.
        """
        widget = attrs.get("widget") or self.widget
        effective_required = self.required if required is None else required
        return dataclasses.replace(self, widget=widget, required=effective_required)

    @classmethod
    def from_metadata(cls, name: str, meta: Mapping[str, Any]) -> FieldDescriptor:
        """Build a descriptor from ``fields_get``-style metadata.

        Recognized keys: type, relation, widget, required, readonly,
        selection (list of ``[key, label]`` pairs), domain, views, mode.
        """
        raw_type = str(meta["type"])
        try:
            field_type: FieldType | str = FieldType(raw_type)
        except ValueError:
            field_type = raw_type

        selection = tuple(option[0] for option in meta.get("selection") or ())

        return cls(
            name=name,
            type=field_type,
            relation_model=meta.get("relation") or None,
            widget=meta.get("widget") or None,
            required=bool(meta.get("required", False)),
            readonly=bool(meta.get("readonly", False)),
            selection_values=selection,
            domain=meta.get("domain") or (),
            nested_view=_nested_view_from_metadata(meta),
        )


def descriptors_from_metadata(fields: Mapping[str, Mapping[str, Any]]) -> dict[str, FieldDescriptor]:
    """Build descriptors for a whole ``fields_get``-style mapping."""
    return {name: FieldDescriptor.from_metadata(name, meta) for name, meta in fields.items()}


def _nested_view_from_metadata(meta: Mapping[str, Any]) -> NestedView | None:
    views = meta.get("views")
    if not views:
        return None

    mode = meta.get("mode")
    if mode is None or mode not in views:
        mode = next((m for m in _NESTED_VIEW_MODES if m in views), next(iter(views)))

    view = views[mode]
    return NestedView(
        arch=ViewNode.parse(view["arch"]),
        fields=descriptors_from_metadata(view.get("fields", {})),
    )
