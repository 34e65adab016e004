# src/formfuzz/engine/form_walker.py
"""Flattening of a view tree into its field leaves.

Traversal is depth-first and pre-order. Container nodes (sheet, group,
notebook, page, div, ...) are descended into; a ``field`` node is yielded
and never descended into, so inline sub-views of one2many fields stay with
their field. The root node itself is a container.

The same static tree always yields the same sequence, and a node object
reachable along several paths is yielded only the first time.
"""

from collections.abc import Iterator, Mapping

from formfuzz.contracts import FieldDescriptor, FieldType, ViewNode
from formfuzz.engine.modifiers import resolve_modifiers


def walk(node: ViewNode) -> Iterator[ViewNode]:
    """Yield the field leaves under ``node`` in declaration order.

    Each call starts a fresh traversal, so the sequence is restartable by
    calling ``walk()`` again.
    """
    seen: set[int] = set()
    stack: list[ViewNode] = list(reversed(node.children))
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if current.is_field:
            yield current
        else:
            stack.extend(reversed(current.children))


def field_leaves(node: ViewNode) -> tuple[ViewNode, ...]:
    """Materialized ``walk()``."""
    return tuple(walk(node))


def nested_fields(descriptor: FieldDescriptor) -> Iterator[tuple[Mapping[str, str], FieldDescriptor]]:
    """Editable sub-fields of a one2many field, with their view attributes.

    Walks the inline sub-view when the form has one, otherwise the resolved
    ``nested`` descriptors. Nested one2many fields, ``id`` and private
    (underscore) fields are never filled.
    """
    if descriptor.nested_view is None:
        for sub_descriptor in descriptor.nested.values():
            if _fillable_sub_field(sub_descriptor) and not sub_descriptor.readonly:
                yield {}, sub_descriptor
        return

    sub_fields = descriptor.nested_view.fields
    for leaf in walk(descriptor.nested_view.arch):
        sub_descriptor = sub_fields.get(leaf.name or "")
        if sub_descriptor is None or not _fillable_sub_field(sub_descriptor):
            continue
        modifiers = resolve_modifiers(None, leaf.attrs, sub_descriptor)
        if not modifiers.editable:
            continue
        yield leaf.attrs, sub_descriptor.with_occurrence(leaf.attrs, modifiers.required)


def _fillable_sub_field(descriptor: FieldDescriptor) -> bool:
    return descriptor.type != FieldType.ONE2MANY and descriptor.name != "id" and not descriptor.name.startswith("_")
