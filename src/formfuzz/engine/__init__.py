"""Fuzz engine: value generation, form walking, reconciliation, sessions.

Components, leaves first:
- ParameterGenerator / ValueGenerator: random values for one field
- walk(): field leaves of a view tree in declaration order
- Reconciler: applies one value and reports side effects
- FuzzSession: one end-to-end run (open, fill, save, report)
"""

from formfuzz.engine.form_walker import field_leaves, nested_fields, walk
from formfuzz.engine.modifiers import Modifiers, resolve_modifiers, to_bool_else
from formfuzz.engine.parameters import ParameterGenerator
from formfuzz.engine.reconciler import Reconciler
from formfuzz.engine.session import FuzzSession
from formfuzz.engine.state import RunState
from formfuzz.engine.value_generator import NestedRowBuilder, ValueGenerator, resolve_kind

__all__ = [
    "FuzzSession",
    "Modifiers",
    "NestedRowBuilder",
    "ParameterGenerator",
    "Reconciler",
    "RunState",
    "ValueGenerator",
    "field_leaves",
    "nested_fields",
    "resolve_kind",
    "resolve_modifiers",
    "to_bool_else",
    "walk",
]
