# tests/unit/engine/test_modifiers.py
"""Tests for modifier evaluation."""

from __future__ import annotations

import pytest

from formfuzz.contracts import FieldDescriptor, FieldType
from formfuzz.engine.modifiers import Modifiers, declared_modifiers, resolve_modifiers, to_bool_else


class TestToBoolElse:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(True, True), (False, False), (1, True), (0, False), ("1", True), ("True", True), ("0", False), ("", False)],
    )
    def test_boolean_like_values(self, value: object, expected: bool) -> None:
        assert to_bool_else(value, None) is expected

    @pytest.mark.parametrize("value", [None, "[('state', '=', 'done')]", [("state", "=", "done")]])
    def test_non_boolean_falls_back(self, value: object) -> None:
        assert to_bool_else(value, True) is True
        assert to_bool_else(value, None) is None


class TestDeclaredModifiers:
    def test_json_modifiers_attribute(self) -> None:
        attrs = {"modifiers": '{"invisible": true, "required": false}'}
        assert declared_modifiers(attrs) == {"invisible": True, "required": False}

    def test_plain_attribute_wins(self) -> None:
        attrs = {"modifiers": '{"readonly": true}', "readonly": "0"}
        assert declared_modifiers(attrs) == {"readonly": "0"}

    def test_invalid_json(self) -> None:
        with pytest.raises(ValueError, match="Invalid modifiers"):
            declared_modifiers({"modifiers": "{not json"})

    def test_json_must_be_object(self) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            declared_modifiers({"modifiers": "[1, 2]"})


class TestResolveModifiers:
    def test_defaults_without_declarations(self) -> None:
        assert resolve_modifiers(None, {}) == Modifiers()

    def test_live_modifiers_win_over_view(self) -> None:
        modifiers = resolve_modifiers({"invisible": False}, {"invisible": "1"})
        assert modifiers.invisible is False

    def test_view_attributes_used_when_live_unknown(self) -> None:
        modifiers = resolve_modifiers(None, {"readonly": "1", "required": "1"})
        assert modifiers.readonly is True
        assert modifiers.required is True
        assert not modifiers.editable

    def test_field_readonly_is_default(self) -> None:
        descriptor = FieldDescriptor(name="code", type=FieldType.CHAR, readonly=True)
        assert resolve_modifiers(None, {}, descriptor).readonly is True
        assert resolve_modifiers(None, {"readonly": "0"}, descriptor).readonly is False

    def test_unevaluated_required_stays_unknown(self) -> None:
        """A required domain that was not evaluated leaves the field-level flag in charge."""
        modifiers = resolve_modifiers(None, {"required": "[('type', '=', 'x')]"})
        assert modifiers.required is None
