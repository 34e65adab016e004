# tests/unit/core/test_config.py
"""Tests for FuzzSettings validation and layered loading."""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest
import yaml

from formfuzz.core.config import (
    FuzzSettings,
    NumberSettings,
    One2ManySettings,
    StringSettings,
    list_presets,
    load_config,
    load_preset,
)
from formfuzz.core.config_loader import deep_merge, load_yaml_mapping


class TestDeepMerge:
    """Tests for deep_merge utility."""

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"strings": {"min_length": 1, "max_length": 2}, "seed": 3}
        override = {"strings": {"max_length": 9}}
        assert deep_merge(base, override) == {"strings": {"min_length": 1, "max_length": 9}, "seed": 3}

    def test_does_not_mutate_inputs(self) -> None:
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        deep_merge(base, override)
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}


class TestSettingsValidation:
    """Tests for settings models."""

    def test_defaults(self) -> None:
        settings = FuzzSettings()
        assert settings.strings.min_length == 4
        assert settings.strings.max_length == 40
        assert settings.strings.text_max_length == 400
        assert settings.numbers.minimum == 4
        assert settings.numbers.maximum == 999_999
        assert settings.one2many.min_rows == 1
        assert settings.one2many.max_rows == 7
        assert settings.phone_digits == 9
        assert settings.seed is None

    def test_frozen(self) -> None:
        settings = FuzzSettings()
        with pytest.raises(pydantic.ValidationError):
            settings.seed = 3  # type: ignore[misc]

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            FuzzSettings(unknown_option=True)  # type: ignore[call-arg]

    def test_string_range_validated(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="min_length"):
            StringSettings(min_length=10, max_length=5)

    def test_number_range_validated(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="minimum"):
            NumberSettings(minimum=10, maximum=5)

    def test_row_range_validated(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="min_rows"):
            One2ManySettings(min_rows=3, max_rows=2)

    def test_zero_rows_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            One2ManySettings(min_rows=0)


class TestPresets:
    """Tests for the packaged presets."""

    def test_packaged_presets(self) -> None:
        assert list_presets() == ["default", "gentle", "stress"]

    @pytest.mark.parametrize("name", ["default", "gentle", "stress"])
    def test_every_preset_validates(self, name: str) -> None:
        settings = load_config(preset=name)
        assert settings.preset_name == name

    def test_default_preset_matches_builtin_defaults(self) -> None:
        settings = load_config(preset="default")
        assert settings.model_dump(exclude={"preset_name"}) == FuzzSettings().model_dump(exclude={"preset_name"})

    def test_stress_always_creates_max_rows(self) -> None:
        settings = load_config(preset="stress")
        assert settings.one2many.min_rows == settings.one2many.max_rows == 7

    def test_unknown_preset(self) -> None:
        with pytest.raises(FileNotFoundError, match="Available presets"):
            load_preset("does_not_exist")


class TestLoadConfig:
    """Tests for configuration precedence."""

    def test_no_sources_gives_defaults(self) -> None:
        settings = load_config()
        assert settings.strings.max_length == 40
        assert settings.preset_name is None

    def test_file_overrides_preset(self, tmp_path: Path) -> None:
        config_file = tmp_path / "fuzz.yaml"
        config_file.write_text(yaml.dump({"strings": {"max_length": 20}}))

        settings = load_config(preset="gentle", config_file=config_file)

        assert settings.strings.max_length == 20
        # Untouched preset values survive the merge
        assert settings.strings.text_multiplier == 4

    def test_cli_overrides_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "fuzz.yaml"
        config_file.write_text(yaml.dump({"seed": 1, "one2many": {"max_rows": 3}}))

        settings = load_config(config_file=config_file, cli_overrides={"seed": 99})

        assert settings.seed == 99
        assert settings.one2many.max_rows == 3

    def test_empty_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_config(config_file=config_file) == FuzzSettings()

    def test_non_mapping_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_mapping(config_file)

    def test_missing_config_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_file=tmp_path / "missing.yaml")
