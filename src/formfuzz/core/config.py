# src/formfuzz/core/config.py
"""Configuration schema and loading for fuzz runs.

Uses Pydantic for validation with frozen (immutable) models.
Configuration precedence: CLI > YAML file > preset > defaults.

The defaults are the stock generator bounds: strings of 4-40 characters
(text x10), numbers in [4, 999999], one to seven one2many rows, nine-digit
phone numbers.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from formfuzz.core.config_loader import layer_config
from formfuzz.core.config_loader import list_presets as _list_presets
from formfuzz.core.config_loader import load_preset as _load_preset


class StringSettings(BaseModel):
    """Length bounds for generated strings."""

    model_config = {"frozen": True, "extra": "forbid"}

    min_length: int = Field(
        default=4,
        gt=0,
        description="Minimum length of generated char/email/url values",
    )
    max_length: int = Field(
        default=40,
        gt=0,
        description="Maximum length of generated char/email/url values",
    )
    text_multiplier: int = Field(
        default=10,
        ge=1,
        description="Text fields use max_length * text_multiplier as upper bound",
    )

    @property
    def text_max_length(self) -> int:
        return self.max_length * self.text_multiplier

    @model_validator(mode="after")
    def validate_length_range(self) -> "StringSettings":
        """Ensure min_length <= max_length."""
        if self.min_length > self.max_length:
            raise ValueError(f"min_length ({self.min_length}) must be <= max_length ({self.max_length})")
        return self


class NumberSettings(BaseModel):
    """Bounds for generated integer/float/monetary values."""

    model_config = {"frozen": True, "extra": "forbid"}

    minimum: int = Field(default=4, description="Smallest generated number")
    maximum: int = Field(default=999_999, description="Largest generated number")
    float_digits: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Decimal digits kept on generated floats",
    )

    @model_validator(mode="after")
    def validate_number_range(self) -> "NumberSettings":
        """Ensure minimum <= maximum."""
        if self.minimum > self.maximum:
            raise ValueError(f"minimum ({self.minimum}) must be <= maximum ({self.maximum})")
        return self


class One2ManySettings(BaseModel):
    """How many nested rows to create per one2many field."""

    model_config = {"frozen": True, "extra": "forbid"}

    min_rows: int = Field(default=1, ge=1, description="Fewest rows attempted per one2many field")
    max_rows: int = Field(default=7, ge=1, description="Most rows attempted per one2many field")

    @model_validator(mode="after")
    def validate_row_range(self) -> "One2ManySettings":
        """Ensure min_rows <= max_rows."""
        if self.min_rows > self.max_rows:
            raise ValueError(f"min_rows ({self.min_rows}) must be <= max_rows ({self.max_rows})")
        return self


class FuzzSettings(BaseModel):
    """Top-level fuzz run configuration.

    Configuration precedence (highest to lowest):
    1. CLI flags
    2. YAML config file
    3. Preset defaults
    4. Built-in defaults
    """

    model_config = {"frozen": True, "extra": "forbid"}

    strings: StringSettings = Field(
        default_factory=StringSettings,
        description="String length bounds",
    )
    numbers: NumberSettings = Field(
        default_factory=NumberSettings,
        description="Numeric bounds",
    )
    one2many: One2ManySettings = Field(
        default_factory=One2ManySettings,
        description="Nested row counts",
    )
    phone_digits: int = Field(
        default=9,
        ge=1,
        le=20,
        description="Digits in generated phone numbers",
    )
    email_domains: tuple[str, ...] = Field(
        default=("example.com", "example.org", "example.net"),
        min_length=1,
        description="Domains used for generated email addresses",
    )
    url_schemes: tuple[str, ...] = Field(
        default=("http", "https"),
        min_length=1,
        description="Schemes used for generated URLs",
    )
    url_tlds: tuple[str, ...] = Field(
        default=("com", "org", "net", "io"),
        min_length=1,
        description="Top-level domains used for generated URLs",
    )
    seed: int | None = Field(
        default=None,
        description="Random seed; set it to reproduce a run",
    )
    preset_name: str | None = Field(
        default=None,
        description="Preset name used to build this config (if any)",
    )


# === Preset Loading ===


def _get_presets_dir() -> Path:
    """Get the presets directory path."""
    return Path(__file__).parent / "presets"


def list_presets() -> list[str]:
    """List available preset names."""
    return _list_presets(_get_presets_dir())


def load_preset(preset_name: str) -> dict[str, Any]:
    """Load a preset configuration by name."""
    return _load_preset(_get_presets_dir(), preset_name)


def load_config(
    *,
    preset: str | None = None,
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> FuzzSettings:
    """Load fuzz settings with precedence handling.

    Precedence (highest to lowest):
    1. cli_overrides - Direct overrides from CLI flags
    2. config_file - User's YAML configuration file
    3. preset - Named preset configuration
    4. defaults - Built-in Pydantic defaults
    """
    return layer_config(
        FuzzSettings,
        _get_presets_dir(),
        preset=preset,
        config_file=config_file,
        cli_overrides=cli_overrides,
    )
