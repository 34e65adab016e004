"""Ambient infrastructure: logging, settings and preset loading."""

from formfuzz.core.config import FuzzSettings, list_presets, load_config, load_preset
from formfuzz.core.logging import configure_logging, get_logger

__all__ = [
    "FuzzSettings",
    "configure_logging",
    "get_logger",
    "list_presets",
    "load_config",
    "load_preset",
]
