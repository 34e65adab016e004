# tests/unit/core/test_logging.py
"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest

from formfuzz.core.logging import configure_logging, get_logger


class TestConfigureLogging:
    """Tests for structlog/stdlib wiring."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_output=True, level="INFO")
        get_logger("formfuzz.test").info("field_written", field="name")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "field_written"
        assert payload["field"] == "name"
        assert payload["level"] == "info"
        assert "_record" not in payload

    def test_level_filters_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_output=True, level="INFO")
        get_logger("formfuzz.test").debug("hidden")
        assert "hidden" not in capsys.readouterr().err

    def test_stdlib_records_share_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_output=True, level="DEBUG")
        logging.getLogger("formfuzz.stdlib").warning("plain stdlib message")

        payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert payload["event"] == "plain stdlib message"

    def test_noisy_loggers_raised_to_warning(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger("asyncio").level == logging.WARNING
