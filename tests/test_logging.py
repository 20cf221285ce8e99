"""Tests for structlog setup."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from perpcalc.config import AppSettings
from perpcalc.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test setup_logging and its wiring to AppSettings."""

    def test_level_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        setup_logging(AppSettings().log_level, "json")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging("VERBOSE", "console")
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_FORMAT", "json")
        AppSettings().configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO", "json")
        get_logger("perpcalc.test").info("fee_computed", fee="6")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "fee_computed"
        assert record["fee"] == "6"
        assert record["level"] == "info"
        assert record["logger"] == "perpcalc.test"
