"""
Tests for logging setup.

The host application owns the stdlib root logger; only an explicit
configure_logging() call may install a handler on it.
"""

import logging

import pytest
import structlog
from pydantic import ValidationError

from expense_groups.audit import logger as audit_logger
from expense_groups.audit.logger import configure_logging, get_logger


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append(kwargs)


@pytest.fixture
def recorders(monkeypatch):
    basic_config = Recorder()
    structlog_configure = Recorder()
    monkeypatch.setattr(audit_logger.logging, "basicConfig", basic_config)
    monkeypatch.setattr(audit_logger.structlog, "configure", structlog_configure)
    return basic_config, structlog_configure


class TestGetLogger:
    def test_get_logger_does_not_touch_root_logger(self, recorders):
        basic_config, structlog_configure = recorders

        get_logger("expense_groups.test").info("library_event")

        assert basic_config.calls == []
        assert structlog_configure.calls == []

    def test_invalid_level_in_environment_does_not_break_loggers(self, monkeypatch, recorders):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        get_logger("expense_groups.test").warning("still_logs")
        assert recorders[0].calls == []


class TestConfigureLogging:
    def test_explicit_configuration(self, recorders):
        basic_config, structlog_configure = recorders

        configure_logging(level="debug", json_output=False)

        assert basic_config.calls[0]["level"] == logging.DEBUG
        assert basic_config.calls[0]["force"] is False
        processors = structlog_configure.calls[0]["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_defaults_come_from_settings(self, monkeypatch, recorders):
        basic_config, structlog_configure = recorders
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_JSON_OUTPUT", "true")

        configure_logging(force=True)

        assert basic_config.calls[0]["level"] == logging.WARNING
        assert basic_config.calls[0]["force"] is True
        processors = structlog_configure.calls[0]["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_invalid_level_surfaces_on_explicit_configuration(self, monkeypatch, recorders):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            configure_logging()
        assert recorders[0].calls == []
