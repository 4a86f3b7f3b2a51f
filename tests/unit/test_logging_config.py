"""Unit tests for logging configuration and settings."""

import logging
import sys

import pytest
from pythonjsonlogger.json import JsonFormatter

from cluster_investigator.core.config import Settings
from cluster_investigator.core.logging_config import _build_handler, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestLoggingConfig:
    def test_json_handler(self):
        handler = _build_handler("json")
        assert isinstance(handler.formatter, JsonFormatter)
        assert handler.stream is sys.stderr

    def test_text_handler(self):
        handler = _build_handler("text")
        assert not isinstance(handler.formatter, JsonFormatter)

    def test_json_record_fields(self):
        handler = _build_handler("json")
        record = logging.LogRecord("cluster_investigator.test", logging.WARNING, __file__, 1, "hello", None, None)
        line = handler.formatter.format(record)
        assert '"level": "WARNING"' in line
        assert '"message": "hello"' in line
        assert '"timestamp"' in line

    def test_configure_replaces_handlers(self, restore_root_logger):
        configure_logging("debug", "JSON")
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("opentelemetry").level == logging.WARNING


@pytest.mark.unit
class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("OTEL_TRACING_ENABLED", "OTEL_EXPORTER_TYPE", "OTEL_CAPTURE_AI_PAYLOADS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.otel_tracing_enabled is False
        assert settings.otel_exporter_type == "console"
        assert settings.otel_capture_ai_payloads is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OTEL_TRACING_ENABLED", "true")
        monkeypatch.setenv("OTEL_EXPORTER_TYPE", "otlp")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318")
        monkeypatch.setenv("OTEL_CAPTURE_AI_PAYLOADS", "false")
        settings = Settings(_env_file=None)
        assert settings.otel_tracing_enabled is True
        assert settings.otel_exporter_type == "otlp"
        assert settings.otel_exporter_otlp_endpoint == "http://collector:4318"
        assert settings.otel_capture_ai_payloads is False
