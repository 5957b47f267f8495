"""Tests for logging configuration."""
import json
import logging

import pytest
import structlog

from counsel_ai.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_levels(self):
        configure_logging(log_level="debug")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("google_genai").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_library_level_override(self):
        configure_logging(library_level="error")
        assert logging.getLogger("httpx").level == logging.ERROR

    def test_single_stdout_handler(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_json_output(self, capsys):
        configure_logging(json_output=True)
        structlog.get_logger("test").info("similarity_cache_hit", count=3)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "similarity_cache_hit"
        assert record["count"] == 3
        assert record["level"] == "info"
