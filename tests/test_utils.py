"""
Tests for the logging helpers used by the client entry point.
"""

import io
import logging

import pytest

from src.utils.logging import (
    PACKAGE_LOGGERS, EditionLogAdapter, configure_debug_logging, edition_logger,
    setup_logger, silence_external_loggers,
)


@pytest.fixture
def package_logger():
    """The client's package logger, restored to a clean state afterwards."""
    def reset():
        for name in PACKAGE_LOGGERS:
            named = logging.getLogger(name)
            named.setLevel(logging.NOTSET)
            for handler in named.handlers[:]:
                named.removeHandler(handler)

    root_level = logging.getLogger().level
    reset()
    yield logging.getLogger("src.afkbot")
    reset()
    logging.getLogger().setLevel(root_level)


class TestSetupLogger:
    """Console logging for the client package."""

    def test_writes_to_stdout(self, package_logger, monkeypatch):
        stream = io.StringIO()
        monkeypatch.setattr("sys.stdout", stream)

        setup_logger("src.afkbot")
        logging.getLogger("src.afkbot.session").info("[JAVA] Logged in as AFKBot")

        line = stream.getvalue()
        assert "src.afkbot.session - INFO - [JAVA] Logged in as AFKBot" in line

    def test_called_twice_keeps_one_handler(self, package_logger):
        setup_logger("src.afkbot")
        setup_logger("src.afkbot")

        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.INFO

    def test_debug_logging_reformats_package_handlers(self, package_logger):
        setup_logger("src.afkbot")

        configure_debug_logging()

        assert package_logger.level == logging.DEBUG
        handler = package_logger.handlers[0]
        assert handler.level == logging.DEBUG
        assert "%(lineno)d" in handler.formatter._fmt

    def test_silence_external_loggers(self):
        silence_external_loggers()

        for name in ["asyncio", "dotenv", "rich"]:
            assert logging.getLogger(name).level == logging.WARNING


class TestEditionLogAdapter:
    """Edition-tagged log lines."""

    def test_prefixes_messages(self, caplog):
        adapter = edition_logger("test_edition", "JAVA")

        with caplog.at_level(logging.INFO, logger="test_edition"):
            adapter.info("Logged in as AFKBot")

        assert caplog.records[-1].getMessage() == "[JAVA] Logged in as AFKBot"

    def test_keeps_level_and_logger(self, caplog):
        adapter = EditionLogAdapter(logging.getLogger("test_edition"), "BEDROCK")

        with caplog.at_level(logging.DEBUG, logger="test_edition"):
            adapter.error("Connection refused")
            adapter.debug("Keep-alive failed")

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        debugs = [r for r in caplog.records if r.levelno == logging.DEBUG]
        assert errors[-1].getMessage() == "[BEDROCK] Connection refused"
        assert debugs[-1].name == "test_edition"
        assert adapter.tag == "BEDROCK"
