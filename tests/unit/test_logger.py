"""
Unit tests for logging configuration.
"""

import logging

from bot_orchestrator.utils.logger import DEFAULT_LOGGER_NAME, get_logger


def test_default_logger_name():
    assert get_logger().name == DEFAULT_LOGGER_NAME


def test_handlers_are_added_once():
    first = get_logger("bot-orchestrator.test-once")
    count = len(first.handlers)
    second = get_logger("bot-orchestrator.test-once")

    assert first is second
    assert len(second.handlers) == count


def test_log_file_is_opt_in(tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "orchestrator.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    monkeypatch.setenv("LOG_LEVEL", "debug")

    log = get_logger("bot-orchestrator.test-file")
    log.debug("written to file")
    for handler in log.handlers:
        handler.flush()

    assert log.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in log.handlers)
    assert "written to file" in log_file.read_text()
