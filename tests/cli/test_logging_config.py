"""Tests for CLI logging setup."""

import json
import logging

from src.cli.logging_config import JsonFormatter, TEXT_FORMAT, configure_logging


def _handlers(logger):
    return [h for h in logger.handlers if getattr(h, "_sqlcopilot_handler", False)]


class TestConfigureLogging:
    """Tests for handler installation."""

    def test_text_handler(self):
        logger = configure_logging("debug")
        assert logger.name == "src"
        assert logger.level == logging.DEBUG
        handlers = _handlers(logger)
        assert len(handlers) == 1
        assert handlers[0].formatter._fmt == TEXT_FORMAT

    def test_reconfigure_replaces_handlers(self):
        configure_logging("info")
        logger = configure_logging("warning", log_format="json")
        handlers = _handlers(logger)
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JsonFormatter)
        assert logger.level == logging.WARNING

    def test_unknown_level_defaults_to_info(self):
        assert configure_logging("chatty").level == logging.INFO

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "copilot.log"
        logger = configure_logging("info", log_file=str(log_file))
        assert len(_handlers(logger)) == 2
        logging.getLogger("src.chat.thread").info("Send for %s was cancelled", "s1")
        for handler in _handlers(logger):
            handler.flush()
        assert "INFO:src.chat.thread:Send for s1 was cancelled" in log_file.read_text()


class TestJsonFormatter:
    """Tests for the json record format."""

    def _record(self, **extra):
        return logging.LogRecord(
            name="src.actions.executor", level=logging.WARNING, pathname=__file__, lineno=1,
            msg="Quick action %s failed", args=("rewrite-sql",), exc_info=extra.get("exc_info"),
        )

    def test_fields(self):
        payload = json.loads(JsonFormatter().format(self._record()))
        assert payload["level"] == "warning"
        assert payload["logger"] == "src.actions.executor"
        assert payload["message"] == "Quick action rewrite-sql failed"
        assert payload["ts"].endswith("+00:00")
        assert "exc_info" not in payload

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = self._record(exc_info=sys.exc_info())
        payload = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in payload["exc_info"]
