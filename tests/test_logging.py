"""
Tests for the log formatter and root logger setup.
"""
import json
import logging
import sys

from app.core.logging import JsonFormatter, configure_logging


def _record(msg, *args, exc_info=None):
    return logging.LogRecord("app.users", logging.INFO, __file__, 1, msg, args, exc_info)


class TestJsonFormatter:
    def test_one_object_per_record(self):
        line = JsonFormatter().format(_record("User #%d deleted", 7))
        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["logger"] == "app.users"
        assert entry["message"] == "User #7 deleted"
        assert "traceback" not in entry

    def test_traceback_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record("failed", exc_info=sys.exc_info())
        entry = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in entry["traceback"]


class TestConfigureLogging:
    def test_json_handler_on_root(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(level="debug", json_logs=True)
            assert root.level == logging.DEBUG
            assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
