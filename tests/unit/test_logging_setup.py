"""
Unit tests for JSON logging
"""

import json
import logging
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.logging_setup import JsonFormatter, get_logger, setup_logging


def _record(msg, extra=None, exc_info=None):
    rec = logging.LogRecord("cache_server.test", logging.INFO, __file__, 1, msg, (), exc_info)
    if extra is not None:
        rec.extra = extra
    return rec


class TestJsonFormatter:
    """Test cases for JsonFormatter"""

    def test_basic_fields(self):
        payload = json.loads(JsonFormatter().format(_record("hello")))
        assert payload["lvl"] == "INFO"
        assert payload["name"] == "cache_server.test"
        assert payload["msg"] == "hello"
        assert isinstance(payload["t"], int)
        assert "extra" not in payload

    def test_extra_dict_included(self):
        payload = json.loads(JsonFormatter().format(_record("served", {"request": 3, "size_mb": 1.5})))
        assert payload["extra"] == {"request": 3, "size_mb": 1.5}

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            rec = _record("failed", exc_info=sys.exc_info())
        payload = json.loads(JsonFormatter().format(rec))
        assert "RuntimeError: boom" in payload["exc_info"]


class TestSetupLogging:
    """Root logger configuration"""

    def test_idempotent(self):
        setup_logging()
        n = len(logging.getLogger().handlers)
        setup_logging()
        get_logger("cache_server.other")
        assert len(logging.getLogger().handlers) == n

    def test_explicit_level_applies_after_setup(self):
        root = logging.getLogger()
        before = root.level
        try:
            setup_logging("WARNING")
            assert root.level == logging.WARNING
        finally:
            root.setLevel(before)
