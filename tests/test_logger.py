"""Tests for logger.py: setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from blueprint_sync.logger import JsonFormatter, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_logs_to_stderr(self, mock_basic):
        setup_logging()

        mock_basic.assert_called_once()
        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_default_level_is_info(self, mock_basic, monkeypatch):
        monkeypatch.delenv("BPSYNC_LOG_LEVEL", raising=False)
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_config_level_used(self, mock_basic, monkeypatch):
        monkeypatch.delenv("BPSYNC_LOG_LEVEL", raising=False)
        setup_logging(level="warning")
        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_env_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("BPSYNC_LOG_LEVEL", "ERROR")
        setup_logging(level="WARNING")
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_debug_beats_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("BPSYNC_LOG_LEVEL", "ERROR")
        setup_logging(debug=True)
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_unknown_level_falls_back_to_info(self, mock_basic, monkeypatch):
        monkeypatch.setenv("BPSYNC_LOG_LEVEL", "CHATTY")
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_log_file_adds_file_handler(self, mock_basic, tmp_path):
        setup_logging(log_file=str(tmp_path / "bpsync.log"))

        handlers = mock_basic.call_args[1]["handlers"]
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert "%(name)s" in file_handlers[0].formatter._fmt
        for h in file_handlers:
            h.close()

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_json_format_uses_json_formatter(self, mock_basic):
        setup_logging(debug_format="json")
        handlers = mock_basic.call_args[1]["handlers"]
        assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)

    @patch("blueprint_sync.logger.logging.basicConfig")
    def test_third_party_silenced(self, _mock_basic, monkeypatch):
        monkeypatch.delenv("BPSYNC_LOG_LEVEL", raising=False)
        setup_logging()

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING
        assert logging.getLogger("charset_normalizer").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_output(self):
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        record = logging.LogRecord(
            name="blueprint_sync.sync.engine",
            level=logging.INFO,
            pathname="engine.py",
            lineno=1,
            msg="Pulled %s -> %s",
            args=("bp_1", "AGENTS.md"),
            exc_info=None,
        )

        data = json.loads(formatter.format(record))
        assert "ts" in data
        assert data["level"] == "INFO"
        assert data["logger"] == "blueprint_sync.sync.engine"
        assert data["msg"] == "Pulled bp_1 -> AGENTS.md"
        assert "exc" not in data

    def test_includes_exception(self):
        formatter = JsonFormatter()
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        record = logging.LogRecord(
            name="test",
            level=logging.ERROR,
            pathname="test.py",
            lineno=1,
            msg="An error occurred",
            args=(),
            exc_info=exc_info,
        )
        data = json.loads(formatter.format(record))
        assert "ValueError: test error" in data["exc"]
