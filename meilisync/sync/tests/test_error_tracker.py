"""
Tests for error tracking and structured logging.
"""

import json
import logging

import pytest

from ..error_tracker import ConfigurationError, ErrorCategory, ErrorSeverity, ErrorTracker
from ..logging_manager import JsonFormatter, LoggingManager


class TestErrorTracker:

    def test_report_counts_by_severity(self):
        tracker = ErrorTracker()
        tracker.report("slow", category=ErrorCategory.TRANSPORT_FAILURE, severity=ErrorSeverity.WARNING)
        tracker.report("rejected", category=ErrorCategory.REMOTE_REJECTED)
        tracker.report("no url", category=ErrorCategory.CONFIG_INVALID, severity=ErrorSeverity.CRITICAL)

        report = tracker.generate_report()
        assert report["total_errors"] == 3
        assert report["critical_count"] == 1
        assert report["error_count"] == 1
        assert report["warning_count"] == 1
        assert tracker.has_critical_errors()
        assert [e.message for e in tracker.get_errors(ErrorSeverity.ERROR)] == ["rejected", "no url"]

    def test_report_exception_keeps_category(self):
        tracker = ErrorTracker()
        exc = ConfigurationError("missing key", index_name="site", recovery_suggestion="set api_key")
        tracker.report_exception(exc, severity=ErrorSeverity.CRITICAL)

        error = tracker.generate_report()["errors"][0]
        assert error == {
            "message": "missing key",
            "category": "config_invalid",
            "severity": "CRITICAL",
            "index_name": "site",
            "details": {},
            "recovery_suggestion": "set api_key",
        }

    def test_get_errors_by_category(self):
        tracker = ErrorTracker()
        tracker.report("a", category=ErrorCategory.REMOTE_STATE_UNKNOWN)
        tracker.report("b", category=ErrorCategory.REMOTE_REJECTED)
        assert [e.message for e in tracker.get_errors_by_category(ErrorCategory.REMOTE_STATE_UNKNOWN)] == ["a"]


class TestLogging:

    def test_json_formatter_includes_details(self):
        record = logging.LogRecord("meilisync.sync.test", logging.INFO, __file__, 1, "Deleted %d documents", (3,), None)
        record.details = {"index_name": "site", "ids": {"a"}}

        line = json.loads(JsonFormatter().format(record))
        assert line["level"] == "INFO"
        assert line["message"] == "Deleted 3 documents"
        assert line["details"]["index_name"] == "site"

    def test_manager_reconfigures_level(self):
        manager = LoggingManager(log_level="DEBUG")
        assert manager.logger.level == logging.DEBUG
        LoggingManager(log_level="INFO")
        assert logging.getLogger("meilisync.sync").level == logging.INFO
        assert LoggingManager() is manager

    def test_reconfiguring_closes_previous_file(self, tmp_path):
        first = tmp_path / "first.log"
        manager = LoggingManager(log_file=str(first))
        file_handler = manager.logger.handlers[-1]
        assert isinstance(file_handler, logging.FileHandler)

        LoggingManager(log_file=str(tmp_path / "second.log"))
        assert file_handler not in manager.logger.handlers
        assert file_handler.stream is None
        LoggingManager()

    def test_unopenable_log_file_falls_back_to_stdout(self, tmp_path):
        manager = LoggingManager(log_file=str(tmp_path / "missing" / "sync.log"))
        assert manager.log_file is None
        assert [type(h) for h in manager.logger.handlers] == [logging.StreamHandler]

    def test_unknown_level_is_rejected(self):
        with pytest.raises(ValueError):
            LoggingManager(log_level="loud")
