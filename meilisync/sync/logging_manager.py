"""
Logging for sync runs.

Every sync component logs through the ``meilisync.sync`` logger. Records
are written as one JSON object per line so CI build logs can be filtered
by level or index. A record logged with ``extra={'details': {...}}``
carries that payload in its ``details`` key.

The level and an optional log file come from the ``meilisearch`` section
of the site configuration and are applied when a run starts.
"""

import json
import logging
import sys
from typing import Optional

SYNC_LOGGER_NAME = "meilisync.sync"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class JsonFormatter(logging.Formatter):
    """Formats a record as a single JSON line."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry['exc_info'] = self.formatException(record.exc_info)
        details = getattr(record, 'details', None)
        if details is not None:
            entry['details'] = details
        return json.dumps(entry, default=str)


def _handler(handler: logging.Handler, level: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


class LoggingManager:
    """
    Owns the handlers of the sync logger.

    There is one manager per process. Creating it again with a different
    level or log file replaces the handlers of the previous run.
    """
    _instance = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, log_level: str = "INFO", log_file: Optional[str] = None):
        log_level = log_level.upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{log_level}', expected one of: {', '.join(LOG_LEVELS)}")
        if getattr(self, '_initialized', False) and (log_level, log_file) == (self.log_level, self.log_file):
            return

        self.log_level = log_level
        self.log_file = log_file
        self.logger = logging.getLogger(SYNC_LOGGER_NAME)
        self.logger.setLevel(log_level)
        self.logger.propagate = False
        self._close_handlers()

        self.logger.addHandler(_handler(logging.StreamHandler(sys.stdout), log_level))
        if log_file:
            try:
                self.logger.addHandler(_handler(logging.FileHandler(log_file), log_level))
            except OSError as e:
                self.log_file = None
                self.logger.warning(f"Cannot open log file {log_file}, logging to stdout only: {e}")

        self._initialized = True

    def _close_handlers(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    @staticmethod
    def get_logger(name: str) -> logging.Logger:
        if LoggingManager._instance is None:
            LoggingManager()
        return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    return LoggingManager.get_logger(name)
