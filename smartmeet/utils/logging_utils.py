"""Structured logging utilities for the store."""

import json
import logging
from datetime import datetime, timezone
from typing import Optional


class StructuredLogger:
    """Structured logger that outputs JSON logs."""

    def __init__(self, name: str = "smartmeet", level: Optional[str] = None):
        self.logger = logging.getLogger(name)
        # NOTSET defers to the host's logging configuration
        self.logger.setLevel(level or logging.NOTSET)

        # Create console handler with JSON formatter unless the host configured logging
        if not self.logger.handlers and not logging.getLogger().handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def _log(self, level: int, message: str, correlation_id: Optional[str] = None, **kwargs):
        """Internal logging method with structured data."""
        if not self.logger.isEnabledFor(level):
            return
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "logger": self.logger.name,
            "message": message,
            "correlation_id": correlation_id,
            **kwargs
        }
        self.logger.log(level, json.dumps(log_data, default=str))

    def info(self, message: str, correlation_id: Optional[str] = None, **kwargs):
        """Log INFO level message."""
        self._log(logging.INFO, message, correlation_id, **kwargs)

    def debug(self, message: str, correlation_id: Optional[str] = None, **kwargs):
        """Log DEBUG level message."""
        self._log(logging.DEBUG, message, correlation_id, **kwargs)

    def error(self, message: str, correlation_id: Optional[str] = None, **kwargs):
        """Log ERROR level message."""
        self._log(logging.ERROR, message, correlation_id, **kwargs)

    def warning(self, message: str, correlation_id: Optional[str] = None, **kwargs):
        """Log WARNING level message."""
        self._log(logging.WARNING, message, correlation_id, **kwargs)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        """Format log record as JSON."""
        # If message is already JSON, return as-is
        if isinstance(record.msg, str) and record.msg.startswith('{'):
            return record.msg

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        if hasattr(record, 'correlation_id'):
            log_data["correlation_id"] = record.correlation_id
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(level: str = "INFO") -> None:
    """Route every smartmeet logger through one JSON handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root.handlers = [handler]

    # Loggers created before this call carry their own handler and level.
    for name in list(logging.root.manager.loggerDict):
        if name == "smartmeet" or name.startswith("smartmeet."):
            existing = logging.getLogger(name)
            existing.handlers = []
            existing.setLevel(logging.NOTSET)
