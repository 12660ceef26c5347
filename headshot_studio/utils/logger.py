"""Structured logging utility with JSON output."""

import logging
import json
import sys
import os
from datetime import datetime, timezone
from typing import Any, Dict


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    # Fields that Python's logging adds automatically (exclude these)
    BUILTIN_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
        'taskName', 'message',
    }

    MAX_VALUE_LENGTH = 500

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in self.BUILTIN_ATTRS or key.startswith('_'):
                continue
            log_data[key] = self._sanitize(value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)

    def _sanitize(self, value: Any) -> Any:
        """Make an extra field JSON-safe. Image bytes are never logged raw."""
        if isinstance(value, (bytes, bytearray)):
            return f"<bytes: {len(value)} bytes>"

        if isinstance(value, (list, tuple)):
            value = [
                f"<bytes: {len(item)} bytes>" if isinstance(item, (bytes, bytearray)) else item
                for item in value
            ]

        try:
            json.dumps(value)
            return value
        except (TypeError, ValueError):
            str_value = str(value)
            if len(str_value) > self.MAX_VALUE_LENGTH:
                return str_value[:self.MAX_VALUE_LENGTH] + "...[truncated]"
            return str_value


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, log_level, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

        logger.propagate = False

    return logger
