"""
Structured logging for the Auction Service.

Wraps the standard logging module with:
- JSON or colored console output
- correlation IDs taken from the W3C trace context
- per-call metadata dictionaries
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from app.core.config import config
from app.middleware.trace_context import get_trace_id

LOG_LEVEL = config.log_level.upper()
LOG_FORMAT = config.log_format

# LogRecord attributes that are not user supplied
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
}


class StructuredLogger:
    """
    Logger facade with structured entries and correlation IDs.
    """

    def __init__(self, name: str = config.service_name):
        self.service_name = name
        self.environment = config.environment
        self._logger = logging.getLogger(name)
        self._setup_logging()

    def _setup_logging(self):
        """Configure handlers for the service logger"""
        self._logger.handlers.clear()
        self._logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        self._logger.propagate = False

        if config.log_to_console:
            console_handler = logging.StreamHandler(sys.stdout)
            if LOG_FORMAT == "json":
                console_handler.setFormatter(JSONFormatter())
            else:
                console_handler.setFormatter(ConsoleFormatter())
            self._logger.addHandler(console_handler)

        if config.log_to_file:
            os.makedirs(os.path.dirname(config.log_file_path), exist_ok=True)
            file_handler = logging.FileHandler(config.log_file_path)
            file_handler.setFormatter(JSONFormatter())  # Always JSON for files
            self._logger.addHandler(file_handler)

    def _build_log_entry(
        self,
        level: str,
        message: str,
        correlation_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Build structured log entry"""
        entry = {
            "level": level.upper(),
            "service": self.service_name,
            "environment": self.environment,
            "correlationId": correlation_id or get_trace_id(),
        }

        if metadata:
            entry["metadata"] = metadata

        entry.update(kwargs)
        return entry

    def _log(
        self,
        level: str,
        message: str,
        correlation_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: bool = False,
        **kwargs
    ):
        extra = self._build_log_entry(level, message, correlation_id, metadata, **kwargs)
        self._logger.log(getattr(logging, level), message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, correlation_id: Optional[str] = None,
              metadata: Optional[Dict[str, Any]] = None, **kwargs):
        self._log("DEBUG", message, correlation_id, metadata, **kwargs)

    def info(self, message: str, correlation_id: Optional[str] = None,
             metadata: Optional[Dict[str, Any]] = None, **kwargs):
        self._log("INFO", message, correlation_id, metadata, **kwargs)

    def warning(self, message: str, correlation_id: Optional[str] = None,
                metadata: Optional[Dict[str, Any]] = None, **kwargs):
        self._log("WARNING", message, correlation_id, metadata, **kwargs)

    def error(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        error: Optional[Union[str, Exception]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Error level logging, optionally attaching an exception summary"""
        metadata = dict(metadata or {})
        if error is not None:
            if isinstance(error, Exception):
                metadata["error"] = {"type": type(error).__name__, "message": str(error)}
            else:
                metadata["error"] = {"message": str(error)}
        self._log("ERROR", message, correlation_id, metadata, **kwargs)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored console formatter for development"""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        line = f"{color}[{timestamp}] {record.levelname}{reset} - {record.getMessage()}"
        metadata = getattr(record, "metadata", None)
        if metadata:
            line += f" {json.dumps(metadata, default=str)}"
        return line


logger = StructuredLogger()
