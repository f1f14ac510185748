"""
Structured logging and observer hooks for the session store.

This module provides JSON log output and the observer interface through
which the session store reports informational and error events to its host.
A host that does not care about these events gets NullObserver; a host that
wants them in its logs uses LoggingObserver.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, runtime_checkable


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs one JSON object per record.

    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry

    Additional fields can be included via the 'extra_data' attribute
    on the log record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        if hasattr(record, "extra_data") and record.extra_data:
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


def configure_logging(settings: Optional[Any] = None) -> logging.Logger:
    """
    Configure structured JSON logging on the root logger.

    Args:
        settings: Settings carrying a log_level attribute. INFO when omitted.

    Returns:
        The sessionkeeper package logger.
    """
    log_level_str = "INFO"
    if settings is not None and hasattr(settings, "log_level"):
        log_level_str = settings.log_level

    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level)
    stdout_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(stdout_handler)

    logger = logging.getLogger("sessionkeeper")
    logger.debug("Structured logging configured", extra={
        "extra_data": {"log_level": log_level_str}
    })
    return logger


@runtime_checkable
class StoreObserver(Protocol):
    """
    Receiver for the session store's informational and error events.
    """

    def info(self, message: str, **context: Any) -> None:
        ...

    def error(self, message: str, error: Optional[BaseException] = None, **context: Any) -> None:
        ...


class NullObserver:
    """Observer that discards every event."""

    def info(self, message: str, **context: Any) -> None:
        pass

    def error(self, message: str, error: Optional[BaseException] = None, **context: Any) -> None:
        pass


class LoggingObserver:
    """
    Observer that forwards events to a logger.

    Context keyword arguments are attached as extra_data so JSONFormatter
    emits them as top-level fields.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("sessionkeeper")

    def info(self, message: str, **context: Any) -> None:
        self._logger.info(message, extra={"extra_data": context})

    def error(self, message: str, error: Optional[BaseException] = None, **context: Any) -> None:
        if error is not None:
            context = {
                **context,
                "error_type": type(error).__name__,
                "error_message": str(error),
            }
            to_dict = getattr(error, "to_dict", None)
            if callable(to_dict):
                context["error"] = to_dict()
        self._logger.error(
            message,
            exc_info=error,
            extra={"extra_data": context}
        )
