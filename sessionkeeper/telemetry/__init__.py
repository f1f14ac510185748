"""
Telemetry module for structured logging and event reporting.

This module provides:
- JSONFormatter for structured JSON log output
- configure_logging to install it on the root logger
- StoreObserver hooks with null and logging implementations
"""

from sessionkeeper.telemetry.service import (
    JSONFormatter,
    LoggingObserver,
    NullObserver,
    StoreObserver,
    configure_logging,
)

__all__ = [
    "JSONFormatter",
    "LoggingObserver",
    "NullObserver",
    "StoreObserver",
    "configure_logging",
]
