"""
sessionkeeper - session persistence on a keyed record store.

Sessions are stored with an absolute expiry, hidden from reads once that
expiry passes, and physically removed by a periodic, throttled sweep.
"""

from sessionkeeper.config.settings import ConfigurationError, StoreSettings, create_settings
from sessionkeeper.errors import AppException, ErrorCode
from sessionkeeper.factory import build_record_store, build_session_store
from sessionkeeper.records import InMemoryRecordStore, RecordStore, RedisRecordStore
from sessionkeeper.session import CallbackSessionStore, ExpiringSessionStore, SessionStoreProtocol
from sessionkeeper.sweep import SweepEngine, SweepScheduler, SweepStats
from sessionkeeper.telemetry import LoggingObserver, NullObserver, StoreObserver

__version__ = "0.1.0"

__all__ = [
    "AppException",
    "CallbackSessionStore",
    "ConfigurationError",
    "ErrorCode",
    "ExpiringSessionStore",
    "InMemoryRecordStore",
    "LoggingObserver",
    "NullObserver",
    "RecordStore",
    "RedisRecordStore",
    "SessionStoreProtocol",
    "StoreObserver",
    "StoreSettings",
    "SweepEngine",
    "SweepScheduler",
    "SweepStats",
    "build_record_store",
    "build_session_store",
    "create_settings",
]
