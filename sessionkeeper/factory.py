"""
Construction of a ready-to-connect session store from settings.
"""

from typing import Any, Optional

from sessionkeeper.clock import Clock
from sessionkeeper.config.settings import StoreSettings, create_settings, get_settings
from sessionkeeper.records.base import RecordStore
from sessionkeeper.records.memory import InMemoryRecordStore
from sessionkeeper.records.redis_store import RedisRecordStore
from sessionkeeper.session.expiring_store import ExpiringSessionStore
from sessionkeeper.sweep.scheduler import Timer
from sessionkeeper.telemetry.service import LoggingObserver, StoreObserver


def build_record_store(settings: StoreSettings) -> RecordStore:
    """
    Create the record store selected by settings.store_type.

    Raises:
        ConfigurationError: If the backing store settings do not suit the
            environment (see StoreSettings.validate_backing_store).
    """
    settings.validate_backing_store()
    if settings.store_type == "memory":
        return InMemoryRecordStore(page_size=settings.scan_page_size)
    return RedisRecordStore(
        table_name=settings.table_name,
        redis_url=settings.redis_url,
        page_size=settings.scan_page_size,
    )


def build_session_store(
    settings: Optional[StoreSettings] = None,
    *,
    record_store: Optional[RecordStore] = None,
    observer: Optional[StoreObserver] = None,
    clock: Optional[Clock] = None,
    timer: Optional[Timer] = None,
    **options: Any
) -> ExpiringSessionStore:
    """
    Build a session store that reports its events to the sessionkeeper logger.

    Args:
        settings: Validated settings. Loaded with get_settings() when
            neither settings nor options are given.
        record_store: Overrides the store built from settings.
        observer: Overrides the default LoggingObserver.
        clock: Time source in epoch milliseconds.
        timer: Timer source for the sweep scheduler.
        **options: Individual settings, validated like environment values.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    if options:
        base = settings.model_dump() if settings is not None else {}
        settings = create_settings(**{**base, **options})
    elif settings is None:
        settings = get_settings()

    return ExpiringSessionStore(
        record_store=record_store if record_store is not None else build_record_store(settings),
        settings=settings,
        observer=observer if observer is not None else LoggingObserver(),
        clock=clock,
        timer=timer,
    )
