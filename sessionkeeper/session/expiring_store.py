"""
Session store backed by a record store with expiry and background sweeping.

Expiry is enforced twice: get() hides any record whose expiry has passed,
and the sweep scheduler physically deletes such records later. The two
paths share the keyspace but no in-process lock; the sweep cutoff's safety
margin keeps a sweep away from sessions that are about to be touched.

touch() only updates the stored expiry. It does not rewrite lastModified,
so once a session is outside the touch_after window every touch writes
until the next set() restamps it.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from sessionkeeper.clock import Clock, system_clock
from sessionkeeper.config.settings import StoreSettings, create_settings
from sessionkeeper.errors.exceptions import AppException, invalid_session
from sessionkeeper.records.base import RecordStore
from sessionkeeper.resilience.retry import RetryConfig, retry_async
from sessionkeeper.session.expiry import ExpiryPolicy
from sessionkeeper.sweep.engine import SweepEngine
from sessionkeeper.sweep.scheduler import SweepScheduler, Timer
from sessionkeeper.telemetry.service import NullObserver, StoreObserver

logger = logging.getLogger(__name__)


def _should_retry_connect(exc: Exception) -> bool:
    if isinstance(exc, AppException):
        return exc.retryable
    return True


class ExpiringSessionStore:
    """
    Session store with TTL-based expiry and periodic cleanup.

    Configuration comes either from a StoreSettings instance or from
    keyword options (ttl, cleanup_interval, touch_after, table_name,
    auto_create, ...). A missing table_name raises ConfigurationError here,
    before any asynchronous work starts.

    Example:
        store = ExpiringSessionStore(InMemoryRecordStore(), table_name="sessions")
        async with store:
            await store.set("sid", {"user": "ada"})
            session = await store.get("sid")

    Attributes:
        settings: The validated configuration.
        policy: Expiry rules for this store.
        scheduler: The background sweep scheduler.
    """

    def __init__(
        self,
        record_store: RecordStore,
        settings: Optional[StoreSettings] = None,
        *,
        observer: Optional[StoreObserver] = None,
        clock: Optional[Clock] = None,
        timer: Optional[Timer] = None,
        **options: Any
    ):
        if settings is None:
            settings = create_settings(**options)
        elif options:
            settings = create_settings(**{**settings.model_dump(), **options})

        self.settings = settings
        self._record_store = record_store
        self._observer = observer if observer is not None else NullObserver()
        self._clock = clock if clock is not None else system_clock

        self.policy = ExpiryPolicy(settings.ttl, settings.touch_after, clock=self._clock)
        self.scheduler = SweepScheduler(
            SweepEngine(record_store),
            interval=settings.cleanup_interval,
            touch_after=settings.touch_after,
            timer=timer,
            clock=self._clock,
            observer=self._observer,
        )

    @property
    def table_name(self) -> str:
        return self.settings.table_name

    @property
    def ttl(self) -> int:
        return self.settings.ttl

    @property
    def cleanup_interval(self) -> int:
        return self.settings.cleanup_interval

    @property
    def touch_after(self) -> int:
        return self.settings.touch_after

    # Lifecycle

    async def connect(self) -> bool:
        """
        Describe (and optionally provision) the keyspace, then start sweeping.

        A keyspace that cannot be reached is reported through the error
        hook; the store still starts so that requests can succeed once the
        backing store recovers.

        Returns:
            True if the keyspace was reached.
        """
        config = RetryConfig(
            max_attempts=self.settings.connect_retry_attempts,
            initial_delay=self.settings.connect_retry_delay,
            max_delay=self.settings.connect_retry_max_delay,
            should_retry=_should_retry_connect,
        )
        try:
            await retry_async(
                self._record_store.init,
                auto_create=self.settings.auto_create,
                config=config,
                operation_name="describe_table",
            )
            self._observer.info(
                f"SessionStore connected to {self.table_name}",
                table_name=self.table_name,
            )
            connected = True
        except Exception as e:
            self._observer.error(
                f"Unable to connect to {self.table_name}", e,
                table_name=self.table_name,
            )
            connected = False

        self.scheduler.start()
        return connected

    async def close(self) -> None:
        """Stop sweeping and release the record store's connection."""
        await self.scheduler.aclose()
        await self._record_store.close()

    async def __aenter__(self) -> "ExpiringSessionStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # Public API

    async def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Return the session content, or None if absent or expired.

        A record whose expiry has passed is reported as absent even though
        it stays in the store until the next sweep.
        """
        try:
            record = await self._record_store.get(session_id)
        except Exception as e:
            self._observer.error(
                f"Unable to get session sid:{session_id}", e, session_id=session_id
            )
            raise

        if record is None or record.expires <= self._clock():
            return None
        return record.content

    async def set(self, session_id: str, session: Mapping) -> None:
        """Persist the session with a freshly computed expiry."""
        try:
            if not isinstance(session, Mapping):
                raise invalid_session(
                    f"Session must be a mapping, got {type(session).__name__}",
                    details={"session_id": session_id}
                )
            expires = self.policy.compute_expiry(session)
            content = self.policy.prepare_content(session)
            await self._record_store.put(session_id, expires, content)
        except Exception as e:
            self._observer.error(
                f"Unable to save session sid:{session_id}", e, session_id=session_id
            )
            raise

    async def touch(self, session_id: str, session: Mapping) -> bool:
        """
        Refresh the stored expiry unless the session was modified recently.

        Returns:
            True if an expiry update was written.
        """
        if not self.policy.should_refresh(session):
            return False

        try:
            await self._record_store.set_expires(session_id, self.policy.compute_expiry(session))
        except Exception as e:
            self._observer.error(
                f"Unable to touch session sid:{session_id}", e, session_id=session_id
            )
            raise
        return True

    async def destroy(self, session_id: str) -> None:
        """Delete the session. Deleting an unknown id succeeds."""
        try:
            await self._record_store.delete(session_id)
        except Exception as e:
            self._observer.error(
                f"Unable to delete session sid:{session_id}", e, session_id=session_id
            )
            raise

    # Operations

    async def health_check(self) -> bool:
        """Check the backing store. Never raises."""
        try:
            return await self._record_store.health_check()
        except Exception as e:
            logger.warning(f"Session store health check failed: {e}", extra={
                "extra_data": {"table_name": self.table_name, "error": str(e)}
            })
            return False

    def status(self) -> Dict[str, Any]:
        """Snapshot of the sweep scheduler for operational visibility."""
        last_stats = self.scheduler.last_stats
        last_error = self.scheduler.last_error
        return {
            "table_name": self.table_name,
            "cleanup_enabled": self.scheduler.enabled,
            "scheduler_state": self.scheduler.state.value,
            "sweep_count": self.scheduler.sweep_count,
            "last_sweep": last_stats.to_dict() if last_stats else None,
            "last_error": str(last_error) if last_error else None,
        }
