"""
Recurring sweep scheduler.

The scheduler has two states:
- IDLE: a one-shot timer is armed (or the scheduler is stopped)
- SWEEPING: a sweep is running

IDLE -> SWEEPING when the timer fires. SWEEPING -> IDLE when the sweep
resolves, successfully or not, and only then is the next timer armed. Two
sweeps therefore never overlap, and a failed sweep never stops the next one.
"""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from sessionkeeper.clock import Clock, system_clock
from sessionkeeper.sweep.engine import SAFETY_MARGIN_MS, SweepEngine, SweepStats, compute_cutoff
from sessionkeeper.telemetry.service import NullObserver, StoreObserver

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> object:
        ...


class Timer(Protocol):
    """Source of one-shot timers."""

    def schedule(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        """Run callback once after delay_ms milliseconds."""
        ...


class AsyncioTimer:
    """One-shot timers backed by tasks on the running event loop."""

    def __init__(self, name: str = "sessionkeeper-sweep"):
        self._name = name

    def schedule(self, delay_ms: int, callback: TimerCallback) -> asyncio.Task:
        async def _fire() -> None:
            await asyncio.sleep(delay_ms / 1000)
            await callback()

        return asyncio.get_running_loop().create_task(_fire(), name=self._name)


class SchedulerState(Enum):
    IDLE = "idle"
    SWEEPING = "sweeping"


class SweepScheduler:
    """
    Runs a SweepEngine every interval milliseconds.

    Attributes:
        interval: Sweep period in milliseconds. A non-positive value
            disables the scheduler permanently.
        touch_after: Touch grace window used in the cutoff.
        last_stats: Totals of the most recent successful sweep.
        last_error: Exception raised by the most recent failed sweep.
        sweep_count: Number of sweeps started.
    """

    def __init__(
        self,
        engine: SweepEngine,
        interval: int,
        touch_after: int,
        *,
        timer: Optional[Timer] = None,
        clock: Optional[Clock] = None,
        observer: Optional[StoreObserver] = None,
        safety_margin: int = SAFETY_MARGIN_MS
    ):
        self._engine = engine
        self.interval = interval
        self.touch_after = touch_after
        self.safety_margin = safety_margin
        self._timer = timer if timer is not None else AsyncioTimer()
        self._clock = clock if clock is not None else system_clock
        self._observer = observer if observer is not None else NullObserver()

        self._state = SchedulerState.IDLE
        self._running = False
        self._handle: Optional[TimerHandle] = None

        self.last_stats: Optional[SweepStats] = None
        self.last_error: Optional[Exception] = None
        self.sweep_count = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """
        Arm the first timer.

        Returns:
            True if the scheduler is running, False if sweeping is disabled.
        """
        if not self.enabled:
            logger.debug("Session sweep disabled", extra={
                "extra_data": {"cleanup_interval": self.interval}
            })
            return False
        if self._running:
            return True

        self._running = True
        # A sweep in progress re-arms when it finishes
        if self._state is SchedulerState.IDLE:
            self._arm()
        return True

    def stop(self) -> None:
        """Cancel the pending timer. No further sweeps are started."""
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def aclose(self) -> None:
        """Stop and wait for a cancelled asyncio timer task to finish."""
        handle = self._handle
        self.stop()
        if isinstance(handle, asyncio.Task):
            with contextlib.suppress(asyncio.CancelledError):
                await handle

    def _arm(self) -> None:
        self._handle = self._timer.schedule(self.interval, self._on_timer)

    async def _on_timer(self) -> None:
        self._state = SchedulerState.SWEEPING
        self.sweep_count += 1
        cutoff = compute_cutoff(self._clock(), self.touch_after, self.safety_margin)
        try:
            stats = await self._engine.sweep(cutoff)
            self.last_stats = stats
            self.last_error = None
            self._observer.info(
                f"SessionStore scanned {stats.scanned} rows and removed "
                f"{stats.deleted} expired sessions, running again in "
                f"{self.interval / 1000:g} seconds.",
                scanned=stats.scanned,
                deleted=stats.deleted,
                cutoff=cutoff,
            )
        except Exception as e:
            self.last_error = e
            self._observer.error("Unable to remove expired sessions", e, cutoff=cutoff)
        finally:
            self._state = SchedulerState.IDLE
            self._handle = None
            if self._running:
                self._arm()
