"""
Background removal of expired session records.
"""

from sessionkeeper.sweep.engine import SAFETY_MARGIN_MS, SweepEngine, SweepStats, compute_cutoff
from sessionkeeper.sweep.scheduler import (
    AsyncioTimer,
    SchedulerState,
    SweepScheduler,
    Timer,
    TimerHandle,
)

__all__ = [
    "SAFETY_MARGIN_MS",
    "SweepEngine",
    "SweepStats",
    "compute_cutoff",
    "AsyncioTimer",
    "SchedulerState",
    "SweepScheduler",
    "Timer",
    "TimerHandle",
]
