"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Any, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

from sessionkeeper.clock import FrozenClock
from sessionkeeper.records.memory import InMemoryRecordStore

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


class ManualHandle:
    """Handle returned by ManualTimer.schedule."""

    def __init__(self, delay_ms: int, callback):
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimer:
    """Timer whose callbacks run only when a test calls fire()."""

    def __init__(self):
        self.handles: List[ManualHandle] = []

    def schedule(self, delay_ms: int, callback) -> ManualHandle:
        handle = ManualHandle(delay_ms, callback)
        self.handles.append(handle)
        return handle

    @property
    def armed(self) -> List[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    async def fire(self) -> None:
        handle = self.armed[0]
        handle.fired = True
        await handle.callback()


class RecordingObserver:
    """Observer that keeps every event for assertions."""

    def __init__(self):
        self.infos: List[Tuple[str, dict]] = []
        self.errors: List[Tuple[str, Optional[BaseException], dict]] = []

    def info(self, message: str, **context: Any) -> None:
        self.infos.append((message, context))

    def error(self, message: str, error: Optional[BaseException] = None, **context: Any) -> None:
        self.errors.append((message, error, context))


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep SESSION_STORE_* variables and .env files of the host out of tests."""
    for key in list(os.environ):
        if key.startswith("SESSION_STORE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    from sessionkeeper.config.settings import clear_settings_cache
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def clock() -> FrozenClock:
    """Clock pinned at 345 ms past the epoch."""
    return FrozenClock(345)


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(page_size=10)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.ping = AsyncMock(return_value=True)
    mock.exists = AsyncMock(return_value=1)
    mock.hmget = AsyncMock(return_value=[None, None])
    mock.hset = AsyncMock(return_value=1)
    mock.delete = AsyncMock(return_value=1)
    mock.scan = AsyncMock(return_value=(0, []))
    mock.aclose = AsyncMock(return_value=None)

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    mock.pipeline = MagicMock(return_value=pipe)
    return mock


@pytest.fixture
def sample_session() -> dict:
    """Sample session content for testing."""
    return {
        "foo": "bar",
        "arr": [1, 2, 3],
        "obj": {"a": 42},
    }
