"""
Unit tests for the callback-style adapter.
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from sessionkeeper.clock import FrozenClock
from sessionkeeper.records.memory import InMemoryRecordStore
from sessionkeeper.session.callbacks import CallbackSessionStore
from sessionkeeper.session.expiring_store import ExpiringSessionStore


@pytest.fixture
def records() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def adapter(records, observer) -> CallbackSessionStore:
    store = ExpiringSessionStore(
        records, table_name="foo", cleanup_interval=0,
        clock=FrozenClock(123), observer=observer
    )
    return CallbackSessionStore(store)


class TestCallbacks:
    """Tests for completion callbacks."""

    @pytest.mark.asyncio
    async def test_get_passes_session(self, adapter, records):
        await records.put("valid", 623, {"foo": "bar"})
        callback = MagicMock()

        await adapter.get("valid", callback)

        callback.assert_called_once_with(None, {"foo": "bar"})

    @pytest.mark.asyncio
    async def test_get_expired_passes_none(self, adapter, records):
        await records.put("expired", 100, {"foo": "bar"})
        callback = MagicMock()

        await adapter.get("expired", callback)

        callback.assert_called_once_with(None, None)

    @pytest.mark.asyncio
    async def test_get_error_passes_error(self, adapter, records, observer):
        error = ConnectionError("some error")
        records.get = AsyncMock(side_effect=error)
        callback = MagicMock()

        task = adapter.get("error", callback)
        await task

        callback.assert_called_once_with(error, None)
        assert task.exception() is None
        assert observer.errors[0][1] is error

    @pytest.mark.asyncio
    async def test_set_updates_last_modified(self, adapter, records):
        callback = MagicMock()

        await adapter.set("abc", {"foo": "bar", "cookie": {"expires": 321}, "lastModified": 3}, callback)

        callback.assert_called_once_with(None)
        record = await records.get("abc")
        assert record.expires == 321
        assert record.content["lastModified"] == 123

    @pytest.mark.asyncio
    async def test_set_error_passes_error(self, adapter, records):
        records.put = AsyncMock(side_effect=RuntimeError("some error"))
        callback = MagicMock()

        await adapter.set("error", {}, callback)

        assert isinstance(callback.call_args.args[0], RuntimeError)

    @pytest.mark.asyncio
    async def test_touch_and_destroy(self, adapter, records):
        await records.put("abc", 500, {})
        touched, destroyed = MagicMock(), MagicMock()

        await adapter.touch("abc", {}, touched)
        await adapter.destroy("abc", destroyed)

        touched.assert_called_once_with(None)
        destroyed.assert_called_once_with(None)
        assert "abc" not in records

    @pytest.mark.asyncio
    async def test_callback_is_optional(self, adapter, records):
        await adapter.destroy("abc")
        await adapter.set("abc", {})

        assert "abc" in records

    @pytest.mark.asyncio
    async def test_raising_callback_is_logged(self, adapter, caplog):
        callback = MagicMock(side_effect=ValueError("host bug"))

        with caplog.at_level(logging.ERROR, logger="sessionkeeper.session.callbacks"):
            task = adapter.destroy("abc", callback)
            await task

        assert task.exception() is None
        record = caplog.records[-1]
        assert record.name == "sessionkeeper.session.callbacks"
        assert "ValueError" in record.getMessage()
        assert record.extra_data["operation"] == "destroy"

    @pytest.mark.asyncio
    async def test_tasks_are_held_until_done(self, adapter):
        task = adapter.set("abc", {})

        assert adapter.pending == 1
        await task
        assert adapter.pending == 0
