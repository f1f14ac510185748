"""
Unit tests for building session stores from settings.
"""

import os
from unittest.mock import patch

import pytest

from sessionkeeper.config.settings import ConfigurationError, Environment, create_settings
from sessionkeeper.factory import build_record_store, build_session_store
from sessionkeeper.records.memory import InMemoryRecordStore
from sessionkeeper.records.redis_store import RedisRecordStore
from sessionkeeper.session.expiring_store import ExpiringSessionStore
from sessionkeeper.telemetry.service import LoggingObserver


class TestBuildRecordStore:
    """Tests for build_record_store."""

    def test_memory(self):
        settings = create_settings(table_name="t", store_type="memory", scan_page_size=7)

        store = build_record_store(settings)

        assert isinstance(store, InMemoryRecordStore)
        assert store.page_size == 7

    def test_redis(self):
        settings = create_settings(table_name="sessions", redis_url="redis://cache:6379/1")

        store = build_record_store(settings)

        assert isinstance(store, RedisRecordStore)
        assert store.table_name == "sessions"
        assert store.redis_url == "redis://cache:6379/1"

    def test_rejects_memory_in_production(self):
        settings = create_settings(
            environment=Environment.PRODUCTION, table_name="t", store_type="memory"
        )

        with pytest.raises(ConfigurationError):
            build_record_store(settings)

    def test_rejects_missing_redis_url_outside_development(self):
        settings = create_settings(environment=Environment.STAGING, table_name="t")

        with pytest.raises(ConfigurationError):
            build_record_store(settings)


class TestBuildSessionStore:
    """Tests for build_session_store."""

    def test_from_options(self, clock, manual_timer):
        store = build_session_store(
            table_name="foo", store_type="memory", ttl=1000, clock=clock, timer=manual_timer
        )

        assert isinstance(store, ExpiringSessionStore)
        assert store.table_name == "foo"
        assert store.ttl == 1000
        assert isinstance(store._observer, LoggingObserver)
        assert isinstance(store._record_store, InMemoryRecordStore)

    def test_options_override_settings(self):
        settings = create_settings(table_name="foo", store_type="memory")

        store = build_session_store(settings, touch_after=0)

        assert store.table_name == "foo"
        assert store.touch_after == 0

    def test_injected_collaborators(self, memory_store, observer):
        store = build_session_store(table_name="foo", record_store=memory_store, observer=observer)

        assert store._record_store is memory_store
        assert store._observer is observer

    def test_empty_injected_store_is_kept(self):
        records = InMemoryRecordStore()
        assert len(records) == 0

        store = build_session_store(table_name="foo", record_store=records)

        assert store._record_store is records

    def test_injected_store_skips_backing_store_validation(self, observer):
        records = InMemoryRecordStore()

        store = build_session_store(
            environment=Environment.PRODUCTION, table_name="foo",
            record_store=records, observer=observer
        )

        assert store._record_store is records

    def test_loads_environment_when_nothing_given(self):
        env_vars = {"SESSION_STORE_TABLE_NAME": "env-table", "SESSION_STORE_STORE_TYPE": "memory"}
        with patch.dict(os.environ, env_vars):
            store = build_session_store()

        assert store.table_name == "env-table"

    def test_missing_table_name_fails_fast(self):
        with pytest.raises(ConfigurationError):
            build_session_store(store_type="memory")

    @pytest.mark.asyncio
    async def test_memory_lifecycle(self, clock, manual_timer, observer):
        store = build_session_store(
            table_name="foo", store_type="memory", cleanup_interval=1000,
            clock=clock, timer=manual_timer, observer=observer
        )

        async with store:
            await store.set("abc", {"user": "ringo"})
            assert await store.get("abc") == {"user": "ringo", "lastModified": 345}
            assert manual_timer.armed

        assert not store.scheduler.running
