"""
Record stores backing the session store.

A record store is a keyed record service with point reads and writes,
a partial expiry update and a cursor-paginated expiry scan.
"""

from sessionkeeper.records.base import RecordStore, ScanPage, StoredRecord
from sessionkeeper.records.memory import InMemoryRecordStore
from sessionkeeper.records.redis_store import RedisRecordStore

__all__ = [
    "RecordStore",
    "ScanPage",
    "StoredRecord",
    "InMemoryRecordStore",
    "RedisRecordStore",
]
