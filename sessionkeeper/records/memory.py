"""
In-process record store.

Rows are kept in a dictionary with their content serialized exactly as a
remote store would hold it, so decode errors and partially written rows
behave the same way. Scans walk the ids in sorted order and use the last
inspected id as the continuation cursor, which stays valid while rows are
deleted between pages.
"""

import logging
from typing import Any, Dict, Optional

from sessionkeeper.records.base import (
    RecordStore,
    ScanPage,
    StoredRecord,
    decode_content,
    encode_content,
    parse_expires,
)

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """
    Dictionary-backed record store for development and tests.

    Attributes:
        page_size: Maximum number of rows inspected per scan page.
    """

    def __init__(self, page_size: int = 100):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self._rows: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._rows

    async def init(self, auto_create: bool = False) -> None:
        logger.debug("In-memory record store ready", extra={
            "extra_data": {"rows": len(self._rows)}
        })

    async def get(self, record_id: str) -> Optional[StoredRecord]:
        row = self._rows.get(record_id)
        if row is None:
            return None

        expires = parse_expires(row.get("expires"))
        raw_content = row.get("content")
        if expires is None or raw_content is None:
            return None

        return StoredRecord(expires=expires, content=decode_content(raw_content, record_id))

    async def put(self, record_id: str, expires: int, content: Any) -> None:
        self._rows[record_id] = {
            "expires": int(expires),
            "content": encode_content(content, record_id),
        }

    async def set_expires(self, record_id: str, expires: int) -> None:
        # Like a partial update on a remote store, this creates a
        # content-less row when the id is unknown
        self._rows.setdefault(record_id, {})["expires"] = int(expires)

    async def delete(self, record_id: str) -> None:
        self._rows.pop(record_id, None)

    async def scan_page(self, cutoff: int, cursor: Optional[Any] = None) -> ScanPage:
        remaining = sorted(
            record_id for record_id in self._rows
            if cursor is None or record_id > cursor
        )
        page = remaining[:self.page_size]

        items = []
        for record_id in page:
            expires = parse_expires(self._rows[record_id].get("expires"))
            if expires is not None and expires < cutoff:
                items.append(record_id)

        next_cursor = page[-1] if len(remaining) > self.page_size else None
        return ScanPage(items=items, scanned_count=len(page), next_cursor=next_cursor)
