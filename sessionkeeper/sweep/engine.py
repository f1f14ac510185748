"""
Expired-session sweep.

A sweep walks every page of a filtered scan for records whose expiry is
before a cutoff and deletes them. Deletes are issued one at a time, each
awaited before the next and every page finished before the next page is
fetched, so a sweep never bursts writes at a rate-limited store.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from sessionkeeper.records.base import RecordStore

logger = logging.getLogger(__name__)

# Added on top of touch_after when computing the cutoff so a session whose
# touch is in flight is never swept, and so scans may read stale data
SAFETY_MARGIN_MS = 5000


@dataclass
class SweepStats:
    """Rows inspected and records deleted during one sweep."""
    scanned: int = 0
    deleted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_cutoff(now: int, touch_after: int, safety_margin: int = SAFETY_MARGIN_MS) -> int:
    """
    Compute the expiry threshold for a sweep starting at now.

    A non-positive touch_after contributes nothing, so the cutoff never
    moves past now - safety_margin.

    Example:
        compute_cutoff(100000, 10000) == 85000
    """
    return now - max(touch_after, 0) - safety_margin


class SweepEngine:
    """
    Deletes every record whose expiry is strictly before a cutoff.

    Example:
        engine = SweepEngine(record_store)
        stats = await engine.sweep(compute_cutoff(now, touch_after))
    """

    def __init__(self, record_store: RecordStore):
        self._store = record_store

    async def sweep(self, cutoff: int) -> SweepStats:
        """
        Run one full sweep.

        Args:
            cutoff: Records with expires < cutoff are deleted.

        Returns:
            Totals across all pages.

        Raises:
            Exception: Whatever the record store raised for a failed page
                fetch or delete. Records deleted before the failure stay
                deleted.
        """
        stats = SweepStats()
        cursor: Optional[Any] = None
        pages = 0

        while True:
            page = await self._store.scan_page(cutoff, cursor)

            deleted = 0
            for record_id in page.items:
                await self._store.delete(record_id)
                deleted += 1

            stats.scanned += page.scanned_count
            stats.deleted += deleted
            pages += 1

            logger.debug(
                "Sweep page %d scanned %d rows and deleted %d sessions",
                pages,
                page.scanned_count,
                deleted,
                extra={"extra_data": {
                    "page": pages,
                    "cutoff": cutoff,
                    "scanned": page.scanned_count,
                    "deleted": deleted,
                    "has_more": page.next_cursor is not None,
                }}
            )

            if page.next_cursor is None:
                return stats
            cursor = page.next_cursor
