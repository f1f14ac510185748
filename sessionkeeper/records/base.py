"""
Record store abstraction for session persistence.

This module defines the abstract keyed record service the session store
persists into. A record is identified by a string id and carries two
attributes: an integer epoch-millisecond expiry and the serialized session
content. Implementations may use Redis, an in-process dictionary, or any
other store offering per-key atomic writes and a paginated scan.

All methods are async to support non-blocking I/O with external stores.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional

from sessionkeeper.errors.exceptions import invalid_session, session_decode_error


@dataclass(frozen=True)
class StoredRecord:
    """A well-formed session record as read back from the store."""
    expires: int
    content: Any


@dataclass(frozen=True)
class ScanPage:
    """
    One page of a filtered scan.

    Attributes:
        items: Ids of records whose expiry precedes the scan cutoff.
        scanned_count: Raw rows inspected to produce this page, which is
            at least len(items).
        next_cursor: Opaque continuation, None on the final page.
    """
    items: List[str] = field(default_factory=list)
    scanned_count: int = 0
    next_cursor: Optional[Any] = None


def _json_default(value: Any) -> Any:
    # Read back as strings; parse_date_ms accepts the ISO form
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_content(content: Any, session_id: Optional[str] = None) -> str:
    """
    Serialize session content for storage.

    Dates and datetimes are written as ISO 8601 strings.

    Raises:
        AppException: INVALID_SESSION if the content is not JSON serializable.
    """
    try:
        return json.dumps(content, default=_json_default)
    except (TypeError, ValueError) as e:
        raise invalid_session(
            f"Unable to serialize session content: {e}",
            details={"session_id": session_id}
        ) from e


def decode_content(raw: Any, session_id: Optional[str] = None) -> Any:
    """
    Deserialize stored session content.

    Raises:
        AppException: SESSION_DECODE_ERROR if the stored payload is corrupt.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise session_decode_error(
            f"Stored session content is not valid JSON: {e}",
            details={"session_id": session_id}
        ) from e


def parse_expires(value: Any) -> Optional[int]:
    """
    Interpret a stored expiry attribute.

    Returns:
        The expiry in epoch milliseconds, or None when the attribute is
        missing or not numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


class RecordStore(ABC):
    """
    Abstract base class for keyed record stores.

    Transport errors raised by an implementation propagate unchanged to the
    caller; only data errors are translated into AppException.
    """

    async def init(self, auto_create: bool = False) -> None:
        """
        Verify the keyspace is reachable, provisioning it if asked to.

        Args:
            auto_create: Create the keyspace when it does not exist.

        Raises:
            AppException: SESSION_STORE_UNAVAILABLE if the keyspace is
                missing and auto_create is False.
        """

    async def close(self) -> None:
        """Release any connection held by the store."""

    @abstractmethod
    async def get(self, record_id: str) -> Optional[StoredRecord]:
        """
        Strongly consistent point read.

        Returns:
            The record, or None if it does not exist or is missing its
            expiry or content attribute.

        Raises:
            AppException: SESSION_DECODE_ERROR if the content is corrupt.
        """

    @abstractmethod
    async def put(self, record_id: str, expires: int, content: Any) -> None:
        """Unconditionally write a record."""

    @abstractmethod
    async def set_expires(self, record_id: str, expires: int) -> None:
        """Update only the expiry attribute of a record."""

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """
        Delete a record.

        This operation is idempotent - deleting a non-existent record
        does not raise an error.
        """

    @abstractmethod
    async def scan_page(self, cutoff: int, cursor: Optional[Any] = None) -> ScanPage:
        """
        Fetch one page of ids whose expiry is strictly before cutoff.

        Args:
            cutoff: Epoch-millisecond threshold.
            cursor: Continuation from the previous page, None to start.

        Returns:
            The matching ids, the number of raw rows inspected and the
            continuation for the next page.
        """

    async def health_check(self) -> bool:
        """
        Check connectivity of the store.

        Note:
            This method does not raise; failures result in False.
        """
        return True
