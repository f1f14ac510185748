"""
Session store capability interface.

This module defines the contract a session-middleware host expects from a
session store. Any object providing these coroutines satisfies it; hosts
receive a store instance rather than a base class to inherit from.
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class SessionStoreProtocol(Protocol):
    """
    Contract between a session-middleware host and a session store.

    All methods are async to support non-blocking I/O operations with
    external storage systems.
    """

    async def connect(self) -> bool:
        """
        Lifecycle hook run once before the store serves requests.

        Returns:
            True if the backing keyspace was reached, False otherwise.
            A store that could not connect keeps serving requests and
            reports each failure individually.
        """
        ...

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve session data by session ID.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            Session data as a dictionary if found, None if the session
            does not exist or has expired.

        Raises:
            AppException: SESSION_DECODE_ERROR if the stored data is corrupt.
        """
        ...

    async def set(self, session_id: str, session: dict[str, Any]) -> None:
        """
        Store session data, deriving its expiry from the session or the
        configured TTL.

        Args:
            session_id: Unique identifier for the session.
            session: Session data to store as a dictionary.
        """
        ...

    async def touch(self, session_id: str, session: dict[str, Any]) -> bool:
        """
        Extend the lifetime of a session without rewriting its data.

        Returns:
            True if the store was written, False if the session was
            refreshed recently enough to skip the write.
        """
        ...

    async def destroy(self, session_id: str) -> None:
        """
        Delete session data by session ID.

        This operation is idempotent - deleting a non-existent
        session does not raise an error.
        """
        ...
