"""
Callback-style adapter for hosts that expect completion callbacks.

Each call schedules the corresponding coroutine on the running event loop
and reports the outcome as callback(error) or callback(None, result); a
failed get is reported as callback(error, None). The calls themselves never
raise; failures reach the host only through the callback (and the store's
error hook). An exception raised by the callback itself is logged.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from sessionkeeper.session.expiring_store import ExpiringSessionStore

logger = logging.getLogger(__name__)

Callback = Callable[..., None]


def _noop(*args: Any) -> None:
    pass


class CallbackSessionStore:
    """
    Wraps an ExpiringSessionStore with callback completion signals.

    Example:
        store = CallbackSessionStore(ExpiringSessionStore(records, table_name="sessions"))
        store.get("sid", lambda err, session: ...)
    """

    def __init__(self, store: ExpiringSessionStore):
        self.store = store
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of operations whose callback has not run yet."""
        return len(self._tasks)

    def get(self, session_id: str, callback: Callback) -> asyncio.Task:
        return self._dispatch("get", self.store.get(session_id), callback, with_result=True)

    def set(self, session_id: str, session: Any, callback: Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch("set", self.store.set(session_id, session), callback)

    def touch(self, session_id: str, session: Any, callback: Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch("touch", self.store.touch(session_id, session), callback)

    def destroy(self, session_id: str, callback: Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch("destroy", self.store.destroy(session_id), callback)

    def _dispatch(
        self,
        name: str,
        operation: Awaitable[Any],
        callback: Optional[Callback],
        with_result: bool = False
    ) -> asyncio.Task:
        done = callback if callback is not None else _noop

        async def _run() -> None:
            try:
                result = await operation
            except Exception as e:
                args: tuple = (e, None) if with_result else (e,)
            else:
                args = (None, result) if with_result else (None,)

            try:
                done(*args)
            except Exception as e:
                logger.error(
                    f"Session {name} callback raised {type(e).__name__}: {e}",
                    exc_info=e,
                    extra={"extra_data": {
                        "operation": name,
                        "table_name": self.store.table_name,
                        "error_type": type(e).__name__,
                    }}
                )

        task = asyncio.get_running_loop().create_task(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
