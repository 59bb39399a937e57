# utils/inflight.py
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Set, TypeVar

from mothermath.core.errors import OperationCancelledError, OperationInProgressError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

T = TypeVar("T")


class InFlightGuard:
    """
    One running operation per key.

    `run` starts the coroutine as a task and awaits it. A second `run` under a key
    that is still running is rejected. `cancel(key)` stops the task and its caller
    gets OperationCancelledError. If the caller itself is cancelled (client gone),
    the task is cancelled with it, which also aborts the gateway call it is awaiting.
    """

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cancelled: Set[str] = set()

    def is_running(self, key: str) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        if self.is_running(key):
            logger.info(f"Rejected duplicate operation for key '{key}'")
            raise OperationInProgressError(key)

        task = asyncio.ensure_future(factory())
        self._tasks[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            if key in self._cancelled and task.cancelled():
                logger.info(f"Operation '{key}' cancelled on request")
                raise OperationCancelledError(key)
            raise
        finally:
            if self._tasks.get(key) is task:
                del self._tasks[key]
                self._cancelled.discard(key)

    def cancel(self, key: str) -> bool:
        """Cancel the running operation for `key`. Returns False when nothing was running."""
        task = self._tasks.get(key)
        if task is None or task.done():
            return False
        self._cancelled.add(key)
        task.cancel()
        return True
