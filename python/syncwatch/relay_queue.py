"""
Bounded relay queue between the debouncer and the sync engine.

Producers never block: when the queue is full the newest change is dropped
and a warning is logged. Consumers await get(), which suspends until a change
arrives or the awaiting task is cancelled.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, AsyncIterator

if TYPE_CHECKING:
    from syncwatch.watcher.types import QueuedChange

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1024


class RelayQueue:
    """Fixed-capacity FIFO of QueuedChange with drop-newest overflow."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            capacity = DEFAULT_CAPACITY
        self._capacity = capacity
        self._queue: "asyncio.Queue[QueuedChange]" = asyncio.Queue(maxsize=capacity)
        self.dropped = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def put_nowait(self, change: "QueuedChange") -> bool:
        """
        Enqueue a change without blocking.

        Returns:
            True if accepted, False if the queue was full and the change dropped
        """
        try:
            self._queue.put_nowait(change)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Sync queue full; dropping event for {change.path}")
            return False
        return True

    async def get(self) -> "QueuedChange":
        """Wait for the next change."""
        return await self._queue.get()

    def get_nowait(self) -> "QueuedChange":
        """Pop a change immediately. Raises asyncio.QueueEmpty when empty."""
        return self._queue.get_nowait()

    def qsize(self) -> int:
        return self._queue.qsize()

    def __len__(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def full(self) -> bool:
        return self._queue.full()

    async def __aiter__(self) -> AsyncIterator["QueuedChange"]:
        while True:
            yield await self._queue.get()
