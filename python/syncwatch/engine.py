"""
Stand-in sync engine: drains the relay queue and reflects activity in status.

The real reconciliation against remote state lives elsewhere; this consumer
keeps the queue moving and the status store honest until it is plugged in.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from syncwatch.relay_queue import RelayQueue
from syncwatch.status import StatusStore, SyncState
from syncwatch.watcher.types import QueuedChange

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[QueuedChange], Awaitable[None]]


class SyncEngine:
    """
    Single consumer of the relay queue.

    For each change: status SYNCING "processing event", hand the change to
    ``handler`` (if any), then back to IDLE "idle". Handler failures are
    logged and reported as ERROR; the loop keeps draining.
    """

    def __init__(
        self,
        status: StatusStore,
        queue: RelayQueue,
        handler: Optional[ChangeHandler] = None,
    ) -> None:
        self._status = status
        self._queue = queue
        self._handler = handler
        self.processed = 0

    async def process(self, change: QueuedChange) -> None:
        self._status.set_state(SyncState.SYNCING, "processing event")
        logger.info(f"fs event: {change.operation.label} {change.path}")
        if self._handler is not None:
            try:
                await self._handler(change)
            except Exception as e:
                logger.error(f"Error handling change for {change.path}: {e}", exc_info=True)
                self._status.set_state(SyncState.ERROR, f"sync error: {change.path}")
                return
        self.processed += 1
        self._status.set_state(SyncState.IDLE, "idle")

    async def run(self) -> None:
        """Drain the queue until cancelled."""
        try:
            async for change in self._queue:
                await self.process(change)
        except asyncio.CancelledError:
            self._status.set_state(SyncState.IDLE, "idle")
            raise
