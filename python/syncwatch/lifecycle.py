"""
Daemon lifecycle - wiring, startup and shutdown.

The Daemon owns one StatusStore, one RelayQueue, the FileWatcher producing
into the queue and the SyncEngine draining it. Everything is constructed
explicitly and passed by reference; there is no module-level state.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from syncwatch.config import SyncConfig
from syncwatch.engine import SyncEngine
from syncwatch.relay_queue import RelayQueue
from syncwatch.status import StatusStore, SyncState
from syncwatch.watcher import FileWatcher, FileWatcherProtocol

logger = logging.getLogger(__name__)


class Daemon:
    """Owns the pipeline components for one sync root."""

    def __init__(
        self,
        config: SyncConfig,
        observer_factory=None,
        watcher: Optional[FileWatcherProtocol] = None,
    ) -> None:
        """
        Args:
            config: Resolved configuration
            observer_factory: watchdog observer class for the default FileWatcher
            watcher: Replaces the default FileWatcher (must share this
                daemon's status and queue to be useful)
        """
        self.config = config
        self.status = StatusStore(max_events=config.event_log_size)
        self.queue = RelayQueue(capacity=config.sync_queue_size)
        if watcher is None:
            watcher_kwargs = {"observer_factory": observer_factory} if observer_factory else {}
            watcher = FileWatcher(config, self.status, self.queue, **watcher_kwargs)
        self.watcher: FileWatcherProtocol = watcher
        self.engine = SyncEngine(self.status, self.queue)
        self._engine_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """
        Start the sync engine and the file watcher.

        A watcher startup failure is logged and reported as ERROR; the daemon
        keeps serving status queries.
        """
        logger.info("Daemon starting")
        self._engine_task = asyncio.create_task(self.engine.run(), name="syncwatch-engine")
        try:
            self.watcher.start()
        except OSError as e:
            logger.warning(f"fswatch start failed: {e}")
            self.status.set_state(SyncState.ERROR, f"fswatch start failed: {e}")

    async def stop(self) -> None:
        """Stop the watcher, then the engine. Safe to call twice."""
        await self.watcher.stop()

        task, self._engine_task = self._engine_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Daemon shut down")


@asynccontextmanager
async def daemon_lifespan(daemon: Daemon):
    """Run the daemon for the duration of the context."""
    await daemon.start()
    try:
        yield daemon
    finally:
        await daemon.stop()
