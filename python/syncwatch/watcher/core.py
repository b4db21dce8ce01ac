"""
Core file watching implementation.

This module provides the FileWatcher class that wires the pipeline together:

    watchdog observer thread
        → RawEventHandler (translate, hand over to the event loop)
        → receiver loop → EventNormalizer (ignore, map, subscribe new dirs)
        → Debouncer (per-path window, one tick loop)
        → RelayQueue → sync engine

Both loops run as tasks on the event loop that called start(). Nothing after
start() raises to the caller: errors are logged and show up in the status
store as SyncState.ERROR. The tick loop also checks that the observer and
its emitter threads are still alive, since watchdog never reports a dead
notification source to the handler.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Union

from watchdog.observers import Observer

from syncwatch.config import SyncConfig
from syncwatch.ignore_patterns import IgnorePolicy
from syncwatch.relay_queue import RelayQueue
from syncwatch.status import StatusSnapshot, StatusStore, SyncState
from syncwatch.watcher.debouncer import Debouncer
from syncwatch.watcher.handlers import RawEventHandler
from syncwatch.watcher.normalizer import EventNormalizer
from syncwatch.watcher.types import RawEvent
from syncwatch.watcher.watchset import WatchSetManager

logger = logging.getLogger(__name__)


class FileWatcher:
    """
    Watches the configured sync root and relays debounced changes.

    Constructor Args:
    -----------------
    config: Resolved SyncConfig (sync_root, ignore patterns, reserved paths, timing)
    status: StatusStore shared with the rest of the daemon
    queue: RelayQueue consumed by the sync engine
    observer_factory: watchdog observer class (override in tests)

    Example Usage:
    --------------
    >>> status = StatusStore()
    >>> queue = RelayQueue(config.sync_queue_size)
    >>> watcher = FileWatcher(config, status, queue)
    >>> watcher.start()          # inside a running event loop
    >>> change = await queue.get()
    >>> await watcher.stop()
    """

    def __init__(
        self,
        config: SyncConfig,
        status: StatusStore,
        queue: RelayQueue,
        observer_factory=Observer,
    ) -> None:
        self._config = config
        self._status = status
        self._queue = queue
        self._root: Optional[Path] = (
            Path(os.path.abspath(Path(config.sync_root).expanduser())) if config.sync_root else None
        )

        self._ignore = IgnorePolicy(config.ignore_patterns, config.reserved_paths())
        self._handler = RawEventHandler(on_raw=self._post, on_error=self._post)
        self._watch_set = WatchSetManager(
            self._handler, self._ignore, status, observer_factory=observer_factory
        )
        self._normalizer = EventNormalizer(self._ignore, self._watch_set, root=self._root)
        self._debouncer = Debouncer(
            queue,
            status,
            root=self._root,
            window=config.debounce_window,
            tick=config.tick_interval,
        )

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._inbox: Optional[asyncio.Queue] = None
        self._tasks: list[asyncio.Task] = []
        self._source_lost = False

    @property
    def root(self) -> Optional[Path]:
        return self._root

    @property
    def ignore_policy(self) -> IgnorePolicy:
        return self._ignore

    @property
    def watch_set(self) -> WatchSetManager:
        return self._watch_set

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    def start(self) -> None:
        """
        Subscribe the sync root and start the receiver and tick loops.

        Must be called from a running event loop.

        Raises:
        -------
        RuntimeError: If already running, or no event loop is running
        OSError: If the sync root cannot be created, walked or subscribed
        """
        if self.is_running():
            raise RuntimeError("FileWatcher is already running")

        if self._root is None:
            logger.info("No sync root configured; file watcher disabled")
            return

        self._loop = asyncio.get_running_loop()
        self._inbox = asyncio.Queue()

        self._watch_set.start(self._root)

        self._source_lost = False
        self._status.update(StatusSnapshot(state=SyncState.IDLE, message="watching"))
        self._tasks = [
            self._loop.create_task(self._receive(), name="syncwatch-receiver"),
            self._loop.create_task(
                self._debouncer.run(on_tick=self._check_source), name="syncwatch-debounce-tick"
            ),
        ]

    def _post(self, item: Union[RawEvent, Exception]) -> None:
        """Hand an item from the observer thread to the receiver loop."""
        loop, inbox = self._loop, self._inbox
        if loop is None or inbox is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(inbox.put_nowait, item)

    async def _receive(self) -> None:
        while True:
            item = await self._inbox.get()
            if isinstance(item, Exception):
                self._report_error(item)
            else:
                self.handle_raw(item)

    def handle_raw(self, raw: RawEvent) -> None:
        """Normalize one raw event and feed it to the debouncer."""
        try:
            operation = self._normalizer.normalize(raw)
        except OSError as e:
            self._report_error(e)
            return
        if operation is not None:
            self._debouncer.add(operation, raw.path)

    def _report_error(self, error: Exception) -> None:
        logger.warning(f"fswatch error: {error}")
        self._status.set_state(SyncState.ERROR, "fswatch error")

    def _check_source(self) -> None:
        """Report once if the notification source died while running."""
        if self._source_lost or self._watch_set.is_alive():
            return
        self._source_lost = True
        self._report_error(OSError("notification source stopped"))

    def is_running(self) -> bool:
        """Check if the receiver and tick loops are active."""
        return any(not task.done() for task in self._tasks)

    async def stop(self) -> None:
        """
        Release all subscriptions and stop both loops.

        Safe to call repeatedly or before start(). Changes already in the
        relay queue are left for the consumer; pending (undebounced) changes
        are discarded.
        """
        self._watch_set.stop()

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._inbox = None
        if tasks:
            logger.info("File watcher stopped")

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Start, then run until stop_event is set or this task is cancelled.

        Raises:
        -------
        OSError: If startup fails (nothing is left running)
        """
        self.start()
        try:
            if stop_event is None:
                await asyncio.Event().wait()
            else:
                await stop_event.wait()
        finally:
            await self.stop()
