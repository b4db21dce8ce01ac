"""
Event debouncing for the file watcher.

This module provides the Debouncer class that coalesces rapid changes to the
same path and releases them once the path has been quiet for a full window.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from syncwatch.relay_queue import RelayQueue
from syncwatch.status import RecentEvent, StatusStore
from syncwatch.watcher.types import Operation, PendingChange, QueuedChange, merge_operation

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 0.3
DEFAULT_TICK = 0.2


def relative_display_path(path: Path, root: Optional[Path]) -> str:
    """Path relative to root for status summaries (unchanged if outside root)."""
    if root is not None:
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            pass
    return str(path)


class Debouncer:
    """
    Per-path trailing-window debouncer with a single periodic tick.

    Behavior:
    ---------
    Each path has at most one pending record. Every new event on the path
    pushes its release time back by a full window and merges the operation
    by priority (REMOVE > RENAME > CREATE > WRITE > CHMOD). A single tick
    loop releases every record whose window has passed, so a change is
    emitted between ``window`` and ``window + tick`` after the last event.

    Example:
    --------
    a.txt CREATE at t=0ms
    a.txt WRITE  at t=20ms    } merged: CREATE outranks WRITE
    a.txt WRITE  at t=40ms    }
    → released on the first tick at or after t=340ms as CREATE

    The pending table is only touched from the event loop that runs add()
    and run(), so it needs no lock.
    """

    def __init__(
        self,
        queue: RelayQueue,
        status: StatusStore,
        root: Optional[Path] = None,
        window: float = DEFAULT_WINDOW,
        tick: float = DEFAULT_TICK,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
        -----
        queue: Destination for released changes
        status: Receives a recent-event entry for every release
        root: Sync root, used to shorten paths in status summaries
        window: Quiet period in seconds before a change is released
        tick: Seconds between release checks

        Raises:
        -------
        ValueError: If window or tick is not positive
        """
        if window <= 0 or tick <= 0:
            raise ValueError("window and tick must be positive")

        self._queue = queue
        self._status = status
        self._root = root
        self._window = window
        self._tick = tick
        self._clock = clock
        self._pending: dict[Path, PendingChange] = {}

    @property
    def window(self) -> float:
        return self._window

    @property
    def tick(self) -> float:
        return self._tick

    def pending_count(self) -> int:
        return len(self._pending)

    def pending_operation(self, path: Path) -> Optional[Operation]:
        record = self._pending.get(path)
        return record.operation if record else None

    def add(self, operation: Operation, path: Path) -> None:
        """Record an operation on path and restart its quiet window."""
        release_at = self._clock() + self._window
        record = self._pending.get(path)
        if record is None:
            self._pending[path] = PendingChange(path, operation, release_at)
            return

        record.operation = merge_operation(record.operation, operation)
        record.release_at = release_at

    def flush_due(self, now: Optional[float] = None) -> list[QueuedChange]:
        """
        Release every pending change whose window has passed.

        Returns:
            The released changes, whether or not the queue accepted them
        """
        if now is None:
            now = self._clock()

        ready = [record for record in self._pending.values() if record.release_at <= now]
        released = []
        for record in ready:
            del self._pending[record.path]
            observed_at = datetime.now(timezone.utc)
            change = QueuedChange(record.path, record.operation, observed_at)

            self._status.add_event(
                RecentEvent(
                    record.operation.label,
                    relative_display_path(record.path, self._root),
                    observed_at,
                )
            )
            self._queue.put_nowait(change)
            released.append(change)

        if released:
            logger.debug(f"Released {len(released)} change(s), {len(self._pending)} pending")
        return released

    async def run(self, on_tick: Optional[Callable[[], None]] = None) -> None:
        """
        Tick forever; exits when the task is cancelled.

        on_tick, if given, is called after every release check.
        """
        while True:
            await asyncio.sleep(self._tick)
            self.flush_due()
            if on_tick is not None:
                on_tick()
