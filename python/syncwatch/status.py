"""
Status store - the latest pipeline snapshot plus a ring of recent events.

The store is constructed once per pipeline and handed to every producer and
reader. Writers include the debouncer, the watcher error paths and the sync
engine; readers are status queries and watch streams. Every operation runs
under a single lock, and readers only ever receive frozen copies.
"""

import threading
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

DEFAULT_MAX_EVENTS = 20


class SyncState(Enum):
    """High-level sync state."""

    UNSPECIFIED = "UNSPECIFIED"
    IDLE = "IDLE"
    SYNCING = "SYNCING"
    ERROR = "ERROR"
    PAUSED = "PAUSED"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RecentEvent:
    """A recently flushed filesystem event."""

    operation: str
    path: str
    occurred_at: Optional[datetime] = None

    @property
    def summary(self) -> str:
        return f"{self.operation} {self.path}"


@dataclass(frozen=True)
class StatusSnapshot:
    """
    One fully-formed description of pipeline state.

    When passed to StatusStore.update(), ``updated_at=None``, an empty
    ``last_event`` and ``recent_events=None`` mean "not set by the caller".
    """

    state: SyncState = SyncState.UNSPECIFIED
    message: str = ""
    last_event: str = ""
    updated_at: Optional[datetime] = None
    recent_events: Optional[tuple[RecentEvent, ...]] = field(default=None)


class StatusStore:
    """
    Thread-safe holder of the current StatusSnapshot.

    Example:
    --------
    >>> store = StatusStore()
    >>> store.add_event(RecentEvent("CREATE", "notes/a.txt"))
    >>> store.current().last_event
    'CREATE notes/a.txt'
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self._lock = threading.Lock()
        self._max_events = max_events if max_events > 0 else DEFAULT_MAX_EVENTS
        self._ring: deque[RecentEvent] = deque()
        self._snapshot = StatusSnapshot(
            state=SyncState.IDLE,
            message="idle",
            updated_at=_now(),
            recent_events=(),
        )

    @property
    def max_events(self) -> int:
        with self._lock:
            return self._max_events

    def current(self) -> StatusSnapshot:
        """Return a copy of the latest snapshot, including the recent-event ring."""
        with self._lock:
            return replace(self._snapshot, recent_events=tuple(self._ring))

    def update(self, snapshot: StatusSnapshot) -> None:
        """
        Replace the current snapshot.

        Fields the caller leaves unset are filled in: ``updated_at`` gets the
        current time, ``last_event`` and ``recent_events`` are carried forward.
        A supplied ``recent_events`` replaces the ring, keeping the newest
        entries that fit.
        """
        with self._lock:
            if snapshot.recent_events is not None:
                self._ring = deque(snapshot.recent_events)
                self._trim()
            self._snapshot = replace(
                snapshot,
                updated_at=snapshot.updated_at or _now(),
                last_event=snapshot.last_event or self._snapshot.last_event,
                recent_events=tuple(self._ring),
            )

    def set_state(self, state: SyncState, message: str) -> None:
        """Shorthand for update() with only state and message set."""
        self.update(StatusSnapshot(state=state, message=message))

    def add_event(self, event: RecentEvent) -> None:
        """Append a recent event, evicting the oldest past the maximum."""
        now = _now()
        if event.occurred_at is None:
            event = replace(event, occurred_at=now)
        with self._lock:
            self._ring.append(event)
            self._trim()
            self._snapshot = replace(
                self._snapshot,
                last_event=event.summary,
                updated_at=now,
                recent_events=tuple(self._ring),
            )

    def set_max_events(self, max_events: int) -> None:
        """Resize the ring. Shrinking drops the oldest events; n <= 0 is ignored."""
        if max_events <= 0:
            return
        with self._lock:
            self._max_events = max_events
            self._trim()
            self._snapshot = replace(self._snapshot, recent_events=tuple(self._ring))

    def _trim(self) -> None:
        # Caller holds the lock
        while len(self._ring) > self._max_events:
            self._ring.popleft()
