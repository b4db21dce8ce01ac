"""
File watcher type definitions and protocol.

This module defines the core types shared by the watcher pipeline:
- RawOp flags: what the OS notification said happened
- Operation enum: the closed set of normalized operations sent downstream
- RawEvent / PendingChange / QueuedChange records
- FileWatcherProtocol: Interface contract for file watchers
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntFlag
from pathlib import Path
from typing import Protocol, runtime_checkable


class RawOp(IntFlag):
    """Raw operation bits attached to an OS notification."""

    NONE = 0
    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16


class Operation(Enum):
    """Normalized file operations communicated to the sync engine."""

    UNKNOWN = "UNKNOWN"
    CREATE = "CREATE"
    WRITE = "WRITE"
    REMOVE = "REMOVE"
    RENAME = "RENAME"
    CHMOD = "CHMOD"  # Attribute change

    @property
    def priority(self) -> int:
        """Merge priority: a higher value wins inside a debounce window."""
        return _PRIORITY[self]

    @property
    def label(self) -> str:
        return self.value


_PRIORITY = {
    Operation.REMOVE: 5,
    Operation.RENAME: 4,
    Operation.CREATE: 3,
    Operation.WRITE: 2,
    Operation.CHMOD: 1,
    Operation.UNKNOWN: 0,
}


def merge_operation(current: Operation, incoming: Operation) -> Operation:
    """
    Merge two operations observed on the same path.

    The incoming operation replaces the current one only when its priority is
    greater than or equal, so a later WRITE never displaces an earlier REMOVE.
    """
    if incoming.priority >= current.priority:
        return incoming
    return current


@dataclass(frozen=True)
class RawEvent:
    """An OS notification before normalization."""

    path: Path
    flags: RawOp


@dataclass
class PendingChange:
    """Per-path record held by the debouncer until its window closes."""

    path: Path
    operation: Operation
    release_at: float  # loop.time() deadline


@dataclass(frozen=True)
class QueuedChange:
    """A finalized change handed to the sync engine."""

    path: Path
    operation: Operation
    observed_at: datetime


@runtime_checkable
class FileWatcherProtocol(Protocol):
    """
    Protocol defining the file watcher interface.

    Expected Behavior:
    ------------------
    1. Subscribe every non-ignored directory under the sync root
    2. Normalize raw notifications and drop ignored paths
    3. Debounce per path with priority merge
    4. Relay finalized changes through the bounded queue
    5. Log and report recoverable errors to the status store, never raise them
    """

    def start(self) -> None:
        """
        Start watching the sync root.

        Error Conditions:
        -----------------
        - Raises RuntimeError if already started
        - Raises OSError if the root cannot be created or walked
        """
        ...

    async def stop(self) -> None:
        """Stop watching and release all subscriptions. Safe to call twice."""
        ...

    def is_running(self) -> bool:
        """True between a successful start() and stop()."""
        ...
