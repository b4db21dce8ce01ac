"""
Internal event handler for watchdog file system monitoring.

Translates watchdog events into RawEvents (path + RawOp flags) and hands
them to the watcher's receiver loop. Runs on the watchdog observer thread,
so it must not touch pipeline state directly.
"""

import os
from pathlib import Path
from typing import Callable

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from syncwatch.watcher.types import RawEvent, RawOp


def modified_flags(path: Path) -> RawOp:
    """
    Tell an attribute change from a content write.

    watchdog reports both as "modified". A content write sets mtime and
    ctime together, an attribute change (chmod, chown, xattr) only moves
    ctime forward. If the file is already gone the event counts as a write.
    """
    try:
        st = os.stat(path)
    except OSError:
        return RawOp.WRITE
    if st.st_ctime_ns > st.st_mtime_ns:
        return RawOp.CHMOD
    return RawOp.WRITE


def translate(event: FileSystemEvent) -> list[RawEvent]:
    """
    Map one watchdog event to raw events.

    - created  → CREATE
    - modified → WRITE, or CHMOD when only the inode changed (see
      modified_flags). Directory modifications are dropped: watchdog reports
      one for the parent on every child change
    - deleted  → REMOVE
    - moved    → RENAME on the source path, CREATE on the destination
    - anything else (opened, closed) → empty flags, dropped by the normalizer
    """
    src = Path(os.fsdecode(event.src_path))

    if event.event_type == EVENT_TYPE_CREATED:
        return [RawEvent(src, RawOp.CREATE)]
    if event.event_type == EVENT_TYPE_MODIFIED:
        if event.is_directory:
            return []
        return [RawEvent(src, modified_flags(src))]
    if event.event_type == EVENT_TYPE_DELETED:
        return [RawEvent(src, RawOp.REMOVE)]
    if event.event_type == EVENT_TYPE_MOVED:
        dest = Path(os.fsdecode(event.dest_path))
        return [RawEvent(src, RawOp.RENAME), RawEvent(dest, RawOp.CREATE)]
    return [RawEvent(src, RawOp.NONE)]


class RawEventHandler(FileSystemEventHandler):
    """
    Forward watchdog events as RawEvents.

    Args:
    -----
    on_raw: Thread-safe callable receiving each RawEvent
    on_error: Thread-safe callable receiving exceptions raised while translating
    """

    def __init__(
        self,
        on_raw: Callable[[RawEvent], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        super().__init__()
        self._on_raw = on_raw
        self._on_error = on_error

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            raw_events = translate(event)
        except Exception as e:
            self._on_error(e)
            return
        for raw in raw_events:
            self._on_raw(raw)
