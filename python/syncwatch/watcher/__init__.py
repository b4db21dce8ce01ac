"""
File system watcher for the sync root.

Typical usage:
--------------
    from syncwatch.config import load_config
    from syncwatch.relay_queue import RelayQueue
    from syncwatch.status import StatusStore
    from syncwatch.watcher import FileWatcher

    config = load_config()
    status = StatusStore(config.event_log_size)
    queue = RelayQueue(config.sync_queue_size)

    watcher = FileWatcher(config, status, queue)
    watcher.start()                 # raises OSError if the root is unusable
    change = await queue.get()      # QueuedChange(path, operation, observed_at)
    await watcher.stop()

ERROR CONDITIONS SUMMARY
========================

1. STARTUP:
   - Sync root cannot be created, walked or watched → OSError from start()
   - start() called twice → RuntimeError
   - stop() called before start() or twice → No-op (safe)

2. RUNTIME (never raised, logged + status ERROR):
   - New subdirectory cannot be subscribed
   - Observer thread reports an error while translating an event
   - Observer or emitter thread dies (checked on every tick, reported once)

3. CAPACITY:
   - Relay queue full → newest change dropped, warning logged

4. IGNORED:
   - ".", "..", reserved operational files, configured glob patterns and
     *.swp / *.tmp / *~ / .DS_Store → dropped silently

TIMING
======

   - Debounce window: 300ms trailing (each event restarts it)
   - Tick: 200ms, a change is released within [300ms, 500ms) of its last event
   - Same path, several operations in one window → highest priority wins:
     REMOVE > RENAME > CREATE > WRITE > CHMOD
"""

from syncwatch.watcher.core import FileWatcher
from syncwatch.watcher.debouncer import Debouncer
from syncwatch.watcher.handlers import RawEventHandler
from syncwatch.watcher.normalizer import EventNormalizer, normalize_op
from syncwatch.watcher.types import (
    FileWatcherProtocol,
    Operation,
    PendingChange,
    QueuedChange,
    RawEvent,
    RawOp,
)
from syncwatch.watcher.watchset import WatchSetManager

__all__ = [
    "Debouncer",
    "EventNormalizer",
    "FileWatcher",
    "FileWatcherProtocol",
    "Operation",
    "PendingChange",
    "QueuedChange",
    "RawEvent",
    "RawEventHandler",
    "RawOp",
    "WatchSetManager",
    "normalize_op",
]
