"""
Watch set management for the sync root.

The root is scheduled once, recursively, on a single watchdog observer (one
OS notification instance however many directories there are). The manager
also keeps the logical set of subscribed directories: every non-ignored
directory found by the initial walk or announced by on_create(). That set
only grows while running and is torn down as a whole by stop(). Events from
inside ignored directories still arrive from the OS and are dropped by the
normalizer.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from syncwatch.ignore_patterns import IgnorePolicy
from syncwatch.status import StatusStore, SyncState

logger = logging.getLogger(__name__)


def _raise(error: OSError) -> None:
    raise error


class WatchSetManager:
    """
    Owns the OS-level subscription over the sync root.

    Example:
    --------
    >>> manager = WatchSetManager(handler, IgnorePolicy(["*.log"]), status)
    >>> manager.start(Path("/sync"))      # raises OSError on failure
    >>> manager.on_create(Path("/sync/new-dir"))
    >>> manager.is_alive()
    True
    >>> manager.stop()
    """

    def __init__(
        self,
        handler: FileSystemEventHandler,
        ignore: IgnorePolicy,
        status: StatusStore,
        observer_factory=Observer,
    ) -> None:
        self._handler = handler
        self._ignore = ignore
        self._status = status
        self._observer_factory = observer_factory
        self._observer: Optional[BaseObserver] = None
        self._root: Optional[Path] = None
        self._watches: set[Path] = set()
        self._lock = threading.Lock()

    @property
    def root(self) -> Optional[Path]:
        return self._root

    def start(self, root: Path) -> None:
        """
        Create the root if needed, record every non-ignored directory and
        schedule one recursive watch on the root.

        Raises:
        -------
        OSError: If the root cannot be created or walked, or the watch cannot
                 be set up. Nothing stays subscribed in that case.
        """
        root = Path(os.path.abspath(root))
        root.mkdir(mode=0o700, parents=True, exist_ok=True)

        observer = self._observer_factory()
        with self._lock:
            self._observer = observer
            self._root = root
        try:
            self._add_recursive(root, strict=True)
            observer.schedule(self._handler, str(root), recursive=True)
            observer.start()
        except Exception:
            self.stop()
            raise

        logger.info(f"Watching {root} ({len(self._watches)} directories)")

    def on_create(self, path: Path) -> None:
        """
        Record a newly created directory and everything below it.

        Failures are logged and reported to the status store, never raised.
        """
        if self._observer is None or self._ignore.is_ignored(path, self._root):
            return
        try:
            if not path.is_dir():
                return
            self._add_recursive(path, strict=False)
        except OSError as e:
            logger.warning(f"Failed to watch new directory {path}: {e}")
            self._status.set_state(SyncState.ERROR, f"fswatch error: {path}")

    def _add_recursive(self, top: Path, strict: bool) -> None:
        # strict=False tolerates directories that vanish during the walk
        onerror = _raise if strict else None
        for dirpath, dirnames, _ in os.walk(top, onerror=onerror):
            current = Path(dirpath)
            dirnames[:] = [d for d in dirnames if not self._ignore.should_ignore(current / d)]
            self._subscribe(current)

    def _subscribe(self, directory: Path) -> None:
        with self._lock:
            if self._observer is None or directory in self._watches:
                return
            self._watches.add(directory)
        logger.debug(f"Subscribed {directory}")

    def is_watching(self, directory: Path) -> bool:
        with self._lock:
            return Path(os.path.abspath(directory)) in self._watches

    def watched_directories(self) -> list[Path]:
        with self._lock:
            return sorted(self._watches)

    def is_alive(self) -> bool:
        """True while the observer thread and all of its emitters are running."""
        observer = self._observer
        if observer is None or not observer.is_alive():
            return False
        return all(emitter.is_alive() for emitter in observer.emitters)

    def stop(self) -> None:
        """Release the subscription. Safe to call repeatedly or before start()."""
        with self._lock:
            observer, self._observer = self._observer, None
            self._watches.clear()
        if observer is None:
            return

        observer.unschedule_all()
        if observer.is_alive():
            observer.stop()
            observer.join()
        logger.info("Released all directory subscriptions")
