"""
Event normalization: ignore policy plus flag-to-operation mapping.
"""

from pathlib import Path
from typing import Optional, Protocol

from syncwatch.ignore_patterns import IgnorePolicy
from syncwatch.watcher.types import Operation, RawEvent, RawOp

# Checked in order, first set bit wins
_FLAG_PRIORITY = (
    (RawOp.REMOVE, Operation.REMOVE),
    (RawOp.RENAME, Operation.RENAME),
    (RawOp.CREATE, Operation.CREATE),
    (RawOp.WRITE, Operation.WRITE),
    (RawOp.CHMOD, Operation.CHMOD),
)


def normalize_op(flags: RawOp) -> Operation:
    """Map raw flags to one Operation; no known bit gives UNKNOWN."""
    for flag, operation in _FLAG_PRIORITY:
        if flags & flag:
            return operation
    return Operation.UNKNOWN


class DirectoryCreatedHook(Protocol):
    def on_create(self, path: Path) -> None: ...


class EventNormalizer:
    """
    Turn RawEvents into Operations, or drop them.

    Paths inside an ignored directory below ``root`` are dropped like the
    directory itself. A CREATE on a directory calls ``watch_set.on_create``
    before returning, so the new directory is subscribed before anything
    inside it can change.
    """

    def __init__(
        self,
        ignore: IgnorePolicy,
        watch_set: DirectoryCreatedHook,
        root: Optional[Path] = None,
    ) -> None:
        self._ignore = ignore
        self._watch_set = watch_set
        self._root = root

    def normalize(self, raw: RawEvent) -> Optional[Operation]:
        """Return the logical operation for raw, or None if it should be dropped."""
        if self._ignore.is_ignored(raw.path, self._root):
            return None

        operation = normalize_op(raw.flags)
        if operation is Operation.UNKNOWN:
            return None

        if operation is Operation.CREATE and raw.path.is_dir():
            self._watch_set.on_create(raw.path)

        return operation
