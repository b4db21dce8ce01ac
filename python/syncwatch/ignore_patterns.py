"""
Ignore policy for the sync root.

Uses pathspec for the configured glob patterns. Patterns are matched against
the base name only, so ``*.log`` ignores ``a.log`` at any depth.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

from pathspec import GitIgnoreSpec

from syncwatch.ignore_defaults import ALWAYS_IGNORED_SUFFIXES, SPECIAL_NAMES


def build_pathspec(patterns: Iterable[str]) -> GitIgnoreSpec:
    """
    Compile glob ignore patterns.

    Blank entries are skipped. Every other entry is a glob, so a leading
    ``#`` is escaped instead of being read as a .gitignore comment.
    """
    lines = []
    for pattern in patterns:
        pattern = (pattern or "").strip()
        if not pattern:
            continue
        lines.append("\\" + pattern if pattern.startswith("#") else pattern)
    return GitIgnoreSpec.from_lines(lines)


class IgnorePolicy:
    """
    Decides whether a path is invisible to the pipeline.

    Checks run in order and stop at the first match:
    1. Base name is ``.`` or ``..``
    2. Path is one of the reserved operational paths (log, database, socket)
    3. Base name matches a configured glob pattern
    4. Base name ends with an always-ignored suffix (.swp, .tmp, ~, .DS_Store)
    """

    def __init__(
        self,
        patterns: Optional[Iterable[str]] = None,
        reserved_paths: Optional[Iterable[Optional[Path]]] = None,
    ) -> None:
        self._patterns = list(patterns or [])
        self._spec = build_pathspec(self._patterns)
        # Reserved paths are compared as absolute strings; unset entries are skipped
        self._reserved = {
            os.path.abspath(str(p)) for p in (reserved_paths or []) if p
        }

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def should_ignore(self, path: Path) -> bool:
        base = os.path.basename(str(path))

        if base in SPECIAL_NAMES:
            return True

        if self._reserved and os.path.abspath(str(path)) in self._reserved:
            return True

        if base and self._spec.match_file(base):
            return True

        return base.endswith(ALWAYS_IGNORED_SUFFIXES)

    def is_ignored(self, path: Path, root: Optional[Path] = None) -> bool:
        """
        should_ignore() for path and for every directory between root and path.

        Anything inside an ignored directory is ignored too. Ancestors at or
        above root (or all of them, without a root) are not checked.
        """
        if self.should_ignore(path):
            return True
        if root is None:
            return False
        try:
            relative = Path(path).relative_to(root)
        except ValueError:
            return False

        current = Path(root)
        for part in relative.parts[:-1]:
            current = current / part
            if self.should_ignore(current):
                return True
        return False
