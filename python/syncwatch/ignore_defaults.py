"""
Default ignore patterns and suffix constants.

This module contains the static configuration used by ignore_patterns.py.
"""

# Base names that never describe a real entry
SPECIAL_NAMES = frozenset({".", ".."})

# Glob patterns matched against the base name (overridable via config)
DEFAULT_IGNORE_PATTERNS = [
    "*.swp",  # Vim swap
    "*.tmp",  # Atomic-save temp files
    "*~",  # Editor backups
    ".DS_Store",  # macOS Finder metadata
]

# Suffixes that are always ignored, whatever the configured patterns say.
# Editors create and delete these rapidly; syncing them only causes churn.
ALWAYS_IGNORED_SUFFIXES = (".swp", ".tmp", "~", ".DS_Store")
