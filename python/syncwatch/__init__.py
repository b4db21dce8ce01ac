"""
syncwatch - local filesystem change detection for a sync daemon.

Watches a sync root with watchdog, normalizes and debounces changes, relays
them through a bounded queue to the sync engine and keeps a status snapshot
for operators.
"""

__version__ = "0.1.0"

# DO NOT import submodules here - watchdog and fastmcp are only needed once
# the daemon actually starts.

__all__ = ["__version__"]
