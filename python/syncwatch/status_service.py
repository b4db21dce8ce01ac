"""
Status queries for external clients.

Two shapes, both built from StatusStore.current():
- status_response(): one JSON-ready snapshot (point query)
- watch_status(): async generator polling the store on a fixed period
  until the subscriber stops iterating or the task is cancelled
"""

import asyncio
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from syncwatch.status import RecentEvent, StatusSnapshot, StatusStore

WATCH_INTERVAL = 2.0


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def event_to_dict(event: RecentEvent) -> dict[str, Any]:
    return {
        "op": event.operation,
        "path": event.path,
        "occurred_at": _timestamp(event.occurred_at),
    }


def snapshot_to_dict(snapshot: StatusSnapshot) -> dict[str, Any]:
    return {
        "state": snapshot.state.value,
        "message": snapshot.message,
        "last_event": snapshot.last_event,
        "updated_at": _timestamp(snapshot.updated_at),
        "recent_events": [event_to_dict(e) for e in snapshot.recent_events or ()],
    }


def status_response(store: StatusStore) -> dict[str, Any]:
    """Point query: the current snapshot as a dict."""
    return snapshot_to_dict(store.current())


async def watch_status(
    store: StatusStore,
    interval: float = WATCH_INTERVAL,
) -> AsyncIterator[dict[str, Any]]:
    """
    Yield the current snapshot immediately, then once per interval.

    Runs until the consumer closes the generator or the task is cancelled.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    while True:
        yield status_response(store)
        await asyncio.sleep(interval)
