"""
Tests for the Debouncer: priority merge, sliding window, tick release.

Most tests drive flush_due() with a fake clock so timing is exact; the last
ones run the real tick loop.
"""

import asyncio
from pathlib import Path

import pytest

from syncwatch.relay_queue import RelayQueue
from syncwatch.status import StatusStore
from syncwatch.watcher import Debouncer, Operation

ROOT = Path("/sync")


@pytest.fixture
def debouncer(relay_queue, status_store, fake_clock):
    return Debouncer(relay_queue, status_store, root=ROOT, window=0.3, tick=0.2, clock=fake_clock)


def _drain(queue: RelayQueue):
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


def test_invalid_timing_rejected(relay_queue, status_store):
    with pytest.raises(ValueError):
        Debouncer(relay_queue, status_store, window=0)
    with pytest.raises(ValueError):
        Debouncer(relay_queue, status_store, tick=-1)


# ============================================================================
# PRIORITY MERGE
# ============================================================================


def test_create_then_writes_emits_single_create(debouncer, relay_queue, fake_clock):
    path = ROOT / "a.txt"
    debouncer.add(Operation.CREATE, path)
    fake_clock.advance(0.02)
    debouncer.add(Operation.WRITE, path)
    fake_clock.advance(0.02)
    debouncer.add(Operation.WRITE, path)

    fake_clock.advance(0.3)
    debouncer.flush_due()

    items = _drain(relay_queue)
    assert len(items) == 1
    assert items[0].path == path
    assert items[0].operation is Operation.CREATE


def test_later_write_never_displaces_remove(debouncer, relay_queue, fake_clock):
    path = ROOT / "gone.txt"
    debouncer.add(Operation.REMOVE, path)
    debouncer.add(Operation.WRITE, path)
    debouncer.add(Operation.CREATE, path)

    fake_clock.advance(1)
    debouncer.flush_due()

    assert [c.operation for c in _drain(relay_queue)] == [Operation.REMOVE]


@pytest.mark.parametrize(
    "sequence,expected",
    [
        ([Operation.CHMOD, Operation.WRITE], Operation.WRITE),
        ([Operation.WRITE, Operation.CHMOD], Operation.WRITE),
        ([Operation.WRITE, Operation.RENAME, Operation.CREATE], Operation.RENAME),
        ([Operation.CHMOD, Operation.CHMOD], Operation.CHMOD),
        ([Operation.CREATE, Operation.REMOVE, Operation.CREATE], Operation.REMOVE),
    ],
)
def test_emitted_operation_is_highest_priority(debouncer, relay_queue, fake_clock, sequence, expected):
    for op in sequence:
        debouncer.add(op, ROOT / "f")
    fake_clock.advance(0.3)
    debouncer.flush_due()

    assert [c.operation for c in _drain(relay_queue)] == [expected]


# ============================================================================
# WINDOW / RELEASE
# ============================================================================


def test_not_released_before_window(debouncer, relay_queue, fake_clock):
    debouncer.add(Operation.WRITE, ROOT / "a.txt")
    fake_clock.advance(0.29)

    assert debouncer.flush_due() == []
    assert relay_queue.empty()
    assert debouncer.pending_count() == 1


def test_released_exactly_at_deadline(debouncer, relay_queue, fake_clock):
    debouncer.add(Operation.WRITE, ROOT / "a.txt")
    fake_clock.advance(0.3)

    assert len(debouncer.flush_due()) == 1
    assert debouncer.pending_count() == 0


def test_activity_slides_the_window(debouncer, relay_queue, fake_clock):
    path = ROOT / "busy.log.txt"
    debouncer.add(Operation.WRITE, path)
    for _ in range(5):
        fake_clock.advance(0.2)
        debouncer.add(Operation.WRITE, path)
        debouncer.flush_due()
        assert relay_queue.empty()

    fake_clock.advance(0.3)
    debouncer.flush_due()
    assert len(_drain(relay_queue)) == 1


def test_paths_are_released_independently(debouncer, relay_queue, fake_clock):
    debouncer.add(Operation.CREATE, ROOT / "early.txt")
    fake_clock.advance(0.2)
    debouncer.add(Operation.CREATE, ROOT / "late.txt")
    fake_clock.advance(0.15)

    released = debouncer.flush_due()

    assert [c.path.name for c in released] == ["early.txt"]
    assert debouncer.pending_operation(ROOT / "late.txt") is Operation.CREATE


# ============================================================================
# STATUS SIDE EFFECTS
# ============================================================================


def test_flush_records_relative_summary(debouncer, status_store, fake_clock):
    debouncer.add(Operation.RENAME, ROOT / "docs" / "plan.md")
    fake_clock.advance(0.3)
    debouncer.flush_due()

    snapshot = status_store.current()
    assert snapshot.last_event == "RENAME docs/plan.md"
    assert snapshot.recent_events[-1].operation == "RENAME"
    assert snapshot.recent_events[-1].path == "docs/plan.md"


def test_summary_written_even_when_queue_drops(status_store, fake_clock):
    queue = RelayQueue(capacity=1)
    debouncer = Debouncer(queue, status_store, root=ROOT, clock=fake_clock)
    debouncer.add(Operation.WRITE, ROOT / "one")
    debouncer.add(Operation.WRITE, ROOT / "two")
    fake_clock.advance(1)

    debouncer.flush_due()

    assert len(queue) == 1
    assert queue.dropped == 1
    assert len(status_store.current().recent_events) == 2


def test_path_outside_root_kept_absolute(debouncer, status_store, fake_clock):
    debouncer.add(Operation.WRITE, Path("/elsewhere/x"))
    fake_clock.advance(0.3)
    debouncer.flush_due()

    assert status_store.current().last_event == "WRITE /elsewhere/x"


# ============================================================================
# TICK LOOP
# ============================================================================


@pytest.mark.asyncio
async def test_tick_loop_releases_within_window_plus_tick():
    queue = RelayQueue()
    debouncer = Debouncer(queue, StatusStore(), root=ROOT, window=0.1, tick=0.05)
    task = asyncio.create_task(debouncer.run())
    try:
        debouncer.add(Operation.CREATE, ROOT / "a.txt")
        await asyncio.sleep(0.05)
        assert queue.empty()

        change = await asyncio.wait_for(queue.get(), timeout=1)
        assert change.operation is Operation.CREATE
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.asyncio
async def test_tick_loop_exits_on_cancel():
    debouncer = Debouncer(RelayQueue(), StatusStore())
    task = asyncio.create_task(debouncer.run())
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()


@pytest.mark.asyncio
async def test_tick_loop_calls_hook_after_each_check():
    queue = RelayQueue()
    debouncer = Debouncer(queue, StatusStore(), root=ROOT, window=0.01, tick=0.02)
    seen = []

    def on_tick():
        seen.append(len(queue))

    debouncer.add(Operation.WRITE, ROOT / "a.txt")
    task = asyncio.create_task(debouncer.run(on_tick=on_tick))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(seen) >= 2
    assert seen[0] == 1  # hook runs after the release check
