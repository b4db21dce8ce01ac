"""
Tests for WatchSetManager with a fake observer (no OS watches involved).
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from syncwatch.ignore_patterns import IgnorePolicy
from syncwatch.status import SyncState
from syncwatch.watcher import WatchSetManager


@pytest.fixture
def manager(status_store, fake_observer_factory):
    return WatchSetManager(
        handler=Mock(),
        ignore=IgnorePolicy(["node_modules"]),
        status=status_store,
        observer_factory=fake_observer_factory,
    )


def _tree(root: Path) -> None:
    (root / "docs" / "drafts").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "docs" / "readme.md").write_text("hi")


def test_start_schedules_root_once_recursively(manager, sync_root, fake_observer_factory):
    _tree(sync_root)

    manager.start(sync_root)

    observer = fake_observer_factory.instances[0]
    assert observer.started
    assert observer.scheduled == [(str(sync_root), True)]


def test_start_records_non_ignored_directories(manager, sync_root):
    _tree(sync_root)

    manager.start(sync_root)

    assert manager.watched_directories() == [
        sync_root,
        sync_root / "docs",
        sync_root / "docs" / "drafts",
    ]
    assert not manager.is_watching(sync_root / "node_modules")
    assert not manager.is_watching(sync_root / "node_modules" / "pkg")


def test_start_with_many_directories_uses_one_watch(manager, sync_root, fake_observer_factory):
    for n in range(200):
        (sync_root / f"d{n}").mkdir()

    manager.start(sync_root)

    assert len(fake_observer_factory.instances[0].scheduled) == 1
    assert len(manager.watched_directories()) == 201


def test_start_creates_missing_root(manager, tmp_path):
    root = tmp_path / "fresh" / "sync"

    manager.start(root)

    assert root.is_dir()
    assert manager.is_watching(root)
    assert manager.root == root


def test_start_on_file_raises_oserror(manager, tmp_path, fake_observer_factory):
    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("x")

    with pytest.raises(OSError):
        manager.start(not_a_dir)
    assert manager.watched_directories() == []


def test_start_fails_when_schedule_fails(status_store, sync_root):
    class BrokenObserver:
        def schedule(self, handler, path, recursive=False):
            raise OSError(24, "inotify instance limit reached")

        def unschedule_all(self):
            pass

        def is_alive(self):
            return False

    manager = WatchSetManager(Mock(), IgnorePolicy(), status_store, observer_factory=BrokenObserver)

    with pytest.raises(OSError, match="instance limit"):
        manager.start(sync_root)
    assert manager.watched_directories() == []
    assert not manager.is_alive()


def test_on_create_records_new_tree(manager, sync_root, fake_observer_factory):
    manager.start(sync_root)
    new_dir = sync_root / "new" / "inner"
    new_dir.mkdir(parents=True)

    manager.on_create(sync_root / "new")

    assert manager.is_watching(sync_root / "new")
    assert manager.is_watching(new_dir)
    # The recursive root watch already covers it; no extra schedule
    assert len(fake_observer_factory.instances[0].scheduled) == 1


def test_on_create_ignores_files_and_ignored_dirs(manager, sync_root):
    manager.start(sync_root)
    (sync_root / "file.txt").write_text("x")
    (sync_root / "node_modules" / "pkg").mkdir(parents=True)

    manager.on_create(sync_root / "file.txt")
    manager.on_create(sync_root / "node_modules")
    manager.on_create(sync_root / "node_modules" / "pkg")

    assert manager.watched_directories() == [sync_root]


def test_on_create_failure_is_logged_not_raised(manager, sync_root, status_store, monkeypatch, caplog):
    manager.start(sync_root)
    (sync_root / "sub").mkdir()
    monkeypatch.setattr(
        "syncwatch.watcher.watchset.os.walk", Mock(side_effect=OSError("no space"))
    )

    manager.on_create(sync_root / "sub")  # must not raise

    assert not manager.is_watching(sync_root / "sub")
    assert status_store.current().state == SyncState.ERROR
    assert any("Failed to watch new directory" in r.message for r in caplog.records)


def test_watch_set_only_grows(manager, sync_root):
    (sync_root / "a").mkdir()
    manager.start(sync_root)
    (sync_root / "a").rmdir()

    # Deleted directories stay subscribed until stop()
    assert manager.is_watching(sync_root / "a")


def test_is_alive_tracks_observer_and_emitters(manager, sync_root, fake_observer_factory):
    assert not manager.is_alive()

    manager.start(sync_root)
    observer = fake_observer_factory.instances[0]
    assert manager.is_alive()

    dead_emitter = Mock()
    dead_emitter.is_alive.return_value = False
    observer.emitters.add(dead_emitter)
    assert not manager.is_alive()

    observer.emitters.clear()
    observer.stopped = True
    assert not manager.is_alive()


def test_stop_is_idempotent_and_safe_before_start(manager, sync_root, fake_observer_factory):
    manager.stop()  # before start

    manager.start(sync_root)
    manager.stop()
    manager.stop()

    observer = fake_observer_factory.instances[0]
    assert observer.unscheduled
    assert observer.stopped
    assert manager.watched_directories() == []
