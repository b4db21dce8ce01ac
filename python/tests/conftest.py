"""
Pytest configuration and fixtures for syncwatch tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.watcher: sync root, status store, queue, fake observer and FileWatcher fixtures
"""

import logging

import pytest

# Load fixture modules
pytest_plugins = [
    "tests.fixtures.watcher",
]


@pytest.fixture(autouse=True)
def propagate_syncwatch_logs():
    """Let caplog see syncwatch records even if setup_logging ran earlier."""
    logger = logging.getLogger("syncwatch")
    previous = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = previous
