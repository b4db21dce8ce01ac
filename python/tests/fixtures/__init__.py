"""Shared pytest fixtures, loaded through pytest_plugins in conftest.py."""
