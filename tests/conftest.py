"""Pytest configuration and shared fixtures."""

import pytest

from pingprobe.config import Settings


@pytest.fixture
def settings():
    """Settings with no progress coalescing delay."""
    return Settings(commands_timeout=5, progress_interval=0)
