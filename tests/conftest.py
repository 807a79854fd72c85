"""Shared test fixtures for the day planner tests."""

from __future__ import annotations

import os
import tempfile

# Keep test runs from writing log files into the source tree
os.environ.setdefault("DAYPLANNER_LOG_DIR", os.path.join(tempfile.gettempdir(), "dayplanner-test-logs"))

import pytest  # noqa: E402

from helpers import TODAY, workday_settings  # noqa: E402


@pytest.fixture
def today() -> str:
    """Fixed calendar date standing in for 'today'."""
    return TODAY


@pytest.fixture
def settings():
    """Workday 09:00-17:00, extended display 06:00-23:59, 5 minute fragments."""
    return workday_settings()
