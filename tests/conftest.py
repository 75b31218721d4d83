"""
Pytest fixtures for sleep calculator tests.
"""

import pytest
from datetime import datetime

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sleepcycle.storage import MemoryStorage, SleepStore
from sleepcycle.types import SleepSettings


@pytest.fixture
def default_settings():
    """Default settings: 90 min cycles, 15 min to fall asleep, 8h ideal."""
    return SleepSettings(cycle_duration=90, fall_asleep_time=15, ideal_sleep_hours=8)


@pytest.fixture
def now():
    """Fixed reference time: Sunday 2026-03-15 at noon."""
    return datetime(2026, 3, 15, 12, 0)


@pytest.fixture
def today(now):
    """Calendar date of the reference time."""
    return now.date()


@pytest.fixture
def store():
    """SleepStore over empty in-memory storage."""
    return SleepStore(MemoryStorage())
