"""
Shared fixtures: in-memory review store, draft factory, controllable sleep.
"""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio

sys.path.insert(0, str(Path(__file__).parent.parent))

from database import close_database, init_database
from review_monitor.database import ReviewStore
from review_monitor.models import ReviewDraft, Source

IN_MEMORY_URL = 'sqlite+aiosqlite:///:memory:'


@pytest_asyncio.fixture
async def store():
    """ReviewStore over a fresh in-memory SQLite database."""
    await init_database(IN_MEMORY_URL)
    try:
        yield ReviewStore()
    finally:
        await close_database()


@pytest.fixture
def make_draft():
    """Factory for ReviewDraft with sensible defaults."""
    base_time = datetime(2025, 10, 1, 12, 0, 0)

    def _make(identity='https://example.com/review/1', source=Source.STEAM, **overrides):
        fields = {
            'source': source,
            'title': 'Portal 2',
            'content': 'Un chef-d\'oeuvre.',
            'canonical_identity': identity,
            'occurred_at': base_time,
            'rating': 1.0,
        }
        fields.update(overrides)
        return ReviewDraft(**fields)

    return _make


class RecordingSleep:
    """Records requested delays and only yields to the event loop."""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)
        await asyncio.sleep(0)


class ManualClock:
    """sleep() blocks until advance() is called."""

    def __init__(self):
        self.calls = []
        self._waiters = []

    async def sleep(self, delay):
        self.calls.append(delay)
        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        await future

    async def advance(self):
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(None)
        await settle()


async def settle(rounds: int = 10):
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def later():
    """occurred_at values relative to the draft factory base time."""
    base_time = datetime(2025, 10, 1, 12, 0, 0)
    return lambda minutes: base_time + timedelta(minutes=minutes)
