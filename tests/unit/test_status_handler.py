"""
Unit tests for the /status command
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from bot.handlers.status import cmd_status, format_status


@pytest.mark.unit
class TestStatus:
    """Operator status message."""

    def test_format_status(self):
        text = format_status({
            'started_at': datetime(2025, 10, 1, 8, 0),
            'ticks': 12,
            'new_items': 3,
            'fetch_errors': 1,
            'scheduler': {'ticks_skipped': 2, 'ticks_failed': 0, 'last_tick': datetime(2025, 10, 1, 9, 0)},
            'delivery': {'delivered': 3, 'failed': 1},
        })

        assert 'Started: 01/10/2025 08:00' in text
        assert 'Ticks: 12 (skipped 2, failed 0)' in text
        assert 'Delivered: 3 / failed: 1' in text

    def test_format_status_before_first_tick(self):
        text = format_status({'started_at': None, 'scheduler': {}, 'delivery': {}})

        assert 'Last tick: -' in text

    @pytest.mark.asyncio
    async def test_monitor_not_running(self):
        message = SimpleNamespace(answer=AsyncMock())

        await cmd_status(message, monitor=None)

        assert 'not running' in message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_reports_monitor_stats(self):
        message = SimpleNamespace(answer=AsyncMock())
        monitor = SimpleNamespace(get_stats=lambda: {'ticks': 4, 'scheduler': {}, 'delivery': {}})

        await cmd_status(message, monitor=monitor)

        assert 'Ticks: 4' in message.answer.await_args.args[0]
