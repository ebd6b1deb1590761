"""
Periodic tick driver.

One tick body at a time: a tick that comes due while the previous one is
still running is skipped, not queued. A running tick is never cancelled.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from .monitoring import capture_exception

logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Fires `tick` every `interval` seconds.

    `sleep` is injectable so tests can drive time without waiting.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[None]],
        interval: float = 300,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: str = 'review-monitor',
    ):
        self.tick = tick
        self.interval = interval
        self.sleep = sleep
        self.name = name

        self._running = False
        self._in_flight = False
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None

        self.stats = {
            'ticks_started': 0,
            'ticks_completed': 0,
            'ticks_failed': 0,
            'ticks_skipped': 0,
            'last_tick': None,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def run_tick(self) -> bool:
        """Run one tick now. False if a tick is already in flight."""
        if not self._claim():
            return False
        await self._execute()
        return True

    def _claim(self) -> bool:
        if self._in_flight:
            self.stats['ticks_skipped'] += 1
            logger.warning(f"⏭️ {self.name}: previous tick still running, skipping")
            return False
        self._in_flight = True
        return True

    async def _execute(self):
        self.stats['ticks_started'] += 1
        self.stats['last_tick'] = datetime.utcnow()
        try:
            await self.tick()
            self.stats['ticks_completed'] += 1
        except Exception as e:
            self.stats['ticks_failed'] += 1
            logger.error(f"❌ {self.name}: tick failed: {e}", exc_info=True)
            capture_exception(e, tags={'component': self.name})
        finally:
            self._in_flight = False

    def _fire(self):
        if self._claim():
            self._tick_task = asyncio.create_task(self._execute())

    async def _loop(self):
        while self._running:
            self._fire()
            await self.sleep(self.interval)

    def start(self):
        """Start firing; the first tick runs immediately."""
        if self._running:
            logger.warning(f"{self.name}: scheduler already running")
            return

        self._running = True
        self._loop_task = asyncio.create_task(self._loop())
        logger.info(f"🔄 {self.name}: scheduler started (every {self.interval}s)")

    async def stop(self):
        """Stop firing and wait for an in-flight tick to finish."""
        self._running = False

        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._tick_task is not None and not self._tick_task.done():
            logger.info(f"⏳ {self.name}: waiting for the running tick to finish")
            await self._tick_task
        self._tick_task = None

        logger.info(f"🛑 {self.name}: scheduler stopped")
