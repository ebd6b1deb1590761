"""
/status command: monitor statistics for the operator.
"""

import logging
from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

logger = logging.getLogger(__name__)
router = Router()


def format_status(stats: dict) -> str:
    started = stats.get('started_at')
    scheduler = stats.get('scheduler', {})
    delivery = stats.get('delivery', {})
    last_tick = scheduler.get('last_tick')

    return (
        "📊 <b>Review monitor</b>\n\n"
        f"Started: {started.strftime('%d/%m/%Y %H:%M') if started else '-'}\n"
        f"Last tick: {last_tick.strftime('%d/%m/%Y %H:%M') if last_tick else '-'}\n"
        f"Ticks: {stats.get('ticks', 0)} (skipped {scheduler.get('ticks_skipped', 0)}, "
        f"failed {scheduler.get('ticks_failed', 0)})\n"
        f"New reviews: {stats.get('new_items', 0)}\n"
        f"Delivered: {delivery.get('delivered', 0)} / failed: {delivery.get('failed', 0)}\n"
        f"Fetch errors: {stats.get('fetch_errors', 0)}"
    )


@router.message(Command("status"))
async def cmd_status(message: Message, monitor=None):
    if monitor is None:
        await message.answer("⚠️ Review monitor is not running")
        return

    await message.answer(format_status(monitor.get_stats()), parse_mode='HTML')
