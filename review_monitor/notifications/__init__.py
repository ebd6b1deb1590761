"""
Notification rendering and delivery to Telegram.
"""

from .renderer import render_review, format_rating
from .telegram_notifier import TelegramNotifier

__all__ = [
    'render_review',
    'format_rating',
    'TelegramNotifier',
]
