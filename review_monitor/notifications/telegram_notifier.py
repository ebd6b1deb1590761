"""
Telegram notification sink.

Sends rendered payloads to the configured chat. send() reports failure as
False instead of raising.
"""

import logging
from typing import Any, Dict, Optional, Union

from aiogram import Bot
from aiogram.exceptions import (
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNetworkError,
    TelegramRetryAfter,
)
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from ..models import NotificationPayload

logger = logging.getLogger(__name__)

# Telegram limit for photo captions
MAX_CAPTION_LENGTH = 1024


class TelegramNotifier:
    """
    Telegram sink for review notifications.

    - cover as photo when the caption fits, plain message otherwise
    - inline link buttons
    - Telegram errors logged and reported as False
    """

    def __init__(self, chat_id: Union[int, str], bot_token: Optional[str] = None,
                 bot: Optional[Bot] = None):
        if bot is None and not bot_token:
            raise ValueError("TelegramNotifier needs a bot or a bot token")

        self.bot = bot or Bot(token=bot_token)
        self.chat_id = chat_id

        self.stats = {
            'notifications_sent': 0,
            'notifications_failed': 0,
        }

    @staticmethod
    def _keyboard(payload: NotificationPayload) -> Optional[InlineKeyboardMarkup]:
        if not payload.buttons:
            return None
        rows = [[InlineKeyboardButton(text=label, url=url)] for label, url in payload.buttons]
        return InlineKeyboardMarkup(inline_keyboard=rows)

    async def _send_text(self, payload: NotificationPayload, keyboard: Optional[InlineKeyboardMarkup]):
        await self.bot.send_message(
            chat_id=self.chat_id,
            text=payload.text,
            reply_markup=keyboard,
            parse_mode='HTML',
        )

    async def send(self, payload: NotificationPayload) -> bool:
        """Deliver one payload. True only if Telegram accepted it."""
        keyboard = self._keyboard(payload)

        try:
            if payload.image_url and len(payload.text) <= MAX_CAPTION_LENGTH:
                try:
                    await self.bot.send_photo(
                        chat_id=self.chat_id,
                        photo=payload.image_url,
                        caption=payload.text,
                        reply_markup=keyboard,
                        parse_mode='HTML',
                    )
                except TelegramBadRequest as e:
                    # the cover is optional, the review is not
                    logger.warning(f"⚠️ Cover rejected ({payload.image_url}): {e}. Sending as text")
                    await self._send_text(payload, keyboard)
            else:
                await self._send_text(payload, keyboard)

            self.stats['notifications_sent'] += 1
            logger.info(f"📤 Notification sent to chat {self.chat_id}")
            return True

        except TelegramForbiddenError:
            self.stats['notifications_failed'] += 1
            logger.warning(f"⛔ Bot has no access to chat {self.chat_id}")
            return False

        except TelegramRetryAfter as e:
            self.stats['notifications_failed'] += 1
            logger.warning(f"⚠️ Telegram flood control, retry after {e.retry_after}s")
            return False

        except (TelegramBadRequest, TelegramNetworkError) as e:
            self.stats['notifications_failed'] += 1
            logger.error(f"❌ Telegram rejected notification for chat {self.chat_id}: {e}")
            return False

        except Exception as e:
            self.stats['notifications_failed'] += 1
            logger.error(f"❌ Unexpected error while sending notification: {e}", exc_info=True)
            return False

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.copy()

    async def close(self):
        """Close the bot session."""
        await self.bot.session.close()
