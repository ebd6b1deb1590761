"""
Unit tests for TelegramNotifier

Covered:
- photo with caption vs plain message
- Telegram errors reported as False
- a rejected cover falls back to a text message
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError
from aiogram.methods import SendMessage, SendPhoto

from review_monitor.models import NotificationPayload
from review_monitor.notifications.telegram_notifier import MAX_CAPTION_LENGTH, TelegramNotifier


def _bot():
    return SimpleNamespace(
        send_photo=AsyncMock(),
        send_message=AsyncMock(),
        session=SimpleNamespace(close=AsyncMock()),
    )


def _payload(text='🎮 <b>Portal 2</b>', image_url='https://cdn.example/620.jpg'):
    return NotificationPayload(text=text, buttons=[("📝 Lire l'avis", 'https://review')],
                               image_url=image_url)


@pytest.mark.unit
class TestTelegramNotifier:
    """Sending and error mapping."""

    def test_needs_bot_or_token(self):
        with pytest.raises(ValueError):
            TelegramNotifier(chat_id=-100)

    @pytest.mark.asyncio
    async def test_photo_with_caption(self):
        bot = _bot()
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        assert await notifier.send(_payload()) is True

        bot.send_photo.assert_awaited_once()
        bot.send_message.assert_not_awaited()
        kwargs = bot.send_photo.await_args.kwargs
        assert kwargs['chat_id'] == -100
        assert kwargs['photo'] == 'https://cdn.example/620.jpg'
        assert kwargs['parse_mode'] == 'HTML'
        assert kwargs['reply_markup'].inline_keyboard[0][0].url == 'https://review'

    @pytest.mark.asyncio
    async def test_long_text_sent_as_message(self):
        bot = _bot()
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        assert await notifier.send(_payload(text='x' * (MAX_CAPTION_LENGTH + 1))) is True

        bot.send_message.assert_awaited_once()
        bot.send_photo.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_image_sent_as_message(self):
        bot = _bot()
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        await notifier.send(_payload(image_url=None))

        bot.send_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_buttons(self):
        bot = _bot()
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        await notifier.send(NotificationPayload(text='hello'))

        assert bot.send_message.await_args.kwargs['reply_markup'] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize('error', [
        TelegramBadRequest(method=SendMessage(chat_id=-100, text='x'), message='Bad Request: chat not found'),
        TelegramForbiddenError(method=SendMessage(chat_id=-100, text='x'), message='Forbidden: bot was kicked'),
        RuntimeError('unexpected'),
    ])
    async def test_errors_return_false(self, error):
        bot = _bot()
        bot.send_message.side_effect = error
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        assert await notifier.send(_payload(image_url=None)) is False
        assert notifier.get_stats() == {'notifications_sent': 0, 'notifications_failed': 1}

    @pytest.mark.asyncio
    async def test_rejected_cover_falls_back_to_text(self):
        bot = _bot()
        bot.send_photo.side_effect = TelegramBadRequest(
            method=SendPhoto(chat_id=-100, photo='https://cdn.example/620.jpg'),
            message='Bad Request: wrong type of the web page content',
        )
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        assert await notifier.send(_payload()) is True

        bot.send_message.assert_awaited_once()
        kwargs = bot.send_message.await_args.kwargs
        assert kwargs['text'] == '🎮 <b>Portal 2</b>'
        assert kwargs['parse_mode'] == 'HTML'
        assert kwargs['reply_markup'].inline_keyboard[0][0].url == 'https://review'
        assert notifier.get_stats() == {'notifications_sent': 1, 'notifications_failed': 0}

    @pytest.mark.asyncio
    async def test_text_fallback_failure_returns_false(self):
        bot = _bot()
        bot.send_photo.side_effect = TelegramBadRequest(
            method=SendPhoto(chat_id=-100, photo='https://cdn.example/620.jpg'),
            message='Bad Request: failed to get HTTP URL content',
        )
        bot.send_message.side_effect = TelegramBadRequest(
            method=SendMessage(chat_id=-100, text='x'), message='Bad Request: chat not found',
        )
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        assert await notifier.send(_payload()) is False

    @pytest.mark.asyncio
    async def test_forbidden_on_photo_does_not_fall_back(self):
        bot = _bot()
        bot.send_photo.side_effect = TelegramForbiddenError(
            method=SendPhoto(chat_id=-100, photo='https://cdn.example/620.jpg'),
            message='Forbidden: bot was kicked',
        )
        notifier = TelegramNotifier(chat_id=-100, bot=bot)

        assert await notifier.send(_payload()) is False
        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close(self):
        bot = _bot()
        await TelegramNotifier(chat_id=-100, bot=bot).close()

        bot.session.close.assert_awaited_once()
