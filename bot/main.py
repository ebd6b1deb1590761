"""
Main entry point of the review monitor bot.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Project root on the path for `python bot/main.py`
sys.path.insert(0, str(Path(__file__).parent.parent))

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand

from bot.config import BotConfig
from bot.handlers import status
from bot.logger import auto_setup_logging
from database import close_database, init_database
from review_monitor.config import feature_config
from review_monitor.monitoring import capture_exception, flush_events, init_sentry
from review_monitor.service import ReviewMonitorService

logger = logging.getLogger(__name__)


async def main():
    """Start the bot and the review monitor."""
    auto_setup_logging()

    if init_sentry(dsn=BotConfig.SENTRY_DSN or None, environment=BotConfig.ENVIRONMENT):
        logger.info("✅ Sentry monitoring enabled")
    else:
        logger.info("ℹ️  Sentry monitoring disabled (SENTRY_DSN not set)")

    try:
        BotConfig.validate()
        logger.info("✅ Configuration is valid")
    except ValueError as e:
        logger.error(f"❌ {e}")
        capture_exception(e, tags={"component": "config"})
        return

    logger.info("🗄️  Initializing database...")
    await init_database()

    bot = Bot(token=BotConfig.BOT_TOKEN)
    dp = Dispatcher()
    dp.include_router(status.router)

    monitor = None
    if feature_config.is_review_monitor_enabled:
        monitor = ReviewMonitorService.from_config(
            chat_id=BotConfig.chat_id(),
            bot=bot,
            steam_api_key=BotConfig.STEAM_API_KEY or None,
            tmdb_api_key=BotConfig.TMDB_API_KEY or None,
            deepl_api_key=BotConfig.DEEPL_API_KEY or None,
            deepl_api_url=BotConfig.DEEPL_API_URL,
            source_lang=BotConfig.TRANSLATION_SOURCE_LANG,
            target_lang=BotConfig.TRANSLATION_TARGET_LANG,
        )
        await monitor.initialize()
        await monitor.start()
        logger.info("✅ Review monitor running in the background")
    else:
        logger.info("ℹ️  Review monitor disabled in config/features.yaml")

    # handlers receive it as the `monitor` argument
    dp["monitor"] = monitor

    try:
        await bot.set_my_commands([
            BotCommand(command="status", description="📊 Review monitor status"),
        ])
        logger.info("🤖 Bot started")
        await dp.start_polling(bot)

    except Exception as e:
        logger.error(f"❌ Bot crashed: {e}", exc_info=True)
        capture_exception(e, tags={"component": "main"})
    finally:
        if monitor is not None:
            await monitor.stop()

        await bot.session.close()
        await close_database()
        flush_events(timeout=2)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Bot stopped")
