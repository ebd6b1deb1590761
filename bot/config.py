"""
Bot configuration from the environment.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Local runs read .env; hosted deployments set real environment variables
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


class BotConfig:
    """Bot configuration."""

    # Telegram
    BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN', '')

    # Chat (or channel) receiving review notifications
    NOTIFY_CHAT_ID = os.getenv('NOTIFY_CHAT_ID', '')

    # Sources
    STEAM_API_KEY = os.getenv('STEAM_API_KEY', '')
    TMDB_API_KEY = os.getenv('TMDB_API_KEY', '')

    # Translation
    DEEPL_API_KEY = os.getenv('DEEPL_API_KEY', '')
    DEEPL_API_URL = os.getenv('DEEPL_API_URL', 'https://api-free.deepl.com/v2')
    TRANSLATION_SOURCE_LANG = os.getenv('TRANSLATION_SOURCE_LANG', 'en')
    TRANSLATION_TARGET_LANG = os.getenv('TRANSLATION_TARGET_LANG', 'fr')

    # Monitoring
    SENTRY_DSN = os.getenv('SENTRY_DSN', '')
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'production')

    @classmethod
    def validate(cls):
        """Check that required settings are present."""
        errors = []

        if not cls.BOT_TOKEN:
            errors.append("TELEGRAM_BOT_TOKEN is not set")

        if not cls.NOTIFY_CHAT_ID:
            errors.append("NOTIFY_CHAT_ID is not set")
        elif not cls.NOTIFY_CHAT_ID.lstrip('-').isdigit() and not cls.NOTIFY_CHAT_ID.startswith('@'):
            errors.append("NOTIFY_CHAT_ID must be a numeric chat id or an @channel name")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

        return True

    @classmethod
    def chat_id(cls):
        """NOTIFY_CHAT_ID as int when numeric, else the @channel string."""
        value = cls.NOTIFY_CHAT_ID.strip()
        return int(value) if value.lstrip('-').isdigit() else value
