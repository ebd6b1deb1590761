"""
Register a tracked account.

Checks that the account exists on the source, then stores the
subscription. The monitor picks it up on its next tick.

Usage:
    python scripts/add_subscription.py --owner 123456789 --source steam --user 76561198000000000
    python scripts/add_subscription.py --owner 123456789 --source letterboxd --user dave --name "Dave"
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Project root on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from bot.config import BotConfig
from database import close_database, init_database
from review_monitor.database import get_review_store
from review_monitor.models import Source
from review_monitor.sources import build_adapters, close_adapters

logger = logging.getLogger(__name__)


async def add_subscription(owner_id: str, source: Source, source_user_id: str,
                           display_name: str = None) -> bool:
    adapters = build_adapters(
        steam_api_key=BotConfig.STEAM_API_KEY or None,
        enabled_sources=[source],
    )

    try:
        if not await adapters[source].is_valid_user(source_user_id):
            print(f"❌ '{source_user_id}' was not found on {source.value}")
            return False

        await init_database()
        subscription = await get_review_store().add_subscription(
            owner_id, source, source_user_id, display_name
        )
        if subscription is None:
            print(f"❌ {owner_id} already follows an account on {source.value}")
            return False

        print(f"✅ Subscription #{subscription.id}: {owner_id} -> {source.value}:{source_user_id}")
        return True
    finally:
        await close_adapters(adapters)
        await close_database()


def main():
    parser = argparse.ArgumentParser(description="Register a tracked review account")
    parser.add_argument('--owner', required=True, help="Owner id (e.g. Telegram user id)")
    parser.add_argument('--source', required=True, choices=[s.value for s in Source])
    parser.add_argument('--user', required=True, help="Account id on the source")
    parser.add_argument('--name', default=None, help="Display name in notifications")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    ok = asyncio.run(add_subscription(args.owner, Source.parse(args.source), args.user, args.name))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
