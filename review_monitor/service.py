"""
Review Monitor Service - main coordination module.

Ties the source adapters, change detector, content normalizer, store and
delivery orchestrator into one periodic tick.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from aiogram import Bot

from database import init_database

from .config import FeatureConfig, feature_config
from .database import ReviewStore, get_review_store
from .delivery import DeliveryOrchestrator
from .detection import ChangeDetector
from .errors import SourceFetchError
from .models import DeliveryState, Source
from .normalization import ContentNormalizer, DeepLTranslator, LanguageClassifier
from .notifications import TelegramNotifier
from .scheduler import TickScheduler
from .sources import SourceAdapter, build_adapters, close_adapters

logger = logging.getLogger(__name__)


class SubscriptionLogger(logging.LoggerAdapter):
    """Prefixes messages with the subscription and adds it to the record extras."""

    def __init__(self, base: logging.Logger, subscription):
        super().__init__(base, {
            'subscription_id': subscription.id,
            'source': subscription.source,
            'source_user_id': subscription.source_user_id,
        })

    def process(self, msg, kwargs):
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return f"[{self.extra['source']}:{self.extra['source_user_id']}] {msg}", kwargs


class ReviewMonitorService:
    """
    Main review monitor service.

    Tick:
    1. Sweep: for every subscription, in id order, fetch the latest draft,
       detect, normalize, upsert and hand new items straight to delivery
    2. Retry: re-attempt delivery of pending items below the retry cap,
       oldest first
    """

    def __init__(
        self,
        adapters: Dict[Source, SourceAdapter],
        store: ReviewStore,
        normalizer: ContentNormalizer,
        delivery: DeliveryOrchestrator,
        detector: Optional[ChangeDetector] = None,
        max_retries: int = 3,
        poll_interval: float = 300,
        subscription_delay: float = 2,
        notification_delay: float = 1,
        retry_delay: float = 2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.adapters = adapters
        self.store = store
        self.normalizer = normalizer
        self.delivery = delivery
        self.detector = detector or ChangeDetector(store)

        self.max_retries = max_retries
        self.subscription_delay = subscription_delay
        self.notification_delay = notification_delay
        self.retry_delay = retry_delay
        self.sleep = sleep

        self.scheduler = TickScheduler(self.tick, interval=poll_interval, sleep=sleep)

        self.stats = {
            'started_at': None,
            'ticks': 0,
            'subscriptions_checked': 0,
            'fetch_errors': 0,
            'new_items': 0,
            'refreshed_items': 0,
            'retries_attempted': 0,
            'errors': 0,
        }

    @classmethod
    def from_config(
        cls,
        chat_id: Union[int, str],
        bot_token: Optional[str] = None,
        bot: Optional[Bot] = None,
        steam_api_key: Optional[str] = None,
        tmdb_api_key: Optional[str] = None,
        deepl_api_key: Optional[str] = None,
        deepl_api_url: Optional[str] = None,
        source_lang: str = 'en',
        target_lang: str = 'fr',
        config: Optional[FeatureConfig] = None,
    ) -> 'ReviewMonitorService':
        """Build the service and its long-lived clients from settings."""
        config = config or feature_config

        adapters = build_adapters(
            steam_api_key=steam_api_key,
            tmdb_api_key=tmdb_api_key,
            enabled_sources=[s for s in Source if config.is_source_enabled(s.value)],
            enrich_covers=config.is_component_enabled('cover_enrichment'),
            timeout=config.get_limit('http_timeout_seconds'),
        )

        translator = DeepLTranslator(deepl_api_key, api_url=deepl_api_url) if deepl_api_key else None
        normalizer = ContentNormalizer(
            translator=translator,
            classifier=LanguageClassifier(source_lang, target_lang),
            enabled=config.is_component_enabled('translation'),
        )

        store = get_review_store()
        notifier = TelegramNotifier(chat_id=chat_id, bot_token=bot_token, bot=bot)

        return cls(
            adapters=adapters,
            store=store,
            normalizer=normalizer,
            delivery=DeliveryOrchestrator(store, notifier),
            max_retries=config.get_limit('max_retries'),
            poll_interval=config.get_limit('poll_interval_seconds'),
            subscription_delay=config.get_limit('subscription_delay_seconds'),
            notification_delay=config.get_limit('notification_delay_seconds'),
            retry_delay=config.get_limit('retry_delay_seconds'),
        )

    # ============================================
    # LIFECYCLE
    # ============================================

    async def initialize(self):
        logger.info("=" * 70)
        logger.info("🚀 INITIALIZING REVIEW MONITOR")
        logger.info("=" * 70)

        await init_database()

        logger.info(f"📡 Sources: {', '.join(s.value for s in self.adapters) or 'none'}")

        translator = self.normalizer.translator
        if self.normalizer.enabled and hasattr(translator, 'test_connection'):
            if not await translator.test_connection():
                logger.warning("⚠️ DeepL unavailable, reviews will be posted untranslated")
        else:
            logger.info("🌐 Translation disabled")

        logger.info(
            f"⏱️  Poll every {self.scheduler.interval}s, max {self.max_retries} delivery attempts"
        )
        logger.info("=" * 70)

    async def start(self):
        self.stats['started_at'] = datetime.utcnow()
        self.scheduler.start()

    async def stop(self):
        """Stop ticking, then release every long-lived client."""
        logger.info("🛑 Stopping review monitor...")
        await self.scheduler.stop()

        await close_adapters(self.adapters)

        translator = self.normalizer.translator
        if translator is not None:
            await translator.close()

        sink_close = getattr(self.delivery.sink, 'close', None)
        if sink_close is not None:
            await sink_close()

        self._print_stats()
        logger.info("✅ Review monitor stopped")

    # ============================================
    # TICK
    # ============================================

    async def tick(self):
        """One full pass: subscription sweep, then retry sweep."""
        self.stats['ticks'] += 1
        logger.info(f"🔄 Tick #{self.stats['ticks']} started")

        await self.sweep_subscriptions()
        await self.retry_undelivered()

        logger.info(f"✅ Tick #{self.stats['ticks']} done")

    async def sweep_subscriptions(self):
        subscriptions = await self.store.get_subscriptions()
        logger.info(f"👥 Checking {len(subscriptions)} subscriptions")

        for subscription in subscriptions:
            try:
                await self.check_subscription(subscription)
            except Exception as e:
                self.stats['errors'] += 1
                logger.error(
                    f"❌ Subscription {subscription.id} failed: {e}", exc_info=True
                )

            await self.sleep(self.subscription_delay)

    async def check_subscription(self, subscription):
        """
        Fetch, detect, normalize, store and deliver for one subscription.

        Returns the stored item when the draft was stored (new or refreshed), else None.
        """
        log = SubscriptionLogger(logger, subscription)
        self.stats['subscriptions_checked'] += 1

        adapter = self.adapters.get(Source(subscription.source))
        if adapter is None:
            log.debug("source disabled, skipped")
            return None

        try:
            drafts = await adapter.fetch_latest(subscription.source_user_id, only_latest=True)
        except SourceFetchError as e:
            self.stats['fetch_errors'] += 1
            log.warning(f"⚠️ Fetch failed, will retry next tick: {e.reason}")
            return None

        draft = drafts[0] if drafts else None
        if not await self.detector.is_new(subscription, draft):
            log.debug("nothing new")
            return None

        content = await self.normalizer.normalize(draft.content)
        if content != draft.content:
            draft = replace(draft, content=content)

        known = await self.store.find_by_identity(subscription.id, draft.canonical_identity)

        item = await self.store.upsert(draft, subscription.id)
        if item is None:
            log.error(f"❌ Could not store '{draft.title}', skipped this tick")
            return None

        if known is None:
            self.stats['new_items'] += 1
            log.info(f"🆕 New review: {item.title}")
        else:
            self.stats['refreshed_items'] += 1
            log.info(f"♻️ Known review resurfaced, refreshed: {item.title}")

        if item.delivery_state == DeliveryState.POSTED.value:
            log.info(f"Item {item.id} was already posted")
            return item
        if item.retry_count >= self.max_retries:
            log.info(f"Item {item.id} exhausted its delivery attempts")
            return item

        await self.delivery.attempt_deliver(subscription, item)
        await self.sleep(self.notification_delay)
        return item

    async def retry_undelivered(self):
        items = await self.store.get_undelivered(self.max_retries)
        if not items:
            return

        logger.info(f"🔁 Retrying {len(items)} undelivered items")

        for item in items:
            try:
                subscription = await self.store.get_subscription(item.subscription_id)
                if subscription is None:
                    logger.warning(f"⚠️ Item {item.id} has no subscription, skipped")
                    continue

                self.stats['retries_attempted'] += 1
                await self.delivery.attempt_deliver(subscription, item)
            except Exception as e:
                self.stats['errors'] += 1
                logger.error(f"❌ Retry of item {item.id} failed: {e}", exc_info=True)

            await self.sleep(self.retry_delay)

    # ============================================
    # STATS
    # ============================================

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.stats,
            'scheduler': dict(self.scheduler.stats),
            'detector': dict(self.detector.stats),
            'normalizer': dict(self.normalizer.stats),
            'delivery': dict(self.delivery.stats),
        }

    def _print_stats(self):
        stats = self.get_stats()
        logger.info("=" * 70)
        logger.info("📊 REVIEW MONITOR STATS")
        logger.info(f"   Ticks: {stats['ticks']} (skipped {stats['scheduler']['ticks_skipped']})")
        logger.info(f"   Subscriptions checked: {stats['subscriptions_checked']}")
        logger.info(f"   New items: {stats['new_items']}, refreshed: {stats['refreshed_items']}")
        logger.info(f"   Delivered: {stats['delivery']['delivered']}, failed: {stats['delivery']['failed']}")
        logger.info(f"   Fetch errors: {stats['fetch_errors']}, other errors: {stats['errors']}")
        logger.info("=" * 70)
