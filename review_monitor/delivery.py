"""
Delivery orchestrator: render -> send -> record outcome.

attempt_deliver() always records the outcome and never raises.
"""

import logging
from typing import Callable, Optional

from .errors import DeliveryError
from .models import NotificationPayload
from .notifications.renderer import render_review

logger = logging.getLogger(__name__)


class DeliveryOrchestrator:

    def __init__(self, store, sink, renderer: Optional[Callable[..., NotificationPayload]] = None):
        self.store = store
        self.sink = sink
        self.renderer = renderer or render_review
        self.stats = {
            'delivered': 0,
            'failed': 0,
        }

    async def attempt_deliver(self, subscription, item) -> bool:
        """
        Deliver one stored item.

        Success marks it posted; any failure (render error, sink down, sink
        rejection) increments its retry count.
        """
        try:
            payload = self.renderer(subscription, item)
            if not await self.sink.send(payload):
                raise DeliveryError(f"sink rejected item {item.id}")
        except Exception as e:
            self.stats['failed'] += 1
            logger.warning(
                f"⚠️ Delivery of item {item.id} ({item.title}) failed "
                f"[attempt {item.retry_count + 1}]: {e}"
            )
            if not await self.store.increment_retry(item.id):
                logger.error(f"❌ Could not record failed delivery of item {item.id}")
            return False

        self.stats['delivered'] += 1
        if not await self.store.mark_posted(item.id):
            logger.error(f"❌ Item {item.id} was sent but could not be marked posted")
        else:
            logger.info(f"✅ Item {item.id} delivered: {item.title}")
        return True
