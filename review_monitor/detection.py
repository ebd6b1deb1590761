"""
Change detection: is a fetched draft new for its subscription?

Identity only. An edited review keeps its identity and is therefore never
announced twice.
"""

import logging
from typing import Optional

from .models import ReviewDraft

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Compares a draft with the latest stored item of the same subscription."""

    def __init__(self, store):
        self.store = store
        self.stats = {
            'checked': 0,
            'new': 0,
            'unchanged': 0,
            'skipped': 0,
        }

    async def is_new(self, subscription, draft: Optional[ReviewDraft]) -> bool:
        """
        Args:
            subscription: TrackedSubscription (one owner, one source)
            draft: most recent draft from that source, or None

        Returns:
            True iff nothing is stored yet or the latest stored identity differs
        """
        if draft is None:
            return False

        self.stats['checked'] += 1

        if not draft.has_identity:
            self.stats['skipped'] += 1
            logger.warning(
                f"⚠️ Draft '{draft.title}' for subscription {subscription.id} has no identity, skipped"
            )
            return False

        if draft.source.value != subscription.source:
            self.stats['skipped'] += 1
            logger.warning(
                f"⚠️ Draft from {draft.source.value} offered to {subscription.source} "
                f"subscription {subscription.id}, skipped"
            )
            return False

        latest = await self.store.get_latest_for_subscription(subscription.id)
        if latest is not None and latest.canonical_identity == draft.canonical_identity:
            self.stats['unchanged'] += 1
            return False

        self.stats['new'] += 1
        return True
