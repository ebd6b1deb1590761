"""
SQLAlchemy adapter for the review log.

Wraps the unified database.py models. Every method catches its own
failures, logs them and returns None / False / [] so one bad row never
aborts a sweep.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database import (
    DatabaseSession,
    ReviewItem as ReviewItemModel,
    TrackedSubscription as TrackedSubscriptionModel,
)

from ..errors import PersistenceError
from ..models import DeliveryState, ReviewDraft, Source

logger = logging.getLogger(__name__)

# Refreshed on every sighting of a known identity. Delivery columns are absent on purpose.
MUTABLE_FIELDS = ('title', 'content', 'rating', 'occurred_at', 'cover_image_ref')


def _insert_for(dialect_name: str):
    if dialect_name == 'postgresql':
        return pg_insert
    if dialect_name == 'sqlite':
        return sqlite_insert
    raise PersistenceError('upsert', f"unsupported dialect '{dialect_name}'")


class ReviewStore:
    """Persistent store: subscriptions + review log with delivery state."""

    # ============================================
    # SUBSCRIPTIONS
    # ============================================

    async def add_subscription(
        self,
        owner_id: str,
        source: Source,
        source_user_id: str,
        display_name: Optional[str] = None,
    ) -> Optional[TrackedSubscriptionModel]:
        """Register a subscription. None if (owner, source) already exists."""
        try:
            async with DatabaseSession() as session:
                subscription = TrackedSubscriptionModel(
                    owner_id=str(owner_id),
                    source=Source(source).value,
                    source_user_id=source_user_id,
                    display_name=display_name or source_user_id,
                )
                session.add(subscription)
                await session.flush()
                return subscription
        except IntegrityError:
            logger.warning(f"⚠️ {owner_id} already follows an account on {Source(source).value}")
            return None
        except SQLAlchemyError as e:
            logger.error(f"❌ add_subscription failed: {e}", exc_info=True)
            return None

    async def get_subscriptions(self) -> List[TrackedSubscriptionModel]:
        """All subscriptions in a stable order (by id)."""
        try:
            async with DatabaseSession() as session:
                result = await session.execute(
                    select(TrackedSubscriptionModel).order_by(TrackedSubscriptionModel.id.asc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"❌ get_subscriptions failed: {e}", exc_info=True)
            return []

    async def get_subscription(self, subscription_id: int) -> Optional[TrackedSubscriptionModel]:
        try:
            async with DatabaseSession() as session:
                return await session.get(TrackedSubscriptionModel, subscription_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ get_subscription({subscription_id}) failed: {e}", exc_info=True)
            return None

    # ============================================
    # REVIEW LOG
    # ============================================

    async def upsert(self, draft: ReviewDraft, subscription_id: int) -> Optional[ReviewItemModel]:
        """
        Insert a draft, or refresh the row that already has its identity.

        delivery_state and retry_count of an existing row are never touched.
        Returns the stored row, or None on failure.
        """
        values = {
            'subscription_id': subscription_id,
            'source': draft.source.value,
            'subject_id': draft.subject_id,
            'title': draft.title,
            'content': draft.content or '',
            'rating': draft.rating,
            'cover_image_ref': draft.cover_image_ref,
            'review_url': draft.review_url,
            'canonical_identity': draft.canonical_identity,
            'occurred_at': draft.occurred_at,
            'created_at': datetime.utcnow(),
            'delivery_state': DeliveryState.PENDING.value,
            'retry_count': 0,
        }

        try:
            async with DatabaseSession() as session:
                insert = _insert_for(session.bind.dialect.name)
                stmt = insert(ReviewItemModel).values(**values)

                refresh = {field: stmt.excluded[field] for field in MUTABLE_FIELDS}
                # keep a known subject/link if this sighting lacks one
                if draft.subject_id is not None:
                    refresh['subject_id'] = stmt.excluded.subject_id
                if draft.review_url is not None:
                    refresh['review_url'] = stmt.excluded.review_url

                stmt = stmt.on_conflict_do_update(
                    index_elements=['subscription_id', 'canonical_identity'],
                    set_=refresh,
                )
                await session.execute(stmt)

                result = await session.execute(
                    select(ReviewItemModel).where(
                        ReviewItemModel.subscription_id == subscription_id,
                        ReviewItemModel.canonical_identity == draft.canonical_identity,
                    )
                )
                return result.scalar_one()
        except (SQLAlchemyError, PersistenceError) as e:
            logger.error(
                f"❌ upsert failed for subscription {subscription_id} "
                f"({draft.canonical_identity}): {e}",
                exc_info=True,
            )
            return None

    async def get_latest_for_subscription(self, subscription_id: int) -> Optional[ReviewItemModel]:
        """The stored item with the greatest occurred_at, or None."""
        try:
            async with DatabaseSession() as session:
                result = await session.execute(
                    select(ReviewItemModel)
                    .where(ReviewItemModel.subscription_id == subscription_id)
                    .order_by(ReviewItemModel.occurred_at.desc(), ReviewItemModel.id.desc())
                    .limit(1)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"❌ get_latest_for_subscription({subscription_id}) failed: {e}", exc_info=True)
            return None

    async def get_items_for_subscription(self, subscription_id: int, limit: int = 20) -> List[ReviewItemModel]:
        """History of a subscription, newest first."""
        try:
            async with DatabaseSession() as session:
                result = await session.execute(
                    select(ReviewItemModel)
                    .where(ReviewItemModel.subscription_id == subscription_id)
                    .order_by(ReviewItemModel.occurred_at.desc(), ReviewItemModel.id.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"❌ get_items_for_subscription({subscription_id}) failed: {e}", exc_info=True)
            return []

    async def find_by_identity(self, subscription_id: int, canonical_identity: str) -> Optional[ReviewItemModel]:
        """The stored item with this identity, or None."""
        try:
            async with DatabaseSession() as session:
                result = await session.execute(
                    select(ReviewItemModel).where(
                        ReviewItemModel.subscription_id == subscription_id,
                        ReviewItemModel.canonical_identity == canonical_identity,
                    )
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"❌ find_by_identity({subscription_id}) failed: {e}", exc_info=True)
            return None

    async def get_item(self, item_id: int) -> Optional[ReviewItemModel]:
        try:
            async with DatabaseSession() as session:
                return await session.get(ReviewItemModel, item_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ get_item({item_id}) failed: {e}", exc_info=True)
            return None

    # ============================================
    # DELIVERY STATE
    # ============================================

    async def get_undelivered(self, max_retries: int) -> List[ReviewItemModel]:
        """Pending items below the retry cap, oldest created first."""
        try:
            async with DatabaseSession() as session:
                result = await session.execute(
                    select(ReviewItemModel)
                    .where(
                        ReviewItemModel.delivery_state == DeliveryState.PENDING.value,
                        ReviewItemModel.retry_count < max_retries,
                    )
                    .order_by(ReviewItemModel.created_at.asc(), ReviewItemModel.id.asc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"❌ get_undelivered failed: {e}", exc_info=True)
            return []

    async def mark_posted(self, item_id: int) -> bool:
        """pending -> posted. Repeating it is harmless."""
        try:
            async with DatabaseSession() as session:
                await session.execute(
                    update(ReviewItemModel)
                    .where(ReviewItemModel.id == item_id)
                    .values(delivery_state=DeliveryState.POSTED.value)
                )
            return True
        except SQLAlchemyError as e:
            logger.error(f"❌ mark_posted({item_id}) failed: {e}", exc_info=True)
            return False

    async def increment_retry(self, item_id: int) -> bool:
        """
        Record a failed delivery attempt.

        Only pending rows are counted; a posted row is never modified again.
        """
        try:
            async with DatabaseSession() as session:
                await session.execute(
                    update(ReviewItemModel)
                    .where(
                        ReviewItemModel.id == item_id,
                        ReviewItemModel.delivery_state == DeliveryState.PENDING.value,
                    )
                    .values(retry_count=ReviewItemModel.retry_count + 1)
                )
            return True
        except SQLAlchemyError as e:
            logger.error(f"❌ increment_retry({item_id}) failed: {e}", exc_info=True)
            return False


# Global instance
_store_instance: Optional[ReviewStore] = None


def get_review_store() -> ReviewStore:
    """Shared ReviewStore instance."""
    global _store_instance
    if _store_instance is None:
        _store_instance = ReviewStore()
    return _store_instance
