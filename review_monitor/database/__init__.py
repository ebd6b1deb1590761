"""
Review log storage.

Example usage:
    from review_monitor.database import get_review_store

    store = get_review_store()
    item = await store.upsert(draft, subscription.id)
    pending = await store.get_undelivered(max_retries=3)
"""

from .sqlalchemy_adapter import ReviewStore, get_review_store, MUTABLE_FIELDS

__all__ = [
    'ReviewStore',
    'get_review_store',
    'MUTABLE_FIELDS',
]
