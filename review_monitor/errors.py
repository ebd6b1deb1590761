"""
Error taxonomy of the review pipeline.

Every error is recoverable and is caught at the smallest enclosing unit
(one subscription, one item). The scheduler is the outermost guard.
"""

from typing import Optional


class ReviewMonitorError(Exception):
    """Base class for review monitor errors."""


class SourceFetchError(ReviewMonitorError):
    """Transport or parse failure inside a source adapter."""

    def __init__(self, source: str, source_user_id: str, reason: str):
        self.source = source
        self.source_user_id = source_user_id
        self.reason = reason
        super().__init__(f"{source}:{source_user_id}: {reason}")


class NormalizationError(ReviewMonitorError):
    """The translation collaborator failed."""


class PersistenceError(ReviewMonitorError):
    """A store operation failed."""

    def __init__(self, operation: str, reason: str, item_id: Optional[int] = None):
        self.operation = operation
        self.item_id = item_id
        super().__init__(f"{operation} failed (item={item_id}): {reason}")


class DeliveryError(ReviewMonitorError):
    """Rendering failed or the sink rejected the notification."""
