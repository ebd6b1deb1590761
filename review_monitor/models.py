"""
Domain types shared by adapters, store and delivery.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


class Source(str, Enum):
    """Closed set of supported content sources."""

    STEAM = 'steam'
    LETTERBOXD = 'letterboxd'
    SENSCRITIQUE = 'senscritique'

    @classmethod
    def parse(cls, value: str) -> 'Source':
        try:
            return cls(value.strip().lower())
        except ValueError:
            supported = ', '.join(s.value for s in cls)
            raise ValueError(f"Unknown source '{value}' (supported: {supported})")


class DeliveryState(str, Enum):
    PENDING = 'pending'
    POSTED = 'posted'


@dataclass(frozen=True)
class ReviewDraft:
    """
    Normalized adapter output, before persistence.

    Every adapter fills this exact field set; source specific naming is
    resolved inside the adapter.
    """

    source: Source
    title: str
    content: str
    canonical_identity: str
    occurred_at: datetime
    rating: Optional[float] = None
    cover_image_ref: Optional[str] = None
    subject_id: Optional[str] = None
    review_url: Optional[str] = None

    @property
    def has_identity(self) -> bool:
        return bool(self.canonical_identity and self.canonical_identity.strip())


@dataclass
class NotificationPayload:
    """Rendered notification, ready for the sink."""

    text: str
    buttons: List[Tuple[str, str]] = field(default_factory=list)
    image_url: Optional[str] = None
