"""
Notification rendering.

render_review() is a pure function: subscription + stored item in,
NotificationPayload out. Telegram HTML, French labels.
"""

import math
from html import escape
from typing import List, Optional, Tuple
from urllib.parse import quote_plus

from ..models import NotificationPayload, Source

MAX_CONTENT_LENGTH = 3000
MAX_TITLE_LENGTH = 200

SOURCE_LABELS = {
    Source.STEAM: ('🎮', 'Steam'),
    Source.LETTERBOXD: ('🎬', 'Letterboxd'),
    Source.SENSCRITIQUE: ('🍿', 'SensCritique'),
}


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 1].rstrip() + '…'


def _stars(value: float, scale: int) -> str:
    full = int(math.floor(value))
    half = value - full >= 0.5
    return '★' * full + ('½' if half else '') + f' ({value:g}/{scale})'


def format_rating(source: Source, rating: Optional[float]) -> Optional[str]:
    """Human rating in the source's own scale."""
    if rating is None:
        return None
    if source == Source.STEAM:
        return '👍 Recommandé' if rating >= 1 else '👎 Non recommandé'
    if source == Source.LETTERBOXD:
        return _stars(rating, 5)
    return f'⭐ {rating:g}/10'


def build_buttons(source: Source, title: str, subject_id: Optional[str],
                  review_url: Optional[str]) -> List[Tuple[str, str]]:
    buttons = []
    if review_url:
        buttons.append(("📝 Lire l'avis", review_url))

    if subject_id and source == Source.STEAM:
        buttons.append(('🛒 Page Steam', f'https://store.steampowered.com/app/{subject_id}/'))
    elif subject_id and source == Source.LETTERBOXD:
        buttons.append(('🎞 Fiche TMDB', f'https://www.themoviedb.org/movie/{subject_id}'))

    buttons.append(('▶️ Bande-annonce', f'https://www.youtube.com/results?search_query={quote_plus(title + " trailer")}'))
    return buttons


def render_review(subscription, item) -> NotificationPayload:
    """Build the notification for one stored review."""
    source = Source(item.source)
    emoji, label = SOURCE_LABELS[source]
    author = subscription.display_name or subscription.source_user_id
    title = _truncate(item.title or 'Sans titre', MAX_TITLE_LENGTH)

    lines = [
        f'{emoji} <b>Nouvel avis {label}</b> de <b>{escape(author)}</b>',
        '',
        f'<b>{escape(title)}</b>',
    ]

    rating = format_rating(source, item.rating)
    if rating:
        lines.append(rating)

    if item.occurred_at:
        lines.append(f'📅 {item.occurred_at.strftime("%d/%m/%Y")}')

    lines.append('')
    content = (item.content or '').strip()
    if content:
        lines.append(escape(_truncate(content, MAX_CONTENT_LENGTH)))
    else:
        lines.append('<i>Pas de texte.</i>')

    return NotificationPayload(
        text='\n'.join(lines),
        buttons=build_buttons(source, item.title or '', item.subject_id, item.review_url),
        image_url=item.cover_image_ref or None,
    )
