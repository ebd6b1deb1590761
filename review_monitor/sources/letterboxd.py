"""
Letterboxd adapter.

Reads the member RSS feed. The RSS guid stays the same when a review is
edited, so it is the identity; the entry link is the fallback.
"""

import logging
import re
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple

import feedparser
from bs4 import BeautifulSoup

from ..models import ReviewDraft, Source
from .base import SourceAdapter
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

BASE_URL = 'https://letterboxd.com'

_WATCHED_LINE = re.compile(r'^Watched on \w+ \w+ \d{1,2}, \d{4}\.?$')
_SPOILER_LINE = 'This review may contain spoilers.'


def parse_description(description_html: str) -> Tuple[Optional[str], str]:
    """Split an RSS description into (poster url, review text)."""
    soup = BeautifulSoup(description_html or '', 'html.parser')

    img = soup.find('img')
    poster = img.get('src') if img is not None else None

    paragraphs = []
    for p in soup.find_all('p'):
        text = p.get_text('\n').strip()
        if not text or text == _SPOILER_LINE or _WATCHED_LINE.match(text):
            continue
        paragraphs.append(text)

    return poster, '\n\n'.join(paragraphs)


def _parse_rating(value) -> Optional[float]:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    return rating if rating > 0 else None


def _entry_date(entry) -> datetime:
    published = entry.get('published_parsed')
    if published:
        return datetime(*published[:6])

    watched = entry.get('letterboxd_watcheddate')
    if watched:
        try:
            return datetime.strptime(watched, '%Y-%m-%d')
        except ValueError:
            pass

    return datetime.utcnow()


class LetterboxdAdapter(SourceAdapter):
    """Letterboxd diary/reviews of one member."""

    source = Source.LETTERBOXD

    def __init__(self, tmdb: Optional[TMDBClient] = None, enrich_covers: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.tmdb = tmdb
        self.enrich_covers = enrich_covers

    def parse_feed(self, feed_text: str) -> List[ReviewDraft]:
        """
        Turn the RSS document into drafts, newest first.

        Lists and bare "watched" logs (no text, no rating) are dropped here
        so they never reach change detection.
        """
        feed = feedparser.parse(feed_text)
        drafts = []

        for entry in feed.entries:
            film_title = entry.get('letterboxd_filmtitle')
            if not film_title:
                continue

            identity = entry.get('id') or entry.get('link')
            if not identity:
                logger.debug(f"Skipping Letterboxd entry without guid/link: {film_title}")
                continue

            poster, text = parse_description(entry.get('summary', ''))
            rating = _parse_rating(entry.get('letterboxd_memberrating'))
            if not text and rating is None:
                continue

            year = entry.get('letterboxd_filmyear')
            drafts.append(ReviewDraft(
                source=self.source,
                title=f'{film_title} ({year})' if year else film_title,
                content=text,
                canonical_identity=identity,
                occurred_at=_entry_date(entry),
                rating=rating,
                cover_image_ref=poster,
                subject_id=entry.get('tmdb_movieid'),
                review_url=entry.get('link'),
            ))

        return drafts

    async def _fetch(self, source_user_id: str, only_latest: bool) -> List[ReviewDraft]:
        url = f'{BASE_URL}/{source_user_id}/rss/'
        logger.info(f"🔄 Fetching Letterboxd feed: {url}")

        status, body = await self._get_text(url)
        if status == 404:
            logger.warning(f"⚠️ Letterboxd member '{source_user_id}' not found (404)")
            return []
        if status != 200:
            raise ValueError(f"HTTP {status} from {url}")

        drafts = self.parse_feed(body)
        if only_latest:
            drafts = drafts[:1]

        return [await self._with_cover(draft) for draft in drafts]

    async def _with_cover(self, draft: ReviewDraft) -> ReviewDraft:
        if draft.cover_image_ref or not self.enrich_covers or self.tmdb is None:
            return draft

        cover = await self.tmdb.get_movie_image(draft.title)
        if not cover:
            return draft

        return replace(draft, cover_image_ref=cover)

    async def is_valid_user(self, source_user_id: str) -> bool:
        try:
            status, _ = await self._get_text(f'{BASE_URL}/{source_user_id}/')
            return status == 200
        except Exception as e:
            logger.error(f"❌ Letterboxd validation failed for {source_user_id}: {e}")
            return False
