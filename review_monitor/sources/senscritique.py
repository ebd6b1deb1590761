"""
SensCritique adapter.

Scrapes the member page, then the critique page for the full text. The
absolute critique URL is the identity. Items with no critique link are
skipped: the member page URL would be shared by every such item.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional

from bs4 import BeautifulSoup

from ..models import ReviewDraft, Source
from .base import SourceAdapter
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

BASE_URL = 'https://www.senscritique.com'

ITEM_SELECTORS = (
    '[data-testid="review-overview"]',
    '.elco-collection-item',
    '[data-testid*="review"]',
    '.review-item',
    '.critique-item',
)

TITLE_SELECTORS = (
    '[data-testid="productReviewTitle"]',
    '.elco-title',
    '.product-title',
    'h3 a',
    'h2 a',
)

RATING_SELECTORS = (
    '[data-testid="Rating"]',
    '.elco-rating',
    '.rating',
)

SNIPPET_SELECTORS = (
    '[data-testid="linkify"]',
    '.elco-review-content',
    '.review-content',
    'p',
)

CONTENT_SELECTORS = (
    '[data-testid="review-content"]',
    '.review-content',
    '.critique-content',
)

_REVIEW_LINK = re.compile(r'/(critique|avis)/')
_RATING = re.compile(r'\d+')

HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'fr-FR,fr;q=0.9,en;q=0.8',
}


def _first(element, selectors):
    for selector in selectors:
        found = element.select_one(selector)
        if found is not None and found.get_text(strip=True):
            return found
    return None


def _absolute(href: str) -> str:
    return href if href.startswith('http') else f'{BASE_URL}{href}'


def _text_with_breaks(element) -> str:
    for br in element.find_all('br'):
        br.replace_with('\n')
    return element.get_text().strip()


def parse_review_content(html: str) -> Optional[str]:
    """Full text of a critique page, None when nothing usable is found."""
    soup = BeautifulSoup(html, 'html.parser')
    element = _first(soup, CONTENT_SELECTORS)
    if element is None:
        return None
    text = _text_with_breaks(element)
    return text or None


class SensCritiqueAdapter(SourceAdapter):
    """SensCritique critiques of one member."""

    source = Source.SENSCRITIQUE

    def __init__(self, tmdb: Optional[TMDBClient] = None, enrich_covers: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.tmdb = tmdb
        self.enrich_covers = enrich_covers

    def parse_profile_page(self, html: str) -> List[dict]:
        """Extract raw critiques from the member page, newest first."""
        soup = BeautifulSoup(html, 'html.parser')

        for selector in ITEM_SELECTORS:
            elements = soup.select(selector)
            if not elements:
                continue

            reviews = [r for r in (self._parse_item(el) for el in elements) if r]
            if reviews:
                return reviews

        return []

    def _parse_item(self, element) -> Optional[dict]:
        title_el = _first(element, TITLE_SELECTORS)
        if title_el is None:
            return None

        link = next(
            (a for a in element.find_all('a', href=True) if _REVIEW_LINK.search(a['href'])),
            None,
        )
        if link is None:
            logger.debug(f"Skipping SensCritique item without critique link: {title_el.get_text(strip=True)}")
            return None

        rating = None
        rating_el = _first(element, RATING_SELECTORS)
        if rating_el is not None:
            match = _RATING.search(rating_el.get_text())
            if match:
                rating = float(match.group())

        snippet_el = _first(element, SNIPPET_SELECTORS)
        time_el = element.find('time', attrs={'datetime': True})

        return {
            'title': title_el.get_text(strip=True),
            'rating': rating,
            'review_url': _absolute(link['href']),
            'snippet': snippet_el.get_text(strip=True) if snippet_el is not None else '',
            'occurred_at': self._parse_datetime(time_el['datetime']) if time_el else None,
        }

    @staticmethod
    def _parse_datetime(value: str) -> Optional[datetime]:
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
        # stored naive UTC
        if parsed.tzinfo is not None:
            parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
        return parsed

    async def get_full_content(self, review_url: str) -> Optional[str]:
        try:
            status, html = await self._get_text(review_url, headers=HEADERS)
        except Exception as e:
            logger.warning(f"⚠️ SensCritique critique page failed ({review_url}): {e}")
            return None

        if status != 200:
            logger.warning(f"⚠️ SensCritique critique page returned {status}: {review_url}")
            return None
        return parse_review_content(html)

    async def _fetch(self, source_user_id: str, only_latest: bool) -> List[ReviewDraft]:
        url = f'{BASE_URL}/{source_user_id}'
        logger.info(f"🔄 Fetching SensCritique page: {url}")

        status, html = await self._get_text(url, headers=HEADERS)
        if status == 404:
            logger.warning(f"⚠️ SensCritique member '{source_user_id}' not found (404)")
            return []
        if status != 200:
            raise ValueError(f"HTTP {status} from {url}")

        parsed = self.parse_profile_page(html)
        if only_latest:
            parsed = parsed[:1]

        drafts = []
        for review in parsed:
            content = await self.get_full_content(review['review_url']) or review['snippet']
            cover = None
            if self.enrich_covers and self.tmdb is not None:
                cover = await self.tmdb.get_movie_image(review['title'])

            drafts.append(ReviewDraft(
                source=self.source,
                title=review['title'],
                content=content,
                canonical_identity=review['review_url'],
                occurred_at=review['occurred_at'] or datetime.utcnow(),
                rating=review['rating'],
                cover_image_ref=cover,
                review_url=review['review_url'],
            ))
        return drafts

    async def is_valid_user(self, source_user_id: str) -> bool:
        try:
            status, _ = await self._get_text(f'{BASE_URL}/{source_user_id}', headers=HEADERS)
            return status == 200
        except Exception as e:
            logger.error(f"❌ SensCritique validation failed for {source_user_id}: {e}")
            return False
