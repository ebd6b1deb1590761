"""
Steam adapter.

Scrapes the public "recommended" page of a profile. A review is identified
by its permalink, which embeds the app id; entries whose app id cannot be
read are skipped instead of collapsing onto a shared placeholder.
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from ..models import ReviewDraft, Source
from .base import SourceAdapter

logger = logging.getLogger(__name__)

COMMUNITY_URL = 'https://steamcommunity.com'
STORE_URL = 'https://store.steampowered.com'
API_URL = 'https://api.steampowered.com'

_APP_ID = re.compile(r'/app/(\d+)')
_POSTED_PREFIX = re.compile(r'^(posted:?|évaluation publiée le)\s*', re.IGNORECASE)

_FRENCH_MONTHS = {
    'janvier': 'January', 'février': 'February', 'mars': 'March',
    'avril': 'April', 'mai': 'May', 'juin': 'June', 'juillet': 'July',
    'août': 'August', 'septembre': 'September', 'octobre': 'October',
    'novembre': 'November', 'décembre': 'December',
}

_FORMATS_WITH_YEAR = ('%d %B, %Y', '%d %B %Y', '%B %d, %Y')
_FORMATS_WITHOUT_YEAR = ('%d %B', '%B %d')


def extract_app_id(url: str) -> Optional[int]:
    match = _APP_ID.search(url or '')
    return int(match.group(1)) if match else None


def review_permalink(steam_id: str, app_id: int) -> str:
    return f'{COMMUNITY_URL}/profiles/{steam_id}/recommended/{app_id}/'


def parse_steam_date(text: str, now: Optional[datetime] = None) -> datetime:
    """
    Parse the "Posted ..." line of a review box.

    Handles "Posted 12 March, 2023.", "Posted: December 15, 2023",
    "Posted 12 March." (current year) and the French page variant.
    Anything unreadable maps to now.
    """
    now = now or datetime.utcnow()
    cleaned = _POSTED_PREFIX.sub('', (text or '').strip())
    # "Posted 3 January. Last edited 5 January." keeps the first date
    cleaned = cleaned.split('.')[0].strip()

    for french, english in _FRENCH_MONTHS.items():
        cleaned = re.sub(french, english, cleaned, flags=re.IGNORECASE)

    for fmt in _FORMATS_WITH_YEAR:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue

    for fmt in _FORMATS_WITHOUT_YEAR:
        try:
            return datetime.strptime(cleaned, fmt).replace(year=now.year)
        except ValueError:
            continue

    return now


def _text_with_breaks(element) -> str:
    if element is None:
        return ''
    for br in element.find_all('br'):
        br.replace_with('\n')
    return element.get_text().strip()


class SteamAdapter(SourceAdapter):
    """Steam recommendations of one profile (steamid64)."""

    source = Source.STEAM

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self._titles: Dict[int, str] = {}

    def parse_reviews_page(self, html: str, steam_id: str) -> List[dict]:
        """Extract raw review boxes, newest first. Private profiles yield nothing."""
        soup = BeautifulSoup(html, 'html.parser')

        body = soup.find('body')
        if (body is not None and 'private_profile' in (body.get('class') or [])) \
                or soup.select_one('.profile_private_info'):
            logger.info(f"🔒 Steam profile {steam_id} is private")
            return []

        reviews = []
        for box in soup.select('.review_box'):
            link = box.select_one('.leftcol a')
            app_id = extract_app_id(link.get('href', '') if link else '')
            if not app_id:
                logger.debug(f"Skipping Steam review without app id for {steam_id}")
                continue

            thumb = box.select_one('.thumb img')
            capsule = box.select_one('.leftcol img.game_capsule') or box.select_one('.leftcol img')
            posted = box.select_one('.posted')
            hours = box.select_one('.hours')

            reviews.append({
                'app_id': app_id,
                'rating': 1.0 if thumb is not None and 'thumbsUp' in thumb.get('src', '') else 0.0,
                'content': _text_with_breaks(box.select_one('.content')),
                'occurred_at': parse_steam_date(posted.get_text() if posted else ''),
                'cover': capsule.get('src') if capsule is not None else None,
                'hours': hours.get_text(strip=True) if hours else '',
                'review_url': review_permalink(steam_id, app_id),
            })

        return reviews

    async def get_game_title(self, app_id: int) -> str:
        if app_id in self._titles:
            return self._titles[app_id]

        title = f'Steam app {app_id}'
        try:
            _, data = await self._get_json(
                f'{STORE_URL}/api/appdetails', params={'appids': str(app_id)}
            )
            entry = (data or {}).get(str(app_id)) or {}
            if entry.get('success') and entry.get('data', {}).get('name'):
                title = entry['data']['name']
                self._titles[app_id] = title
        except Exception as e:
            logger.warning(f"⚠️ Steam title lookup failed for app {app_id}: {e}")

        return title

    async def _fetch(self, source_user_id: str, only_latest: bool) -> List[ReviewDraft]:
        url = f'{COMMUNITY_URL}/profiles/{source_user_id}/recommended/'
        logger.info(f"🔄 Fetching Steam reviews: {url}")

        status, html = await self._get_text(url)
        if status == 404:
            return []
        if status != 200:
            raise ValueError(f"HTTP {status} from {url}")

        parsed = self.parse_reviews_page(html, source_user_id)
        if only_latest:
            parsed = parsed[:1]

        drafts = []
        for review in parsed:
            app_id = review['app_id']
            drafts.append(ReviewDraft(
                source=self.source,
                title=await self.get_game_title(app_id),
                content=review['content'],
                canonical_identity=review['review_url'],
                occurred_at=review['occurred_at'],
                rating=review['rating'],
                cover_image_ref=review['cover'] or f'https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/header.jpg',
                subject_id=str(app_id),
                review_url=review['review_url'],
            ))
        return drafts

    async def is_valid_user(self, source_user_id: str) -> bool:
        try:
            if self.api_key:
                _, data = await self._get_json(
                    f'{API_URL}/ISteamUser/GetPlayerSummaries/v0002/',
                    params={'key': self.api_key, 'steamids': source_user_id, 'format': 'json'},
                )
                players = ((data or {}).get('response') or {}).get('players') or []
                return len(players) > 0

            status, html = await self._get_text(f'{COMMUNITY_URL}/profiles/{source_user_id}/')
            return status == 200 and 'The specified profile could not be found' not in html
        except Exception as e:
            logger.error(f"❌ Steam validation failed for {source_user_id}: {e}")
            return False
