"""
TMDB cover lookup for film reviews.

Best effort: every failure is logged and reported as "no image".
"""

import logging
import re
from typing import Optional, Tuple

import aiohttp

logger = logging.getLogger(__name__)

API_URL = 'https://api.themoviedb.org/3'
IMAGE_URL = 'https://image.tmdb.org/t/p'

_TITLE_YEAR = re.compile(r'^(.+?)\s*\((\d{4})\)$')


def parse_movie_title(full_title: str) -> Tuple[str, Optional[str]]:
    """Split 'Title (YYYY)' into ('Title', 'YYYY')."""
    match = _TITLE_YEAR.match(full_title.strip())
    if match:
        return match.group(1).strip(), match.group(2)
    return full_title.strip(), None


class TMDBClient:
    """Long-lived TMDB client shared by the film adapters."""

    def __init__(self, api_key: Optional[str], language: str = 'fr-FR', timeout: float = 15):
        self.api_key = api_key
        self.language = language
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def search_movie(self, title: str, year: Optional[str] = None) -> Optional[dict]:
        params = {'api_key': self.api_key, 'query': title, 'language': self.language}
        if year:
            params['year'] = year

        session = await self._get_session()
        async with session.get(f'{API_URL}/search/movie', params=params) as response:
            if response.status != 200:
                logger.warning(f"⚠️ TMDB search returned {response.status} for '{title}'")
                return None
            data = await response.json()

        results = data.get('results') or []
        return results[0] if results else None

    async def get_movie_image(self, full_title: str) -> Optional[str]:
        """Poster (w500) of the best match, else its backdrop (w780)."""
        if not self.enabled or not full_title:
            return None

        title, year = parse_movie_title(full_title)
        try:
            movie = await self.search_movie(title, year)
        except Exception as e:
            logger.warning(f"⚠️ TMDB lookup failed for '{full_title}': {e}")
            return None

        if not movie:
            return None
        if movie.get('poster_path'):
            return f"{IMAGE_URL}/w500{movie['poster_path']}"
        if movie.get('backdrop_path'):
            return f"{IMAGE_URL}/w780{movie['backdrop_path']}"
        return None

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
