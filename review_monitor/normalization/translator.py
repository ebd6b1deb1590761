"""
DeepL translation client.

Raises NormalizationError on any failure; the normalizer decides what to
do about it.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from ..errors import NormalizationError

logger = logging.getLogger(__name__)

DEEPL_FREE_URL = 'https://api-free.deepl.com/v2'


class DeepLTranslator:
    """Long-lived DeepL client."""

    def __init__(self, api_key: str, api_url: Optional[str] = None, timeout: float = 20):
        self.api_key = api_key
        self.api_url = (api_url or DEEPL_FREE_URL).rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def _headers(self) -> dict:
        return {'Authorization': f'DeepL-Auth-Key {self.api_key}'}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self._headers)
        return self._session

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        data = {
            'text': text,
            'source_lang': source_lang.upper(),
            'target_lang': target_lang.upper(),
        }

        try:
            session = await self._get_session()
            async with session.post(f'{self.api_url}/translate', data=data) as response:
                if response.status != 200:
                    body = await response.text()
                    raise NormalizationError(f"DeepL returned {response.status}: {body[:200]}")
                payload = await response.json()
        except aiohttp.ClientError as e:
            raise NormalizationError(f"DeepL request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise NormalizationError("DeepL request timed out") from e

        translations = payload.get('translations') or []
        if not translations or not translations[0].get('text'):
            raise NormalizationError("DeepL returned no translation")

        return translations[0]['text']

    async def test_connection(self) -> bool:
        """Check the key against /usage and log the remaining quota."""
        try:
            session = await self._get_session()
            async with session.get(f'{self.api_url}/usage') as response:
                if response.status != 200:
                    logger.error(f"❌ DeepL key rejected ({response.status})")
                    return False
                usage = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"❌ DeepL unreachable: {e}")
            return False

        logger.info(
            f"✅ DeepL connected: {usage.get('character_count', 0)}/"
            f"{usage.get('character_limit', '?')} characters used"
        )
        return True

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
