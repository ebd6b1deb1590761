"""
Source adapter contract.

An adapter turns one account on one source into ReviewDraft objects. It
owns a single aiohttp session for its whole lifetime: build it once at
startup, share it, close it at shutdown.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import aiohttp

from ..errors import SourceFetchError
from ..models import ReviewDraft, Source
from ..retry import http_retry

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
)


class SourceAdapter(ABC):
    """Base class for source adapters."""

    source: Source

    def __init__(self, timeout: float = 30, session: Optional[aiohttp.ClientSession] = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self.stats = {
            'fetches': 0,
            'errors': 0,
            'drafts': 0,
        }

    @property
    def name(self) -> str:
        return self.source.value

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={'User-Agent': USER_AGENT},
            )
        return self._session

    @http_retry
    async def _get_text(self, url: str, **kwargs) -> Tuple[int, str]:
        """GET a URL, returning (status, body). Network errors are retried."""
        session = await self.get_session()
        async with session.get(url, **kwargs) as response:
            return response.status, await response.text()

    @http_retry
    async def _get_json(self, url: str, **kwargs) -> Tuple[int, Optional[dict]]:
        session = await self.get_session()
        async with session.get(url, **kwargs) as response:
            if response.status != 200:
                return response.status, None
            return response.status, await response.json(content_type=None)

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.info(f"✅ {self.name} adapter session closed")
        self._session = None

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def fetch_latest(self, source_user_id: str, only_latest: bool = True) -> List[ReviewDraft]:
        """
        Fetch the most recent reviews of an account, newest first.

        Raises:
            SourceFetchError: transport or parse failure (recoverable,
                callers treat it as "nothing new this cycle")
        """
        self.stats['fetches'] += 1

        try:
            drafts = await self._fetch(source_user_id, only_latest)
        except SourceFetchError:
            self.stats['errors'] += 1
            raise
        except Exception as e:
            self.stats['errors'] += 1
            raise SourceFetchError(self.name, source_user_id, f"{type(e).__name__}: {e}") from e

        usable = []
        for draft in drafts:
            if not draft.has_identity:
                logger.warning(f"⚠️ {self.name}: dropping '{draft.title}' without identity")
                continue
            usable.append(draft)

        if only_latest:
            usable = usable[:1]

        self.stats['drafts'] += len(usable)
        return usable

    @abstractmethod
    async def _fetch(self, source_user_id: str, only_latest: bool) -> List[ReviewDraft]:
        """Source specific fetch + parse."""

    @abstractmethod
    async def is_valid_user(self, source_user_id: str) -> bool:
        """Registration check: does this account exist on the source?"""
