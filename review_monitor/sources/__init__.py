"""
Source adapters.

Example usage:
    from review_monitor.sources import build_adapters

    adapters = build_adapters(steam_api_key=..., tmdb_api_key=...)
    drafts = await adapters[Source.STEAM].fetch_latest('76561198000000000')
    ...
    await close_adapters(adapters)
"""

import logging
from typing import Dict, Iterable, Optional

from ..models import Source
from .base import SourceAdapter
from .letterboxd import LetterboxdAdapter
from .senscritique import SensCritiqueAdapter
from .steam import SteamAdapter
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


def build_adapters(
    steam_api_key: Optional[str] = None,
    tmdb_api_key: Optional[str] = None,
    enabled_sources: Optional[Iterable[Source]] = None,
    enrich_covers: bool = True,
    timeout: float = 30,
) -> Dict[Source, SourceAdapter]:
    """Build one long-lived adapter per enabled source. The TMDB client is shared."""
    enabled = set(enabled_sources) if enabled_sources is not None else set(Source)
    tmdb = TMDBClient(tmdb_api_key) if tmdb_api_key else None

    factories = {
        Source.STEAM: lambda: SteamAdapter(api_key=steam_api_key, timeout=timeout),
        Source.LETTERBOXD: lambda: LetterboxdAdapter(tmdb=tmdb, enrich_covers=enrich_covers, timeout=timeout),
        Source.SENSCRITIQUE: lambda: SensCritiqueAdapter(tmdb=tmdb, enrich_covers=enrich_covers, timeout=timeout),
    }

    adapters = {source: factory() for source, factory in factories.items() if source in enabled}
    logger.info(f"✅ Source adapters ready: {', '.join(s.value for s in adapters)}")
    return adapters


async def close_adapters(adapters: Dict[Source, SourceAdapter]):
    """Close every adapter session and the shared TMDB client."""
    tmdb_clients = set()
    for adapter in adapters.values():
        tmdb = getattr(adapter, 'tmdb', None)
        if tmdb is not None:
            tmdb_clients.add(tmdb)
        await adapter.close()

    for tmdb in tmdb_clients:
        await tmdb.close()


__all__ = [
    'SourceAdapter',
    'SteamAdapter',
    'LetterboxdAdapter',
    'SensCritiqueAdapter',
    'TMDBClient',
    'build_adapters',
    'close_adapters',
]
