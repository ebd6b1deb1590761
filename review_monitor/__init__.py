"""
Review Monitor - review ingestion & delivery pipeline

Enable via config/features.yaml:
    review_monitor:
      enabled: true
      sources:
        steam: true
        letterboxd: true
        senscritique: true
      components:
        translation: true
        cover_enrichment: true

Polls Steam, Letterboxd and SensCritique for the latest review of every
tracked account, stores each review once per identity and hands it to the
Telegram notifier with bounded retry.

Components:
- sources/        - one adapter per source (+ TMDB cover lookup)
- detection.py    - "is this draft new?" by identity
- normalization/  - language heuristic + DeepL translation
- database/       - ReviewStore (upsert-by-identity, delivery state machine)
- notifications/  - renderer + Telegram notifier
- delivery.py     - render -> send -> record outcome
- scheduler.py    - periodic tick with a skip-on-busy guard
- service.py      - wires everything together

Quick Start:
    from review_monitor.service import ReviewMonitorService
    import asyncio

    async def main():
        service = ReviewMonitorService.from_config(chat_id=-100123, bot_token="TOKEN")
        await service.initialize()
        await service.start()

    asyncio.run(main())
"""

__version__ = "1.0.0"
