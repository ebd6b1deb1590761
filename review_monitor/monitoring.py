"""
Error tracking with Sentry.

Sentry is enabled only when a DSN is configured; every helper is a no-op
otherwise.
"""

import os
import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_sentry_initialized = False

# Transient network noise from the sources and Telegram
NON_CRITICAL_PATTERNS = (
    'timeout',
    'timed out',
    'connection reset',
    'connection refused',
    'network is unreachable',
    'temporary failure',
    'too many requests',
    'flood',
    'bad gateway',
    'service unavailable',
)

NON_CRITICAL_TYPES = (
    'TelegramNetworkError',
    'TelegramRetryAfter',
    'TimeoutError',
    'ClientConnectorError',
    'ServerDisconnectedError',
)


def init_sentry(
    dsn: Optional[str] = None,
    environment: str = "production",
    traces_sample_rate: float = 0.0,
) -> bool:
    """
    Initialize Sentry.

    Args:
        dsn: Sentry DSN (defaults to SENTRY_DSN)
        environment: production/staging/development
        traces_sample_rate: Share of traced transactions (0.0-1.0)

    Returns:
        True if Sentry is active
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    sentry_dsn = dsn or os.getenv('SENTRY_DSN')
    if not sentry_dsn:
        logger.info("Sentry DSN not set - error tracking disabled")
        return False

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
                AioHttpIntegration(),
            ],
            attach_stacktrace=True,
            send_default_pii=False,
            max_breadcrumbs=50,
            before_send=_before_send_filter,
        )
    except Exception as e:
        logger.error(f"❌ Sentry initialization failed: {e}")
        return False

    _sentry_initialized = True
    logger.info(f"✅ Sentry initialized (environment={environment})")
    return True


def _before_send_filter(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Drop transient network errors and scrub secrets from breadcrumbs."""
    if 'exc_info' in hint:
        exc_type, exc_value, _ = hint['exc_info']
        error_str = str(exc_value).lower()
        error_type = exc_type.__name__ if exc_type else ''

        if isinstance(exc_value, KeyboardInterrupt):
            return None
        if error_type in NON_CRITICAL_TYPES:
            return None
        if any(pattern in error_str for pattern in NON_CRITICAL_PATTERNS):
            return None

    breadcrumbs = event.get('breadcrumbs')
    if isinstance(breadcrumbs, dict):
        breadcrumbs = breadcrumbs.get('values', [])

    for breadcrumb in breadcrumbs or []:
        data = breadcrumb.get('data') or {}
        for key in list(data.keys()):
            if any(sensitive in key.lower() for sensitive in ('token', 'auth_key', 'secret', 'key')):
                data[key] = '[FILTERED]'

    return event


def capture_exception(
    error: Exception,
    extra: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Send an exception to Sentry with context. Returns the event id."""
    if not _sentry_initialized:
        return None

    try:
        with sentry_sdk.new_scope() as scope:
            if extra:
                scope.set_context("extra_data", extra)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            event_id = sentry_sdk.capture_exception(error)
        logger.info(f"📤 Sent to Sentry: {event_id}")
        return event_id
    except Exception as e:
        logger.error(f"❌ Failed to send to Sentry: {e}")
        return None


def flush_events(timeout: int = 2):
    """Flush pending Sentry events, call before exit."""
    if not _sentry_initialized:
        return

    try:
        sentry_sdk.flush(timeout=timeout)
        logger.info("✅ Sentry events flushed")
    except Exception as e:
        logger.error(f"❌ Failed to flush Sentry events: {e}")
