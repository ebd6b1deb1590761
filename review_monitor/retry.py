"""
Retry logic with exponential backoff for outbound HTTP calls.

Only the adapters' network reads use this. Delivery retries are driven
by the store's retry_count and the scheduler's fixed pacing instead.
"""

import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

import aiohttp

logger = logging.getLogger(__name__)

T = TypeVar('T')


def retry_with_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: Tuple = (Exception,),
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
):
    """
    Retry decorator with exponential backoff.

    Args:
        max_attempts: Total number of attempts
        initial_delay: Delay before the second attempt (seconds)
        backoff_factor: Multiplier applied to the delay after each retry
        exceptions: Exception types that trigger a retry
        on_retry: Optional callback(attempt, exception, delay) called before sleeping
        sleep: Awaitable sleep function

    Delays:
        Attempt 1: immediate
        Attempt 2: initial_delay
        Attempt 3: initial_delay * backoff_factor
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            delay = initial_delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"❌ {func.__name__} failed after {max_attempts} attempts: {e}"
                        )
                        raise

                    logger.warning(
                        f"⚠️ {func.__name__} attempt {attempt}/{max_attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )

                    if on_retry:
                        try:
                            on_retry(attempt, e, delay)
                        except Exception as callback_error:
                            logger.warning(f"on_retry callback failed: {callback_error}")

                    await sleep(delay)
                    delay *= backoff_factor

        return wrapper
    return decorator


class RetryConfig:
    """Preconfigured retry behaviour."""

    HTTP_MAX_ATTEMPTS = 3
    HTTP_INITIAL_DELAY = 2.0
    HTTP_BACKOFF_FACTOR = 2.0
    HTTP_EXCEPTIONS = (
        asyncio.TimeoutError,
        aiohttp.ClientConnectionError,
        aiohttp.ServerDisconnectedError,
    )

    @classmethod
    def get_http_retry_decorator(cls):
        return retry_with_backoff(
            max_attempts=cls.HTTP_MAX_ATTEMPTS,
            initial_delay=cls.HTTP_INITIAL_DELAY,
            backoff_factor=cls.HTTP_BACKOFF_FACTOR,
            exceptions=cls.HTTP_EXCEPTIONS,
        )


http_retry = RetryConfig.get_http_retry_decorator()
