# backend/cybershield/services/geolocation/retry.py
from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient_http_error(e: Exception) -> bool:
    """Network hiccups, timeouts, 429 and 5xx are worth another try."""
    if isinstance(e, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        return status == 429 or status >= 500
    return False


async def async_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 2.0,
    jitter: float = 0.25,
    retry_if: Callable[[Exception], bool] = is_transient_http_error,
) -> T:
    last_exc: Optional[Exception] = None

    for i in range(attempts):
        try:
            return await fn()
        except Exception as e:
            last_exc = e
            if i == attempts - 1 or not retry_if(e):
                raise

            # exponential backoff + jitter
            delay = min(max_delay, base_delay * (2 ** i))
            delay = delay * (1.0 + random.uniform(-jitter, jitter))
            logger.debug("Attempt %s failed (%s); retrying in %.2fs", i + 1, e, delay)
            await asyncio.sleep(max(0.0, delay))

    raise last_exc or RuntimeError("async_retry failed without exception")
