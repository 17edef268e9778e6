"""Batch-granular retry with exponential backoff and jitter."""

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

BACKOFF_FACTOR = 1.5
JITTER_RANGE = (0.85, 1.15)


def backoff_delay_ms(
    attempt: int,
    base_delay_ms: float,
    jitter: Optional[float] = None,
) -> float:
    """Delay after failed ``attempt`` (1-based): base * 1.5^(attempt-1) * jitter."""
    if jitter is None:
        jitter = random.uniform(*JITTER_RANGE)
    return base_delay_ms * (BACKOFF_FACTOR ** (attempt - 1)) * jitter


async def execute_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay_ms: float,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    context: Optional[dict] = None,
) -> T:
    """Call ``fn`` up to ``max_attempts`` times.

    Sleeps between failed attempts; after the last failure the last error is
    re-raised. ``sleep`` takes seconds.
    """
    attempts = max(1, max_attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as e:
            last_error = e
            if attempt < attempts:
                delay_ms = backoff_delay_ms(attempt, base_delay_ms)
                logger.debug(
                    "batch_retry_scheduled",
                    attempt=attempt,
                    max_attempts=attempts,
                    delay_ms=round(delay_ms),
                    error=str(e),
                    **(context or {}),
                )
                await sleep(delay_ms / 1000.0)

    assert last_error is not None
    raise last_error
