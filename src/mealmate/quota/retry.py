"""
MealMate - Retry Policy.

Wraps a provider call with quota accounting and exponential backoff.

Per attempt:
1. Reserve a call in the window; if it is full, wait until it resets
   and try again (the call is delayed, not dropped)
2. Run the operation
3. On 429/402, back off 2^attempt seconds and go again, up to max_attempts
4. Anything else propagates immediately

This is the only place in the core that retries.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from mealmate.config import settings
from mealmate.errors import is_quota_error
from mealmate.quota.tracker import QuotaTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """Quota-aware retry around a no-argument async operation."""

    def __init__(
        self,
        tracker: QuotaTracker,
        max_attempts: int | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.tracker = tracker
        self.max_attempts = max_attempts if max_attempts is not None else settings.retry_max_attempts
        self._sleep = sleep

    async def run(self, operation: Callable[[], Awaitable[T]], max_attempts: int | None = None) -> T:
        limit = max_attempts if max_attempts is not None else self.max_attempts
        attempt = 1

        while True:
            while not await self.tracker.try_acquire():
                wait = self.tracker.time_until_reset()
                logger.warning(f"Rate limit reached. Waiting {wait} seconds before calling...")
                await self._sleep(wait)

            try:
                return await operation()
            except Exception as e:
                if not is_quota_error(e) or attempt >= limit:
                    raise

                delay = 2**attempt
                logger.warning(f"Provider quota error ({e}). Retrying in {delay} seconds (attempt {attempt}/{limit})")
                await self._sleep(delay)
                attempt += 1


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    tracker: QuotaTracker,
    max_attempts: int = 3,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """One-off form of RetryPolicy.run."""
    return await RetryPolicy(tracker, max_attempts=max_attempts, sleep=sleep).run(operation)
