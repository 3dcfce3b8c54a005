"""
Token-bucket rate limiter for outbound provider calls.

Each provider adapter owns one limiter with its own capacity and refill rate,
sized to the provider's API quota. ``consume()`` never rejects a caller: when
the bucket is empty it suspends for one refill interval and re-checks, looping
until a whole token is available.

Concurrent callers on the same limiter are serialized only by the event loop's
natural scheduling order; there is no queue, fairness, or maximum wait.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenBucketRateLimiter:
    """
    Refill-then-check token bucket.

    Args:
        max_tokens: Bucket capacity; the bucket starts full.
        refill_rate_per_second: Tokens added per second of wall-clock time.
        clock: Monotonic time source in seconds (injectable for tests).
        sleep: Coroutine used to wait (injectable for tests).

    Raises:
        ValueError: If capacity is below 1 or the refill rate is not positive.
    """

    def __init__(
        self,
        max_tokens: int,
        refill_rate_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_tokens < 1:
            raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")
        if refill_rate_per_second <= 0:
            raise ValueError(
                f"refill_rate_per_second must be > 0, got {refill_rate_per_second}"
            )

        self.max_tokens = max_tokens
        self.refill_rate_per_second = float(refill_rate_per_second)
        self.tokens = float(max_tokens)
        self._clock = clock
        self._sleep = sleep
        self.last_refill_timestamp = clock()

    @property
    def wait_interval(self) -> float:
        """Seconds a caller sleeps before re-checking an empty bucket."""
        return 1.0 / self.refill_rate_per_second

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self.last_refill_timestamp
        self.tokens = min(
            float(self.max_tokens),
            self.tokens + elapsed * self.refill_rate_per_second,
        )
        self.last_refill_timestamp = now

    async def consume(self) -> None:
        """Take one token, waiting for a refill as many times as needed."""
        while True:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return
            logger.debug(f"Rate limit reached, waiting {self.wait_interval:.3f}s for refill")
            await self._sleep(self.wait_interval)

    def available_tokens(self) -> float:
        """Current token count after applying any pending refill."""
        self._refill()
        return self.tokens
