"""
Generic retry combinator with exponential backoff and jitter.

Delay before retry n (0-based) is:

    min(base_delay * 2**n + uniform(0, jitter), max_delay)

No delay follows the final attempt; its error propagates unchanged.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings."""
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 1.0

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Delay in seconds after failed attempt number ``attempt`` (0-based)."""
        delay = self.base_delay * (2 ** attempt) + rand() * self.jitter
        return min(delay, self.max_delay)


def _always(exc: BaseException) -> bool:
    return True


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    policy: Optional[RetryPolicy] = None,
    retry_on: Callable[[BaseException], bool] = _always,
    sleep: SleepFunc = asyncio.sleep,
    rand: Callable[[], float] = random.random,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
) -> T:
    """
    Call ``fn`` until it succeeds, retrying failures accepted by ``retry_on``.

    Args:
        fn: Zero-argument coroutine factory
        max_attempts: Total attempts including the first (>= 1)
        policy: Backoff settings
        retry_on: Predicate; exceptions it rejects propagate immediately
        sleep: Async sleep, injectable for tests
        rand: Jitter source in [0, 1), injectable for tests
        on_retry: Optional hook called with (attempt, error, delay) before sleeping

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    policy = policy or RetryPolicy()

    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if not retry_on(e) or attempt + 1 >= max_attempts:
                raise
            delay = policy.delay_for(attempt, rand)
            logger.warning(
                f"Attempt {attempt + 1}/{max_attempts} failed: {e}; retrying in {delay:.2f}s"
            )
            if on_retry is not None:
                on_retry(attempt, e, delay)
            await sleep(delay)
            attempt += 1
