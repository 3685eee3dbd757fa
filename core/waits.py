"""
Condition waits used instead of fixed sleeps.

Every suspension point in the engine either polls a predicate with an
explicit timeout or is a bounded backoff between retries.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


async def poll_until(
    predicate: Callable[[], Awaitable[bool]],
    timeout: float,
    interval: float,
    description: str = "condition",
) -> bool:
    """
    Await `predicate` until it returns True or `timeout` seconds pass.

    The predicate is checked immediately, then every `interval` seconds.
    Playwright errors raised by the predicate count as False. Returns within
    timeout + interval.

    Returns:
        True if the predicate held before the deadline
    """
    if interval <= 0:
        raise ValueError("interval must be positive")

    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(timeout, 0)
    checks = 0

    while True:
        checks += 1
        try:
            if await predicate():
                logger.debug(f"{description} satisfied after {checks} check(s)")
                return True
        except PlaywrightError as e:
            logger.debug(f"{description} check failed: {e}")

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.debug(f"{description} not satisfied within {timeout}s ({checks} checks)")
            return False
        await asyncio.sleep(min(interval, remaining))


def backoff_delay(attempt: int, base: float = 2.0, cap: float = 30.0) -> float:
    """Linear backoff: attempt 1 -> base, attempt 2 -> 2*base, ... capped."""
    return min(max(attempt, 1) * base, cap)


async def human_delay(min_seconds: float = 0.5, max_seconds: float = 1.5):
    """Wait for a random duration to simulate human-like pacing."""
    if max_seconds <= 0:
        return
    await asyncio.sleep(random.uniform(min_seconds, max_seconds))
