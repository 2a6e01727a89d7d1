"""Retry with exponential backoff."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Whether an error is worth another attempt.

    Crawl errors say so through their ``transient`` flag. Of everything else
    only raw timeouts and aiohttp client errors are retried; programming
    errors surface on the first attempt.
    """
    transient = getattr(exc, "transient", None)
    if transient is not None:
        return bool(transient)
    return isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientError))


class RetryPolicy:
    """Runs an async operation up to ``max_attempts`` times.

    After the n-th failed attempt (0-based) the policy waits
    ``initial_delay * 2 ** n`` seconds. Exceptions whose ``transient``
    attribute is false, and unexpected errors, are raised immediately; once the attempts are used up
    the last exception is raised unchanged.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        should_retry: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.should_retry = should_retry
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (2 ** attempt)

    async def run(self, operation: Callable[[], Awaitable[T]], label: Optional[str] = None) -> T:
        """Run ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Zero-argument coroutine function.
            label: Name used in log messages, typically the URL.

        Returns:
            The operation's result.
        """
        label = label or getattr(operation, "__name__", "operation")
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as e:
                if not self.should_retry(e):
                    raise
                if attempt + 1 >= self.max_attempts:
                    logger.warning(f"[{label}] giving up after {self.max_attempts} attempts: {e}")
                    raise
                delay = self.delay_for(attempt)
                logger.info(
                    f"[{label}] attempt {attempt + 1}/{self.max_attempts} failed ({e}), "
                    f"retrying in {delay:.1f}s"
                )
                await self._sleep(delay)

        raise AssertionError("unreachable")


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
) -> T:
    """Shortcut for ``RetryPolicy(max_attempts, initial_delay).run(operation)``."""
    return await RetryPolicy(max_attempts, initial_delay).run(operation)
