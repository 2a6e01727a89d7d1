"""Bounded concurrency for crawl tasks."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

from ..models.article import MAX_CONCURRENCY_LIMIT

T = TypeVar("T")


class ConcurrencyLimiter:
    """Runs task factories with at most ``limit`` of them in flight.

    Results are collected in completion order, which only matches submission
    order when ``limit`` is 1.
    """

    def __init__(self, limit: int = 1):
        self.limit = max(1, min(MAX_CONCURRENCY_LIMIT, limit))

    async def run_bounded(self, tasks: Iterable[Callable[[], Awaitable[T]]]) -> List[T]:
        """Run every task and return their results.

        Args:
            tasks: Zero-argument coroutine functions. A task is only started
                once a slot is free.

        Returns:
            Task results in completion order.
        """
        semaphore = asyncio.Semaphore(self.limit)
        results: List[T] = []

        async def _run(factory: Callable[[], Awaitable[T]]) -> None:
            async with semaphore:
                results.append(await factory())

        await asyncio.gather(*(_run(factory) for factory in tasks))
        return results
