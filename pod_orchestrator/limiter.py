"""
Concurrency limiter: bounds how many coroutines run at once.
"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """A permit pool of fixed capacity.

    ``run(task)`` waits for a permit, awaits ``task()``, and always hands the
    permit back. Waiters are not guaranteed FIFO admission; the only promise
    is that no more than ``capacity`` tasks execute at any instant.

    Each batch should get its own instance so independent batches (and tests)
    never share permits.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._sem = asyncio.Semaphore(capacity)
        self.in_flight = 0
        self.peak_in_flight = 0

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        async with self._sem:
            self.in_flight += 1
            if self.in_flight > self.peak_in_flight:
                self.peak_in_flight = self.in_flight
            try:
                return await task()
            finally:
                self.in_flight -= 1

    def __repr__(self) -> str:
        return f"ConcurrencyLimiter(capacity={self.capacity}, in_flight={self.in_flight})"
