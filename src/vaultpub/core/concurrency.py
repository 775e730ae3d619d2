"""Cooperative yielding and bounded concurrency for the async pipeline edges"""

import asyncio
import logging
import time
from collections import deque
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

if TYPE_CHECKING:
    from vaultpub.core.context import CancellationToken


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class YieldScheduler:
    """Cede control to the event loop every N operations or every N milliseconds."""

    def __init__(self, yield_every_n: int = 50, yield_every_ms: float = 50):
        self.yield_every_n = yield_every_n
        self.yield_every_ms = yield_every_ms
        self._count = 0
        self._last_yield = time.perf_counter()
        self.yields = 0

    async def maybe_yield(self) -> None:
        self._count += 1
        elapsed_ms = (time.perf_counter() - self._last_yield) * 1000
        if self._count >= self.yield_every_n or elapsed_ms >= self.yield_every_ms:
            await self.force_yield()

    async def force_yield(self) -> None:
        await asyncio.sleep(0)
        self.yields += 1
        self.reset()

    def reset(self) -> None:
        self._count = 0
        self._last_yield = time.perf_counter()

    def stats(self) -> dict[str, float]:
        return {
            "operation_count": self._count,
            "ms_since_last_yield": (time.perf_counter() - self._last_yield) * 1000,
            "yields": self.yields,
        }


class ConcurrencyLimiter:
    """Cap in-flight coroutines; waiters are released in FIFO order as slots free up."""

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError("Concurrency limit must be >= 1")
        self.limit = limit
        self._active = 0
        self._queue: deque[asyncio.Future] = deque()

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        await self._acquire()
        try:
            return await fn()
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._active < self.limit:
            self._active += 1
            return
        waiter = asyncio.get_running_loop().create_future()
        self._queue.append(waiter)
        await waiter        # slot is handed over by _release

    def _release(self) -> None:
        self._active -= 1
        while self._queue:
            waiter = self._queue.popleft()
            if not waiter.done():
                self._active += 1
                waiter.set_result(None)
                break

    def stats(self) -> dict[str, int]:
        return {"active": self._active, "queued": len(self._queue), "limit": self.limit}


async def process_with_limit(
    items: list[T],
    fn: Callable[[T, int], Awaitable[R]],
    concurrency: int = 5,
    scheduler: Optional[YieldScheduler] = None,
    cancellation: Optional["CancellationToken"] = None,
    ) -> list[R]:
    """Run fn over items with at most `concurrency` in flight; results keep input order.

    Cancellation is checked before each item starts. A failing item does not block the
    rest of the queue; the first failure is re-raised once every item has settled.
    """
    if not items:
        return []
    limiter = ConcurrencyLimiter(concurrency)

    async def _one(item: T, index: int) -> R:
        if cancellation is not None:
            cancellation.throw_if_cancelled()
        result = await fn(item, index)
        if scheduler is not None:
            await scheduler.maybe_yield()
        return result

    tasks = [limiter.run(lambda item=item, i=i: _one(item, i)) for i, item in enumerate(items)]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return list(outcomes)
