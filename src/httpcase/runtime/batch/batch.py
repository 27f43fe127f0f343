"""Concurrent fan-out of independent requests.

Provides bounded batch execution with:
- At most ``concurrency`` worker tasks pulling from one shared queue
- Per-item failure isolation (an error becomes that item's outcome)
- Completion-order results (no ordering guarantee across items)

Design: workers dequeue with ``get_nowait`` on a single event loop, so an
item can never be claimed twice and no lock is held across an await.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterator, Sequence, TypeVar

from httpcase.foundation.errors import RequestValidationError
from httpcase.runtime.observability import get_logger, log_context

T = TypeVar("T")
R = TypeVar("R")

log = get_logger("httpcase.batch")


@dataclass(frozen=True, slots=True)
class BatchItem(Generic[T, R]):
    """Outcome of one input: ``value`` on success, ``error`` otherwise."""
    index: int
    item: T
    value: R | None = None
    error: BaseException | None = None
    elapsed_ms: float = 0.0

    @property
    def is_ok(self) -> bool: return self.error is None

    @property
    def is_err(self) -> bool: return self.error is not None


@dataclass(slots=True)
class BatchResult(Generic[T, R]):
    """Aggregated outcomes in completion order."""
    items: list[BatchItem[T, R]] = field(default_factory=list)
    total_ms: float = 0.0
    workers: int = 0

    @property
    def successes(self) -> list[BatchItem[T, R]]: return [i for i in self.items if i.is_ok]

    @property
    def failures(self) -> list[BatchItem[T, R]]: return [i for i in self.items if i.is_err]

    @property
    def success_rate(self) -> float: return len(self.successes) / len(self.items) if self.items else 0.0

    def __len__(self) -> int: return len(self.items)

    def __iter__(self) -> Iterator[BatchItem[T, R]]: return iter(self.items)


async def fan_out(
    items: Sequence[T],
    run: Callable[[T], Awaitable[R]],
    *,
    concurrency: int = 5,
) -> BatchResult[T, R]:
    """Run ``run`` over every item with at most ``concurrency`` in flight.

    Each item is attempted exactly once. An exception from ``run`` is
    recorded on that item; the batch itself only fails if the caller is
    cancelled.

    Example:
        >>> result = await fan_out(urls, fetch, concurrency=3)
        >>> print(f"Success rate: {result.success_rate:.0%}")
    """
    if concurrency < 1:
        raise RequestValidationError(f"concurrency must be >= 1, got {concurrency}",
                                     tool_name="concurrent_requests")
    if not items:
        return BatchResult()

    start = time.perf_counter()
    queue: asyncio.Queue[tuple[int, T]] = asyncio.Queue()
    for pair in enumerate(items):
        queue.put_nowait(pair)
    done: list[BatchItem[T, R]] = []
    workers = min(concurrency, len(items))

    async def worker(wid: int) -> None:
        with log_context(worker=wid):
            while True:
                try:
                    idx, item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                t0 = time.perf_counter()
                try:
                    outcome = BatchItem(idx, item, value=await run(item),
                                        elapsed_ms=(time.perf_counter() - t0) * 1000)
                except Exception as e:
                    log.debug("batch item failed", index=idx, error=str(e))
                    outcome = BatchItem(idx, item, error=e, elapsed_ms=(time.perf_counter() - t0) * 1000)
                done.append(outcome)

    tasks = [asyncio.create_task(worker(w)) for w in range(workers)]
    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        for t in tasks:
            t.cancel()
        raise

    result = BatchResult(done, (time.perf_counter() - start) * 1000, workers)
    log.info("batch completed", items=len(done), failures=len(result.failures),
             workers=workers, total_ms=round(result.total_ms, 2))
    return result
