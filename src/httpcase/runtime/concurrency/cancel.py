"""Cooperative cancellation for request execution.

A CancelToken is handed in by the caller and observed at every suspension
point of a request: the in-flight transport call and the backoff sleep
between attempts. Firing the token never interrupts other requests.

Example:
    >>> token = CancelToken()
    >>> task = asyncio.create_task(client.get(url, retries=5, cancel=token))
    >>> token.cancel()
    >>> await task  # raises RequestCancelled
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, TypeVar

from httpcase.foundation.errors import RequestCancelled

T = TypeVar("T")


@dataclass(slots=True)
class CancelToken:
    """One-shot cancellation signal backed by an asyncio.Event."""

    reason: str = "Request cancelled"
    _event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Idempotent."""
        if reason:
            self.reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled(self.reason)

    async def wait(self) -> None:
        await self._event.wait()


async def checkpoint(cancel: CancelToken | None = None) -> None:
    """Cooperative cancellation checkpoint.

    Yields control to the event loop, then raises RequestCancelled if the
    token fired.
    """
    await asyncio.sleep(0)
    if cancel is not None:
        cancel.raise_if_cancelled()


async def run_cancellable(aw: Awaitable[T], cancel: CancelToken | None) -> T:
    """Await ``aw`` unless the token fires first.

    On cancellation the pending awaitable is cancelled (aborting any
    in-flight I/O) and RequestCancelled is raised.
    """
    if cancel is None:
        return await aw
    cancel.raise_if_cancelled()

    work = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        waiter.cancel()

    if work.done():
        return work.result()
    work.cancel()
    try:
        await work
    except asyncio.CancelledError:
        pass
    raise RequestCancelled(cancel.reason)


async def sleep(delay: float, cancel: CancelToken | None = None) -> None:
    """Sleep for ``delay`` seconds, returning early with RequestCancelled if the token fires."""
    if cancel is None:
        await asyncio.sleep(delay)
        return
    cancel.raise_if_cancelled()
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except TimeoutError:
        return
    raise RequestCancelled(cancel.reason)
