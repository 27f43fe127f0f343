"""Retry coordination for transport attempts.

Retries are exception-based: only TransportError (and its TransportTimeout
subclass) triggers another attempt. Any HTTP response, whatever its status,
is a successful transport outcome and is returned as-is. RequestCancelled and
validation errors propagate immediately.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from httpcase.foundation.errors import TransportError
from httpcase.runtime.concurrency import CancelToken, checkpoint, sleep

from .backoff import Backoff, ExponentialBackoff

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")

logger = logging.getLogger("httpcase.retry")

_sleep = sleep


class RetryPolicy(BaseModel):
    """Retry policy for a single request.

    Attributes:
        max_retries: Retry attempts after the first one (0 = single attempt)
        backoff: Backoff strategy for delay calculation
        on_retry: Optional callback ``(attempt, error, delay)`` fired before each sleep

    Example:
        >>> policy = RetryPolicy(max_retries=3, backoff=ExponentialBackoff.from_ms(200))
        >>> await execute_with_retry(lambda: transport.send(spec), policy)
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Backoff protocol
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    max_retries: Annotated[int, Field(ge=0)] = 0
    backoff: Backoff = Field(default_factory=ExponentialBackoff, repr=False)
    on_retry: Callable[[int, TransportError, float], None] | None = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_ms(cls, max_retries: int, backoff_ms: int) -> RetryPolicy:
        """Build the engine's default policy from wire values."""
        return cls(max_retries=max_retries, backoff=ExponentialBackoff.from_ms(backoff_ms))

    @computed_field
    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @computed_field
    @property
    def is_disabled(self) -> bool:
        """Whether retries are effectively disabled."""
        return self.max_retries == 0

    def get_delay(self, attempt: int) -> float:
        """Delay in seconds before retry ``attempt`` (0-indexed)."""
        return self.backoff.delay(attempt)

    def __hash__(self) -> int:
        return hash((self.max_retries, self.backoff))


NO_RETRY = RetryPolicy(max_retries=0)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    cancel: CancelToken | None = None,
    name: str = "request",
) -> T:
    """Run ``operation`` up to ``policy.max_attempts`` times.

    Attempts are strictly sequential. Before attempt k+1 the coordinator
    sleeps ``policy.get_delay(k - 1)``; the sleep returns early with
    RequestCancelled if ``cancel`` fires. After the last failed attempt its
    TransportError is re-raised unchanged.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except TransportError as exc:
            if attempt > policy.max_retries:
                raise
            delay = policy.get_delay(attempt - 1)
            logger.info(
                f"[{name}] Retry {attempt}/{policy.max_retries} "
                f"after {delay:.3f}s (code: {exc.error.code}): {exc}"
            )
            if policy.on_retry:
                policy.on_retry(attempt, exc, delay)
            await _sleep(delay, cancel)
            await checkpoint(cancel)
            attempt += 1
