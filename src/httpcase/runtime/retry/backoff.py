"""Backoff strategies for retry policies.

Provides pluggable delay calculation for retry attempts:
- ExponentialBackoff: Exponential growth, jitter and cap both optional
- ConstantBackoff: Fixed delay
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Implementations compute the delay before the next retry attempt.
    Attempt numbers are 0-indexed (first retry = attempt 0).
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds for given attempt number.

        Args:
            attempt: 0-indexed retry attempt number

        Returns:
            Delay in seconds before next retry
        """
        ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff.

    Delay = base * (multiplier ^ attempt), capped at max_delay when set,
    scaled by 0.5-1.5x when jitter is on.

    The request engine uses the defaults: no jitter and no cap, so the k-th
    retry waits exactly base * 2^(k-1). Large retry counts therefore produce
    very long waits.

    Attributes:
        base: Initial delay in seconds (default: 0.5)
        multiplier: Exponential growth factor (default: 2.0)
        max_delay: Optional delay cap in seconds (default: None)
        jitter: Add randomization 0.5-1.5x (default: False)
    """

    base: float = 0.5
    multiplier: float = 2.0
    max_delay: float | None = None
    jitter: bool = False

    @classmethod
    def from_ms(cls, base_ms: int) -> ExponentialBackoff:
        """Build from a millisecond base, the unit used on the wire."""
        return cls(base=base_ms / 1000)

    def delay(self, attempt: int) -> float:
        d = self.base * (self.multiplier ** attempt)
        if self.max_delay is not None:
            d = min(d, self.max_delay)
        return d * (0.5 + random.random()) if self.jitter else d


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Fixed delay between retries.

    Attributes:
        delay_seconds: Fixed delay in seconds (default: 1.0)
    """

    delay_seconds: float = 1.0

    def delay(self, attempt: int) -> float:
        return self.delay_seconds
