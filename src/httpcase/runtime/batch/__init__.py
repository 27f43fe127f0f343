"""Bounded concurrent fan-out.

Example:
    >>> from httpcase.runtime.batch import fan_out
    >>> result = await fan_out(requests, send_one, concurrency=5)
    >>> len(result.failures)
    0
"""

from .batch import BatchItem, BatchResult, fan_out

__all__ = ["BatchItem", "BatchResult", "fan_out"]
