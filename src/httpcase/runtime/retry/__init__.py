"""Retry policies for request execution.

Example:
    >>> from httpcase.runtime.retry import RetryPolicy, ExponentialBackoff, execute_with_retry
    >>>
    >>> policy = RetryPolicy(max_retries=3, backoff=ExponentialBackoff(base=0.5))
    >>> response = await execute_with_retry(lambda: transport.send(spec), policy)
"""

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff
from .policy import NO_RETRY, RetryPolicy, execute_with_retry

__all__ = [
    # Backoff strategies
    "Backoff",
    "ExponentialBackoff",
    "ConstantBackoff",
    # Policy
    "RetryPolicy",
    "NO_RETRY",
    # Execution
    "execute_with_retry",
]
