"""Cancellation primitives for async request execution.

Pure asyncio (Python 3.11+). Cancellation is cooperative: the caller fires a
CancelToken and every suspension point of the request observes it.
"""

from __future__ import annotations

from .cancel import CancelToken, checkpoint, run_cancellable, sleep

__all__ = [
    "CancelToken",
    "checkpoint",
    "run_cancellable",
    "sleep",
]
