"""Shared fixtures: mock transports, silent logging, recorded backoff sleeps."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import httpx
import pytest

from httpcase.foundation.config import clear_settings_cache
from httpcase.http import ApiClient, RequestDefaults
from httpcase.runtime.observability import configure_logging
from httpcase.runtime.retry import policy

Handler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    configure_logging("none")


@pytest.fixture(autouse=True)
def _fresh_settings() -> Any:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff delays instead of sleeping."""
    recorded: list[float] = []

    async def fake_sleep(delay: float, cancel: Any = None) -> None:
        recorded.append(delay)
        if cancel is not None:
            cancel.raise_if_cancelled()

    monkeypatch.setattr(policy, "_sleep", fake_sleep)
    return recorded


@pytest.fixture
def make_client() -> Callable[..., ApiClient]:
    """Build an ApiClient over an httpx.MockTransport."""

    def factory(handler: Handler, **defaults: Any) -> ApiClient:
        return ApiClient(RequestDefaults(**defaults), transport=httpx.MockTransport(handler))

    return factory
