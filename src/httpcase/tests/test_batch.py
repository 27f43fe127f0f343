"""Tests for concurrent fan-out."""

from __future__ import annotations

import asyncio
from typing import Callable

import httpx
import pytest

from httpcase.foundation.errors import RequestValidationError
from httpcase.http import ApiClient, BatchOutcome
from httpcase.runtime.batch import fan_out


# ─────────────────────────────────────────────────────────────────────────────
# fan_out
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fan_out_respects_concurrency_ceiling() -> None:
    in_flight = peak = 0

    async def run(i: int) -> int:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return i * 2

    result = await fan_out(list(range(10)), run, concurrency=3)

    assert peak == 3
    assert result.workers == 3
    assert sorted(i.value for i in result) == [i * 2 for i in range(10)]
    assert sorted(i.index for i in result) == list(range(10))


@pytest.mark.asyncio
async def test_fan_out_isolates_failures() -> None:
    async def run(i: int) -> int:
        if i % 4 == 0:
            raise RuntimeError(f"item {i} failed")
        return i

    result = await fan_out(list(range(8)), run, concurrency=2)

    assert len(result) == 8
    assert sorted(str(f.error) for f in result.failures) == ["item 0 failed", "item 4 failed"]
    assert len(result.successes) == 6
    assert result.success_rate == 0.75


@pytest.mark.asyncio
async def test_fan_out_fewer_items_than_workers() -> None:
    async def run(i: int) -> int:
        return i

    result = await fan_out([1, 2], run, concurrency=10)
    assert result.workers == 2
    assert len(result) == 2


@pytest.mark.asyncio
async def test_fan_out_empty_input() -> None:
    async def run(i: int) -> int:
        raise AssertionError("never called")

    result = await fan_out([], run, concurrency=4)
    assert len(result) == 0
    assert result.workers == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrency", [0, -1])
async def test_fan_out_rejects_bad_concurrency(concurrency: int) -> None:
    async def run(i: int) -> int:
        return i

    with pytest.raises(RequestValidationError, match="concurrency"):
        await fan_out([1], run, concurrency=concurrency)


@pytest.mark.asyncio
async def test_fan_out_propagates_caller_cancellation() -> None:
    started = asyncio.Event()

    async def run(i: int) -> int:
        started.set()
        await asyncio.sleep(10)
        return i

    task = asyncio.create_task(fan_out(list(range(5)), run, concurrency=2))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


# ─────────────────────────────────────────────────────────────────────────────
# ApiClient.concurrent_requests
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_requests_one_outcome_per_input(make_client: Callable[..., ApiClient]) -> None:
    in_flight = peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        if request.url.path == "/items/5":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"path": request.url.path})

    client = make_client(handler)
    requests = [{"method": "GET", "url": f"https://api.test/items/{i}"} for i in range(10)]

    outcomes = await client.concurrent_requests(requests, concurrency=3)

    assert peak <= 3
    assert len(outcomes) == 10
    assert all(isinstance(o, BatchOutcome) for o in outcomes)
    assert {o.request.url for o in outcomes} == {r["url"] for r in requests}

    failed = [o for o in outcomes if not o.ok]
    assert len(failed) == 1
    assert failed[0].request.url.endswith("/items/5")
    assert "refused" in failed[0].error
    assert failed[0].to_wire().keys() == {"request", "error"}

    ok = next(o for o in outcomes if o.ok)
    assert ok.to_wire()["response"]["statusCode"] == 200


@pytest.mark.asyncio
async def test_concurrent_requests_per_item_options(
    make_client: Callable[..., ApiClient], sleeps: list[float]
) -> None:
    calls: dict[str, int] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        calls[request.url.path] = calls.get(request.url.path, 0) + 1
        if request.url.path == "/flaky":
            raise httpx.ConnectError("refused", request=request)
        assert request.headers["x-item"] == "b"
        return httpx.Response(201, json=None)

    client = make_client(handler)
    outcomes = await client.concurrent_requests([
        {"method": "GET", "url": "https://api.test/flaky", "opts": {"retries": 2, "backoff": 10}},
        {"method": "POST", "url": "https://api.test/ok", "opts": {"headers": {"X-Item": "b"}, "body": {"n": 1}}},
    ])

    assert calls == {"/flaky": 3, "/ok": 1}
    assert sorted(o.ok for o in outcomes) == [False, True]


@pytest.mark.asyncio
async def test_concurrent_requests_empty_and_invalid(make_client: Callable[..., ApiClient]) -> None:
    client = make_client(lambda r: httpx.Response(200))

    assert await client.concurrent_requests([]) == []
    with pytest.raises(RequestValidationError, match="requests.0"):
        await client.concurrent_requests([{"url": "https://api.test/"}])
    with pytest.raises(RequestValidationError):
        await client.concurrent_requests([{"method": "GET", "url": "https://api.test/"}], concurrency=0)
