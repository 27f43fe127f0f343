"""Tests for the transport invoker: headers, body encoding, timeout, failures, cancellation."""

from __future__ import annotations

import asyncio

import httpx
import orjson
import pytest

from httpcase.foundation.errors import RequestCancelled, RequestValidationError, TransportError, TransportTimeout
from httpcase.http import DEFAULT_HEADERS, HttpTransport, RequestSpec, merge_headers
from httpcase.runtime.concurrency import CancelToken


# ─────────────────────────────────────────────────────────────────────────────
# Header merge
# ─────────────────────────────────────────────────────────────────────────────


def test_merge_headers_caller_wins_case_insensitively() -> None:
    merged = merge_headers(DEFAULT_HEADERS, {"user-agent": "custom/2.0", "X-Trace": "abc"})
    assert merged["user-agent"] == "custom/2.0"
    assert "User-Agent" not in merged
    assert merged["Accept"] == DEFAULT_HEADERS["Accept"]
    assert merged["X-Trace"] == "abc"


def test_merge_headers_without_overrides_copies_defaults() -> None:
    merged = merge_headers(DEFAULT_HEADERS, None)
    assert merged == dict(DEFAULT_HEADERS)
    assert merged is not DEFAULT_HEADERS


@pytest.mark.asyncio
async def test_default_headers_sent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    await transport.send(RequestSpec(method="get", url="https://api.test/ping"))

    req = seen[0]
    assert req.method == "GET"
    assert req.headers["user-agent"] == "httpcase/1.0"
    assert req.headers["accept"].startswith("application/json")
    await transport.aclose()


# ─────────────────────────────────────────────────────────────────────────────
# Body encoding
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_json_body_sets_content_type() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 7})

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    result = await transport.send(RequestSpec(method="POST", url="https://api.test/items", body={"name": "x"}))

    assert seen[0].headers["content-type"] == "application/json"
    assert orjson.loads(seen[0].content) == {"name": "x"}
    assert result.status_code == 201
    assert result.parsed_body == {"id": 7}


@pytest.mark.asyncio
async def test_caller_content_type_is_kept() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    spec = RequestSpec(method="POST", url="https://api.test/items", body={"a": 1},
                       headers={"content-type": "application/vnd.api+json"})
    await transport.send(spec)

    assert seen[0].headers.get_list("content-type") == ["application/vnd.api+json"]


@pytest.mark.asyncio
async def test_string_body_sent_raw() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    await transport.send(RequestSpec(method="PUT", url="https://api.test/raw", body="plain text"))

    assert seen[0].content == b"plain text"
    assert "content-type" not in seen[0].headers


def test_request_spec_rejects_non_http_url() -> None:
    with pytest.raises(ValueError, match="http:// or https://"):
        RequestSpec(method="GET", url="ftp://files.test/x")


# ─────────────────────────────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_http_error_status_is_a_result() -> None:
    transport = HttpTransport(transport=httpx.MockTransport(lambda r: httpx.Response(503, text="down")))
    result = await transport.send(RequestSpec(method="GET", url="https://api.test/"))
    assert result.status_code == 503
    assert result.is_success is False
    assert result.parsed_body == "down"


@pytest.mark.asyncio
async def test_connect_error_maps_to_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError) as info:
        await transport.send(RequestSpec(method="GET", url="https://api.test/"))

    assert not isinstance(info.value, TransportTimeout)
    assert isinstance(info.value.cause, httpx.ConnectError)
    assert isinstance(info.value.__cause__, httpx.ConnectError)
    assert info.value.error.recoverable is True


@pytest.mark.asyncio
async def test_slow_response_times_out() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    transport = HttpTransport(transport=httpx.MockTransport(handler))
    with pytest.raises(TransportTimeout, match="timed out after 50ms"):
        await transport.send(RequestSpec(method="GET", url="https://api.test/slow", timeout_ms=50))


@pytest.mark.asyncio
async def test_invalid_url_is_validation_error() -> None:
    transport = HttpTransport(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with pytest.raises(RequestValidationError):
        await transport.dispatch("GET", "http://example.com:notaport/", timeout_ms=1000)


# ─────────────────────────────────────────────────────────────────────────────
# Cancellation
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_cancel_aborts_in_flight_request() -> None:
    finished = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        finished.set()
        return httpx.Response(200)

    token = CancelToken()
    asyncio.get_running_loop().call_later(0.05, token.cancel)
    transport = HttpTransport(transport=httpx.MockTransport(handler))

    with pytest.raises(RequestCancelled):
        await transport.send(RequestSpec(method="GET", url="https://api.test/slow"), cancel=token)
    assert not finished.is_set()


@pytest.mark.asyncio
@pytest.mark.filterwarnings("error::RuntimeWarning")
@pytest.mark.filterwarnings("error::pytest.PytestUnraisableExceptionWarning")
async def test_already_cancelled_token_sends_nothing() -> None:
    calls: list[httpx.Request] = []
    token = CancelToken()
    token.cancel("user abort")

    transport = HttpTransport(transport=httpx.MockTransport(lambda r: calls.append(r) or httpx.Response(200)))
    with pytest.raises(RequestCancelled, match="user abort"):
        await transport.send(RequestSpec(method="GET", url="https://api.test/"), cancel=token)
    assert calls == []
