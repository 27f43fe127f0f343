"""Transport invoker: exactly one HTTP attempt per call.

Wraps an ``httpx.AsyncClient`` with:
- Default header merge (caller keys win, case-insensitive)
- JSON body encoding with Content-Type defaulting
- A status+headers deadline that aborts the in-flight call
- Cancel-token support
- Mapping of httpx failures to TransportError / TransportTimeout

No retries happen here; see ``httpcase.runtime.retry``.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Mapping

import httpx
import orjson

from httpcase.foundation.config import DEFAULT_ACCEPT, DEFAULT_USER_AGENT
from httpcase.foundation.errors import RequestValidationError, TransportError, TransportTimeout
from httpcase.runtime.concurrency import CancelToken, run_cancellable
from httpcase.runtime.observability import get_logger

from .models import JsonBody, RawBody, RequestSpec, ResponseResult
from .normalize import normalize_httpx

if TYPE_CHECKING:
    from typing import Any

log = get_logger("httpcase.transport")

DEFAULT_HEADERS: Mapping[str, str] = {"User-Agent": DEFAULT_USER_AGENT, "Accept": DEFAULT_ACCEPT}
JSON_CONTENT_TYPE = "application/json"


def merge_headers(defaults: Mapping[str, str], overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Merge ``overrides`` over ``defaults``; a caller key replaces any default spelled differently."""
    merged = dict(defaults)
    for key, value in (overrides or {}).items():
        for existing in [k for k in merged if k.lower() == key.lower()]:
            del merged[existing]
        merged[key] = value
    return merged


def has_header(headers: Mapping[str, str], name: str) -> bool:
    name = name.lower()
    return any(k.lower() == name for k in headers)


def drop_header(headers: Mapping[str, str], name: str) -> dict[str, str]:
    name = name.lower()
    return {k: v for k, v in headers.items() if k.lower() != name}


def encode_body(spec: RequestSpec, headers: dict[str, str]) -> bytes | None:
    """Encode the tagged body; sets Content-Type for JSON unless the caller did."""
    match spec.body:
        case JsonBody(value=value):
            if not has_header(headers, "Content-Type"):
                headers["Content-Type"] = JSON_CONTENT_TYPE
            return orjson.dumps(value)
        case RawBody(data=data):
            return data
        case _:
            return None


class HttpTransport:
    """Single-attempt HTTP invoker over a lazily created httpx client.

    Example:
        >>> transport = HttpTransport()
        >>> result = await transport.send(RequestSpec(method="GET", url="https://api.example.com"))
        >>> result.status_code
        200

        >>> # Tests inject an httpx transport instead of touching the network
        >>> transport = HttpTransport(transport=httpx.MockTransport(handler))
    """

    __slots__ = ("_defaults", "_client", "_owns_client", "_client_kwargs")

    def __init__(
        self,
        default_headers: Mapping[str, str] | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        verify_ssl: bool = True,
        follow_redirects: bool = True,
    ) -> None:
        self._defaults: Mapping[str, str] = dict(DEFAULT_HEADERS if default_headers is None else default_headers)
        self._client = client
        self._owns_client = client is None
        self._client_kwargs: dict[str, Any] = {
            "transport": transport,
            "verify": verify_ssl,
            "follow_redirects": follow_redirects,
        }

    @property
    def default_headers(self) -> Mapping[str, str]:
        return dict(self._defaults)

    def build_headers(self, overrides: Mapping[str, str] | None) -> dict[str, str]:
        return merge_headers(self._defaults, overrides)

    # ─────────────────────────────────────────────────────────────────
    # HTTP Client
    # ─────────────────────────────────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx async client."""
        if self._client is None:
            kwargs = {k: v for k, v in self._client_kwargs.items() if v is not None}
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def aclose(self) -> None:
        """Close the httpx client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def send(self, spec: RequestSpec, *, cancel: CancelToken | None = None) -> ResponseResult:
        """Perform one attempt for ``spec``."""
        headers = self.build_headers(spec.headers)
        content = encode_body(spec, headers)
        return await self.dispatch(spec.method, spec.url, timeout_ms=spec.timeout_ms,
                                   cancel=cancel, headers=headers, content=content)

    async def dispatch(
        self,
        method: str,
        url: str,
        *,
        timeout_ms: int,
        cancel: CancelToken | None = None,
        **request_kwargs: Any,
    ) -> ResponseResult:
        """Build and send one request with already-resolved headers and body.

        ``request_kwargs`` go straight to ``httpx.AsyncClient.build_request``
        (headers, content, data, files).
        """
        if cancel is not None:
            cancel.raise_if_cancelled()
        client = self._get_client()
        timeout_s = timeout_ms / 1000
        try:
            request = client.build_request(method, url, timeout=httpx.Timeout(timeout_s), **request_kwargs)
        except httpx.InvalidURL as e:
            raise RequestValidationError(f"Invalid URL {url!r}: {e}") from e

        bound = log.bind_request(method, url)
        bound.debug("sending request", timeout_ms=timeout_ms)
        start = time.perf_counter()
        try:
            return await run_cancellable(self._exchange(client, request, timeout_s, start), cancel)
        except TimeoutError as e:
            bound.warning("request timed out", timeout_ms=timeout_ms)
            raise TransportTimeout(f"Request timed out after {timeout_ms}ms", cause=e) from e
        except httpx.TimeoutException as e:
            bound.warning("request timed out", timeout_ms=timeout_ms)
            raise TransportTimeout(f"Request timed out after {timeout_ms}ms: {e}", cause=e) from e
        except httpx.HTTPError as e:
            bound.warning("transport error", error=f"{type(e).__name__}: {e}")
            raise TransportError(f"{type(e).__name__}: {e}" if str(e) else type(e).__name__, cause=e) from e

    async def _exchange(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        timeout_s: float,
        start: float,
    ) -> ResponseResult:
        # The deadline covers status + headers; httpx's own read timeout bounds the body.
        response = await asyncio.wait_for(client.send(request, stream=True), timeout=timeout_s)
        elapsed_ms = (time.perf_counter() - start) * 1000
        try:
            await response.aread()
        finally:
            await response.aclose()
        result = normalize_httpx(response, elapsed_ms)
        log.debug("response received", method=request.method, url=str(request.url),
                  status=result.status_code, elapsed_ms=result.elapsed_ms)
        return result
