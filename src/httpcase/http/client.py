"""ApiClient: the request execution engine behind every tool.

Composes the transport invoker, retry coordinator, multipart assembler,
fan-out engine and schema validation capability into the operations the
tool layer dispatches to.

Example:
    >>> async with ApiClient() as client:
    ...     resp = await client.get("https://api.example.com/users", retries=2)
    ...     client.assert_status(resp, [200, 304])
    ...     report = client.validate_json_schema(resp.parsed_body, {"type": "array"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from httpcase.foundation.errors import (
    JsonDict,
    RequestValidationError,
    StatusAssertionError,
    format_validation_error,
)
from httpcase.runtime.batch import fan_out
from httpcase.runtime.observability import get_logger, timed
from httpcase.runtime.retry import RetryPolicy, execute_with_retry

from . import multipart
from .models import (
    BatchOutcome,
    BatchRequest,
    MultipartFile,
    RequestDefaults,
    RequestSpec,
    ResponseResult,
    check_http_url,
)
from .schema import SchemaReport, SchemaValidator, load_default_validator
from .transport import DEFAULT_HEADERS, HttpTransport, merge_headers

if TYPE_CHECKING:
    from httpcase.foundation.config import HttpcaseSettings
    from httpcase.runtime.concurrency import CancelToken

log = get_logger("httpcase.client")

_BatchAdapter: TypeAdapter[list[BatchRequest]] = TypeAdapter(list[BatchRequest])
_STATUS_KEYS = ("statusCode", "status_code", "status")


class ApiClient:
    """HTTP request engine with retry, multipart upload and bounded fan-out.

    Engine defaults are fixed at construction (``RequestDefaults``); per-call
    arguments override them. Times are milliseconds throughout.

    Args:
        defaults: Default headers, timeout, retries, backoff and concurrency
        transport: An ``HttpTransport``, or an httpx transport to build one on
            (tests pass ``httpx.MockTransport``)
        schema_validator: JSON Schema capability; loaded lazily when omitted
    """

    __slots__ = ("_defaults", "_transport", "_schema_validator")

    def __init__(
        self,
        defaults: RequestDefaults | None = None,
        *,
        transport: HttpTransport | httpx.AsyncBaseTransport | None = None,
        schema_validator: SchemaValidator | None = None,
        verify_ssl: bool = True,
        follow_redirects: bool = True,
    ) -> None:
        self._defaults = defaults or RequestDefaults()
        if isinstance(transport, HttpTransport):
            self._transport = transport
        else:
            self._transport = HttpTransport(
                merge_headers(DEFAULT_HEADERS, self._defaults.headers),
                transport=transport,
                verify_ssl=verify_ssl,
                follow_redirects=follow_redirects,
            )
        self._schema_validator = schema_validator

    @classmethod
    def from_settings(
        cls,
        settings: HttpcaseSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ApiClient:
        """Build a client from loaded settings."""
        http = settings.http
        defaults = RequestDefaults(
            headers=http.default_headers,
            timeout_ms=http.timeout_ms,
            max_retries=http.max_retries,
            backoff_ms=http.backoff_ms,
            concurrency=http.concurrency,
        )
        return cls(defaults, transport=transport, verify_ssl=http.verify_ssl,
                   follow_redirects=http.follow_redirects)

    @property
    def defaults(self) -> RequestDefaults:
        return self._defaults

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    def build_spec(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        timeout: int | None = None,
        retries: int | None = None,
        backoff: int | None = None,
    ) -> RequestSpec:
        """Resolve per-call arguments against the engine defaults."""
        d = self._defaults
        try:
            return RequestSpec(
                method=method,
                url=url,
                headers=dict(headers or {}),
                body=body,
                timeout_ms=d.timeout_ms if timeout is None else timeout,
                max_retries=d.max_retries if retries is None else retries,
                backoff_ms=d.backoff_ms if backoff is None else backoff,
            )
        except ValidationError as e:
            raise RequestValidationError(format_validation_error(e)) from e

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        timeout: int | None = None,
        retries: int | None = None,
        backoff: int | None = None,
        cancel: CancelToken | None = None,
    ) -> ResponseResult:
        """Execute one request with retry on transport failure.

        Any HTTP status is returned as a result. Only TransportError (and
        TransportTimeout) is retried; after the last attempt it propagates
        unchanged.
        """
        spec = self.build_spec(method, url, headers=headers, body=body,
                               timeout=timeout, retries=retries, backoff=backoff)
        return await self.send(spec, cancel=cancel)

    async def send(self, spec: RequestSpec, *, cancel: CancelToken | None = None) -> ResponseResult:
        """Execute an already-resolved RequestSpec."""
        policy = RetryPolicy.from_ms(spec.max_retries, spec.backoff_ms)
        return await execute_with_retry(
            lambda: self._transport.send(spec, cancel=cancel),
            policy,
            cancel=cancel,
            name=f"{spec.method} {spec.url}",
        )

    async def get(self, url: str, **kwargs: Any) -> ResponseResult:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs: Any) -> ResponseResult:
        return await self.request("POST", url, body=body, **kwargs)

    async def put(self, url: str, body: Any = None, **kwargs: Any) -> ResponseResult:
        return await self.request("PUT", url, body=body, **kwargs)

    async def delete(self, url: str, body: Any = None, **kwargs: Any) -> ResponseResult:
        return await self.request("DELETE", url, body=body, **kwargs)

    # ─────────────────────────────────────────────────────────────────
    # Multipart
    # ─────────────────────────────────────────────────────────────────

    @timed(log, level="debug", event="multipart upload")
    async def upload_multipart(
        self,
        url: str,
        files: Iterable[MultipartFile | Mapping[str, object]],
        fields: Mapping[str, str] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: int | None = None,
        cancel: CancelToken | None = None,
    ) -> ResponseResult:
        """POST a multipart/form-data body. Single attempt, never retried.

        Every descriptor is validated before any file is opened or any byte
        sent; a bad descriptor raises RequestValidationError.
        """
        try:
            url = check_http_url(url)
        except ValueError as e:
            raise RequestValidationError(f"url: {e}", tool_name="upload_multipart") from e
        return await multipart.upload_multipart(
            self._transport, url, files, fields,
            headers=headers,
            timeout_ms=self._defaults.timeout_ms if timeout is None else timeout,
            cancel=cancel,
        )

    # ─────────────────────────────────────────────────────────────────
    # Fan-out
    # ─────────────────────────────────────────────────────────────────

    async def concurrent_requests(
        self,
        requests: Iterable[BatchRequest | Mapping[str, object]],
        concurrency: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> list[BatchOutcome]:
        """Run independent requests with at most ``concurrency`` in flight.

        Returns one outcome per input in completion order. A failing item
        becomes ``{request, error}`` and never fails the batch.
        """
        try:
            items = _BatchAdapter.validate_python(list(requests))
        except ValidationError as e:
            raise RequestValidationError(format_validation_error(e, prefix="requests"),
                                         tool_name="concurrent_requests") from e

        async def run(item: BatchRequest) -> ResponseResult:
            o = item.opts
            return await self.request(item.method, item.url, headers=o.headers, body=o.body,
                                      timeout=o.timeout, retries=o.retries, backoff=o.backoff,
                                      cancel=cancel)

        result = await fan_out(
            items, run,
            concurrency=self._defaults.concurrency if concurrency is None else concurrency,
        )
        return [
            BatchOutcome(request=i.item, response=i.value) if i.is_ok
            else BatchOutcome(request=i.item, error=str(i.error))
            for i in result
        ]

    # ─────────────────────────────────────────────────────────────────
    # Checks
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def assert_status(response: ResponseResult | Mapping[str, Any], expected: int | Sequence[int]) -> bool:
        """Return True if the response status is one of ``expected``.

        Accepts a ResponseResult or a mapping carrying ``statusCode``,
        ``status_code`` or ``status``.

        Raises:
            StatusAssertionError: status missing or not expected
        """
        allowed = [expected] if isinstance(expected, int) else list(expected)
        actual = _status_of(response)
        if actual not in allowed:
            raise StatusAssertionError(actual, allowed)
        return True

    def validate_json_schema(self, data: Any, schema: JsonDict) -> SchemaReport:
        """Validate ``data`` against ``schema`` and report every error.

        Raises:
            SchemaValidationUnavailable: jsonschema is not installed
            RequestValidationError: the schema itself is invalid
        """
        if self._schema_validator is None:
            self._schema_validator = load_default_validator()
        return self._schema_validator.validate(data, schema)


def _status_of(response: ResponseResult | Mapping[str, Any]) -> object:
    if isinstance(response, ResponseResult):
        return response.status_code
    if isinstance(response, Mapping):
        return next((response[k] for k in _STATUS_KEYS if k in response), None)
    return getattr(response, "status_code", None)
