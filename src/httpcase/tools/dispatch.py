"""Tool dispatcher: tool name + raw arguments -> engine operation.

Arguments are validated against the tool's parameter model first, so a
malformed call fails with RequestValidationError before any I/O. Engine
results are returned as-is; serialization is the server's job.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from pydantic import BaseModel, ValidationError

from httpcase.foundation.errors import RequestValidationError, UnknownToolError, format_validation_error

from .catalog import TOOLS
from .params import (
    AssertStatusParams,
    BodyParams,
    ConcurrentRequestsParams,
    GetParams,
    HttpRequestParams,
    UploadMultipartParams,
    ValidateJsonSchemaParams,
)
from .registry import ToolRegistry

if TYPE_CHECKING:
    from httpcase.http import ApiClient
    from httpcase.runtime.concurrency import CancelToken

_DEFAULT_REGISTRY = ToolRegistry(TOOLS)


def parse_args(name: str, args: Mapping[str, Any] | None, registry: ToolRegistry | None = None) -> BaseModel:
    """Validate raw arguments against the named tool's parameter model."""
    spec = (registry or _DEFAULT_REGISTRY).get(name)
    if spec is None:
        raise UnknownToolError(name)
    try:
        return spec.params_schema.model_validate(dict(args or {}))
    except ValidationError as e:
        raise RequestValidationError(format_validation_error(e), tool_name=name) from e


async def execute_tool(
    client: ApiClient,
    name: str,
    args: Mapping[str, Any] | None,
    *,
    registry: ToolRegistry | None = None,
    cancel: CancelToken | None = None,
) -> Any:
    """Run tool ``name`` against ``client``.

    Raises:
        UnknownToolError: no such tool (or not in ``registry``)
        RequestValidationError: arguments do not match the tool's parameters
        TransportError / TransportTimeout / RequestCancelled: from the engine
        StatusAssertionError: from ``assert_status``
    """
    params = parse_args(name, args, registry)
    match name, params:
        case "http_request", HttpRequestParams() as p:
            return await client.request(p.method, p.url, body=p.body, cancel=cancel, **p.options())
        case "get", GetParams() as p:
            return await client.get(p.url, cancel=cancel, **p.options())
        case "post", BodyParams() as p:
            return await client.post(p.url, p.body, cancel=cancel, **p.options())
        case "put", BodyParams() as p:
            return await client.put(p.url, p.body, cancel=cancel, **p.options())
        case "delete", BodyParams() as p:
            return await client.delete(p.url, p.body, cancel=cancel, **p.options())
        case "upload_multipart", UploadMultipartParams() as p:
            return await client.upload_multipart(p.url, p.files, p.fields, headers=p.headers,
                                                 timeout=p.timeout, cancel=cancel)
        case "validate_json_schema", ValidateJsonSchemaParams() as p:
            return client.validate_json_schema(p.data, p.json_schema)
        case "concurrent_requests", ConcurrentRequestsParams() as p:
            return await client.concurrent_requests(p.requests, p.concurrency, cancel=cancel)
        case "assert_status", AssertStatusParams() as p:
            return client.assert_status(p.response, p.expected)
        case _:
            raise UnknownToolError(name)
