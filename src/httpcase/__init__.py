"""httpcase - HTTP request execution engine behind a tool-dispatch interface.

A caller supplies a tool name and structured arguments; httpcase performs the
HTTP operation (verb request, multipart upload, concurrent batch, JSON Schema
validation, status assertion) and returns a normalized result.

Quick Start (Engine):
    >>> from httpcase import ApiClient
    >>>
    >>> async with ApiClient() as client:
    ...     resp = await client.get("https://api.example.com/users", retries=3, backoff=200)
    ...     client.assert_status(resp, 200)
    ...     resp.parsed_body
    [{'id': 1}]

Tool Dispatch:
    >>> from httpcase import execute_tool
    >>> await execute_tool(client, "post", {"url": "https://api.example.com/users", "body": {"name": "x"}})

Concurrent Fan-out:
    >>> outcomes = await client.concurrent_requests(
    ...     [{"method": "GET", "url": f"https://api.example.com/items/{i}"} for i in range(10)],
    ...     concurrency=3,
    ... )

MCP Server:
    >>> # MCP_TOOLS='["get", "post"]' python -m httpcase
    >>> from httpcase.__main__ import create_server
    >>> create_server().run()

Configuration (environment):
    HTTPCASE_HTTP_TIMEOUT_MS, HTTPCASE_HTTP_MAX_RETRIES, HTTPCASE_HTTP_BACKOFF_MS,
    HTTPCASE_HTTP_CONCURRENCY, HTTPCASE_LOG_LEVEL, HTTPCASE_LOG_FORMAT, MCP_TOOLS
"""

__version__ = "0.1.0"

from .foundation.config import HttpcaseSettings, clear_settings_cache, get_settings
from .foundation.errors import (
    ErrorCode,
    RequestCancelled,
    RequestValidationError,
    SchemaValidationUnavailable,
    StatusAssertionError,
    ToolError,
    ToolException,
    TransportError,
    TransportTimeout,
    UnknownToolError,
)
from .http import (
    ApiClient,
    BatchOutcome,
    BatchRequest,
    HttpTransport,
    MultipartFile,
    RequestDefaults,
    RequestSpec,
    ResponseResult,
    SchemaReport,
    SchemaValidator,
)
from .runtime.concurrency import CancelToken
from .runtime.observability import configure_logging, get_logger
from .runtime.retry import ExponentialBackoff, RetryPolicy
from .server import ApiToolServer
from .tools import ToolRegistry, ToolSpec, build_registry, execute_tool, parse_allowed_tools

__all__ = [
    # Engine
    "ApiClient", "HttpTransport", "RequestSpec", "RequestDefaults", "ResponseResult",
    "MultipartFile", "BatchRequest", "BatchOutcome", "SchemaReport", "SchemaValidator",
    "CancelToken", "RetryPolicy", "ExponentialBackoff",
    # Errors
    "ErrorCode", "ToolError", "ToolException", "RequestValidationError", "TransportError",
    "TransportTimeout", "RequestCancelled", "SchemaValidationUnavailable", "UnknownToolError",
    "StatusAssertionError",
    # Tools
    "ToolRegistry", "ToolSpec", "build_registry", "execute_tool", "parse_allowed_tools",
    "ApiToolServer",
    # Config / logging
    "HttpcaseSettings", "get_settings", "clear_settings_cache", "configure_logging", "get_logger",
]
