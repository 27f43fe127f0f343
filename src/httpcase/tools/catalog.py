"""The built-in tool catalog. Each name maps 1:1 to an ApiClient operation."""

from __future__ import annotations

from .params import (
    AssertStatusParams,
    BodyParams,
    ConcurrentRequestsParams,
    GetParams,
    HttpRequestParams,
    UploadMultipartParams,
    ValidateJsonSchemaParams,
)
from .registry import ToolRegistry, ToolSpec

TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="http_request",
        description="Make a generic HTTP request with method, headers, body, timeout and retry options.",
        params_schema=HttpRequestParams,
    ),
    ToolSpec(name="get", description="Convenience wrapper for GET requests.", params_schema=GetParams),
    ToolSpec(name="post", description="Convenience wrapper for POST requests.", params_schema=BodyParams),
    ToolSpec(name="put", description="Convenience wrapper for PUT requests.", params_schema=BodyParams),
    ToolSpec(name="delete", description="Convenience wrapper for DELETE requests.", params_schema=BodyParams),
    ToolSpec(
        name="upload_multipart",
        description="Upload files via multipart/form-data. Supports file paths or base64 content.",
        params_schema=UploadMultipartParams,
    ),
    ToolSpec(
        name="validate_json_schema",
        description="Validate JSON data against a JSON Schema. Fails if jsonschema is not installed.",
        params_schema=ValidateJsonSchemaParams,
    ),
    ToolSpec(
        name="concurrent_requests",
        description="Run many requests concurrently with configurable concurrency.",
        params_schema=ConcurrentRequestsParams,
    ),
    ToolSpec(
        name="assert_status",
        description="Assert that a response status matches expected value(s).",
        params_schema=AssertStatusParams,
    ),
)

TOOL_NAMES: frozenset[str] = frozenset(t.name for t in TOOLS)


def build_registry(allowed: frozenset[str] | None = None) -> ToolRegistry:
    """Catalog registry, optionally narrowed to an allow-list."""
    return ToolRegistry(TOOLS).filtered(allowed)
