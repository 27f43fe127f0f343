"""Tool layer: catalog, registry, allow-list and dispatcher.

Example:
    >>> from httpcase.tools import build_registry, execute_tool, parse_allowed_tools
    >>> registry = build_registry(parse_allowed_tools("get,post"))
    >>> result = await execute_tool(client, "get", {"url": "https://example.com"})
"""

from .allowed import parse_allowed_tools
from .catalog import TOOL_NAMES, TOOLS, build_registry
from .dispatch import execute_tool, parse_args
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

__all__ = [
    # Catalog
    "TOOLS", "TOOL_NAMES", "build_registry", "ToolRegistry", "ToolSpec",
    # Allow-list
    "parse_allowed_tools",
    # Dispatch
    "execute_tool", "parse_args",
    # Parameters
    "HttpRequestParams", "GetParams", "BodyParams", "UploadMultipartParams",
    "ValidateJsonSchemaParams", "ConcurrentRequestsParams", "AssertStatusParams",
]
