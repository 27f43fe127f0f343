"""MCP server adapter over the tool registry and dispatcher.

``invoke`` never raises: results are returned as JSON text and failures as
a rendered ToolError, so an agent always gets something it can read.

Example:
    >>> server = ApiToolServer("httpcase", build_registry(), ApiClient())
    >>> await server.invoke("get", {"url": "https://example.com"})
    '{"statusCode":200,...}'
    >>> server.run()  # stdio, requires fastmcp

Requires: pip install httpcase[mcp] (for run)
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping, Optional

import orjson
from pydantic import BaseModel

from httpcase.foundation.errors import ErrorCode, JsonDict, ToolError, ToolException
from httpcase.runtime.observability import get_logger

from .tools import ToolRegistry, ToolSpec, execute_tool

if TYPE_CHECKING:
    from .http import ApiClient

Transport = Literal["stdio", "sse", "streamable-http"]

log = get_logger("httpcase.server")


def to_jsonable(result: Any) -> Any:
    """Engine result -> plain JSON data (wire aliases for models)."""
    if hasattr(result, "to_wire"):
        return result.to_wire()
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True)
    if isinstance(result, (list, tuple)):
        return [to_jsonable(r) for r in result]
    return result


def render_result(result: Any) -> str:
    return orjson.dumps(to_jsonable(result), default=str).decode()


class ApiToolServer:
    """Serves the registry's tools, executing them on one ApiClient.

    Args:
        name: Server name advertised to clients
        registry: Tools to expose (already narrowed by the allow-list)
        client: Engine the tools run on
    """

    __slots__ = ("_name", "_registry", "_client", "_mcp")

    def __init__(self, name: str, registry: ToolRegistry, client: ApiClient) -> None:
        self._name = name
        self._registry = registry
        self._client = client
        self._mcp: Any = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def client(self) -> ApiClient:
        return self._client

    def list_tools(self) -> list[JsonDict]:
        """List all exposed tools with name, description and inputSchema."""
        return self._registry.list_tools()

    async def invoke(self, tool_name: str, params: Mapping[str, Any] | None) -> str:
        """Invoke a tool by name with parameters.

        Returns structured error string on failure instead of raising.
        """
        try:
            result = await execute_tool(self._client, tool_name, params, registry=self._registry)
        except ToolException as e:
            log.warning("tool failed", tool=tool_name, code=str(e.error.code), error=e.message)
            return e.error.render()
        except Exception as e:
            log.exception("tool crashed", tool=tool_name)
            return ToolError.create(tool_name, f"Execution failed: {e}", ErrorCode.UNKNOWN,
                                    recoverable=False, details=type(e).__name__).render()
        return render_result(result)

    # ─────────────────────────────────────────────────────────────────
    # FastMCP
    # ─────────────────────────────────────────────────────────────────

    def _create_server(self) -> Any:
        """Create FastMCP server and register tools."""
        try:
            from fastmcp import FastMCP
        except ImportError as e:
            raise ImportError(
                "MCP integration requires fastmcp. "
                "Install with: pip install httpcase[mcp]"
            ) from e

        mcp = FastMCP(self._name)
        for spec in self._registry:
            mcp.tool(name=spec.name, description=spec.description)(self._handler(spec))
        return mcp

    def _handler(self, spec: ToolSpec) -> Callable[..., Any]:
        """Async handler whose signature mirrors the tool's parameter model."""

        fields = spec.params_schema.model_fields
        required = {field.alias or fname for fname, field in fields.items() if field.is_required()}

        async def handler(**kwargs: Any) -> str:
            # Unset optionals arrive as None; required values pass through even when null
            args = {k: v for k, v in kwargs.items() if k in required or v is not None}
            return await self.invoke(spec.name, args)

        params = [
            inspect.Parameter(
                field.alias or fname,
                inspect.Parameter.KEYWORD_ONLY,
                default=inspect.Parameter.empty if field.is_required() else None,
                annotation=field.annotation if field.is_required() else Optional[field.annotation],
            )
            for fname, field in fields.items()
        ]
        handler.__name__ = spec.name
        handler.__doc__ = spec.description
        handler.__signature__ = inspect.Signature(params, return_annotation=str)  # type: ignore[attr-defined]
        handler.__annotations__ = {p.name: p.annotation for p in params} | {"return": str}
        return handler

    @property
    def fastmcp(self) -> Any:
        """Access underlying FastMCP instance (created on first use)."""
        if self._mcp is None:
            self._mcp = self._create_server()
        return self._mcp

    def run(self, transport: Transport = "stdio", *, host: str = "127.0.0.1", port: int = 8080) -> None:
        """Start MCP server.

        Args:
            transport: "stdio" (CLI), "sse" (HTTP), "streamable-http"
            host: Host for HTTP transports
            port: Port for HTTP transports
        """
        log.info("starting server", name=self._name, transport=transport, tools=len(self._registry))
        if transport == "stdio":
            self.fastmcp.run()
        else:
            self.fastmcp.run(transport=transport, host=host, port=port)
