"""Tests for the tool layer: allow-list, registry, dispatcher."""

from __future__ import annotations

from typing import Callable

import httpx
import orjson
import pytest

from httpcase.foundation.errors import RequestValidationError, StatusAssertionError, UnknownToolError
from httpcase.http import ApiClient, BatchOutcome, ResponseResult
from httpcase.tools import TOOL_NAMES, ToolRegistry, build_registry, execute_tool, parse_allowed_tools


# ─────────────────────────────────────────────────────────────────────────────
# Allow-list
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("", None),
        ("   ", None),
        ('["get", "post"]', frozenset({"get", "post"})),
        ('[" get ", "", 3]', frozenset({"get"})),
        ("[]", None),
        ('"*"', None),
        ("*", None),
        ('"get"', frozenset({"get"})),
        ("get, post , ,put", frozenset({"get", "post", "put"})),
        (",", None),
    ],
)
def test_parse_allowed_tools(raw: str | None, expected: frozenset[str] | None) -> None:
    assert parse_allowed_tools(raw) == expected


# ─────────────────────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────────────────────


def test_catalog_lists_every_tool() -> None:
    registry = build_registry()
    assert set(registry.names()) == TOOL_NAMES == {
        "http_request", "get", "post", "put", "delete", "upload_multipart",
        "validate_json_schema", "concurrent_requests", "assert_status",
    }


def test_input_schemas_use_wire_names() -> None:
    tools = {t["name"]: t for t in build_registry().list_tools()}

    http_request = tools["http_request"]["inputSchema"]
    assert set(http_request["required"]) == {"method", "url"}
    assert {"headers", "body", "timeout", "retries", "backoff"} <= set(http_request["properties"])
    assert "body" not in tools["get"]["inputSchema"]["properties"]
    assert set(tools["validate_json_schema"]["inputSchema"]["required"]) == {"data", "schema"}
    assert set(tools["upload_multipart"]["inputSchema"]["required"]) == {"url", "files"}
    assert "fieldName" in orjson.dumps(tools["upload_multipart"]["inputSchema"]).decode()
    assert all(t["description"] for t in tools.values())


def test_filtered_registry_keeps_catalog_order() -> None:
    registry = build_registry(frozenset({"post", "get", "nonexistent"}))
    assert registry.names() == ["get", "post"]
    assert "put" not in registry
    assert len(build_registry(None)) == len(TOOL_NAMES)


def test_duplicate_registration_rejected() -> None:
    registry = build_registry()
    with pytest.raises(ValueError, match="already registered"):
        registry.register(registry["get"])
    assert registry.unregister("get") is True
    assert registry.unregister("get") is False
    assert isinstance(ToolRegistry().filtered(None), ToolRegistry)


# ─────────────────────────────────────────────────────────────────────────────
# Dispatcher
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def echo_client(make_client: Callable[..., ApiClient]) -> ApiClient:
    def handler(request: httpx.Request) -> httpx.Response:
        body = orjson.loads(request.content) if request.content else None
        return httpx.Response(200, json={"method": request.method, "path": request.url.path, "body": body})

    return make_client(handler)


@pytest.mark.asyncio
async def test_unknown_tool(echo_client: ApiClient) -> None:
    with pytest.raises(UnknownToolError, match="Unknown tool: nope"):
        await execute_tool(echo_client, "nope", {})


@pytest.mark.asyncio
async def test_tool_outside_registry_is_unknown(echo_client: ApiClient) -> None:
    with pytest.raises(UnknownToolError, match="Unknown tool: post"):
        await execute_tool(echo_client, "post", {"url": "https://api.test/"}, registry=build_registry(frozenset({"get"})))


@pytest.mark.asyncio
async def test_invalid_arguments(echo_client: ApiClient) -> None:
    with pytest.raises(RequestValidationError, match="url"):
        await execute_tool(echo_client, "get", {})
    with pytest.raises(RequestValidationError, match="retries"):
        await execute_tool(echo_client, "get", {"url": "https://api.test/", "retries": -1})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("tool", "args", "method", "body"),
    [
        ("http_request", {"method": "patch", "url": "https://api.test/x", "body": {"a": 1}}, "PATCH", {"a": 1}),
        ("get", {"url": "https://api.test/x"}, "GET", None),
        ("post", {"url": "https://api.test/x", "body": {"b": 2}}, "POST", {"b": 2}),
        ("put", {"url": "https://api.test/x", "body": [1]}, "PUT", [1]),
        ("delete", {"url": "https://api.test/x"}, "DELETE", None),
    ],
)
async def test_request_tools(echo_client: ApiClient, tool: str, args: dict, method: str, body: object) -> None:
    result = await execute_tool(echo_client, tool, args)
    assert isinstance(result, ResponseResult)
    assert result.parsed_body == {"method": method, "path": "/x", "body": body}


@pytest.mark.asyncio
async def test_concurrent_requests_tool(echo_client: ApiClient) -> None:
    result = await execute_tool(echo_client, "concurrent_requests", {
        "requests": [{"method": "GET", "url": f"https://api.test/{i}"} for i in range(4)],
        "concurrency": 2,
    })
    assert len(result) == 4
    assert all(isinstance(o, BatchOutcome) and o.ok for o in result)


@pytest.mark.asyncio
async def test_upload_tool(echo_client: ApiClient) -> None:
    with pytest.raises(RequestValidationError, match="files.0"):
        await execute_tool(echo_client, "upload_multipart", {"url": "https://api.test/u", "files": [{"fieldName": "f"}]})


@pytest.mark.asyncio
async def test_assert_status_tool(echo_client: ApiClient) -> None:
    assert await execute_tool(echo_client, "assert_status", {"response": {"statusCode": 200}, "expected": [200, 204]}) is True
    with pytest.raises(StatusAssertionError, match="Expected: 201"):
        await execute_tool(echo_client, "assert_status", {"response": {"statusCode": 200}, "expected": 201})


@pytest.mark.asyncio
async def test_validate_json_schema_tool(echo_client: ApiClient) -> None:
    pytest.importorskip("jsonschema")
    report = await execute_tool(echo_client, "validate_json_schema", {"data": "x", "schema": {"type": "integer"}})
    assert report.valid is False
    assert len(report.errors) == 1
