"""Tests for response normalization."""

from __future__ import annotations

import httpx
import pytest

from httpcase.http import ResponseResult, flatten_headers, normalize_response, parse_body


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('{"a": [1, 2]}', {"a": [1, 2]}),
        ("[1, 2, 3]", [1, 2, 3]),
        ("42", 42),
        ("not json {", "not json {"),
        ("<html></html>", "<html></html>"),
        ("", None),
    ],
)
def test_parse_body(text: str, expected: object) -> None:
    assert parse_body(text) == expected


@pytest.mark.parametrize(("status", "ok"), [(199, False), (200, True), (204, True), (299, True), (300, False), (404, False)])
def test_is_success_is_2xx(status: int, ok: bool) -> None:
    assert normalize_response(status, {}, "", 1.0).is_success is ok


def test_duplicate_headers_are_joined() -> None:
    flat = flatten_headers([("Set-Cookie", "a=1"), ("set-cookie", "b=2"), ("X-One", "1")])
    assert flat == {"set-cookie": "a=1, b=2", "x-one": "1"}


def test_httpx_headers_flatten() -> None:
    headers = httpx.Headers([("Vary", "Accept"), ("Vary", "Origin"), ("ETag", "x")])
    assert flatten_headers(headers) == {"vary": "Accept, Origin", "etag": "x"}


def test_normalized_result_shape() -> None:
    result = normalize_response(201, [("Content-Type", "application/json")], '{"id": 1}', 12.6)

    assert isinstance(result, ResponseResult)
    assert result.elapsed_ms == 13
    assert result.raw_body == '{"id": 1}'
    assert result.header("content-type") == "application/json"
    assert result.to_wire() == {
        "statusCode": 201,
        "isSuccess": True,
        "headers": {"content-type": "application/json"},
        "parsedBody": {"id": 1},
        "rawBody": '{"id": 1}',
        "elapsedMs": 13,
    }


def test_negative_elapsed_clamped() -> None:
    assert normalize_response(200, {}, "", -3.0).elapsed_ms == 0


def test_result_is_frozen() -> None:
    result = normalize_response(200, {}, "", 0)
    with pytest.raises(ValueError):
        result.status_code = 500  # type: ignore[misc]
