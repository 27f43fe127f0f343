"""Response normalization: raw transport response -> ResponseResult."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import orjson

from httpcase.foundation.errors import JsonValue

from .models import ResponseResult

if TYPE_CHECKING:
    import httpx


def parse_body(text: str) -> JsonValue | None:
    """Best-effort JSON parse. Empty text is None; unparseable text is returned unchanged."""
    if not text:
        return None
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        return text


def flatten_headers(headers: httpx.Headers | Iterable[tuple[str, str]] | dict[str, str]) -> dict[str, str]:
    """Flatten a header set to a plain dict.

    Names are lowercased; repeated names are joined with ", ".
    """
    items = headers.multi_items() if hasattr(headers, "multi_items") else (
        headers.items() if isinstance(headers, dict) else headers
    )
    out: dict[str, str] = {}
    for name, value in items:
        key = name.lower()
        out[key] = f"{out[key]}, {value}" if key in out else value
    return out


def normalize_response(
    status_code: int,
    headers: httpx.Headers | Iterable[tuple[str, str]] | dict[str, str],
    text: str,
    elapsed_ms: float,
) -> ResponseResult:
    return ResponseResult(
        status_code=status_code,
        is_success=200 <= status_code < 300,
        headers=flatten_headers(headers),
        parsed_body=parse_body(text),
        raw_body=text,
        elapsed_ms=max(0, round(elapsed_ms)),
    )


def normalize_httpx(response: httpx.Response, elapsed_ms: float) -> ResponseResult:
    """Normalize an httpx response whose body has already been read."""
    return normalize_response(response.status_code, response.headers, response.text, elapsed_ms)
