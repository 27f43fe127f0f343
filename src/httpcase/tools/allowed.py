"""Tool allow-list parsing.

The allow-list arrives as one configuration string (``MCP_TOOLS``) and is
resolved once at startup into an optional set of tool names; ``None``
means every tool is exposed.

Accepted forms:
    '["get", "post"]'   JSON array of names
    '"*"' or '*'        every tool
    'get, post,,put'    comma-separated, blanks dropped
"""

from __future__ import annotations

from collections.abc import Iterable

import orjson

WILDCARD = "*"


def parse_allowed_tools(raw: str | None) -> frozenset[str] | None:
    """Resolve an allow-list string to a set of names, or None for all tools."""
    if raw is None or not (text := raw.strip()):
        return None
    try:
        parsed = orjson.loads(text)
    except orjson.JSONDecodeError:
        return _from_names(text.split(","))

    match parsed:
        case list():
            return _from_names(p for p in parsed if isinstance(p, str))
        case str():
            return _from_names([parsed])
        case _:
            return _from_names(text.split(","))


def _from_names(names: Iterable[str]) -> frozenset[str] | None:
    cleaned = frozenset(n.strip() for n in names if n.strip())
    if not cleaned or WILDCARD in cleaned:
        return None
    return cleaned
