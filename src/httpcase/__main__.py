"""Run the httpcase tool server.

Configuration comes from the environment (see ``httpcase.foundation.config``):

    MCP_TOOLS=get,post HTTPCASE_LOG_FORMAT=json python -m httpcase
"""

from __future__ import annotations

from httpcase.foundation.config import HttpcaseSettings, get_settings
from httpcase.http import ApiClient
from httpcase.runtime.observability import configure_logging
from httpcase.server import ApiToolServer
from httpcase.tools import build_registry, parse_allowed_tools


def create_server(settings: HttpcaseSettings | None = None) -> ApiToolServer:
    """Wire settings, allow-list, registry and client into a server."""
    settings = settings or get_settings()
    registry = build_registry(parse_allowed_tools(settings.tools))
    return ApiToolServer(settings.server.name, registry, ApiClient.from_settings(settings))


def main() -> None:
    settings = get_settings()
    configure_logging(settings.logging.format, "DEBUG" if settings.debug else settings.logging.level)
    server = create_server(settings)
    server.run(settings.server.transport, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
