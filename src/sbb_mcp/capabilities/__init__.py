"""The SBB Transport capability catalog.

Declares every capability in one registry and binds each to its handler, so a
mismatch between the two is caught before the server accepts a connection.
"""

from sbb_mcp import __version__
from sbb_mcp.capabilities import connections, echo
from sbb_mcp.dispatch import DispatchTable
from sbb_mcp.registry import CapabilityRegistry
from sbb_mcp.server import McpServer
from sbb_mcp.settings import Settings
from sbb_mcp.utilities.http import HttpClientFactory, create_http_client

SERVER_NAME = "SBB Transport"


def build_registry() -> CapabilityRegistry:
    return CapabilityRegistry([*echo.DESCRIPTORS, connections.FIND_CONNECTION_TOOL])


def build_dispatch_table(
    settings: Settings | None = None,
    http_client_factory: HttpClientFactory = create_http_client,
) -> DispatchTable:
    if settings is None:
        settings = Settings()
    table = DispatchTable(build_registry())
    echo.register(table)
    connections.register(
        table,
        base_url=settings.transport_api_url,
        limit=settings.connection_limit,
        client_factory=http_client_factory,
    )
    table.check()
    return table


def create_server(
    settings: Settings | None = None,
    http_client_factory: HttpClientFactory = create_http_client,
) -> McpServer:
    """Build the protocol server with the full capability catalog."""
    return McpServer(
        name=SERVER_NAME,
        version=__version__,
        dispatch_table=build_dispatch_table(settings, http_client_factory),
    )


__all__ = ["SERVER_NAME", "build_dispatch_table", "build_registry", "create_server"]
