from sbb_mcp.utilities.http import HttpClientFactory, create_http_client
from sbb_mcp.utilities.logging import configure_logging

__all__ = ["HttpClientFactory", "configure_logging", "create_http_client"]
