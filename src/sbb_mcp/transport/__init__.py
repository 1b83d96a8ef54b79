from sbb_mcp.transport.sse import SseServerTransport
from sbb_mcp.transport.stdio import stdio_server

__all__ = ["SseServerTransport", "stdio_server"]
