"""Message wrapper passed between transports and the server.

Transports exchange ``SessionMessage`` objects with the server over anyio
memory streams; the wrapper leaves room for transport metadata without
touching the JSON-RPC payload itself.
"""

from dataclasses import dataclass

from sbb_mcp.types import JSONRPCMessage


@dataclass
class SessionMessage:
    """A JSON-RPC message in transit between a transport and the server."""

    message: JSONRPCMessage
