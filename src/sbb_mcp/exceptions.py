"""Error taxonomy for the SBB Transport MCP server."""

from typing import Any

from sbb_mcp.types import INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData


class McpError(Exception):
    """Exception surfaced to the peer as a JSON-RPC error response.

    Attributes:
        error: The ErrorData sent back to the client, containing the error
               code, message, and optional additional data
    """

    error: ErrorData

    def __init__(self, error: ErrorData):
        super().__init__(error.message)
        self.error = error


class NotFoundError(McpError):
    """Unknown capability name or unsupported completion reference."""

    def __init__(self, message: str, data: Any | None = None):
        super().__init__(ErrorData(code=METHOD_NOT_FOUND, message=message, data=data))


class InvalidArgumentsError(McpError):
    """A required argument is missing or an argument has the wrong type.

    Attributes:
        field: Name of the offending argument
    """

    field: str

    def __init__(self, field: str, message: str):
        super().__init__(ErrorData(code=INVALID_PARAMS, message=message, data={"field": field}))
        self.field = field


class SessionNotFoundError(Exception):
    """No open session is registered under the given identifier."""

    session_id: str | None

    def __init__(self, session_id: str | None):
        super().__init__(f"No transport found for sessionId: {session_id}")
        self.session_id = session_id


class DomainError(Exception):
    """A handler failed for a domain reason (e.g. the downstream API is unreachable).

    Raised by handlers and converted by the dispatch table into a normal,
    renderable result instead of a protocol error.
    """


class ConfigurationError(Exception):
    """The capability registry and the handler table are out of sync."""
