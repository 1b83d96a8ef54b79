"""Protocol types exchanged by the SBB Transport MCP server."""

from sbb_mcp.types.base import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    EmptyResult,
    MCPModel,
    RequestParams,
    Result,
)
from sbb_mcp.types.common import (
    ClientCapabilities,
    Implementation,
    InitializeRequestParams,
    InitializeResult,
    ServerCapabilities,
)
from sbb_mcp.types.completion import (
    CompleteRequestParams,
    CompleteResult,
    Completion,
    CompletionArgument,
    CompletionReference,
)
from sbb_mcp.types.content import ContentBlock, TextContent
from sbb_mcp.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
)
from sbb_mcp.types.logging import (
    LOGGING_LEVEL_ORDER,
    LoggingLevel,
    LoggingMessageNotificationParams,
    SetLevelRequestParams,
    is_level_enabled,
)
from sbb_mcp.types.prompts import (
    GetPromptRequestParams,
    GetPromptResult,
    ListPromptsResult,
    Prompt,
    PromptArgument,
    PromptMessage,
)
from sbb_mcp.types.resources import (
    ListResourcesResult,
    ListResourceTemplatesResult,
    ReadResourceRequestParams,
    ReadResourceResult,
    Resource,
    ResourceTemplate,
    TextResourceContents,
)
from sbb_mcp.types.tools import CallToolRequestParams, CallToolResult, JsonSchema, ListToolsResult, Tool

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "JSONRPC_VERSION",
    "LATEST_PROTOCOL_VERSION",
    "LOGGING_LEVEL_ORDER",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "CallToolRequestParams",
    "CallToolResult",
    "ClientCapabilities",
    "CompleteRequestParams",
    "CompleteResult",
    "Completion",
    "CompletionArgument",
    "CompletionReference",
    "ContentBlock",
    "EmptyResult",
    "ErrorData",
    "GetPromptRequestParams",
    "GetPromptResult",
    "Implementation",
    "InitializeRequestParams",
    "InitializeResult",
    "JSONRPCErrorResponse",
    "JSONRPCMessage",
    "JSONRPCMessageAdapter",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCResultResponse",
    "JsonSchema",
    "ListPromptsResult",
    "ListResourceTemplatesResult",
    "ListResourcesResult",
    "ListToolsResult",
    "LoggingLevel",
    "LoggingMessageNotificationParams",
    "MCPModel",
    "Prompt",
    "PromptArgument",
    "PromptMessage",
    "ReadResourceRequestParams",
    "ReadResourceResult",
    "RequestId",
    "RequestParams",
    "Resource",
    "ResourceTemplate",
    "Result",
    "ServerCapabilities",
    "SetLevelRequestParams",
    "TextContent",
    "TextResourceContents",
    "Tool",
    "is_level_enabled",
]
