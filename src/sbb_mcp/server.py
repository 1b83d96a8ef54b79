"""
MCP protocol server.

Maps JSON-RPC methods onto the dispatch table and runs one read/dispatch/write
loop per connected client. The server never touches a transport directly: it
consumes ``SessionMessage`` objects from a read stream and writes responses and
notifications to a write stream, so the same instance serves stdio and SSE
clients alike.

Usage:
    table = build_dispatch_table(settings)
    server = McpServer(name="SBB Transport", version="1.0.0", dispatch_table=table)

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import BaseModel, ValidationError

from sbb_mcp import types
from sbb_mcp.context import RequestContext, SessionState
from sbb_mcp.dispatch import CapabilityRequest, DispatchTable
from sbb_mcp.exceptions import McpError, NotFoundError
from sbb_mcp.message import SessionMessage
from sbb_mcp.registry import CapabilityCategory, CapabilityRegistry

logger = logging.getLogger(__name__)

RequestHandler = Callable[[RequestContext, dict[str, Any]], Awaitable[BaseModel]]

# Client notifications that need no action from this server
_IGNORED_NOTIFICATIONS = frozenset({"notifications/initialized", "notifications/cancelled"})


class McpServer:
    """Protocol front-end for a DispatchTable."""

    def __init__(
        self,
        name: str,
        version: str,
        dispatch_table: DispatchTable,
        instructions: str | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self.dispatch_table = dispatch_table
        dispatch_table.check()
        self._request_handlers: dict[str, RequestHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_resource_templates,
            "resources/read": self._read_resource,
            "prompts/list": self._list_prompts,
            "prompts/get": self._get_prompt,
            "completion/complete": self._complete,
            "logging/setLevel": self._set_logging_level,
        }
        logger.debug("Initializing server %r", name)

    @property
    def registry(self) -> CapabilityRegistry:
        return self.dispatch_table.registry

    def get_capabilities(self) -> types.ServerCapabilities:
        return types.ServerCapabilities(
            tools={"listChanged": False},
            resources={"subscribe": False, "listChanged": False},
            prompts={"listChanged": False},
            completions={},
            logging={},
        )

    async def run(
        self,
        read_stream: MemoryObjectReceiveStream[SessionMessage | Exception],
        write_stream: MemoryObjectSendStream[SessionMessage],
        session_id: str | None = None,
        announce_ready: bool = False,
    ) -> None:
        """Serve one client until its read stream is exhausted.

        Messages are handled one at a time, so responses leave in the order
        their requests arrived. With ``announce_ready`` the client receives an
        info log message once it has completed the initialize handshake.
        """
        state = SessionState(session_id=session_id, announce_ready=announce_ready)
        async with write_stream:
            try:
                async with read_stream:
                    async for message in read_stream:
                        await self._handle_message(message, state, write_stream)
            except (anyio.ClosedResourceError, anyio.BrokenResourceError):
                # Client went away while a reply was being written
                logger.debug("Channel for session %s closed", session_id)
        logger.debug("Session %s finished", session_id)

    async def _handle_message(
        self,
        message: SessionMessage | Exception,
        state: SessionState,
        write_stream: MemoryObjectSendStream[SessionMessage],
    ) -> None:
        if isinstance(message, Exception):
            logger.warning("Received malformed message: %s", message)
            error = types.ErrorData(code=types.PARSE_ERROR, message="Parse error", data=str(message))
            await write_stream.send(SessionMessage(types.JSONRPCErrorResponse(id=None, error=error)))
            return

        match message.message:
            case types.JSONRPCRequest() as request:
                response = await self._handle_request(request, state, write_stream)
                await write_stream.send(SessionMessage(response))
            case types.JSONRPCNotification(method=method):
                if method == "notifications/initialized":
                    await self._on_initialized(state, write_stream)
                elif method not in _IGNORED_NOTIFICATIONS:
                    logger.debug("Ignoring unknown notification %s", method)
            case _:
                # Responses from the client: this server never sends requests
                logger.debug("Ignoring client response %s", message.message)

    async def _on_initialized(
        self, state: SessionState, write_stream: MemoryObjectSendStream[SessionMessage]
    ) -> None:
        if state.initialized:
            return
        state.initialized = True
        if state.announce_ready:
            ctx = RequestContext(request_id=None, session=state, _write_stream=write_stream)
            await ctx.send_log_message("info", "Server started successfully")

    async def _handle_request(
        self,
        request: types.JSONRPCRequest,
        state: SessionState,
        write_stream: MemoryObjectSendStream[SessionMessage],
    ) -> types.JSONRPCResponse:
        logger.debug("Received request %s (id=%s)", request.method, request.id)
        handler = self._request_handlers.get(request.method)
        if handler is None:
            error = types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Method not found: {request.method}")
            return types.JSONRPCErrorResponse(id=request.id, error=error)

        ctx = RequestContext(request_id=request.id, session=state, _write_stream=write_stream)
        try:
            result = await handler(ctx, request.params or {})
        except McpError as e:
            return types.JSONRPCErrorResponse(id=request.id, error=e.error)
        except ValidationError as e:
            error = types.ErrorData(code=types.INVALID_PARAMS, message="Invalid request parameters", data=str(e))
            return types.JSONRPCErrorResponse(id=request.id, error=error)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            raise
        except Exception:
            logger.exception("Handler error for %s", request.method)
            error = types.ErrorData(code=types.INTERNAL_ERROR, message="Internal error")
            return types.JSONRPCErrorResponse(id=request.id, error=error)

        return types.JSONRPCResultResponse(id=request.id, result=result.model_dump(by_alias=True, exclude_none=True))

    async def _initialize(self, ctx: RequestContext, params: dict[str, Any]) -> types.InitializeResult:
        init = types.InitializeRequestParams.model_validate(params)
        if init.protocol_version in types.SUPPORTED_PROTOCOL_VERSIONS:
            protocol_version = init.protocol_version
        else:
            protocol_version = types.LATEST_PROTOCOL_VERSION
        logger.info(
            "Client %s %s connected (protocol %s)", init.client_info.name, init.client_info.version, protocol_version
        )
        return types.InitializeResult(
            protocol_version=protocol_version,
            capabilities=self.get_capabilities(),
            server_info=types.Implementation(name=self.name, version=self.version),
            instructions=self.instructions,
        )

    async def _ping(self, ctx: RequestContext, params: dict[str, Any]) -> types.EmptyResult:
        return types.EmptyResult()

    async def _list_tools(self, ctx: RequestContext, params: dict[str, Any]) -> types.ListToolsResult:
        return types.ListToolsResult(
            tools=[
                types.Tool(
                    name=descriptor.name,
                    description=descriptor.description,
                    input_schema=types.JsonSchema.model_validate(descriptor.json_schema()),
                )
                for descriptor in self.registry.list_capabilities(CapabilityCategory.TOOL)
            ]
        )

    async def _call_tool(self, ctx: RequestContext, params: dict[str, Any]) -> types.CallToolResult:
        call = types.CallToolRequestParams.model_validate(params)
        outcome = await self.dispatch_table.dispatch(
            CapabilityRequest(CapabilityCategory.TOOL, call.name, call.arguments or {}, ctx.session_id), ctx
        )
        return types.CallToolResult(content=list(outcome.content), is_error=outcome.is_error)

    async def _list_resources(self, ctx: RequestContext, params: dict[str, Any]) -> types.ListResourcesResult:
        return types.ListResourcesResult(
            resources=[
                types.Resource(
                    uri=descriptor.uri or "",
                    name=descriptor.name,
                    description=descriptor.description,
                    mime_type=descriptor.mime_type,
                )
                for descriptor in self.registry.list_capabilities(CapabilityCategory.RESOURCE)
            ]
        )

    async def _list_resource_templates(
        self, ctx: RequestContext, params: dict[str, Any]
    ) -> types.ListResourceTemplatesResult:
        return types.ListResourceTemplatesResult(
            resource_templates=[
                types.ResourceTemplate(
                    uri_template=descriptor.uri_template or "",
                    name=descriptor.name,
                    description=descriptor.description,
                    mime_type=descriptor.mime_type,
                )
                for descriptor in self.registry.list_capabilities(CapabilityCategory.RESOURCE_TEMPLATE)
            ]
        )

    async def _read_resource(self, ctx: RequestContext, params: dict[str, Any]) -> types.ReadResourceResult:
        read = types.ReadResourceRequestParams.model_validate(params)
        matched = self.registry.match_resource(read.uri)
        if matched is None:
            raise NotFoundError(f"Unknown resource URI: {read.uri}")
        template, arguments = matched
        outcome = await self.dispatch_table.dispatch(
            CapabilityRequest(CapabilityCategory.RESOURCE_TEMPLATE, template.name, arguments, ctx.session_id), ctx
        )
        return types.ReadResourceResult(
            contents=[
                types.TextResourceContents(uri=read.uri, mime_type=template.mime_type, text=block.text)
                for block in outcome.content
            ]
        )

    async def _list_prompts(self, ctx: RequestContext, params: dict[str, Any]) -> types.ListPromptsResult:
        prompts: list[types.Prompt] = []
        for descriptor in self.registry.list_capabilities(CapabilityCategory.PROMPT):
            arguments = [
                types.PromptArgument(name=name, description=input_field.description, required=input_field.required)
                for name, input_field in descriptor.input_shape.items()
            ]
            prompts.append(
                types.Prompt(
                    name=descriptor.name,
                    title=descriptor.title,
                    description=descriptor.description,
                    arguments=arguments,
                )
            )
        return types.ListPromptsResult(prompts=prompts)

    async def _get_prompt(self, ctx: RequestContext, params: dict[str, Any]) -> types.GetPromptResult:
        get = types.GetPromptRequestParams.model_validate(params)
        outcome = await self.dispatch_table.dispatch(
            CapabilityRequest(CapabilityCategory.PROMPT, get.name, get.arguments or {}, ctx.session_id), ctx
        )
        descriptor = self.registry.get(CapabilityCategory.PROMPT, get.name)
        return types.GetPromptResult(
            description=(descriptor.title or descriptor.description) if descriptor else None,
            messages=[types.PromptMessage(role="user", content=block) for block in outcome.content],
        )

    async def _complete(self, ctx: RequestContext, params: dict[str, Any]) -> types.CompleteResult:
        complete = types.CompleteRequestParams.model_validate(params)
        return types.CompleteResult(completion=self.dispatch_table.complete(complete.ref, complete.argument))

    async def _set_logging_level(self, ctx: RequestContext, params: dict[str, Any]) -> types.EmptyResult:
        request = types.SetLevelRequestParams.model_validate(params)
        ctx.session.log_level = request.level
        logger.debug("Session %s log level set to %s", ctx.session_id, request.level)
        return types.EmptyResult()
