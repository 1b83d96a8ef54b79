import httpx
import pytest
from inline_snapshot import snapshot

from sbb_mcp import types
from sbb_mcp.capabilities import create_server
from sbb_mcp.context import RequestContext
from sbb_mcp.dispatch import DispatchTable
from sbb_mcp.exceptions import ConfigurationError
from sbb_mcp.message import SessionMessage
from sbb_mcp.registry import CapabilityCategory, CapabilityDescriptor, CapabilityRegistry, NoArguments
from sbb_mcp.server import McpServer
from tests.test_helpers import connected_client

pytestmark = pytest.mark.anyio

INITIALIZE_PARAMS = {"protocolVersion": "2025-03-26", "clientInfo": {"name": "test", "version": "0.1"}}


def failing_client_factory(**kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def server() -> McpServer:
    return create_server(http_client_factory=failing_client_factory)


async def test_initialize(server: McpServer):
    async with connected_client(server) as client:
        result = await client.result(
            "initialize",
            {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "test", "version": "0.1"}},
        )
        await client.notify("notifications/initialized")

    assert result == snapshot(
        {
            "protocolVersion": "2025-03-26",
            "capabilities": {
                "logging": {},
                "completions": {},
                "prompts": {"listChanged": False},
                "resources": {"subscribe": False, "listChanged": False},
                "tools": {"listChanged": False},
            },
            "serverInfo": {"name": "SBB Transport", "version": "1.0.0"},
        }
    )


async def test_initialize_with_unknown_version_falls_back_to_latest(server: McpServer):
    async with connected_client(server) as client:
        result = await client.result(
            "initialize", {"protocolVersion": "1999-01-01", "clientInfo": {"name": "test", "version": "0.1"}}
        )

    assert result["protocolVersion"] == types.LATEST_PROTOCOL_VERSION


async def test_ping(server: McpServer):
    async with connected_client(server) as client:
        assert await client.result("ping") == {}


async def test_list_tools(server: McpServer):
    async with connected_client(server) as client:
        result = await client.result("tools/list")

    assert [tool["name"] for tool in result["tools"]] == ["echo", "find-connection"]
    assert result["tools"][0] == snapshot(
        {
            "name": "echo",
            "description": "Echo tool that repeats the input message",
            "inputSchema": {
                "type": "object",
                "properties": {"message": {"type": "string", "description": "The message to echo"}},
                "required": ["message"],
            },
        }
    )


async def test_echo_tool_sends_log_notification_before_response(server: McpServer):
    async with connected_client(server) as client:
        messages = await client.request("tools/call", {"name": "echo", "arguments": {"message": "hi"}})

    notification, response = messages
    assert isinstance(notification, types.JSONRPCNotification)
    assert notification.method == "notifications/message"
    assert notification.params is not None
    assert "hi" in notification.params["data"]
    assert isinstance(response, types.JSONRPCResultResponse)
    assert response.result == {"content": [{"type": "text", "text": "Tool echo: hi"}], "isError": False}


async def test_set_level_filters_log_notifications(server: McpServer):
    async with connected_client(server) as client:
        assert await client.result("logging/setLevel", {"level": "warning"}) == {}
        messages = await client.request("tools/call", {"name": "echo", "arguments": {"message": "quiet"}})

    assert len(messages) == 1
    assert isinstance(messages[0], types.JSONRPCResultResponse)


async def test_unknown_tool(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error("tools/call", {"name": "teleport", "arguments": {}})

    assert error.code == types.METHOD_NOT_FOUND
    assert error.message == "Unknown tool: teleport"


async def test_missing_argument(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error("tools/call", {"name": "echo", "arguments": {}})

    assert error.code == types.INVALID_PARAMS
    assert error.message == "Missing required argument 'message'"
    assert error.data == {"field": "message"}


async def test_find_connection_failure_is_a_readable_result(server: McpServer):
    async with connected_client(server) as client:
        result = await client.result("tools/call", {"name": "find-connection", "arguments": {"from": "A", "to": "B"}})

    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Error finding connections:")


async def test_list_resources_and_templates(server: McpServer):
    async with connected_client(server) as client:
        resources = await client.result("resources/list")
        templates = await client.result("resources/templates/list")

    assert resources == snapshot(
        {"resources": [{"uri": "echo://", "name": "echo", "description": "Echo resource that returns the input message"}]}
    )
    assert templates == snapshot(
        {
            "resourceTemplates": [
                {
                    "uriTemplate": "echo://{message}",
                    "name": "echo",
                    "description": "Echo resource template that returns the input message",
                }
            ]
        }
    )


async def test_read_resource(server: McpServer):
    async with connected_client(server) as client:
        result = await client.result("resources/read", {"uri": "echo://world"})

    assert result == {"contents": [{"uri": "echo://world", "text": "Resource echo: world"}]}


async def test_read_unknown_resource(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error("resources/read", {"uri": "file:///etc/passwd"})

    assert error.code == types.METHOD_NOT_FOUND
    assert error.message == "Unknown resource URI: file:///etc/passwd"


async def test_prompts(server: McpServer):
    async with connected_client(server) as client:
        listing = await client.result("prompts/list")
        prompt = await client.result("prompts/get", {"name": "echo", "arguments": {"message": "hey"}})

    assert listing == snapshot(
        {
            "prompts": [
                {
                    "name": "echo",
                    "title": "Echo prompt",
                    "description": "Echo prompt that processes the input message",
                    "arguments": [{"name": "message", "description": "The message to process", "required": True}],
                }
            ]
        }
    )
    assert prompt == snapshot(
        {
            "description": "Echo prompt",
            "messages": [{"role": "user", "content": {"type": "text", "text": "Please process this message: hey"}}],
        }
    )


async def test_prompt_without_message(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error("prompts/get", {"name": "echo"})

    assert error.code == types.INVALID_PARAMS


async def test_completion(server: McpServer):
    async with connected_client(server) as client:
        result = await client.result(
            "completion/complete",
            {"ref": {"type": "ref/resource", "uri": "echo://"}, "argument": {"name": "message", "value": "abc"}},
        )

    assert result == {"completion": {"values": ["echo://abc"], "total": 1, "hasMore": False}}


async def test_completion_unsupported_reference(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error(
            "completion/complete",
            {"ref": {"type": "ref/prompt", "name": "echo"}, "argument": {"name": "message", "value": "abc"}},
        )

    assert error.code == types.METHOD_NOT_FOUND
    assert error.message == "Unsupported reference type: ref/prompt"


async def test_unknown_method(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error("sampling/createMessage")

    assert error.code == types.METHOD_NOT_FOUND


async def test_invalid_params_shape(server: McpServer):
    async with connected_client(server) as client:
        error = await client.error("tools/call", {"arguments": {}})

    assert error.code == types.INVALID_PARAMS


async def test_parse_error_keeps_session_alive(server: McpServer):
    async with connected_client(server) as client:
        await client.send_stream.send(ValueError("bad line"))
        (parse_error,) = await client.collect_until_response()
        assert await client.result("ping") == {}

    assert isinstance(parse_error, types.JSONRPCErrorResponse)
    assert parse_error.error.code == types.PARSE_ERROR


async def test_client_responses_are_ignored(server: McpServer):
    async with connected_client(server) as client:
        await client.send_stream.send(SessionMessage(types.JSONRPCResultResponse(id=99, result={})))
        assert await client.result("ping") == {}


async def test_responses_keep_request_order(server: McpServer):
    async with connected_client(server) as client:
        for message in ("one", "two", "three"):
            await client.send_stream.send(
                SessionMessage(
                    types.JSONRPCRequest(
                        id=message, method="tools/call", params={"name": "echo", "arguments": {"message": message}}
                    )
                )
            )
        responses = [(await client.collect_until_response())[-1] for _ in range(3)]

    assert [response.id for response in responses] == ["one", "two", "three"]  # type: ignore[union-attr]


async def test_unexpected_handler_error_is_internal_error():
    descriptor = CapabilityDescriptor(CapabilityCategory.TOOL, "explode", "Always fails")
    table = DispatchTable(CapabilityRegistry([descriptor]))

    @table.handler(CapabilityCategory.TOOL, "explode")
    async def explode(ctx: RequestContext, args: NoArguments) -> str:
        raise RuntimeError("boom")

    server = McpServer(name="test", version="0.0.1", dispatch_table=table)
    async with connected_client(server) as client:
        error = await client.error("tools/call", {"name": "explode"})
        assert await client.result("ping") == {}

    assert error.code == types.INTERNAL_ERROR
    assert error.message == "Internal error"


def test_server_refuses_incomplete_dispatch_table():
    descriptor = CapabilityDescriptor(CapabilityCategory.TOOL, "orphan", "Has no handler")

    with pytest.raises(ConfigurationError):
        McpServer(name="test", version="0.0.1", dispatch_table=DispatchTable(CapabilityRegistry([descriptor])))


async def test_ready_announcement_is_sent_once_after_handshake(server: McpServer):
    async with connected_client(server, announce_ready=True) as client:
        await client.result("initialize", INITIALIZE_PARAMS)
        await client.notify("notifications/initialized")
        await client.notify("notifications/initialized")
        messages = await client.request("ping")

    announcement, response = messages
    assert isinstance(announcement, types.JSONRPCNotification)
    assert announcement.method == "notifications/message"
    assert announcement.params == {"level": "info", "data": "Server started successfully"}
    assert isinstance(response, types.JSONRPCResultResponse)


async def test_no_ready_announcement_by_default(server: McpServer):
    async with connected_client(server) as client:
        await client.result("initialize", INITIALIZE_PARAMS)
        await client.notify("notifications/initialized")
        messages = await client.request("ping")

    assert len(messages) == 1
    assert isinstance(messages[0], types.JSONRPCResultResponse)
