"""
SSE Server Transport Module

This module implements a Server-Sent Events (SSE) transport layer for MCP servers.

Example usage:
```
    # Create a session manager and an SSE transport posting back to /messages
    sessions = SessionManager()
    sse = SseServerTransport("/messages", sessions)

    # ASGI endpoint for the long-lived event stream
    async def handle_sse(scope, receive, send):
        async with sse.connect_sse(scope, receive, send) as (read_stream, write_stream, session_id):
            await server.run(read_stream, write_stream, session_id)

    # Mount both endpoints as raw ASGI apps
    routes = [
        Route("/sse", endpoint=ASGIEndpoint(handle_sse), methods=["GET"]),
        Route("/messages", endpoint=ASGIEndpoint(sse.handle_post_message), methods=["POST"]),
    ]
```

See sbb_mcp.app for the application wiring.

Flow:
    1. The client opens GET /sse. A session is opened and the first event is
       ``endpoint``, whose data is the URL the client must POST to, including
       the ``sessionId`` query parameter.
    2. The client POSTs JSON-RPC messages to that URL. Each one is validated,
       acknowledged with 202 and routed to the session's inbound channel.
    3. Responses and notifications written by the server are streamed back as
       ``message`` events on the open SSE connection.
    4. When the client disconnects the session is closed, which ends the
       server's run loop for it.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import ValidationError
from sse_starlette import EventSourceResponse
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from sbb_mcp import types
from sbb_mcp.exceptions import SessionNotFoundError
from sbb_mcp.message import SessionMessage
from sbb_mcp.session import SessionManager

logger = logging.getLogger(__name__)


class SseServerTransport:
    """
    SSE server transport for MCP. This class provides two ASGI applications,
    suitable for use with a framework like Starlette and a server like uvicorn:

    1. connect_sse() is an ASGI application which receives incoming GET requests,
       and sets up a new SSE stream to send server messages to the client.
    2. handle_post_message() is an ASGI application which receives incoming POST
       requests, which should contain client messages that link to a
       previously-established SSE session.
    """

    def __init__(self, endpoint: str, sessions: SessionManager) -> None:
        """
        Creates a new SSE server transport, which will direct the client to POST
        messages to the relative path given.

        Args:
            endpoint: A relative path where messages should be posted
                (e.g., "/messages").
            sessions: Session manager owning the session -> channel map.
        """
        self._endpoint = endpoint
        self.sessions = sessions
        logger.debug(f"SseServerTransport initialized with endpoint: {endpoint}")

    @asynccontextmanager
    async def connect_sse(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            logger.error("connect_sse received non-HTTP request")
            raise ValueError("connect_sse can only handle HTTP requests")

        logger.debug("Setting up SSE connection")
        write_stream: MemoryObjectSendStream[SessionMessage]
        write_stream_reader: MemoryObjectReceiveStream[SessionMessage]

        session_id, read_stream = self.sessions.open_session()
        write_stream, write_stream_reader = anyio.create_memory_object_stream(0)
        sse_stream_writer, sse_stream_reader = anyio.create_memory_object_stream[dict[str, Any]](0)

        root_path = scope.get("root_path", "")
        client_post_uri_data = f"{root_path}{self._endpoint}?sessionId={session_id}"
        logger.debug(f"Created new session with ID: {session_id}")

        async def sse_writer():
            logger.debug("Starting SSE writer")
            async with sse_stream_writer, write_stream_reader:
                await sse_stream_writer.send({"event": "endpoint", "data": client_post_uri_data})
                logger.debug(f"Sent endpoint event: {client_post_uri_data}")

                async for session_message in write_stream_reader:
                    logger.debug(f"Sending message via SSE: {session_message}")
                    await sse_stream_writer.send(
                        {
                            "event": "message",
                            "data": session_message.message.model_dump_json(by_alias=True, exclude_none=True),
                        }
                    )

        async with anyio.create_task_group() as tg:

            async def response_wrapper(scope: Scope, receive: Receive, send: Send):
                """
                The EventSourceResponse returning signals a client close / disconnect.
                In this case we close the session, which ends the server's read loop.
                """
                await EventSourceResponse(content=sse_stream_reader, data_sender_callable=sse_writer)(
                    scope, receive, send
                )
                logger.debug(f"Client session disconnected {session_id}")
                self.sessions.close_session(session_id)

            logger.debug("Starting SSE response task")
            tg.start_soon(response_wrapper, scope, receive, send)

            try:
                logger.debug("Yielding read and write streams")
                yield (read_stream, write_stream, session_id)
            finally:
                self.sessions.close_session(session_id)

    async def handle_post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.debug("Handling POST message")
        request = Request(scope, receive)

        session_id = request.query_params.get("sessionId")
        if session_id is None or session_id not in self.sessions:
            logger.warning(f"Could not find session for ID: {session_id}")
            response = Response("No transport found for sessionId", status_code=400)
            return await response(scope, receive, send)

        body = await request.body()
        logger.debug(f"Received JSON: {body}")

        try:
            message = types.JSONRPCMessageAdapter.validate_json(body)
            logger.debug(f"Validated client message: {message}")
        except ValidationError as err:
            logger.warning(f"Failed to parse message: {err}")
            response = Response("Could not parse message", status_code=400)
            return await response(scope, receive, send)

        logger.debug(f"Sending session message to session {session_id}")
        response = Response("Accepted", status_code=202)
        await response(scope, receive, send)
        try:
            await self.sessions.route_inbound(session_id, SessionMessage(message))
        except SessionNotFoundError as err:
            # The connection went away between the lookup and the delivery
            logger.warning(str(err))
