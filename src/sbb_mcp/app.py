"""HTTP application: SSE transport, message posting and the static front page."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import FileResponse, PlainTextResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles
from starlette.types import Receive, Scope, Send

from sbb_mcp.capabilities import create_server
from sbb_mcp.server import McpServer
from sbb_mcp.session import SessionManager
from sbb_mcp.settings import Settings
from sbb_mcp.transport.sse import SseServerTransport

logger = logging.getLogger(__name__)

ASGIHandler = Callable[[Scope, Receive, Send], Awaitable[None]]


class ASGIEndpoint:
    """Mounts a plain ASGI coroutine as a route endpoint.

    Starlette wraps functions in a request/response adapter that would start a
    second response after the SSE transport has already answered; an instance
    of this class is called as a raw ASGI app instead.
    """

    def __init__(self, handler: ASGIHandler) -> None:
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.handler(scope, receive, send)


def create_app(
    settings: Settings | None = None,
    server: McpServer | None = None,
    sessions: SessionManager | None = None,
) -> Starlette:
    """Build the Starlette app serving MCP over SSE."""
    if settings is None:
        settings = Settings()
    if server is None:
        server = create_server(settings)
    if sessions is None:
        sessions = SessionManager()
    sse = SseServerTransport(settings.message_path, sessions)
    public_dir = settings.public_dir

    async def handle_sse(scope: Scope, receive: Receive, send: Send) -> None:
        async with sse.connect_sse(scope, receive, send) as (read_stream, write_stream, session_id):
            logger.info("Client connected with session %s", session_id)
            await server.run(read_stream, write_stream, session_id)
        logger.info("Client with session %s disconnected", session_id)

    async def test_route(request: Request) -> PlainTextResponse:
        return PlainTextResponse("Test route works!")

    async def index(request: Request) -> FileResponse:
        return FileResponse(public_dir / "index.html")

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Serving %s %s", server.name, server.version)
        try:
            yield
        finally:
            logger.info("Shutting down, closing %d open session(s)", len(sessions))
            sessions.close_all()

    app = Starlette(
        debug=settings.debug,
        routes=[
            Route(settings.sse_path, endpoint=ASGIEndpoint(handle_sse), methods=["GET"]),
            Route(settings.message_path, endpoint=ASGIEndpoint(sse.handle_post_message), methods=["POST"]),
            Route("/test", endpoint=test_route, methods=["GET"]),
            Route("/", endpoint=index, methods=["GET"]),
            Mount("/", app=StaticFiles(directory=public_dir, check_dir=False)),
        ],
        lifespan=lifespan,
    )
    app.state.sessions = sessions
    app.state.server = server
    return app
