"""Command line entry point: ``sbb-mcp --transport [stdio|sse]``."""

import logging
import sys

import anyio
import click
import uvicorn

from sbb_mcp.app import create_app
from sbb_mcp.capabilities import create_server
from sbb_mcp.server import McpServer
from sbb_mcp.settings import Settings
from sbb_mcp.transport.stdio import stdio_server
from sbb_mcp.utilities.logging import configure_logging

logger = logging.getLogger(__name__)


async def run_stdio(server: McpServer) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, announce_ready=True)


def run_sse(settings: Settings) -> None:
    app = create_app(settings)
    logger.info("Listening on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse"]),
    default="sse",
    show_default=True,
    help="Transport type",
)
@click.option("--host", default=None, help="Host to bind for SSE")
@click.option("--port", type=int, default=None, help="Port to listen on for SSE")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging level",
)
def main(transport: str, host: str | None, port: int | None, log_level: str | None) -> int:
    overrides = {"host": host, "port": port, "log_level": log_level.upper() if log_level else None}
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
    configure_logging(settings.log_level)

    try:
        if transport == "sse":
            run_sse(settings)
        else:
            anyio.run(run_stdio, create_server(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception:
        logger.exception("Server failed")
        sys.exit(1)
    return 0
