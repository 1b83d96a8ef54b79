"""Logging utilities for the SBB Transport server."""

import logging
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "sbb_mcp"


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
) -> None:
    """Configure logging for the server process.

    Only the ``sbb_mcp`` namespace logger is configured. Records go to stderr,
    because stdout carries protocol traffic when serving over stdio.

    Args:
        level: The log level to use.
    """
    sbb_logger = logging.getLogger(_LOGGER_NAME)
    sbb_logger.setLevel(level)

    # Avoid adding duplicate handlers on repeated calls.
    if sbb_logger.handlers:
        return

    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
    sbb_logger.addHandler(handler)
