"""MCP Logging Types - Log levels and log message notifications."""

from typing import Any, Final, Literal

from sbb_mcp.types.base import MCPModel, RequestParams

LoggingLevel = Literal["debug", "info", "notice", "warning", "error", "critical", "alert", "emergency"]

# RFC 5424 severities, least to most severe
LOGGING_LEVEL_ORDER: Final[tuple[LoggingLevel, ...]] = (
    "debug",
    "info",
    "notice",
    "warning",
    "error",
    "critical",
    "alert",
    "emergency",
)


class SetLevelRequestParams(RequestParams):
    level: LoggingLevel


class LoggingMessageNotificationParams(MCPModel):
    """Parameters for a notifications/message notification."""

    level: LoggingLevel
    logger: str | None = None
    data: Any


def is_level_enabled(level: LoggingLevel, minimum: LoggingLevel) -> bool:
    return LOGGING_LEVEL_ORDER.index(level) >= LOGGING_LEVEL_ORDER.index(minimum)
