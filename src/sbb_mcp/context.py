"""Request context handed to capability handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from anyio.streams.memory import MemoryObjectSendStream

from sbb_mcp.message import SessionMessage
from sbb_mcp.types import (
    JSONRPCNotification,
    LoggingLevel,
    LoggingMessageNotificationParams,
    RequestId,
    is_level_enabled,
)

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Per-connection protocol state, created by the server run loop."""

    session_id: str | None = None
    log_level: LoggingLevel = "debug"
    initialized: bool = False
    announce_ready: bool = False


@dataclass
class RequestContext:
    """What handlers receive. Provides server -> client communication.

    Notifications are written to the same channel the response will be written
    to, and are fully sent before the handler returns.
    """

    request_id: RequestId | None
    session: SessionState
    _write_stream: MemoryObjectSendStream[SessionMessage]

    @property
    def session_id(self) -> str | None:
        return self.session.session_id

    async def send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification to the client during request processing."""
        notification = JSONRPCNotification(method=method, params=params)
        await self._write_stream.send(SessionMessage(notification))

    async def send_log_message(self, level: LoggingLevel, data: Any, logger_name: str | None = None) -> None:
        """Send a ``notifications/message`` log entry, honouring the session's level."""
        if not is_level_enabled(level, self.session.log_level):
            logger.debug("Dropping %s log message below session level %s", level, self.session.log_level)
            return
        params = LoggingMessageNotificationParams(level=level, logger=logger_name, data=data)
        await self.send_notification("notifications/message", params.model_dump(by_alias=True, exclude_none=True))
