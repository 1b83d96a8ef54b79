"""Session manager for multi-client transports.

Tracks one inbound channel per connected client, keyed by an opaque session
identifier. Transports hand follow-up messages to ``route_inbound`` with the
identifier the client presented; the manager is the only owner of the
session -> channel map.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from sbb_mcp.exceptions import SessionNotFoundError
from sbb_mcp.message import SessionMessage

logger = logging.getLogger(__name__)

InboundMessage = SessionMessage | Exception


class SessionManager:
    """Owns the mapping from session id to the inbound channel of each client."""

    def __init__(self, max_buffer_size: int = 0) -> None:
        self._max_buffer_size = max_buffer_size
        self._sessions: dict[str, MemoryObjectSendStream[InboundMessage]] = {}

    def open_session(self) -> tuple[str, MemoryObjectReceiveStream[InboundMessage]]:
        """Allocate a fresh session id and register a new inbound channel under it.

        Returns the id and the receiving end of the channel. There is no await
        between allocating the id and registering it, so concurrent opens on the
        event loop never observe each other half-done.
        """
        session_id = uuid4().hex
        while session_id in self._sessions:
            session_id = uuid4().hex

        writer, reader = anyio.create_memory_object_stream[InboundMessage](self._max_buffer_size)
        self._sessions[session_id] = writer
        logger.debug("Opened session %s", session_id)
        return session_id, reader

    async def route_inbound(self, session_id: str | None, message: InboundMessage) -> None:
        """Deliver a message to the session's channel.

        Raises:
            SessionNotFoundError: no open session has this id
        """
        writer = self._sessions.get(session_id) if session_id else None
        if writer is None:
            raise SessionNotFoundError(session_id)
        try:
            await writer.send(message)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            raise SessionNotFoundError(session_id) from None

    def close_session(self, session_id: str) -> None:
        """Remove a session and close its channel. Unknown ids are ignored."""
        writer = self._sessions.pop(session_id, None)
        if writer is None:
            return
        writer.close()
        logger.debug("Closed session %s", session_id)

    def close_all(self) -> None:
        for session_id in self.session_ids():
            self.close_session(session_id)

    def session_ids(self) -> list[str]:
        """Snapshot of the currently open session ids."""
        return list(self._sessions)

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[tuple[str, MemoryObjectReceiveStream[InboundMessage]]]:
        """Open a session for the lifetime of the block; it is closed on exit."""
        session_id, reader = self.open_session()
        try:
            yield session_id, reader
        finally:
            self.close_session(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
