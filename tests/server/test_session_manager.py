import anyio
import anyio.lowlevel
import pytest

from sbb_mcp import types
from sbb_mcp.exceptions import SessionNotFoundError
from sbb_mcp.message import SessionMessage
from sbb_mcp.session import SessionManager

pytestmark = pytest.mark.anyio


def ping(request_id: int = 1) -> SessionMessage:
    return SessionMessage(types.JSONRPCRequest(id=request_id, method="ping"))


async def test_concurrent_opens_get_distinct_ids():
    sessions = SessionManager()
    opened: list[str] = []

    async def open_one():
        await anyio.lowlevel.checkpoint()
        session_id, _ = sessions.open_session()
        opened.append(session_id)

    async with anyio.create_task_group() as tg:
        for _ in range(50):
            tg.start_soon(open_one)

    assert len(opened) == 50
    assert len(set(opened)) == 50
    assert sorted(sessions.session_ids()) == sorted(opened)
    sessions.close_all()


async def test_route_inbound_delivers_to_the_right_session():
    sessions = SessionManager(max_buffer_size=1)
    first_id, first_reader = sessions.open_session()
    second_id, second_reader = sessions.open_session()

    await sessions.route_inbound(second_id, ping(7))

    received = second_reader.receive_nowait()
    assert isinstance(received, SessionMessage)
    assert received.message.id == 7  # type: ignore[union-attr]
    with pytest.raises(anyio.WouldBlock):
        first_reader.receive_nowait()

    sessions.close_all()
    first_reader.close()
    second_reader.close()


@pytest.mark.parametrize("session_id", ["bogus", "", None])
async def test_route_inbound_to_unknown_session(session_id: str | None):
    sessions = SessionManager()

    with pytest.raises(SessionNotFoundError) as exc_info:
        await sessions.route_inbound(session_id, ping())

    assert str(exc_info.value).startswith("No transport found for sessionId")


async def test_route_inbound_to_closed_session_leaves_others_alone():
    sessions = SessionManager(max_buffer_size=1)
    closed_id, closed_reader = sessions.open_session()
    open_id, open_reader = sessions.open_session()

    sessions.close_session(closed_id)

    with pytest.raises(SessionNotFoundError):
        await sessions.route_inbound(closed_id, ping())
    await sessions.route_inbound(open_id, ping(2))
    assert open_id in sessions
    assert open_reader.receive_nowait().message.id == 2  # type: ignore[union-attr]

    sessions.close_all()
    closed_reader.close()
    open_reader.close()


async def test_route_inbound_after_reader_went_away():
    sessions = SessionManager()
    session_id, reader = sessions.open_session()
    reader.close()

    with pytest.raises(SessionNotFoundError):
        await sessions.route_inbound(session_id, ping())

    sessions.close_all()


async def test_close_session_is_idempotent():
    sessions = SessionManager()
    session_id, reader = sessions.open_session()

    sessions.close_session(session_id)
    sessions.close_session(session_id)
    sessions.close_session("never-opened")

    assert session_id not in sessions
    assert len(sessions) == 0
    # The channel is closed, so the reader sees end of stream
    with pytest.raises(anyio.EndOfStream):
        reader.receive_nowait()
    reader.close()


async def test_close_all():
    sessions = SessionManager()
    readers = [sessions.open_session()[1] for _ in range(3)]

    sessions.close_all()

    assert len(sessions) == 0
    for reader in readers:
        with pytest.raises(anyio.EndOfStream):
            reader.receive_nowait()
        reader.close()


async def test_connect_closes_session_on_exit():
    sessions = SessionManager()

    async with sessions.connect() as (session_id, reader):
        assert session_id in sessions
        assert sessions.session_ids() == [session_id]

    assert session_id not in sessions
    reader.close()


async def test_connect_closes_session_on_error():
    sessions = SessionManager()

    with pytest.raises(RuntimeError):
        async with sessions.connect() as (session_id, reader):
            reader.close()
            raise RuntimeError("connection dropped")

    assert len(sessions) == 0
