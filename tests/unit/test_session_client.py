# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio

import pytest

from errors import ChannelNotFoundError, InvalidStateError, SessionConnectionError
from session.connection_status import ConnectionStatus
from session.events import MessageReceived, SessionEvent, SessionTerminated, VoiceReceived

from fakes import FakeChannel, FakeConnection, FakeConnector, make_client


# ---------------------------------------------------------------------
# Connect
# ---------------------------------------------------------------------

async def test_fresh_client_reports_nothing_attempted():
    client = make_client()

    status = client.status
    assert status.connected is False
    assert status.connection_attempted is False
    assert status.current_channel is None


async def test_connect_reaches_ready_and_binds_long_lived_handlers():
    connection = FakeConnection()
    client = make_client(connection)

    await client.connect()

    assert client.connection_status is ConnectionStatus.UP
    assert client.status.connected is True
    assert client.status.connection_attempted is True
    assert connection.authenticated_as == "picom"

    # Handshake handlers are gone; only the long-lived ones remain
    assert connection.handlers["initialized"] == []
    assert len(connection.handlers["error"]) == 1
    assert len(connection.handlers["voice"]) == 1
    assert len(connection.handlers["message"]) == 1


async def test_connection_attempted_is_set_before_handshake_completes():
    gate = asyncio.Event()
    client = make_client(connector=FakeConnector(gate=gate))

    task = asyncio.create_task(client.connect())
    await asyncio.sleep(0)

    assert client.status.connection_attempted is True
    assert client.status.connected is False

    gate.set()
    await task
    assert client.status.connected is True


async def test_transport_failure_rejects_connect():
    client = make_client(connector=FakeConnector(open_error=OSError("refused")))

    with pytest.raises(SessionConnectionError) as info:
        await client.connect()

    assert isinstance(info.value.inner, OSError)
    assert client.connection_status is ConnectionStatus.FAILED
    assert client.status.connected is False
    assert client.status.connection_attempted is True


async def test_error_before_ready_rejects_once_and_removes_handlers():
    connection = FakeConnection(handshake_error=ConnectionError("bad cert"))
    client = make_client(connection)

    with pytest.raises(SessionConnectionError):
        await client.connect()

    assert client.connection_status is ConnectionStatus.FAILED
    assert connection.handlers["error"] == []
    assert connection.handlers["initialized"] == []
    assert connection.disconnect_calls == 1

    # A late ready signal has nobody listening and changes nothing
    connection.emit("initialized")
    assert client.status.connected is False


async def test_handshake_timeout_rejects_connect():
    connection = FakeConnection(ready=False)
    client = make_client(connection, connect_timeout_s=0.01)

    with pytest.raises(SessionConnectionError):
        await client.connect()

    assert client.connection_status is ConnectionStatus.FAILED


async def test_second_connect_while_outstanding_is_rejected():
    gate = asyncio.Event()
    connector = FakeConnector(gate=gate)
    client = make_client(connector=connector)

    first = asyncio.create_task(client.connect())
    await asyncio.sleep(0)

    with pytest.raises(InvalidStateError):
        await client.connect()

    gate.set()
    await first
    assert connector.open_calls == 1


async def test_connect_when_already_up_is_rejected():
    client = make_client()
    await client.connect()

    with pytest.raises(InvalidStateError):
        await client.connect()


# ---------------------------------------------------------------------
# Disconnect
# ---------------------------------------------------------------------

async def test_disconnect_marks_down_and_tears_down_transport():
    connection = FakeConnection()
    client = make_client(connection)
    await client.connect()

    await client.disconnect()

    assert client.connection_status is ConnectionStatus.DOWN
    assert client.status.connected is False
    assert client.status.connection_attempted is True
    assert connection.disconnect_calls == 1
    assert connection.handlers["voice"] == []


async def test_disconnect_during_handshake_fails_the_attempt():
    connection = FakeConnection(ready=False)
    client = make_client(connection)

    attempt = asyncio.create_task(client.connect())
    await asyncio.sleep(0)
    assert client.connection_status is ConnectionStatus.CONNECTING

    await client.disconnect()

    with pytest.raises(SessionConnectionError):
        await attempt

    assert client.connection_status is ConnectionStatus.DOWN
    assert connection.disconnect_calls == 1
    assert connection.handlers["initialized"] == []
    assert connection.handlers["voice"] == []

    # A late ready signal cannot bring the session up
    connection.emit("initialized")
    assert client.status.connected is False


async def test_disconnect_while_transport_opening_fails_the_attempt():
    gate = asyncio.Event()
    connector = FakeConnector(gate=gate)
    client = make_client(connector=connector)

    attempt = asyncio.create_task(client.connect())
    await asyncio.sleep(0)

    await client.disconnect()
    gate.set()

    with pytest.raises(SessionConnectionError):
        await attempt

    assert client.connection_status is ConnectionStatus.DOWN
    assert connector.connection.authenticated_as is None
    assert connector.connection.disconnect_calls == 1


async def test_second_disconnect_is_noop():
    connection = FakeConnection()
    client = make_client(connection)
    await client.connect()

    await client.disconnect()
    await client.disconnect()

    assert client.connection_status is ConnectionStatus.DOWN
    assert connection.disconnect_calls == 1


async def test_disconnect_on_never_connected_client_is_noop():
    connection = FakeConnection()
    client = make_client(connection)

    await client.disconnect()

    assert client.connection_status is ConnectionStatus.IDLE
    assert connection.disconnect_calls == 0


# ---------------------------------------------------------------------
# Post-ready errors and events
# ---------------------------------------------------------------------

async def test_post_ready_error_is_terminal():
    connection = FakeConnection()
    client = make_client(connection)
    received: list[SessionEvent] = []
    client.subscribe(received.append)
    await client.connect()

    connection.emit("error", ConnectionError("server went away"))

    assert client.connection_status is ConnectionStatus.FAILED
    assert client.status.connected is False
    assert len(received) == 1
    assert isinstance(received[0], SessionTerminated)
    assert isinstance(received[0].error, ConnectionError)


async def test_voice_and_message_events_reach_subscribers():
    connection = FakeConnection()
    client = make_client(connection)
    received: list[SessionEvent] = []
    client.subscribe(received.append)
    await client.connect()

    connection.emit("voice", b"\x01\x02", "alice")
    connection.emit("message", "hello", "bob", "channel")

    assert received[0] == VoiceReceived(
        event_type=received[0].event_type,
        ts_ms=received[0].ts_ms,
        pcm=b"\x01\x02",
        sender="alice",
    )
    assert isinstance(received[1], MessageReceived)
    assert received[1].text == "hello"
    assert received[1].sender == "bob"


async def test_async_subscriber_is_scheduled():
    connection = FakeConnection()
    client = make_client(connection)
    received: list[SessionEvent] = []

    async def handler(event: SessionEvent) -> None:
        received.append(event)

    client.subscribe(handler)
    await client.connect()

    connection.emit("voice", b"\x00\x00")
    await asyncio.sleep(0)

    assert len(received) == 1


# ---------------------------------------------------------------------
# Channels / messages
# ---------------------------------------------------------------------

async def test_join_by_name_updates_current_channel():
    lobby = FakeChannel(5, "Lobby")
    connection = FakeConnection(channels=[FakeChannel(0, "Root"), lobby])
    client = make_client(connection)
    await client.connect()

    ref = await client.join_channel_by_name("Lobby")

    assert ref.id == 5
    assert client.status.current_channel == ref


async def test_join_by_id_unknown_channel_is_not_found():
    client = make_client()
    await client.connect()

    with pytest.raises(ChannelNotFoundError):
        await client.join_channel_by_id(99)


async def test_join_requires_connection():
    client = make_client()

    with pytest.raises(InvalidStateError):
        await client.join_channel_by_name("Lobby")


async def test_send_message_goes_to_current_channel():
    root = FakeChannel(0, "Root")
    client = make_client(FakeConnection(channels=[root]))
    await client.connect()

    client.send_message_to_current_channel("CALLING")

    assert root.messages == ["CALLING"]


async def test_send_message_when_disconnected_fails_fast():
    client = make_client()

    with pytest.raises(InvalidStateError):
        client.send_message_to_current_channel("CALLING")


async def test_input_stream_requires_connection():
    connection = FakeConnection()
    client = make_client(connection)

    with pytest.raises(InvalidStateError):
        client.input_stream()

    await client.connect()
    assert client.input_stream() is connection.sink
