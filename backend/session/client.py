"""
Session client: one connection lifetime to the voice server.

Responsibilities:
- Owns the ConnectionStatus state machine (single writer)
- Performs the connect / authenticate / ready handshake
- Binds long-lived voice/message/error handlers after readiness
- Delegates channel joins to ChannelJoiner
- Publishes SessionEvents to subscribers

NOT responsible for:
- Reconnecting. A SessionTerminated event is terminal; the orchestrator
  decides whether to build a new client.
- Audio capture/playback (the orchestrator pipes streams)

Decisions:
- A post-ready "error" flips status to FAILED, so `connected` reads False
  as soon as the session is gone.
- disconnect() on a client that never opened a transport is a no-op.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Union

from adapters.voice.base import PcmSink, VoiceConnection, VoiceConnector
from config import SessionConfig
from errors import InvalidStateError, SessionConnectionError
from observability.logger import log_event, now_ms
from observability.metrics import timed
from session.channel import ChannelRef
from session.connection_status import ConnectionStatus
from session.events import (
    MessageReceived,
    SessionEvent,
    SessionEventType,
    SessionTerminated,
    VoiceReceived,
)
from session.joiner import ChannelJoiner
from session.status import SessionStatus
from spec import CHANNEL_JOIN_POLL_DELAY_S, CHANNEL_JOIN_RETRY_LIMIT


SessionEventHandler = Callable[[SessionEvent], Union[None, Awaitable[None]]]


class SessionClient:
    """One client == one session. Replaced wholesale on reconfiguration."""

    def __init__(
        self,
        *,
        config: SessionConfig,
        connector: VoiceConnector,
        join_retry_limit: int = CHANNEL_JOIN_RETRY_LIMIT,
        join_poll_delay_s: float = CHANNEL_JOIN_POLL_DELAY_S,
    ) -> None:
        self.config = config
        self._connector = connector
        self._status = ConnectionStatus.IDLE
        self._connection: VoiceConnection | None = None
        self._subscribers: list[SessionEventHandler] = []
        self._pending: set[asyncio.Task[None]] = set()
        self._ready: asyncio.Future[None] | None = None

        self._joiner = ChannelJoiner(
            current_channel_id=self._current_channel_id,
            retry_limit=join_retry_limit,
            poll_delay_s=join_poll_delay_s,
        )

    # ------------------------------------------------------------------
    # Status (read-only)
    # ------------------------------------------------------------------

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._status

    @property
    def connected(self) -> bool:
        return self._status.connected

    @property
    def status(self) -> SessionStatus:
        current: ChannelRef | None = None
        if self.connected and self._connection is not None:
            channel = self._connection.current_channel
            if channel is not None:
                current = ChannelRef.from_channel(channel)
        return SessionStatus(connection_status=self._status, current_channel=current)

    def log_context(self) -> dict[str, Any]:
        return {
            "server": self.config.server,
            "port": self.config.port,
            "username": self.config.username,
            "connection_status": self._status.value,
        }

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, handler: SessionEventHandler) -> None:
        """Register a handler for VoiceReceived/MessageReceived/SessionTerminated."""
        self._subscribers.append(handler)

    def unsubscribe(self, handler: SessionEventHandler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def _publish(self, event: SessionEvent) -> None:
        for handler in list(self._subscribers):
            result = handler(event)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Open, authenticate and wait for readiness.

        Raises:
            InvalidStateError: a connect attempt is outstanding or the
                session is already up
            SessionConnectionError: transport failure, error before ready,
                handshake timeout, or disconnect() before ready
        """
        if self._status in (ConnectionStatus.CONNECTING, ConnectionStatus.UP):
            raise InvalidStateError(
                f"Cannot connect: session is {self._status.value}"
            )

        self._status = ConnectionStatus.CONNECTING
        log_event({"event_type": "SESSION_CONNECTING", **self.log_context()})

        try:
            with timed("session_connect", details={"server": self.config.server}):
                connection = await self._open()
                self._check_still_connecting()
                await self._handshake(connection)
                self._check_still_connecting()
        except SessionConnectionError as exc:
            # An explicit disconnect mid-handshake leaves the status DOWN
            if self._status is ConnectionStatus.CONNECTING:
                self._status = ConnectionStatus.FAILED
            log_event({
                "event_type": "SESSION_CONNECT_FAILED",
                "level": "error",
                "error": exc.message,
                "inner": repr(exc.inner),
                **self.log_context(),
            })
            self._teardown_transport()
            raise

        connection.on("voice", self._on_voice)
        connection.on("message", self._on_message)
        connection.on("error", self._on_error)

        self._status = ConnectionStatus.UP
        log_event({"event_type": "SESSION_READY", **self.log_context()})

    def _check_still_connecting(self) -> None:
        if self._status is not ConnectionStatus.CONNECTING:
            raise SessionConnectionError("Disconnected during handshake")

    async def _open(self) -> VoiceConnection:
        try:
            connection = await self._connector.open(
                self.config.server,
                port=self.config.port,
                key_file=self.config.key_file,
                cert_file=self.config.cert_file,
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SessionConnectionError("Voice server connection error", inner=exc) from exc

        self._connection = connection
        log_event({
            "event_type": "SESSION_TRANSPORT_OPEN",
            "level": "debug",
            **self.log_context(),
        })
        return connection

    async def _handshake(self, connection: VoiceConnection) -> None:
        ready: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._ready = ready

        def on_handshake_error(error: BaseException) -> None:
            if not ready.done():
                ready.set_exception(
                    SessionConnectionError("Error establishing voice session", inner=error)
                )

        def on_initialized() -> None:
            if not ready.done():
                ready.set_result(None)

        connection.on("error", on_handshake_error)
        connection.on("initialized", on_initialized)
        try:
            try:
                connection.authenticate(self.config.username, self.config.cert_file)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise SessionConnectionError("Authentication failed", inner=exc) from exc

            timeout = self.config.connect_timeout_s
            try:
                await asyncio.wait_for(ready, timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise SessionConnectionError(
                    f"Voice session not ready after {timeout}s", inner=exc
                ) from exc
        finally:
            self._ready = None
            connection.remove_listener("error", on_handshake_error)
            connection.remove_listener("initialized", on_initialized)

    async def disconnect(self) -> None:
        """
        Mark DOWN, then tear down the transport.

        No-op (logged) if no transport is open. A connect() still waiting
        for readiness fails with SessionConnectionError.
        """
        if self._connection is None and self._status is not ConnectionStatus.CONNECTING:
            log_event({
                "event_type": "SESSION_DISCONNECT_NOOP",
                "level": "debug",
                **self.log_context(),
            })
            return

        self._status = ConnectionStatus.DOWN
        log_event({"event_type": "SESSION_DISCONNECTING", **self.log_context()})
        if self._ready is not None and not self._ready.done():
            self._ready.set_exception(
                SessionConnectionError("Disconnected during handshake")
            )
        self._teardown_transport()

    def _teardown_transport(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        connection.remove_listener("voice", self._on_voice)
        connection.remove_listener("message", self._on_message)
        connection.remove_listener("error", self._on_error)
        try:
            connection.disconnect()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SESSION_TEARDOWN_ERROR",
                "level": "warning",
                "error": repr(exc),
                **self.log_context(),
            })

    # ------------------------------------------------------------------
    # Channels / messages
    # ------------------------------------------------------------------

    async def join_channel_by_name(self, name: str) -> ChannelRef:
        connection = self._require_connected("join channel")
        return await self._joiner.join(lambda: connection.channel_by_name(name), name)

    async def join_channel_by_id(self, channel_id: int) -> ChannelRef:
        connection = self._require_connected("join channel")
        return await self._joiner.join(lambda: connection.channel_by_id(channel_id), channel_id)

    def send_message_to_current_channel(self, text: str) -> None:
        """
        Send `text` to whatever channel this user occupies.

        Raises:
            InvalidStateError: not connected, or the user is in no channel
        """
        connection = self._require_connected("send message")
        channel = connection.current_channel
        if channel is None:
            raise InvalidStateError("Cannot send message: not in a channel")

        log_event({
            "event_type": "SESSION_MESSAGE_SENT",
            "channel": channel.name,
            "text": text,
        })
        channel.send_message(text)

    def input_stream(self) -> PcmSink:
        """Sink for this user's outgoing voice."""
        return self._require_connected("open input stream").input_stream()

    def _require_connected(self, action: str) -> VoiceConnection:
        if not self.connected or self._connection is None:
            raise InvalidStateError(
                f"Cannot {action}: session is {self._status.value}"
            )
        return self._connection

    def _current_channel_id(self) -> int | None:
        if self._connection is None:
            return None
        channel = self._connection.current_channel
        return channel.id if channel is not None else None

    # ------------------------------------------------------------------
    # Long-lived connection handlers
    # ------------------------------------------------------------------

    def _on_voice(self, pcm: bytes, sender: str | None = None) -> None:
        self._publish(VoiceReceived(
            event_type=SessionEventType.VOICE,
            ts_ms=now_ms(),
            pcm=pcm,
            sender=sender,
        ))

    def _on_message(self, text: str, sender: str | None = None, scope: str = "channel") -> None:
        log_event({
            "event_type": "SESSION_MESSAGE_RECEIVED",
            "level": "debug",
            "sender": sender,
            "scope": scope,
            "text": text,
        })
        self._publish(MessageReceived(
            event_type=SessionEventType.MESSAGE,
            ts_ms=now_ms(),
            text=text,
            sender=sender,
            scope=scope,
        ))

    def _on_error(self, error: BaseException) -> None:
        if self._status is not ConnectionStatus.UP:
            return
        self._status = ConnectionStatus.FAILED
        log_event({
            "event_type": "SESSION_TERMINATED",
            "level": "error",
            "error": repr(error),
            **self.log_context(),
        })
        self._publish(SessionTerminated(
            event_type=SessionEventType.TERMINATED,
            ts_ms=now_ms(),
            reason="Voice session terminated due to an error. Re-connect needed",
            error=error,
        ))
