"""
Mumble voice adapter backed by pymumble.

pymumble runs its own network thread and fires callbacks on it. Every
callback is marshalled onto the asyncio loop captured at open() time
before any registered handler runs, so SessionClient never sees a
foreign thread.

Lifecycle:
- open():          records server/options; nothing touches the network yet
- authenticate():  constructs the pymumble client, starts its thread, and
                   waits (off-loop) for readiness
- "initialized":   emitted once the server sync completes
- "error":         emitted if readiness fails, or if the server drops us
                   after readiness (not emitted for our own disconnect())
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

from pymumble_py3 import Mumble
from pymumble_py3.constants import (
    PYMUMBLE_CLBK_DISCONNECTED,
    PYMUMBLE_CLBK_SOUNDRECEIVED,
    PYMUMBLE_CLBK_TEXTMESSAGERECEIVED,
    PYMUMBLE_CONN_STATE_CONNECTED,
)
from pymumble_py3.errors import UnknownChannelError

from adapters.voice.base import (
    EventHandler,
    PcmSink,
    VoiceChannel,
    VoiceConnection,
    VoiceConnector,
)
from observability.logger import log_event


class MumbleChannel(VoiceChannel):
    """Thin view over a pymumble channel dict."""

    def __init__(self, raw: Any) -> None:
        self._raw = raw

    @property
    def id(self) -> int:
        return int(self._raw["channel_id"])

    @property
    def name(self) -> str:
        return str(self._raw["name"])

    def join(self) -> None:
        self._raw.move_in()

    def send_message(self, text: str) -> None:
        self._raw.send_text_message(text)


class _MumbleSoundSink:
    """PcmSink that queues bytes on the pymumble sound output."""

    def __init__(self, mumble: Mumble) -> None:
        self._mumble = mumble

    def write(self, pcm: bytes) -> None:
        self._mumble.sound_output.add_sound(pcm)


class MumbleConnection(VoiceConnection):
    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        server: str,
        port: int,
        key_file: str | None,
        cert_file: str | None,
    ) -> None:
        self._loop = loop
        self._server = server
        self._port = port
        self._key_file = key_file
        self._cert_file = cert_file

        self._mumble: Mumble | None = None
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._ready = False
        self._closing = False
        self._ready_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    def authenticate(self, username: str, cert_file: str | None = None) -> None:
        mumble = Mumble(
            self._server,
            username,
            port=self._port,
            certfile=cert_file or self._cert_file,
            keyfile=self._key_file,
            reconnect=False,
        )
        mumble.set_receive_sound(True)
        mumble.callbacks.set_callback(PYMUMBLE_CLBK_SOUNDRECEIVED, self._on_sound)
        mumble.callbacks.set_callback(PYMUMBLE_CLBK_TEXTMESSAGERECEIVED, self._on_text)
        mumble.callbacks.set_callback(PYMUMBLE_CLBK_DISCONNECTED, self._on_disconnected)
        self._mumble = mumble

        mumble.start()
        self._ready_task = self._loop.create_task(self._await_ready(mumble))

    async def _await_ready(self, mumble: Mumble) -> None:
        # is_ready() blocks until pymumble syncs or gives up
        await asyncio.to_thread(mumble.is_ready)
        if mumble.connected == PYMUMBLE_CONN_STATE_CONNECTED:
            self._ready = True
            self._emit("initialized")
        else:
            self._emit(
                "error",
                ConnectionError(f"Mumble server {self._server}:{self._port} rejected the connection"),
            )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def remove_listener(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def _emit(self, event: str, *args: Any) -> None:
        # Copy: handlers may remove themselves while running
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    def _emit_threadsafe(self, event: str, *args: Any) -> None:
        self._loop.call_soon_threadsafe(self._emit, event, *args)

    def _on_sound(self, user: Any, soundchunk: Any) -> None:
        sender = user["name"] if user is not None else None
        self._emit_threadsafe("voice", soundchunk.pcm, sender)

    def _on_text(self, text_message: Any) -> None:
        sender: str | None = None
        if self._mumble is not None:
            actor = self._mumble.users.get(text_message.actor)
            if actor is not None:
                sender = actor["name"]
        scope = "channel" if len(text_message.channel_id) > 0 else "private"
        self._emit_threadsafe("message", text_message.message, sender, scope)

    def _on_disconnected(self) -> None:
        if self._closing or not self._ready:
            return
        self._emit_threadsafe(
            "error",
            ConnectionError(f"Mumble server {self._server}:{self._port} closed the connection"),
        )

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def channel_by_name(self, name: str) -> VoiceChannel | None:
        try:
            raw = self._require().channels.find_by_name(name)
        except UnknownChannelError:
            return None
        return MumbleChannel(raw)

    def channel_by_id(self, channel_id: int) -> VoiceChannel | None:
        raw = self._require().channels.get(channel_id)
        if raw is None:
            return None
        return MumbleChannel(raw)

    @property
    def current_channel(self) -> VoiceChannel | None:
        mumble = self._require()
        myself = mumble.users.myself
        if myself is None:
            return None
        return self.channel_by_id(myself["channel_id"])

    # ------------------------------------------------------------------
    # Audio / teardown
    # ------------------------------------------------------------------

    def input_stream(self) -> PcmSink:
        return _MumbleSoundSink(self._require())

    def disconnect(self) -> None:
        self._closing = True
        if self._ready_task is not None and not self._ready_task.done():
            self._ready_task.cancel()
        if self._mumble is not None:
            self._mumble.stop()
            log_event({
                "event_type": "MUMBLE_TRANSPORT_STOPPED",
                "level": "debug",
                "server": self._server,
            })

    def _require(self) -> Mumble:
        if self._mumble is None:
            raise RuntimeError("Mumble connection used before authenticate()")
        return self._mumble


class MumbleConnector(VoiceConnector):
    async def open(
        self,
        server: str,
        *,
        port: int,
        key_file: str | None = None,
        cert_file: str | None = None,
    ) -> VoiceConnection:
        return MumbleConnection(
            loop=asyncio.get_running_loop(),
            server=server,
            port=port,
            key_file=key_file,
            cert_file=cert_file,
        )
