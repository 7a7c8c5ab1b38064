"""
Voice-protocol client contract.

This module defines the *interface only*. The wire protocol, transport,
encryption and codec all live behind it in a concrete adapter.

Threading contract:
- Handlers registered with VoiceConnection.on() are invoked on the
  asyncio event loop thread. Adapters backed by threaded libraries must
  marshal callbacks onto the loop before invoking handlers.

Events a connection emits:
- "initialized": ()                        handshake complete, ready to use
- "error":       (error: BaseException)    transport failure
- "voice":       (pcm: bytes, sender: str | None)
- "message":     (text: str, sender: str | None, scope: str)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol


EventHandler = Callable[..., Any]


class PcmSink(Protocol):
    """Byte-consuming endpoint (PCM16 mono at the session sample rate)."""

    def write(self, pcm: bytes) -> None: ...


class VoiceChannel(ABC):
    """A channel on the voice server."""

    @property
    @abstractmethod
    def id(self) -> int:
        raise NotImplementedError

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def join(self) -> None:
        """
        Request to move the session's user into this channel.

        Non-blocking: confirmation arrives asynchronously and is observed
        through VoiceConnection.current_channel.
        """
        raise NotImplementedError

    @abstractmethod
    def send_message(self, text: str) -> None:
        raise NotImplementedError


class VoiceConnection(ABC):
    """An open transport to the voice server."""

    @abstractmethod
    def authenticate(self, username: str, cert_file: str | None = None) -> None:
        """
        Begin authentication. Completion is signalled by "initialized",
        failure by "error".
        """
        raise NotImplementedError

    @abstractmethod
    def on(self, event: str, handler: EventHandler) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_listener(self, event: str, handler: EventHandler) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        raise NotImplementedError

    @abstractmethod
    def channel_by_name(self, name: str) -> VoiceChannel | None:
        raise NotImplementedError

    @abstractmethod
    def channel_by_id(self, channel_id: int) -> VoiceChannel | None:
        raise NotImplementedError

    @property
    @abstractmethod
    def current_channel(self) -> VoiceChannel | None:
        """Channel the session's user currently occupies."""
        raise NotImplementedError

    @abstractmethod
    def input_stream(self) -> PcmSink:
        """Sink whose bytes are transmitted as this user's voice."""
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> None:
        raise NotImplementedError


class VoiceConnector(ABC):
    """Factory for VoiceConnection instances."""

    @abstractmethod
    async def open(
        self,
        server: str,
        *,
        port: int,
        key_file: str | None = None,
        cert_file: str | None = None,
    ) -> VoiceConnection:
        """
        Open a transport to the server.

        Raises on transport-level failure. The returned connection is not
        yet authenticated.
        """
        raise NotImplementedError
