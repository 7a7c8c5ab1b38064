"""
Events emitted by SessionClient to its subscribers.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionEventType(str, Enum):
    VOICE = "VOICE"
    MESSAGE = "MESSAGE"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class SessionEvent:
    """
    Base session event.

    event_type: discriminant
    ts_ms: wall-clock time the event was observed
    """

    event_type: SessionEventType
    ts_ms: int


@dataclass(frozen=True)
class VoiceReceived(SessionEvent):
    """A decoded PCM frame from another user."""
    pcm: bytes
    sender: str | None = None


@dataclass(frozen=True)
class MessageReceived(SessionEvent):
    """A text message delivered to this user."""
    text: str
    sender: str | None = None
    scope: str = "channel"


@dataclass(frozen=True)
class SessionTerminated(SessionEvent):
    """
    The session ended unexpectedly after it was ready.

    Terminal: the client never reconnects on its own.
    """
    reason: str
    error: BaseException | None = None
