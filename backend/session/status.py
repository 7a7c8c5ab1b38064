"""Read-only session status snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from session.channel import ChannelRef
from session.connection_status import ConnectionStatus


@dataclass(frozen=True)
class SessionStatus:
    connection_status: ConnectionStatus
    current_channel: ChannelRef | None = None

    @property
    def connected(self) -> bool:
        return self.connection_status.connected

    @property
    def connection_attempted(self) -> bool:
        return self.connection_status.attempted

    def as_dict(self) -> dict[str, Any]:
        return {
            "connected": self.connected,
            "connection_attempted": self.connection_attempted,
            "connection_status": self.connection_status.value,
            "current_channel": (
                self.current_channel.as_dict() if self.current_channel else None
            ),
        }
