"""Channel reference value object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from adapters.voice.base import VoiceChannel


@dataclass(frozen=True)
class ChannelRef:
    """Identifies a channel the session is in, or is being joined to."""

    id: int
    name: str

    @staticmethod
    def from_channel(channel: VoiceChannel) -> ChannelRef:
        return ChannelRef(id=channel.id, name=channel.name)

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}
