"""
Per-service transmit state.

Mutated only by TalkController. Histories are newest-first and capped at
TALK_HISTORY_DEPTH entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from spec import TALK_HISTORY_DEPTH


def push_bounded(history: list[int], ts_ms: int) -> None:
    """Insert newest-first, dropping entries beyond TALK_HISTORY_DEPTH."""
    history.insert(0, ts_ms)
    del history[TALK_HISTORY_DEPTH:]


@dataclass
class TalkState:
    transmitting: bool = False
    mic_latch: bool = False
    calling: bool = False

    key_down_times_ms: list[int] = field(default_factory=list)
    key_up_times_ms: list[int] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "transmitting": self.transmitting,
            "mic_latch": self.mic_latch,
            "calling": self.calling,
        }
