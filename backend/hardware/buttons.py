"""
Button edge events emitted by the hardware layer.

Timestamps are monotonic milliseconds taken when the edge was observed,
so hold/gap arithmetic is immune to wall-clock changes.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum


class ButtonId(str, Enum):
    TALK = "TALK"
    CALL = "CALL"


class Edge(str, Enum):
    DOWN = "DOWN"
    UP = "UP"


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


@dataclass(frozen=True)
class ButtonEdge:
    button: ButtonId
    edge: Edge
    ts_ms: int
