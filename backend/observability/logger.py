"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- Events below the configured minimum level are dropped
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
}

_min_level: int = LEVELS["info"]


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print


def now_ms() -> int:
    """Wall-clock milliseconds for event timestamps."""
    return time.time_ns() // 1_000_000


def set_level(name: str) -> None:
    """
    Set the minimum level that reaches the sink.

    Unknown names fall back to "info".
    """
    global _min_level  # pylint: disable=global-statement
    _min_level = LEVELS.get(name.strip().lower(), LEVELS["info"])


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller supplies a fully-formed event dict with at least
    ``event_type``. ``ts_ms`` and ``level`` are filled in when absent.

    Never raises.
    """
    level = str(event.get("level", "info"))
    if LEVELS.get(level, LEVELS["info"]) < _min_level:
        return

    payload: dict[str, Any] = {"ts_ms": now_ms(), "level": level}
    payload.update(event)

    try:
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash the service
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "level": "error",
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
