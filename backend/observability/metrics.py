"""
Timing helpers for observability.

- Durations use monotonic time
- Each measurement emits one METRIC_TIMER event via observability.logger
- Prefer the `timed()` context manager so timers cannot leak
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


# timer_id -> (metric_name, start_time_ns)
_active_timers: dict[str, tuple[str, int]] = {}


def start_timer(name: str) -> str:
    """
    Start a monotonic timer and return its opaque id.

    Callers MUST call stop_timer() in a finally block unless using timed().
    """
    timer_id = f"timer_{uuid.uuid4().hex[:12]}"
    _active_timers[timer_id] = (name, time.monotonic_ns())
    return timer_id


def stop_timer(
    timer_id: str,
    *,
    outcome: str = "ok",
    details: dict[str, Any] | None = None,
) -> int | None:
    """
    Stop a timer and emit its metric event.

    Returns:
        duration_ms if the timer existed, else None
    """
    entry = _active_timers.pop(timer_id, None)
    if entry is None:
        return None

    name, start_ns = entry
    duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    log_event({
        "event_type": "METRIC_TIMER",
        "level": "debug",
        "metric": name,
        "value_ms": duration_ms,
        "outcome": outcome,
        "details": details or {},
    })

    return duration_ms


@contextmanager
def timed(name: str, *, details: dict[str, Any] | None = None) -> Iterator[None]:
    """
    Measure the enclosed block.

    The metric is emitted exactly once; an exception inside the block is
    recorded as ``outcome="error"`` and re-raised.

    Usage:
        with timed("session_connect", details={"server": server}):
            await connection_ready
    """
    timer_id = start_timer(name)
    outcome = "ok"
    try:
        yield
    except BaseException:
        outcome = "error"
        raise
    finally:
        stop_timer(timer_id, outcome=outcome, details=details)
