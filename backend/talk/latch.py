"""
Double-tap latch policy.

This module contains NO timers, NO async, NO side effects.
"""
from __future__ import annotations

from dataclasses import dataclass

from spec import LATCH_GAP_MAX_MS, LATCH_HOLD_MAX_MS, TALK_HISTORY_DEPTH


@dataclass(frozen=True)
class LatchDecision:
    """
    Outcome of one latch evaluation.

    evaluated is False when fewer than two full press/release cycles are
    on record; the timing fields are then None.
    """
    latch: bool
    evaluated: bool
    first_hold_ms: int | None = None
    second_hold_ms: int | None = None
    gap_ms: int | None = None


def decide_latch(down_times_ms: list[int], up_times_ms: list[int]) -> LatchDecision:
    """
    Latch iff the last two taps were each held <= LATCH_HOLD_MAX_MS and
    their key-downs were <= LATCH_GAP_MAX_MS apart.

    Both histories are newest-first.
    """
    if len(down_times_ms) != TALK_HISTORY_DEPTH or len(up_times_ms) != TALK_HISTORY_DEPTH:
        return LatchDecision(latch=False, evaluated=False)

    first_hold = up_times_ms[1] - down_times_ms[1]
    second_hold = up_times_ms[0] - down_times_ms[0]
    gap = down_times_ms[0] - down_times_ms[1]

    latch = (
        first_hold <= LATCH_HOLD_MAX_MS
        and second_hold <= LATCH_HOLD_MAX_MS
        and gap <= LATCH_GAP_MAX_MS
    )
    return LatchDecision(
        latch=latch,
        evaluated=True,
        first_hold_ms=first_hold,
        second_hold_ms=second_hold,
        gap_ms=gap,
    )
