"""
Push-to-talk controller.

Turns raw button edges into transmit start/stop, call alerts and the
double-tap latch. Holds no stream references: the orchestrator owns the
microphone and hands in resume/pause callables.

Edges are handled synchronously on the event loop, so a key-up always
observes the state left by the preceding key-down.
"""

from __future__ import annotations

from typing import Callable, Protocol

from errors import InvalidStateError, PiComError
from hardware.buttons import ButtonEdge, ButtonId, Edge, monotonic_ms
from observability.logger import log_event
from spec import CALL_END_MESSAGE, CALL_START_MESSAGE
from talk.latch import decide_latch
from talk.state import TalkState, push_bounded


class Indicators(Protocol):
    def set_talk_led(self, on: bool) -> None: ...

    def set_call_led(self, on: bool) -> None: ...


class TalkController:
    def __init__(
        self,
        *,
        indicators: Indicators,
        resume_mic: Callable[[], None],
        pause_mic: Callable[[], None],
        send_message: Callable[[str], None],
        clock_ms: Callable[[], int] = monotonic_ms,
    ) -> None:
        self.state = TalkState()
        self._indicators = indicators
        self._resume_mic = resume_mic
        self._pause_mic = pause_mic
        self._send_message = send_message
        self._clock_ms = clock_ms

    # ------------------------------------------------------------------
    # Edge dispatch
    # ------------------------------------------------------------------

    def handle_edge(self, edge: ButtonEdge) -> None:
        if edge.button is ButtonId.TALK:
            if edge.edge is Edge.DOWN:
                self.key_down_talk(edge.ts_ms)
            else:
                self.key_up_talk(edge.ts_ms)
        else:
            self.call(edge.edge is Edge.DOWN)

    # ------------------------------------------------------------------
    # Talk
    # ------------------------------------------------------------------

    def key_down_talk(self, ts_ms: int | None = None) -> None:
        ts = self._clock_ms() if ts_ms is None else ts_ms
        self._resume_mic()
        push_bounded(self.state.key_down_times_ms, ts)
        self.state.transmitting = True
        self._indicators.set_talk_led(True)
        log_event({"event_type": "TALK_DOWN", "level": "debug", "ts_mono_ms": ts})

    def key_up_talk(self, ts_ms: int | None = None) -> None:
        ts = self._clock_ms() if ts_ms is None else ts_ms
        push_bounded(self.state.key_up_times_ms, ts)

        self.state.mic_latch = False
        self._evaluate_latch()

        if not self.state.mic_latch:
            self._pause_mic()
            self.state.transmitting = False
            self._indicators.set_talk_led(False)
        log_event({
            "event_type": "TALK_UP",
            "level": "debug",
            "ts_mono_ms": ts,
            "latched": self.state.mic_latch,
        })

    def _evaluate_latch(self) -> None:
        decision = decide_latch(self.state.key_down_times_ms, self.state.key_up_times_ms)
        if not decision.evaluated:
            return

        log_event({
            "event_type": "LATCH_ENABLED" if decision.latch else "LATCH_SKIPPED",
            "level": "debug",
            "first_hold_ms": decision.first_hold_ms,
            "second_hold_ms": decision.second_hold_ms,
            "gap_ms": decision.gap_ms,
        })
        if decision.latch:
            self.state.mic_latch = True
            self.state.key_down_times_ms.clear()

    def unlatch(self) -> None:
        """
        Release a latched mic as if the talk button had been let go.

        Raises:
            InvalidStateError: the mic is not latched (nothing changes)
        """
        if not self.state.mic_latch:
            log_event({"event_type": "UNLATCH_REJECTED", "level": "error"})
            raise InvalidStateError("Cannot unlatch. Mic not latched")

        log_event({"event_type": "UNLATCH_TRIGGERED"})
        self.key_up_talk()

    def reset(self) -> None:
        """Forget transmit/latch state after the mic was torn down."""
        self.state.transmitting = False
        self.state.mic_latch = False
        self.state.key_down_times_ms.clear()
        self.state.key_up_times_ms.clear()
        self._indicators.set_talk_led(False)

    # ------------------------------------------------------------------
    # Call
    # ------------------------------------------------------------------

    def call(self, pressed: bool) -> None:
        self.state.calling = pressed
        self._indicators.set_call_led(pressed)
        text = CALL_START_MESSAGE if pressed else CALL_END_MESSAGE
        try:
            self._send_message(text)
        except PiComError as exc:
            # Best effort: the alert is not retried
            log_event({
                "event_type": "CALL_ALERT_NOT_SENT",
                "level": "warning",
                "text": text,
                "error": exc.message,
            })
