# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from errors import InvalidStateError
from hardware.buttons import ButtonEdge, ButtonId, Edge
from talk.controller import TalkController

from fakes import FakeHardware


class Rig:
    def __init__(self, *, send_error: Exception | None = None) -> None:
        self.hardware = FakeHardware()
        self.mic: list[str] = []
        self.sent: list[str] = []
        self.send_error = send_error
        self.now = 0
        self.controller = TalkController(
            indicators=self.hardware,
            resume_mic=lambda: self.mic.append("resume"),
            pause_mic=lambda: self.mic.append("pause"),
            send_message=self._send,
            clock_ms=lambda: self.now,
        )

    def _send(self, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(text)

    def tap(self, down_ms: int, up_ms: int) -> None:
        self.controller.key_down_talk(down_ms)
        self.controller.key_up_talk(up_ms)


# ---------------------------------------------------------------------
# Basic transmit
# ---------------------------------------------------------------------

def test_key_down_starts_transmitting():
    rig = Rig()

    rig.controller.key_down_talk(0)

    assert rig.controller.state.transmitting is True
    assert rig.mic == ["resume"]
    assert rig.hardware.status.talk_led is True


def test_key_up_stops_transmitting():
    rig = Rig()

    rig.tap(0, 2000)

    state = rig.controller.state
    assert state.transmitting is False
    assert state.mic_latch is False
    assert rig.mic == ["resume", "pause"]
    assert rig.hardware.status.talk_led is False


def test_histories_are_capped_newest_first():
    rig = Rig()

    rig.tap(0, 5000)
    rig.tap(10_000, 15_000)
    rig.tap(20_000, 25_000)

    assert rig.controller.state.key_down_times_ms == [20_000, 10_000]
    assert rig.controller.state.key_up_times_ms == [25_000, 15_000]


# ---------------------------------------------------------------------
# Latch
# ---------------------------------------------------------------------

def test_double_tap_latches():
    rig = Rig()

    rig.tap(0, 100)
    rig.tap(300, 400)

    state = rig.controller.state
    assert state.mic_latch is True
    assert state.transmitting is True
    assert state.key_down_times_ms == []
    assert rig.mic == ["resume", "pause", "resume"]
    assert rig.hardware.status.talk_led is True


def test_latch_boundaries_are_inclusive():
    rig = Rig()

    rig.tap(0, 500)
    rig.tap(750, 1250)

    assert rig.controller.state.mic_latch is True


@pytest.mark.parametrize(
    "taps",
    [
        [(0, 501), (600, 700)],      # first hold too long
        [(0, 100), (700, 1201)],     # second hold too long
        [(0, 100), (751, 800)],      # key-downs too far apart
    ],
)
def test_any_violation_prevents_latch(taps):
    rig = Rig()

    for down, up in taps:
        rig.tap(down, up)

    assert rig.controller.state.mic_latch is False
    assert rig.controller.state.transmitting is False


def test_single_tap_never_latches():
    rig = Rig()

    rig.tap(0, 50)

    assert rig.controller.state.mic_latch is False


def test_next_press_after_latch_releases():
    rig = Rig()
    rig.tap(0, 100)
    rig.tap(300, 400)

    rig.tap(5000, 5100)

    state = rig.controller.state
    assert state.mic_latch is False
    assert state.transmitting is False
    assert rig.mic[-1] == "pause"


# ---------------------------------------------------------------------
# Unlatch
# ---------------------------------------------------------------------

def test_unlatch_when_not_latched_is_rejected_without_side_effects():
    rig = Rig()
    rig.controller.key_down_talk(0)

    with pytest.raises(InvalidStateError) as info:
        rig.controller.unlatch()

    assert info.value.code == 400
    assert rig.controller.state.transmitting is True
    assert rig.mic == ["resume"]


def test_unlatch_behaves_like_key_up():
    rig = Rig()
    rig.tap(0, 100)
    rig.tap(300, 400)
    rig.now = 9000

    rig.controller.unlatch()

    state = rig.controller.state
    assert state.mic_latch is False
    assert state.transmitting is False
    assert state.key_up_times_ms[0] == 9000
    assert rig.mic[-1] == "pause"
    assert rig.hardware.status.talk_led is False


# ---------------------------------------------------------------------
# Call
# ---------------------------------------------------------------------

def test_call_press_and_release_send_alerts():
    rig = Rig()

    rig.controller.call(True)
    assert rig.controller.state.calling is True
    assert rig.hardware.status.call_led is True

    rig.controller.call(False)
    assert rig.controller.state.calling is False
    assert rig.hardware.status.call_led is False

    assert rig.sent == ["CALLING", "END CALLING"]


def test_call_alert_failure_is_best_effort():
    rig = Rig(send_error=InvalidStateError("not connected"))

    rig.controller.call(True)

    assert rig.controller.state.calling is True
    assert rig.hardware.status.call_led is True


# ---------------------------------------------------------------------
# Edge dispatch
# ---------------------------------------------------------------------

def test_handle_edge_routes_by_button():
    rig = Rig()

    rig.controller.handle_edge(ButtonEdge(ButtonId.TALK, Edge.DOWN, 0))
    assert rig.controller.state.transmitting is True

    rig.controller.handle_edge(ButtonEdge(ButtonId.TALK, Edge.UP, 1000))
    assert rig.controller.state.transmitting is False

    rig.controller.handle_edge(ButtonEdge(ButtonId.CALL, Edge.DOWN, 2000))
    assert rig.sent == ["CALLING"]


def test_reset_clears_transmit_state():
    rig = Rig()
    rig.tap(0, 100)
    rig.tap(300, 400)

    rig.controller.reset()

    state = rig.controller.state
    assert (state.transmitting, state.mic_latch) == (False, False)
    assert state.key_up_times_ms == []
    assert rig.hardware.status.talk_led is False
