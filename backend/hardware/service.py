"""
GPIO hardware service (buttons + indicator LEDs) on gpiozero.

gpiozero fires button callbacks on its own thread; edges are stamped
there and delivered to the asyncio loop with call_soon_threadsafe, so
consumers see edges strictly in arrival order on the loop thread.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

from gpiozero import LED, Button

from config import HardwareConfig
from hardware.buttons import ButtonEdge, ButtonId, Edge, monotonic_ms
from observability.logger import log_event
from spec import ERROR_FLASH_OFF_S, ERROR_FLASH_ON_S


EdgeHandler = Callable[[ButtonEdge], None]


@dataclass
class HardwareStatus:
    setup_done: bool = False
    talk_led: bool = False
    call_led: bool = False
    error_flasher: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "setup_done": self.setup_done,
            "talk_led": self.talk_led,
            "call_led": self.call_led,
            "error_flasher": self.error_flasher,
        }


class HardwareService:
    def __init__(self, config: HardwareConfig) -> None:
        self._config = config
        self.status = HardwareStatus()

        self._talk_button: Button | None = None
        self._call_button: Button | None = None
        self._talk_led: LED | None = None
        self._call_led: LED | None = None
        self._error_led: LED | None = None

        self._loop: asyncio.AbstractEventLoop | None = None
        self._on_edge: EdgeHandler | None = None

    def setup(self) -> bool:
        """
        Open the GPIO devices.

        Returns True on success. Failures are logged and leave
        status.setup_done False; the service keeps running without
        hardware.
        """
        cfg = self._config
        try:
            if cfg.talk_button_pin is not None:
                self._talk_button = Button(cfg.talk_button_pin, bounce_time=cfg.bounce_time_s)
                self._talk_button.when_pressed = lambda: self._edge(ButtonId.TALK, Edge.DOWN)
                self._talk_button.when_released = lambda: self._edge(ButtonId.TALK, Edge.UP)
            if cfg.call_button_pin is not None:
                self._call_button = Button(cfg.call_button_pin, bounce_time=cfg.bounce_time_s)
                self._call_button.when_pressed = lambda: self._edge(ButtonId.CALL, Edge.DOWN)
                self._call_button.when_released = lambda: self._edge(ButtonId.CALL, Edge.UP)
            if cfg.talk_led_pin is not None:
                self._talk_led = LED(cfg.talk_led_pin)
            if cfg.call_led_pin is not None:
                self._call_led = LED(cfg.call_led_pin)
            if cfg.error_led_pin is not None:
                self._error_led = LED(cfg.error_led_pin)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Pin factories raise RuntimeError/OSError off-Pi as well as GPIOZeroError
            log_event({
                "event_type": "HARDWARE_SETUP_FAILED",
                "level": "error",
                "error": repr(exc),
            })
            self.close()
            return False

        self.status.setup_done = True
        log_event({"event_type": "HARDWARE_SETUP_DONE"})
        return True

    def bind(self, on_edge: EdgeHandler, loop: asyncio.AbstractEventLoop) -> None:
        """Deliver button edges to `on_edge` on `loop`."""
        self._on_edge = on_edge
        self._loop = loop

    def _edge(self, button: ButtonId, edge: Edge) -> None:
        # gpiozero callback thread
        event = ButtonEdge(button=button, edge=edge, ts_ms=monotonic_ms())
        if self._loop is None or self._on_edge is None:
            return
        self._loop.call_soon_threadsafe(self._on_edge, event)

    # ------------------------------------------------------------------
    # Indicators
    # ------------------------------------------------------------------

    def set_talk_led(self, on: bool) -> None:
        self.status.talk_led = on
        _drive(self._talk_led, on)

    def set_call_led(self, on: bool) -> None:
        self.status.call_led = on
        _drive(self._call_led, on)

    def set_error_flasher(self, on: bool) -> None:
        if on == self.status.error_flasher:
            return
        self.status.error_flasher = on
        if self._error_led is None:
            return
        if on:
            self._error_led.blink(on_time=ERROR_FLASH_ON_S, off_time=ERROR_FLASH_OFF_S)
        else:
            self._error_led.off()

    def close(self) -> None:
        for device in (
            self._talk_button,
            self._call_button,
            self._talk_led,
            self._call_led,
            self._error_led,
        ):
            if device is not None:
                device.close()
        self._talk_button = self._call_button = None
        self._talk_led = self._call_led = self._error_led = None
        self.status.setup_done = False


def _drive(led: LED | None, on: bool) -> None:
    if led is None:
        return
    if on:
        led.on()
    else:
        led.off()
