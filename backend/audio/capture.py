"""
Microphone capture on a sounddevice raw input stream.

The device stays open from start() to stop(); pause()/resume() gate
whether captured blocks reach the sink. PortAudio invokes the callback
on its own thread; the sink must be thread-safe.
"""

from __future__ import annotations

from typing import Any

import sounddevice as sd

from adapters.voice.base import PcmSink
from observability.logger import log_event
from spec import (
    AUDIO_BLOCK_FRAMES,
    AUDIO_CHANNELS,
    AUDIO_DTYPE,
    AUDIO_SAMPLE_RATE_HZ,
)


class MicCapture:
    def __init__(self, *, sink: PcmSink, device: str | None = None) -> None:
        self._sink = sink
        self._device = device
        self._stream: sd.RawInputStream | None = None
        self._paused = True

    @property
    def active(self) -> bool:
        return self._stream is not None and not self._paused

    def start(self) -> None:
        """Open and start the input device. Raises sounddevice.PortAudioError."""
        self._stream = sd.RawInputStream(
            samplerate=AUDIO_SAMPLE_RATE_HZ,
            channels=AUDIO_CHANNELS,
            dtype=AUDIO_DTYPE,
            blocksize=AUDIO_BLOCK_FRAMES,
            device=self._device,
            callback=self._callback,
        )
        self._stream.start()
        self._paused = False
        log_event({"event_type": "MIC_STARTED", "device": self._device})

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def stop(self) -> None:
        self._paused = True
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
            log_event({"event_type": "MIC_STOPPED", "device": self._device})

    def _callback(self, indata: Any, frames: int, time_info: Any, status: sd.CallbackFlags) -> None:
        if status:
            log_event({
                "event_type": "MIC_STREAM_STATUS",
                "level": "warning",
                "status": str(status),
            })
        if self._paused:
            return
        self._sink.write(bytes(indata))
