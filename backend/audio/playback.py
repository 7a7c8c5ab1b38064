"""
Speaker playback on a sounddevice raw output stream.

write() only appends to an in-memory buffer, so it never blocks the
event loop. The PortAudio callback drains the buffer and pads with
silence on underrun.
"""

from __future__ import annotations

import threading
from typing import Any

import sounddevice as sd

from observability.logger import log_event
from spec import (
    AUDIO_CHANNELS,
    AUDIO_DTYPE,
    AUDIO_SAMPLE_RATE_HZ,
    AUDIO_SAMPLE_WIDTH_BYTES,
)

# Cap buffered audio at 2s; older audio is dropped first
_MAX_BUFFER_BYTES = AUDIO_SAMPLE_RATE_HZ * AUDIO_SAMPLE_WIDTH_BYTES * AUDIO_CHANNELS * 2


class SpeakerSink:
    def __init__(self, *, device: str | None = None) -> None:
        self._device = device
        self._stream: sd.RawOutputStream | None = None
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self.dropped_bytes = 0

    def start(self) -> None:
        """Open and start the output device. Raises sounddevice.PortAudioError."""
        self._stream = sd.RawOutputStream(
            samplerate=AUDIO_SAMPLE_RATE_HZ,
            channels=AUDIO_CHANNELS,
            dtype=AUDIO_DTYPE,
            device=self._device,
            callback=self._callback,
        )
        self._stream.start()
        log_event({"event_type": "SPEAKER_STARTED", "device": self._device})

    def write(self, pcm: bytes) -> None:
        with self._lock:
            self._buffer.extend(pcm)
            overflow = len(self._buffer) - _MAX_BUFFER_BYTES
            if overflow > 0:
                del self._buffer[:overflow]
                self.dropped_bytes += overflow

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
            log_event({"event_type": "SPEAKER_STOPPED", "device": self._device})
        with self._lock:
            self._buffer.clear()

    def _callback(self, outdata: Any, frames: int, time_info: Any, status: sd.CallbackFlags) -> None:
        wanted = frames * AUDIO_SAMPLE_WIDTH_BYTES * AUDIO_CHANNELS
        with self._lock:
            chunk = bytes(self._buffer[:wanted])
            del self._buffer[:wanted]
        if len(chunk) < wanted:
            chunk += b"\x00" * (wanted - len(chunk))
        outdata[:] = chunk
