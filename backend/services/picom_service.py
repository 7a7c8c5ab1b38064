"""
PiCom orchestrator.

Responsibilities:
- Owns the SessionClient (replaced wholesale on reconfiguration)
- Owns the microphone and speaker; attaches them after a successful connect
- Wires hardware edges into the TalkController
- Runs the HealthMonitor that drives the error flasher
- Serializes connect / reconfigure / reconnect through one lock

Failure policy:
- Connection and default-channel join failures are logged and swallowed;
  the service stays up, degraded, and the health report says so.
- Audio setup failures are fatal to the setup routine unless
  ignore_audio_errors is configured.
- SessionTerminated detaches the mic and speaker; reconnecting is an
  explicit command.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol

from adapters.voice.base import PcmSink
from audio.status import AudioStatus
from config import AppConfig, SessionConfig
from errors import (
    AudioSetupError,
    ChannelNotFoundError,
    PiComError,
    SessionConnectionError,
)
from hardware.buttons import ButtonEdge
from health.aggregator import HealthReport, aggregate
from health.monitor import HealthMonitor
from observability.logger import log_event
from session.client import SessionClient
from session.events import SessionEvent, SessionTerminated, VoiceReceived
from spec import HEALTH_POLL_INTERVAL_S
from talk.controller import TalkController


# ------------------------------------------------------------------
# Collaborator contracts
# ------------------------------------------------------------------

class Microphone(Protocol):
    def start(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...


class Speaker(Protocol):
    def start(self) -> None: ...

    def write(self, pcm: bytes) -> None: ...

    def close(self) -> None: ...


class HardwareStatusView(Protocol):
    setup_done: bool

    def as_dict(self) -> dict[str, Any]: ...


class Hardware(Protocol):
    status: HardwareStatusView

    def setup(self) -> bool: ...

    def bind(self, on_edge: Callable[[ButtonEdge], None], loop: asyncio.AbstractEventLoop) -> None: ...

    def set_talk_led(self, on: bool) -> None: ...

    def set_call_led(self, on: bool) -> None: ...

    def set_error_flasher(self, on: bool) -> None: ...

    def close(self) -> None: ...


ClientFactory = Callable[[SessionConfig], SessionClient]
MicFactory = Callable[[PcmSink], Microphone]
SpeakerFactory = Callable[[], Speaker]


# ------------------------------------------------------------------
# PiComService
# ------------------------------------------------------------------

class PiComService:
    def __init__(
        self,
        *,
        config: AppConfig,
        hardware: Hardware,
        client_factory: ClientFactory,
        mic_factory: MicFactory,
        speaker_factory: SpeakerFactory,
        health_interval_s: float = HEALTH_POLL_INTERVAL_S,
    ) -> None:
        self.config = config
        self.session_config = config.session
        self.hardware = hardware

        self._client_factory = client_factory
        self._mic_factory = mic_factory
        self._speaker_factory = speaker_factory

        self.session = client_factory(self.session_config)
        self.session.subscribe(self._on_session_event)

        self.audio_status = AudioStatus.NOT_CONFIGURED
        self.mic: Microphone | None = None
        self.speaker: Speaker | None = None

        self.talk = TalkController(
            indicators=hardware,
            resume_mic=self._resume_mic,
            pause_mic=self._pause_mic,
            send_message=self._send_to_channel,
        )
        self.monitor = HealthMonitor(
            report=self.health,
            set_error_indicator=hardware.set_error_flasher,
            interval_s=health_interval_s,
        )

        self._session_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Status (read-only)
    # ------------------------------------------------------------------

    def health(self) -> HealthReport:
        return aggregate(
            audio_status=self.audio_status,
            hardware_setup_done=self.hardware.status.setup_done,
            session_status=self.session.status,
        )

    @property
    def status(self) -> dict[str, Any]:
        return {
            "picom": self.talk.state.as_dict(),
            "session": self.session.status.as_dict(),
            "hardware": self.hardware.status.as_dict(),
            "audio": self.audio_status.value,
            "global": self.health().as_dict(),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def setup(self) -> None:
        """
        Bring the intercom up.

        Raises:
            AudioSetupError: audio failed and ignore_audio_errors is unset
        """
        self.monitor.start()
        self.hardware.setup()
        async with self._session_lock:
            await self._connect_session()
        self.hardware.bind(self.talk.handle_edge, asyncio.get_running_loop())
        log_event({"event_type": "PICOM_SETUP_DONE", **self.health().as_dict()})

    async def shutdown(self) -> None:
        await self.monitor.stop()
        async with self._session_lock:
            await self._disconnect_session()
        self.hardware.close()
        log_event({"event_type": "PICOM_SHUTDOWN"})

    async def reconfigure(self, new_config: SessionConfig) -> None:
        """
        Replace the session with one built from `new_config`.

        The old session is fully disconnected before the new one starts
        connecting.
        """
        async with self._session_lock:
            log_event({
                "event_type": "SESSION_RECONFIGURE",
                "server": new_config.server,
                "port": new_config.port,
                "username": new_config.username,
            })
            self.session_config = new_config
            await self._disconnect_session()

            self.session = self._client_factory(new_config)
            self.session.subscribe(self._on_session_event)
            await self._connect_session()

    async def reconnect(self) -> None:
        await self.reconfigure(self.session_config)

    def unlatch(self) -> None:
        """Raises InvalidStateError when the mic is not latched."""
        self.talk.unlatch()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def _connect_session(self) -> None:
        try:
            await self.session.connect()
        except SessionConnectionError as exc:
            log_event({
                "event_type": "PICOM_CONNECT_FAILED",
                "level": "error",
                "message": "Voice server was not able to be connected. Check configuration and try again",
                "error": exc.message,
            })
            return

        # Audio always attaches after the session is connected
        self._setup_audio()
        await self._join_default_channel()

    async def _join_default_channel(self) -> None:
        name = self.session_config.default_channel_name
        if not name:
            return
        try:
            await self.session.join_channel_by_name(name)
        except ChannelNotFoundError:
            log_event({
                "event_type": "DEFAULT_CHANNEL_MISSING",
                "level": "warning",
                "channel": name,
                "message": "Default channel does not exist. Client will stay in root channel",
            })
        except PiComError as exc:
            log_event({
                "event_type": "DEFAULT_CHANNEL_JOIN_FAILED",
                "level": "error",
                "channel": name,
                "error": exc.message,
                "message": "Error joining default channel. Client will stay in root channel",
            })

    async def _disconnect_session(self) -> None:
        self.audio_status = AudioStatus.NOT_CONFIGURED
        self._teardown_audio()
        self.session.unsubscribe(self._on_session_event)
        await self.session.disconnect()

    def _on_session_event(self, event: SessionEvent) -> None:
        if isinstance(event, VoiceReceived):
            if self.speaker is not None:
                self.speaker.write(event.pcm)
        elif isinstance(event, SessionTerminated):
            log_event({
                "event_type": "PICOM_SESSION_LOST",
                "level": "error",
                "reason": event.reason,
                "error": repr(event.error),
            })
            # Devices stay detached until reconnect() builds a new session
            self.audio_status = AudioStatus.NOT_CONFIGURED
            self._teardown_audio()

    def _send_to_channel(self, text: str) -> None:
        try:
            self.session.send_message_to_current_channel(text)
        except PiComError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise PiComError("Message could not be sent", inner=exc) from exc

    # ------------------------------------------------------------------
    # Audio
    # ------------------------------------------------------------------

    def _setup_audio(self) -> None:
        audio_cfg = self.config.audio
        if audio_cfg.disable_audio:
            log_event({
                "event_type": "AUDIO_DISABLED",
                "level": "warning",
                "message": "Hardware audio disabled by configuration",
            })
            return

        try:
            # Mic starts paused: nothing is transmitted until talk is pressed
            self.mic = self._mic_factory(self.session.input_stream())
            self.mic.start()
            self.mic.pause()

            self.speaker = self._speaker_factory()
            self.speaker.start()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._teardown_audio()
            if audio_cfg.ignore_audio_errors:
                log_event({
                    "event_type": "AUDIO_SETUP_FAILED_IGNORED",
                    "level": "warning",
                    "error": repr(exc),
                })
                return
            self.audio_status = AudioStatus.SETUP_ERROR
            log_event({
                "event_type": "AUDIO_SETUP_FAILED",
                "level": "error",
                "error": repr(exc),
            })
            raise AudioSetupError("Audio setup failed", inner=exc) from exc

        self.audio_status = AudioStatus.CONFIGURED
        log_event({"event_type": "AUDIO_CONFIGURED"})

    def _teardown_audio(self) -> None:
        mic, self.mic = self.mic, None
        speaker, self.speaker = self.speaker, None
        for close in (
            mic.stop if mic is not None else None,
            speaker.close if speaker is not None else None,
        ):
            if close is None:
                continue
            try:
                close()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "AUDIO_TEARDOWN_ERROR",
                    "level": "warning",
                    "error": repr(exc),
                })
        if mic is not None:
            self.talk.reset()

    def _resume_mic(self) -> None:
        if self.mic is not None:
            self.mic.resume()

    def _pause_mic(self) -> None:
        if self.mic is not None:
            self.mic.pause()
