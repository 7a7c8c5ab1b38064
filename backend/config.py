"""
Application configuration.

Responsibilities:
- Read environment variables
- Provide typed, immutable config objects
- Carry debug overrides explicitly (no ambient env lookups elsewhere)

Non-responsibilities:
- No connection logic
- No behavioral constants (see spec.py)
- No runtime mutation: reconfiguration builds a new SessionConfig
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from spec import MUMBLE_DEFAULT_PORT, SESSION_CONNECT_TIMEOUT_S


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().upper() in ("1", "TRUE", "YES", "ON")


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    return int(raw)


@dataclass(frozen=True)
class SessionConfig:
    """
    Everything needed to build one SessionClient.

    Replaced wholesale on reconfiguration, never mutated.
    """

    server: str
    username: str
    port: int = MUMBLE_DEFAULT_PORT
    key_file: str | None = None
    cert_file: str | None = None
    default_channel_name: str | None = None
    connect_timeout_s: float | None = SESSION_CONNECT_TIMEOUT_S


@dataclass(frozen=True)
class HardwareConfig:
    """GPIO (BCM) pin numbers. None disables the corresponding device."""

    talk_button_pin: int | None = 17
    call_button_pin: int | None = 27
    talk_led_pin: int | None = 22
    call_led_pin: int | None = 23
    error_led_pin: int | None = 24
    bounce_time_s: float | None = 0.01


@dataclass(frozen=True)
class AudioConfig:
    mic_device: str | None = None
    speaker_device: str | None = None

    # Debug overrides
    disable_audio: bool = False
    ignore_audio_errors: bool = False


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and passed down to the service.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    session: SessionConfig
    hardware: HardwareConfig = field(default_factory=HardwareConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)

    # ------------------------------------------------------------------
    # HTTP control surface
    # ------------------------------------------------------------------

    http_host: str = "0.0.0.0"
    http_port: int = 8000

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is malformed.
        """
        timeout_raw = os.environ.get("MUMBLE_CONNECT_TIMEOUT_S")
        hardware_defaults = HardwareConfig()

        def pin(name: str, default: int | None) -> int | None:
            value = _env_int(name)
            return default if value is None else value

        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            session=SessionConfig(
                server=os.environ.get("MUMBLE_SERVER", "localhost"),
                port=_env_int("MUMBLE_PORT") or MUMBLE_DEFAULT_PORT,
                username=os.environ.get("MUMBLE_USERNAME", "picom"),
                key_file=os.environ.get("MUMBLE_KEY_FILE") or None,
                cert_file=os.environ.get("MUMBLE_CERT_FILE") or None,
                default_channel_name=os.environ.get("MUMBLE_DEFAULT_CHANNEL") or None,
                connect_timeout_s=(
                    float(timeout_raw) if timeout_raw else SESSION_CONNECT_TIMEOUT_S
                ),
            ),

            hardware=HardwareConfig(
                talk_button_pin=pin("TALK_BUTTON_PIN", hardware_defaults.talk_button_pin),
                call_button_pin=pin("CALL_BUTTON_PIN", hardware_defaults.call_button_pin),
                talk_led_pin=pin("TALK_LED_PIN", hardware_defaults.talk_led_pin),
                call_led_pin=pin("CALL_LED_PIN", hardware_defaults.call_led_pin),
                error_led_pin=pin("ERROR_LED_PIN", hardware_defaults.error_led_pin),
            ),

            audio=AudioConfig(
                mic_device=os.environ.get("MIC_DEVICE") or None,
                speaker_device=os.environ.get("SPEAKER_DEVICE") or None,
                disable_audio=_env_flag("DISABLE_AUDIO"),
                ignore_audio_errors=_env_flag("IGNORE_AUDIO_ERRORS"),
            ),

            http_host=os.environ.get("HTTP_HOST", "0.0.0.0"),
            http_port=_env_int("HTTP_PORT") or 8000,
        )
