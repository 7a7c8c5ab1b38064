# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import AppConfig
from spec import MUMBLE_DEFAULT_PORT, SESSION_CONNECT_TIMEOUT_S


ENV_VARS = [
    "ENV", "LOG_LEVEL", "MUMBLE_SERVER", "MUMBLE_PORT", "MUMBLE_USERNAME",
    "MUMBLE_KEY_FILE", "MUMBLE_CERT_FILE", "MUMBLE_DEFAULT_CHANNEL",
    "MUMBLE_CONNECT_TIMEOUT_S", "TALK_BUTTON_PIN", "CALL_BUTTON_PIN",
    "TALK_LED_PIN", "CALL_LED_PIN", "ERROR_LED_PIN", "MIC_DEVICE",
    "SPEAKER_DEVICE", "DISABLE_AUDIO", "IGNORE_AUDIO_ERRORS", "HTTP_HOST",
    "HTTP_PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment():
    config = AppConfig.load_from_env()

    assert config.session.server == "localhost"
    assert config.session.port == MUMBLE_DEFAULT_PORT
    assert config.session.username == "picom"
    assert config.session.default_channel_name is None
    assert config.session.connect_timeout_s == SESSION_CONNECT_TIMEOUT_S
    assert config.hardware.talk_button_pin == 17
    assert config.audio.disable_audio is False
    assert config.http_port == 8000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MUMBLE_SERVER", "mumble.example")
    monkeypatch.setenv("MUMBLE_PORT", "1234")
    monkeypatch.setenv("MUMBLE_DEFAULT_CHANNEL", "Lobby")
    monkeypatch.setenv("MUMBLE_CONNECT_TIMEOUT_S", "2.5")
    monkeypatch.setenv("TALK_BUTTON_PIN", "5")
    monkeypatch.setenv("DISABLE_AUDIO", "true")
    monkeypatch.setenv("IGNORE_AUDIO_ERRORS", "1")

    config = AppConfig.load_from_env()

    assert config.session.server == "mumble.example"
    assert config.session.port == 1234
    assert config.session.default_channel_name == "Lobby"
    assert config.session.connect_timeout_s == 2.5
    assert config.hardware.talk_button_pin == 5
    assert config.hardware.call_button_pin == 27
    assert config.audio.disable_audio is True
    assert config.audio.ignore_audio_errors is True


def test_malformed_number_raises(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MUMBLE_PORT", "not-a-port")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()
