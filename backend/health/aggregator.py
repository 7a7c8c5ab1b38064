"""
Composite health reduction.

aggregate() is a pure function of the sub-component states passed in;
nothing is stored. Rules are evaluated in a fixed order and each
contributes at most one message.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from audio.status import AudioStatus
from session.status import SessionStatus


class Severity(str, Enum):
    NORMAL = "NORMAL"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class HealthMessage:
    message: str
    severity: Severity

    def as_dict(self) -> dict[str, Any]:
        return {
            "message": f"{self.severity.value} - {self.message}",
            "status": self.severity.value,
        }


@dataclass(frozen=True)
class HealthReport:
    status: Severity
    messages: tuple[HealthMessage, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.status is Severity.ERROR

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "messages": [m.as_dict() for m in self.messages],
        }


def aggregate(
    *,
    audio_status: AudioStatus,
    hardware_setup_done: bool,
    session_status: SessionStatus,
) -> HealthReport:
    messages: list[HealthMessage] = []

    if audio_status is AudioStatus.NOT_CONFIGURED:
        messages.append(HealthMessage("Audio Not Setup", Severity.WARNING))
    if audio_status is AudioStatus.SETUP_ERROR:
        messages.append(HealthMessage("Audio Error", Severity.ERROR))

    if not hardware_setup_done:
        messages.append(HealthMessage("Hardware Not Setup", Severity.WARNING))

    if not session_status.connected:
        if session_status.connection_attempted:
            messages.append(HealthMessage("Not Connected", Severity.ERROR))
        else:
            messages.append(HealthMessage("Connection Not Attempted", Severity.WARNING))

    if any(m.severity is Severity.ERROR for m in messages):
        overall = Severity.ERROR
    elif any(m.severity is Severity.WARNING for m in messages):
        overall = Severity.WARNING
    else:
        overall = Severity.NORMAL

    return HealthReport(status=overall, messages=tuple(messages))
