"""Request bodies for the control API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from config import SessionConfig
from spec import MUMBLE_DEFAULT_PORT, SESSION_CONNECT_TIMEOUT_S


class SessionConfigBody(BaseModel):
    server: str = Field(min_length=1)
    username: str = Field(min_length=1)
    port: int = Field(default=MUMBLE_DEFAULT_PORT, ge=1, le=65535)
    key_file: str | None = None
    cert_file: str | None = None
    default_channel_name: str | None = None
    connect_timeout_s: float | None = Field(default=SESSION_CONNECT_TIMEOUT_S, gt=0)

    def to_config(self) -> SessionConfig:
        return SessionConfig(
            server=self.server,
            username=self.username,
            port=self.port,
            key_file=self.key_file,
            cert_file=self.cert_file,
            default_channel_name=self.default_channel_name,
            connect_timeout_s=self.connect_timeout_s,
        )
