"""
FastAPI app factory.

Responsibilities:
- Build the PiComService with its concrete collaborators
- Run service setup/shutdown in the app lifespan
- Register routes
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from adapters.voice.base import PcmSink
from adapters.voice.mumble import MumbleConnector
from audio.capture import MicCapture
from audio.playback import SpeakerSink
from config import AppConfig, SessionConfig
from hardware.service import HardwareService
from observability.logger import set_level
from server.routes import register_routes
from services.picom_service import PiComService
from session.client import SessionClient


def build_service(config: AppConfig) -> PiComService:
    """Wire the service to Mumble, sounddevice and gpiozero."""
    connector = MumbleConnector()

    def client_factory(session_config: SessionConfig) -> SessionClient:
        return SessionClient(config=session_config, connector=connector)

    def mic_factory(sink: PcmSink) -> MicCapture:
        return MicCapture(sink=sink, device=config.audio.mic_device)

    def speaker_factory() -> SpeakerSink:
        return SpeakerSink(device=config.audio.speaker_device)

    return PiComService(
        config=config,
        hardware=HardwareService(config.hardware),
        client_factory=client_factory,
        mic_factory=mic_factory,
        speaker_factory=speaker_factory,
    )


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The service is built and set up inside the lifespan so all of its
    asyncio machinery lives on the server's event loop.
    """
    config = config or AppConfig.load_from_env()
    set_level(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service = build_service(config)
        app.state.service = service
        try:
            await service.setup()
        except Exception:
            await service.shutdown()
            raise
        yield
        await service.shutdown()

    app = FastAPI(title="PiCom Intercom API", lifespan=lifespan)
    app.state.config = config

    register_routes(app)

    return app
