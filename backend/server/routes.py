"""
Route registration for the intercom control API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Pull the PiComService from app.state
- Map PiComError codes onto HTTP status codes
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from errors import PiComError
from observability.logger import log_event
from server.models import SessionConfigBody
from spec import HEALTH_POLL_INTERVAL_S


def register_routes(app: FastAPI) -> None:
    """Register all routes and the PiComError handler on the app."""

    @app.exception_handler(PiComError)
    async def picom_error_handler(request: Request, exc: PiComError) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        log_event({
            "event_type": "API_REQUEST_FAILED",
            "level": "error" if exc.code >= 500 else "warning",
            "path": request.url.path,
            **exc.to_dict(),
        })
        return JSONResponse(status_code=exc.code, content=exc.to_dict())

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/status")
    async def status() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return app.state.service.status

    @app.post("/session/config")
    async def reconfigure(body: SessionConfigBody) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        service = app.state.service
        await service.reconfigure(body.to_config())
        return service.status

    @app.post("/session/reconnect")
    async def reconnect() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        service = app.state.service
        await service.reconnect()
        return service.status

    @app.post("/talk/unlatch")
    async def unlatch() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        service = app.state.service
        service.unlatch()
        return service.status

    @app.websocket("/ws/status")
    async def status_stream(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        """
        Push the status snapshot once per health poll interval.

        Client messages are ignored; waiting on them is how a close is seen.
        """
        await ws.accept()
        try:
            while True:
                await ws.send_json(app.state.service.status)
                try:
                    await asyncio.wait_for(ws.receive_text(), timeout=HEALTH_POLL_INTERVAL_S)
                except asyncio.TimeoutError:
                    continue
        except WebSocketDisconnect:
            log_event({"event_type": "STATUS_STREAM_CLOSED", "level": "debug"})
