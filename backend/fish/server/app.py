from __future__ import annotations

import contextlib
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from fish.messaging.router import MessageRouter
from fish.server.settings import FishServerSettings
from fish.server.websocket import websocket_endpoint
from fish.session.history import InMemoryGameHistory
from fish.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

try:
    APP_VERSION = version("fish-server")
except PackageNotFoundError:  # pragma: no cover
    APP_VERSION = "dev"


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: FishServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "rooms": session_manager.room_count,
            "active_games": session_manager.game_count,
            "connections": session_manager.connection_count,
            "online_users": session_manager.presence.online_count,
            "max_rooms": settings.max_rooms,
        },
    )


def create_app(
    settings: FishServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = FishServerSettings()

    if session_manager is None:
        session_manager = SessionManager(
            game_settings=settings.game_settings(),
            grace_seconds=settings.reconnect_grace_seconds,
            max_rooms=settings.max_rooms,
            history=InMemoryGameHistory(),
        )

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(
            websocket,
            message_router,
            rate=settings.rate_limit_per_second,
            burst=settings.rate_limit_burst,
        )

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        session_manager.shutdown()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("fish server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = FishServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
