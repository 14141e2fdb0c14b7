"""Application factory for the HTTP and Socket.IO apps.

``create_app`` builds the FastAPI app and attaches the realtime services to
``app.state.realtime``; ``create_asgi_app`` wraps it with the Socket.IO
ASGI app so both share one server and one port.
"""

from __future__ import annotations

import logging

import socketio
from fastapi import FastAPI

from app.adapters.identity.base import AbstractTokenVerifier
from app.adapters.identity.factory import create_token_verifier
from app.api.routes import health_router, rooms_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.realtime.socket_server import RealtimeContext, create_realtime

logger = logging.getLogger(__name__)


def create_app(
    cfg: Settings | None = None,
    *,
    verifier: AbstractTokenVerifier | None = None,
    realtime: RealtimeContext | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings override; defaults to the global settings.
        verifier: Connection token verifier; built from ``cfg.auth`` if omitted.
        realtime: Pre-built realtime services (tests inject fakes here).

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    cfg = cfg or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, debug=cfg.app.debug)

    app = FastAPI(
        title="Book Club Socket Service",
        description=(
            "Realtime presence and broadcast service for book club rooms. "
            "Browsers connect over Socket.IO; the backend API uses the HTTP "
            "endpoints to emit events into club rooms and to check which "
            "members are currently connected."
        ),
        version="0.1.0",
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(rooms_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    if realtime is None:
        realtime = create_realtime(verifier or create_token_verifier(cfg.auth), cfg)
    app.state.realtime = realtime

    logger.info(
        "app.initialized",
        extra={
            "app_env": cfg.app_env,
            "cors_origins": cfg.cors_allowed_origins(),
            "socket_path": cfg.socket.path,
            "join_rate_limit_capacity": cfg.socket.join_rate_limit_capacity,
        },
    )
    return app


def create_asgi_app(app: FastAPI, cfg: Settings | None = None) -> socketio.ASGIApp:
    """Mount ``app`` behind the Socket.IO ASGI app on the configured path."""
    cfg = cfg or default_settings
    realtime: RealtimeContext = app.state.realtime
    return socketio.ASGIApp(
        realtime.sio,
        other_asgi_app=app,
        socketio_path=cfg.socket.path,
    )
