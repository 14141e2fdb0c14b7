"""Socket.IO server: authentication, club rooms and join rate limiting.

Clients connect with ``auth={"token": "<jwt>"}`` and then emit
``join:club`` / ``leave:club`` with a club id. Joins are admitted through a
per-connection token bucket; leaves never are.

All state (limiter buckets, connection owners) hangs off a
``RealtimeContext`` built once per application, and every entry is purged
from the ``disconnect`` handler.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any

import socketio
from socketio.exceptions import ConnectionRefusedError

from app.adapters.identity.base import AbstractTokenVerifier
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.token_bucket import InMemoryTokenBucketRateLimiter
from app.core.config import Settings, settings as default_settings
from app.core.errors import AuthenticationAppError, ValidationAppError
from app.realtime.rooms import club_room
from app.services.broadcast_service import BroadcastService
from app.services.presence_service import PresenceRegistry

logger = logging.getLogger(__name__)

NAMESPACE = "/"
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait a moment."


def _token_from_handshake(auth: Any) -> str | None:
    if isinstance(auth, dict):
        token = auth.get("token")
        if isinstance(token, str) and token.strip():
            return token.strip()
    return None


class ClubSocketHandlers:
    """Event handlers bound to one Socket.IO server instance."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        *,
        limiter: AbstractRateLimiter,
        presence: PresenceRegistry,
        verifier: AbstractTokenVerifier,
    ) -> None:
        self._sio = sio
        self._limiter = limiter
        self._presence = presence
        self._verifier = verifier

    def register(self) -> None:
        self._sio.on("connect", self.connect, namespace=NAMESPACE)
        self._sio.on("join:club", self.join_club, namespace=NAMESPACE)
        self._sio.on("leave:club", self.leave_club, namespace=NAMESPACE)
        self._sio.on("disconnect", self.disconnect, namespace=NAMESPACE)

    async def connect(self, sid: str, environ: dict, auth: Any = None) -> bool:
        """Authenticate the handshake; refuse the connection on failure."""
        token = _token_from_handshake(auth)
        if token is None:
            logger.warning("socket.auth_missing_token", extra={"sid": sid})
            raise ConnectionRefusedError("Authentication token required")

        try:
            identity = self._verifier.verify(token)
        except AuthenticationAppError as exc:
            logger.warning(
                "socket.auth_failed",
                extra={
                    "sid": sid,
                    "error_code": exc.code,
                    "token_hash": hashlib.sha256(token.encode()).hexdigest()[:16],
                },
            )
            raise ConnectionRefusedError("Authentication failed") from exc

        self._presence.register(sid, identity.user_id)
        logger.info(
            "socket.connected",
            extra={
                "sid": sid,
                "user_id": identity.user_id,
                "connected_sockets": len(self._presence),
            },
        )
        return True

    async def join_club(self, sid: str, club_id: Any = None) -> dict[str, Any]:
        """Join ``club:<club_id>`` if the connection still has join budget.

        The return value is sent back as the acknowledgement.
        """
        user_id = self._presence.user_for(sid)
        logger.debug(
            "room.join_requested",
            extra={"sid": sid, "user_id": user_id, "club_id": club_id},
        )

        result = self._limiter.consume(sid)
        if not result.allowed:
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "sid": sid,
                    "user_id": user_id,
                    "limit": result.limit,
                    "retry_after_s": result.retry_after_seconds,
                },
            )
            await self._sio.emit(
                "error",
                {"message": RATE_LIMIT_MESSAGE},
                to=sid,
                namespace=NAMESPACE,
            )
            return {"error": RATE_LIMIT_MESSAGE}

        try:
            room = club_room(club_id)
        except ValidationAppError as exc:
            logger.warning(
                "room.join_rejected",
                extra={"sid": sid, "user_id": user_id, "error_code": exc.code},
            )
            return {"error": exc.message}

        await self._sio.enter_room(sid, room, namespace=NAMESPACE)
        member_count = self._presence.connection_count(room)

        logger.info(
            "room.joined",
            extra={
                "sid": sid,
                "user_id": user_id,
                "room": room,
                "member_count": member_count,
                "remaining_tokens": result.remaining,
            },
        )
        return {"success": True, "room": room, "memberCount": member_count}

    async def leave_club(self, sid: str, club_id: Any = None) -> None:
        try:
            room = club_room(club_id)
        except ValidationAppError:
            logger.debug("room.leave_ignored", extra={"sid": sid, "club_id": club_id})
            return

        await self._sio.leave_room(sid, room, namespace=NAMESPACE)
        logger.info(
            "room.left",
            extra={
                "sid": sid,
                "user_id": self._presence.user_for(sid),
                "room": room,
                "member_count": self._presence.connection_count(room),
            },
        )

    async def disconnect(self, sid: str, reason: Any = None) -> None:
        self._limiter.discard(sid)
        user_id = self._presence.unregister(sid)
        logger.info(
            "socket.disconnected",
            extra={
                "sid": sid,
                "user_id": user_id,
                "reason": str(reason) if reason is not None else None,
                "connected_sockets": len(self._presence),
            },
        )


@dataclass
class RealtimeContext:
    """Everything the HTTP routes and socket handlers share."""

    sio: socketio.AsyncServer
    limiter: AbstractRateLimiter
    presence: PresenceRegistry
    broadcaster: BroadcastService
    handlers: ClubSocketHandlers


def build_socket_server(cfg: Settings | None = None) -> socketio.AsyncServer:
    """Create the ASGI Socket.IO server with CORS and heartbeat settings."""
    cfg = cfg or default_settings
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cfg.cors_allowed_origins(),
        cors_credentials=True,
        transports=["websocket", "polling"],
        ping_interval=cfg.socket.ping_interval_seconds,
        ping_timeout=cfg.socket.ping_timeout_seconds,
    )


def manager_participants(sio: socketio.AsyncServer):
    """Room membership lookup backed by the Socket.IO manager."""

    def participants(room: str):
        for sid, _eio_sid in sio.manager.get_participants(NAMESPACE, room):
            yield sid

    return participants


def create_realtime(
    verifier: AbstractTokenVerifier,
    cfg: Settings | None = None,
    *,
    sio: socketio.AsyncServer | None = None,
    limiter: AbstractRateLimiter | None = None,
) -> RealtimeContext:
    """Wire the Socket.IO server, limiter, presence registry and handlers."""
    cfg = cfg or default_settings
    sio = sio or build_socket_server(cfg)
    limiter = limiter or InMemoryTokenBucketRateLimiter(
        capacity=cfg.socket.join_rate_limit_capacity,
        refill_interval_seconds=cfg.socket.join_rate_limit_refill_seconds,
    )
    presence = PresenceRegistry(manager_participants(sio))
    handlers = ClubSocketHandlers(
        sio,
        limiter=limiter,
        presence=presence,
        verifier=verifier,
    )
    handlers.register()

    return RealtimeContext(
        sio=sio,
        limiter=limiter,
        presence=presence,
        broadcaster=BroadcastService(sio, presence),
        handlers=handlers,
    )
