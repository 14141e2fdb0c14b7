"""Server-initiated broadcasts into Socket.IO rooms.

Used by the ``/emit`` endpoint so the backend API can push feed events
(new posts, reactions) to everyone currently viewing a club.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import socketio

from app.core.errors import RealtimeAppError
from app.services.presence_service import PresenceRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BroadcastResult:
    room: str
    event: str
    member_count: int


def _summarize_payload(event: str, data: Any) -> str:
    """Short identifier for the payload, so logs never carry the full body."""
    if not isinstance(data, dict):
        return "data received"
    if event == "post:created":
        return f"postId={data.get('id') or 'unknown'}"
    if event in ("reaction:added", "reaction:removed"):
        return f"postId={data.get('postId') or 'unknown'}"
    return "data received"


class BroadcastService:
    """Emit events to rooms and report how many connections they reached."""

    def __init__(self, sio: socketio.AsyncServer, presence: PresenceRegistry) -> None:
        self._sio = sio
        self._presence = presence

    async def emit_to_room(self, room: str, event: str, data: Any) -> BroadcastResult:
        """Broadcast ``event`` with ``data`` to every connection in ``room``.

        An empty room is not an error: the event is simply not delivered.

        Raises:
            RealtimeAppError: If the Socket.IO server fails to emit.
        """
        sids = self._presence.connection_ids(room)
        member_count = len(sids)

        if member_count:
            logger.debug(
                "emit.room_members",
                extra={
                    "room": room,
                    "sids": sids,
                    "user_ids": self._presence.users_in_room(room),
                },
            )
        else:
            logger.warning(
                "emit.empty_room",
                extra={"room": room, "event": event},
            )

        try:
            await self._sio.emit(event, data, room=room)
        except Exception as exc:
            logger.error(
                "emit.failed",
                extra={
                    "room": room,
                    "event": event,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise RealtimeAppError(
                code="emit_failed",
                message="Failed to emit event",
                details={"room": room, "event": event},
            ) from exc

        logger.info(
            "emit.sent",
            extra={
                "room": room,
                "event": event,
                "member_count": member_count,
                "summary": _summarize_payload(event, data),
            },
        )
        return BroadcastResult(room=room, event=event, member_count=member_count)
