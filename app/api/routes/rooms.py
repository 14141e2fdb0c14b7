from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from app.core.auth import verify_api_key
from app.realtime.socket_server import RealtimeContext
from app.schemas.rooms import (
    EmitRequest,
    EmitResponse,
    RoomMembersRequest,
    RoomMembersResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Rooms"], dependencies=[Depends(verify_api_key)])


def get_realtime(request: Request) -> RealtimeContext:
    """Realtime services attached to the app at startup."""
    return request.app.state.realtime


@router.post("/check-room-members", response_model=RoomMembersResponse)
async def check_room_members(
    body: RoomMembersRequest,
    realtime: RealtimeContext = Depends(get_realtime),
) -> RoomMembersResponse:
    """Report which users are connected to a room right now.

    The backend API calls this before sending push notifications so users
    already looking at the club feed are not notified twice. Each user is
    listed once even with several open connections.
    """
    present = realtime.presence.users_in_room(body.room, body.user_ids)

    logger.info(
        "room.members_checked",
        extra={
            "room": body.room,
            "requested_count": len(body.user_ids),
            "present_count": len(present),
        },
    )
    return RoomMembersResponse(room=body.room, user_ids_in_room=present)


@router.post("/emit", response_model=EmitResponse)
async def emit_event(
    body: EmitRequest,
    realtime: RealtimeContext = Depends(get_realtime),
) -> EmitResponse:
    """Broadcast an event from the backend API into a club room.

    Raises:
        RealtimeAppError: 500 when the Socket.IO server fails to emit.
    """
    result = await realtime.broadcaster.emit_to_room(body.room, body.event, body.data)
    return EmitResponse(
        room=result.room,
        event=result.event,
        member_count=result.member_count,
    )
