"""Pydantic schemas for the room collaborator endpoints.

Field names on the wire are camelCase to match the backend API client.
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RoomMembersRequest(BaseModel):
    """Ask which of ``userIds`` currently hold a connection in ``room``."""

    room: str = Field(
        ...,
        min_length=1,
        description="Room name, e.g. 'club:42'.",
    )
    user_ids: List[str] = Field(
        ...,
        alias="userIds",
        description="Users to check. An empty list returns everyone present.",
    )

    model_config = ConfigDict(populate_by_name=True)


class RoomMembersResponse(BaseModel):
    success: bool = True
    room: str
    user_ids_in_room: List[str] = Field(
        default_factory=list,
        alias="userIdsInRoom",
        description="Distinct user ids present in the room (filtered when userIds was non-empty).",
    )

    model_config = ConfigDict(populate_by_name=True)


class EmitRequest(BaseModel):
    """Broadcast ``event`` with ``data`` to every connection in ``room``."""

    room: str = Field(..., min_length=1, description="Target room, e.g. 'club:42'.")
    event: str = Field(..., min_length=1, description="Event name, e.g. 'post:created'.")
    data: Any = Field(..., description="Event payload forwarded verbatim to clients.")

    @field_validator("data")
    @classmethod
    def _data_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("data is required")
        return value


class EmitResponse(BaseModel):
    success: bool = True
    room: str
    event: str
    member_count: int = Field(
        ...,
        alias="memberCount",
        description="Connections in the room when the event was emitted.",
    )

    model_config = ConfigDict(populate_by_name=True)
