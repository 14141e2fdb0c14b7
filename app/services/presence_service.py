"""Presence queries over live Socket.IO connections.

Room membership itself belongs to the Socket.IO manager; this registry only
remembers which authenticated user owns each connection so that room
participants can be reported as distinct user ids.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

RoomParticipants = Callable[[str], Iterable[str]]


class PresenceRegistry:
    """Maps connection ids to user ids and answers "who is in this room".

    Args:
        participants: Callable returning the connection ids currently joined
            to a room. Typically backed by the Socket.IO manager.
    """

    def __init__(self, participants: RoomParticipants) -> None:
        self._participants = participants
        self._user_by_sid: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._user_by_sid)

    def register(self, sid: str, user_id: str) -> None:
        """Record the user authenticated on connection ``sid``.

        Raises:
            ValueError: If either id is empty, or ``sid`` already belongs to
                another user.
        """
        if not sid or not user_id:
            raise ValueError("sid and user_id must be non-empty strings")

        existing = self._user_by_sid.get(sid)
        if existing is not None and existing != user_id:
            raise ValueError(f"connection {sid} is already bound to another user")
        self._user_by_sid[sid] = user_id

    def unregister(self, sid: str) -> str | None:
        """Forget connection ``sid`` and return the user it belonged to."""
        return self._user_by_sid.pop(sid, None)

    def user_for(self, sid: str) -> str | None:
        return self._user_by_sid.get(sid)

    def connection_ids(self, room: str) -> list[str]:
        return list(self._participants(room))

    def connection_count(self, room: str) -> int:
        return len(self.connection_ids(room))

    def users_in_room(
        self,
        room: str,
        user_ids: Iterable[str] | None = None,
    ) -> list[str]:
        """Distinct users holding at least one connection in ``room``.

        Args:
            room: Room name, e.g. ``club:42``.
            user_ids: Optional filter. ``None`` or empty returns everyone
                present; otherwise only the users also in this list.

        Returns:
            User ids in the order their first connection was seen.
        """
        wanted = set(user_ids or ())
        seen: set[str] = set()
        present: list[str] = []

        for sid in self._participants(room):
            user_id = self._user_by_sid.get(sid)
            if user_id is None or user_id in seen:
                continue
            if wanted and user_id not in wanted:
                continue
            seen.add(user_id)
            present.append(user_id)

        return present
