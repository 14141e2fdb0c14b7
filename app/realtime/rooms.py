from __future__ import annotations

from app.core.errors import ValidationAppError

CLUB_ROOM_PREFIX = "club:"


def club_room(club_id: str | int | None) -> str:
    """Room name for a club, e.g. ``club:42``.

    Raises:
        ValidationAppError: If the club id is missing or blank.
    """
    if isinstance(club_id, bool) or not isinstance(club_id, (str, int)):
        raise ValidationAppError(
            code="invalid_club_id",
            message="clubId is required",
            details={"field": "clubId"},
        )

    value = str(club_id).strip()
    if not value:
        raise ValidationAppError(
            code="invalid_club_id",
            message="clubId is required",
            details={"field": "clubId"},
        )
    return f"{CLUB_ROOM_PREFIX}{value}"
