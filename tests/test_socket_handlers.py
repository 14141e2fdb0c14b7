"""Tests for the Socket.IO event handlers.

The Socket.IO server is replaced by a small fake that tracks room
membership, so handlers run exactly as they would on the event loop.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from socketio.exceptions import ConnectionRefusedError

from app.adapters.identity.jwt_verifier import JwtTokenVerifier
from app.adapters.rate_limit.token_bucket import InMemoryTokenBucketRateLimiter
from app.realtime.socket_server import (
    RATE_LIMIT_MESSAGE,
    ClubSocketHandlers,
    create_realtime,
)
from app.services.presence_service import PresenceRegistry


class FakeSocketServer:
    """Records emits and keeps room membership like the Socket.IO manager."""

    def __init__(self) -> None:
        self.rooms: dict[str, list[str]] = {}
        self.emit = AsyncMock()

    async def enter_room(self, sid, room, namespace=None):
        members = self.rooms.setdefault(room, [])
        if sid not in members:
            members.append(sid)

    async def leave_room(self, sid, room, namespace=None):
        members = self.rooms.get(room, [])
        if sid in members:
            members.remove(sid)

    def participants(self, room):
        return list(self.rooms.get(room, []))


@pytest.fixture
def sio() -> FakeSocketServer:
    return FakeSocketServer()


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=0.0)


@pytest.fixture
def limiter(clock) -> InMemoryTokenBucketRateLimiter:
    return InMemoryTokenBucketRateLimiter(capacity=10, clock=clock)


@pytest.fixture
def presence(sio) -> PresenceRegistry:
    return PresenceRegistry(sio.participants)


@pytest.fixture
def handlers(sio, limiter, presence, jwt_key) -> ClubSocketHandlers:
    return ClubSocketHandlers(
        sio,
        limiter=limiter,
        presence=presence,
        verifier=JwtTokenVerifier(key=jwt_key),
    )


class TestConnect:
    @pytest.mark.asyncio
    async def test_valid_token_registers_user(self, handlers, presence, make_token) -> None:
        accepted = await handlers.connect("sid-1", {}, {"token": make_token("alice")})

        assert accepted is True
        assert presence.user_for("sid-1") == "alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("auth", [None, {}, {"token": ""}, {"token": 123}])
    async def test_missing_token_is_refused(self, handlers, presence, auth) -> None:
        with pytest.raises(ConnectionRefusedError) as exc_info:
            await handlers.connect("sid-1", {}, auth)

        assert "Authentication token required" in str(exc_info.value.error_args)
        assert presence.user_for("sid-1") is None

    @pytest.mark.asyncio
    async def test_invalid_token_is_refused(self, handlers, presence) -> None:
        with pytest.raises(ConnectionRefusedError) as exc_info:
            await handlers.connect("sid-1", {}, {"token": "not-a-jwt"})

        assert "Authentication failed" in str(exc_info.value.error_args)
        assert presence.user_for("sid-1") is None

    @pytest.mark.asyncio
    async def test_expired_token_is_refused(self, handlers, make_token) -> None:
        with pytest.raises(ConnectionRefusedError):
            await handlers.connect("sid-1", {}, {"token": make_token("alice", expires_in=-60)})


class TestJoinClub:
    @pytest.mark.asyncio
    async def test_join_enters_club_room(self, handlers, sio, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})

        ack = await handlers.join_club("sid-1", "42")

        assert ack == {"success": True, "room": "club:42", "memberCount": 1}
        assert sio.rooms["club:42"] == ["sid-1"]
        sio.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_numeric_club_id(self, handlers, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})

        ack = await handlers.join_club("sid-1", 7)

        assert ack["room"] == "club:7"

    @pytest.mark.asyncio
    async def test_member_count_includes_other_connections(self, handlers, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        await handlers.connect("sid-2", {}, {"token": make_token("bob")})
        await handlers.join_club("sid-1", "42")

        ack = await handlers.join_club("sid-2", "42")

        assert ack["memberCount"] == 2

    @pytest.mark.asyncio
    async def test_eleventh_rapid_join_is_rejected(self, handlers, sio, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        for club in range(10):
            ack = await handlers.join_club("sid-1", str(club))
            assert ack["success"] is True

        ack = await handlers.join_club("sid-1", "99")

        assert ack == {"error": RATE_LIMIT_MESSAGE}
        assert "club:99" not in sio.rooms
        sio.emit.assert_awaited_once_with(
            "error",
            {"message": RATE_LIMIT_MESSAGE},
            to="sid-1",
            namespace="/",
        )

    @pytest.mark.asyncio
    async def test_join_allowed_again_after_refill(self, handlers, sio, clock, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        for _ in range(10):
            await handlers.join_club("sid-1", "1")
        assert "error" in await handlers.join_club("sid-1", "2")

        clock.return_value = 1.0
        ack = await handlers.join_club("sid-1", "2")

        assert ack["success"] is True
        assert sio.rooms["club:2"] == ["sid-1"]

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_connection(self, handlers, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        await handlers.connect("sid-2", {}, {"token": make_token("alice")})
        for _ in range(11):
            await handlers.join_club("sid-1", "1")

        ack = await handlers.join_club("sid-2", "1")

        assert ack["success"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("club_id", [None, "", "   ", {"id": 1}])
    async def test_invalid_club_id_is_not_joined(self, handlers, sio, make_token, club_id) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})

        ack = await handlers.join_club("sid-1", club_id)

        assert ack == {"error": "clubId is required"}
        assert sio.rooms == {}


class TestLeaveAndDisconnect:
    @pytest.mark.asyncio
    async def test_leave_is_never_rate_limited(self, handlers, sio, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        for _ in range(10):
            await handlers.join_club("sid-1", "1")

        await handlers.leave_club("sid-1", "1")

        assert sio.rooms["club:1"] == []
        sio.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_leave_with_invalid_club_id_is_ignored(self, handlers, sio) -> None:
        await handlers.leave_club("sid-1", None)

        assert sio.rooms == {}

    @pytest.mark.asyncio
    async def test_disconnect_purges_limiter_and_presence(
        self, handlers, limiter, presence, make_token
    ) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        await handlers.join_club("sid-1", "1")
        assert "sid-1" in limiter

        await handlers.disconnect("sid-1", "client namespace disconnect")

        assert "sid-1" not in limiter
        assert presence.user_for("sid-1") is None

    @pytest.mark.asyncio
    async def test_reconnect_with_same_sid_gets_fresh_bucket(self, handlers, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        for _ in range(11):
            await handlers.join_club("sid-1", "1")
        await handlers.disconnect("sid-1")

        await handlers.connect("sid-1", {}, {"token": make_token("alice")})
        acks = [await handlers.join_club("sid-1", "1") for _ in range(10)]

        assert all(ack.get("success") for ack in acks)

    @pytest.mark.asyncio
    async def test_disconnect_without_reason(self, handlers, make_token) -> None:
        await handlers.connect("sid-1", {}, {"token": make_token("alice")})

        await handlers.disconnect("sid-1")


def test_register_binds_all_events(limiter, presence, jwt_key) -> None:
    sio = MagicMock()
    handlers = ClubSocketHandlers(
        sio,
        limiter=limiter,
        presence=presence,
        verifier=JwtTokenVerifier(key=jwt_key),
    )

    handlers.register()

    events = [call.args[0] for call in sio.on.call_args_list]
    assert events == ["connect", "join:club", "leave:club", "disconnect"]


def test_create_realtime_uses_configured_capacity(jwt_key) -> None:
    from app.core.config import settings

    realtime = create_realtime(JwtTokenVerifier(key=jwt_key), settings)

    assert realtime.limiter.capacity == settings.socket.join_rate_limit_capacity
    assert realtime.presence.users_in_room("club:1") == []
