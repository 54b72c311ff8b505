"""Public client facade."""

from __future__ import annotations

import random
import asyncio
import logging
import dataclasses
from typing import Any
from collections.abc import Mapping, Callable, Iterable

from roomwire.config import opcodes as ops
from roomwire.state.models import Room, User, ActiveRoom, ActiveUser, VoiceDataCache
from roomwire.state.errors import ServerError, NotConnected, PermissionDenied
from roomwire.state.session import TokenPair
from roomwire.state.settings import ClientSettings
from roomwire.state.connection import ConnectionState
from roomwire.handlers.events import Listener
from roomwire.handlers.envelope import new_ref
from roomwire.handlers.connection import ConnectFn, ExchangeFn
from roomwire.runtime.dependencies import build_client_deps
from roomwire.runtime.settings_loader import load_tokens, load_settings

logger = logging.getLogger(__name__)


def _id_of(value: Any, *keys: str) -> str:
    if isinstance(value, (Room, User)):
        return value.id
    if isinstance(value, Mapping):
        for key in keys:
            if value.get(key) is not None:
                return str(value[key])
        raise ValueError(f"mapping has none of {keys}")
    return str(value)


class RoomClient:
    """Single-account client for the room service.

    Usage::

        async with RoomClient("api-key") as client:
            await client.wait_until_ready(timeout=10)
            rooms = await client.get_top_rooms()
            room = await client.join_room(rooms[0])

    Requests raise `RequestTimeout`, `ServerError`, `RequestAborted` or
    `NotConnected`; connection trouble is reported through the `error` and
    `disconnect` events instead.
    """

    def __init__(
        self,
        token: str | Mapping[str, Any] | TokenPair | None = None,
        settings: ClientSettings | None = None,
        *,
        connect_fn: ConnectFn | None = None,
        exchange_fn: ExchangeFn | None = None,
        rng: Callable[[], float] = random.random,
        **overrides: Any,
    ) -> None:
        tokens = load_tokens() if token is None else TokenPair.coerce(token)
        if settings is None:
            settings = load_settings(**overrides)
        elif overrides:
            settings = dataclasses.replace(settings, **overrides)
        self._deps = build_client_deps(
            tokens,
            settings,
            connect_fn=connect_fn,
            exchange_fn=exchange_fn,
            rng=rng,
        )

    async def __aenter__(self) -> RoomClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ClientSettings:
        return self._deps.settings

    @property
    def state(self) -> ConnectionState:
        return self._deps.session.state

    @property
    def is_ready(self) -> bool:
        return self._deps.session.ready

    @property
    def user(self) -> User | None:
        return self._deps.session.user

    @property
    def tokens(self) -> TokenPair:
        return self._deps.session.tokens

    @property
    def latency_ms(self) -> float | None:
        return self._deps.session.latency_ms

    @property
    def rooms(self) -> list[Room]:
        return self._deps.mirror.rooms

    @property
    def current_room(self) -> ActiveRoom | None:
        return self._deps.mirror.current_room

    @property
    def voice_data(self) -> VoiceDataCache:
        return self._deps.voice_data

    def get_room(self, room_id: str) -> Room | None:
        return self._deps.mirror.get_room(room_id)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, fn: Listener | None = None) -> Any:
        return self._deps.events.on(event, fn)

    def once(self, event: str, fn: Listener | None = None) -> Any:
        return self._deps.events.once(event, fn)

    def off(self, event: str, fn: Listener | None = None) -> None:
        self._deps.events.off(event, fn)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        await self._deps.connection.connect()

    async def disconnect(self) -> None:
        await self._deps.connection.disconnect(mode="off")

    async def close(self) -> None:
        await self._deps.shutdown()

    async def wait_until_ready(self, timeout: float | None = None) -> User | None:
        await asyncio.wait_for(self._deps.connection.ready.wait(), timeout)
        return self.user

    # ------------------------------------------------------------------
    # Raw requests
    # ------------------------------------------------------------------

    async def send(self, op: str, payload: Any = None, *, ref: str | None = None, legacy: bool = False) -> str | None:
        """Fire-and-forget; returns the ref used, or None when the socket is down."""
        return await self._deps.connection.send_envelope(
            op,
            {} if payload is None else payload,
            ref=ref,
            legacy=legacy,
        )

    async def request(self, op: str, payload: Any = None, *, ref: str | None = None, legacy: bool = False) -> Any:
        """Send `op` and wait for the reply carrying the same ref."""
        ref = ref or new_ref()
        pending = self._deps.pending
        future = pending.register(ref)
        sent = await self.send(op, payload, ref=ref, legacy=legacy)
        if sent is None:
            pending.discard(ref, future)
            raise NotConnected(message=f"cannot send {op!r}: socket is not open")
        return await future

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    async def get_top_rooms(self, cursor: int = 0) -> list[Room]:
        reply = await self.request(ops.OP_TOP_ROOMS, {"cursor": cursor})
        rooms = reply.get("rooms") if isinstance(reply, dict) else None
        return [self._deps.mirror.add_room(Room.from_payload(data)) for data in rooms or [] if isinstance(data, dict)]

    async def join_room(self, room: Room | Mapping[str, Any] | str) -> ActiveRoom:
        room_id = _id_of(room, "id", "roomId")
        reply = await self.request(ops.OP_JOIN_ROOM, {"roomId": room_id}, legacy=True)
        if not isinstance(reply, dict) or reply.get("error"):
            error = reply.get("error") if isinstance(reply, dict) else reply
            raise ServerError(message=f"could not join room {room_id}: {error}", error=error)

        if not isinstance(reply.get("room"), dict):
            raise ServerError(message=f"join reply for room {room_id} carried no room", error=reply)

        # A join-completion reply was already mirrored by the dispatcher; any
        # other reply replaces whatever the mirror holds under this id.
        mirror = self._deps.mirror
        active = mirror.built_from(reply)
        if active is None:
            self_id = self.user.id if self.user else None
            active = mirror.join(reply, self_user_id=self_id)
        mirror.set_current_room(active.id)
        return active

    async def create_room(self, name: str, description: str = "", privacy: str = "public") -> Room:
        reply = await self.request(
            ops.OP_CREATE_ROOM,
            {"name": name, "description": description, "privacy": privacy},
        )
        data = reply.get("room") if isinstance(reply, dict) and isinstance(reply.get("room"), dict) else reply
        if not isinstance(data, dict) or not data.get("id"):
            raise ServerError(message="room creation reply carried no room", error=reply)
        return self._deps.mirror.add_room(Room.from_payload(data))

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def create_bot_account(self, username: str) -> Any:
        if self.user is not None and self.user.is_bot:
            raise PermissionDenied(message="bots cannot create bot accounts")
        return await self.request(ops.OP_CREATE_BOT, {"username": username})

    async def edit_self(
        self,
        *,
        username: str | None = None,
        display_name: str | None = None,
        avatar_url: str | None = None,
        banner_url: str | None = None,
        bio: str | None = None,
    ) -> User:
        me = self.user
        if me is None:
            raise NotConnected(message="not authenticated")

        profile = await self.request(ops.OP_GET_PROFILE, {"userIdOrUsername": me.id})
        profile = profile if isinstance(profile, dict) else {}
        changes = {
            "username": username,
            "displayName": display_name,
            "avatarUrl": avatar_url,
            "bannerUrl": banner_url,
            "bio": bio,
        }
        update = {key: profile.get(key) if value is None else value for key, value in changes.items()}

        reply = await self.request(ops.OP_EDIT_PROFILE, update)
        if isinstance(reply, dict) and reply.get("isUsernameTaken"):
            raise ServerError(message=f"username {username!r} is taken", error=reply)
        if isinstance(reply, dict) and reply.get("id"):
            data = reply
        else:
            data = {**profile, **update, "id": me.id}
        user = User.from_payload(data)
        self._deps.session.user = user
        return user

    # ------------------------------------------------------------------
    # In-room actions
    # ------------------------------------------------------------------

    async def send_chat_message(
        self,
        content: str | list[dict[str, Any]],
        whispered_to: Iterable[User | str] = (),
    ) -> str | None:
        tokens = [{"type": "text", "value": content}] if isinstance(content, str) else list(content)
        return await self.send(
            ops.OP_SEND_CHAT_MSG,
            {"tokens": tokens, "whisperedTo": [_id_of(user) for user in whispered_to]},
        )

    async def set_role(self, role: str, user: User | str | None = None) -> str | None:
        payload: dict[str, Any] = {"role": role}
        if user is not None:
            payload["userId"] = _id_of(user)
        return await self.send(ops.OP_SET_ROLE, payload)

    async def set_speaking(self, value: bool) -> str | None:
        return await self.send(ops.OP_SET_SPEAKING, {"active": bool(value)})

    async def set_user_auth_level(self, user: ActiveUser, level: str) -> str | None:
        room = self._deps.mirror.get_active_room(user.room_id)
        me = room.self_user if room is not None else None
        if me is None or not me.permissions.is_creator:
            raise PermissionDenied(message="only the room creator can change auth levels")
        return await self.send(ops.OP_SET_AUTH, {"userId": user.id, "level": level})


__all__ = ["RoomClient"]
