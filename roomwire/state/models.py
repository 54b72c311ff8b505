"""Plain data containers for rooms, users, chat messages and voice data."""

from __future__ import annotations

from typing import Any
from collections.abc import Mapping
from dataclasses import field, dataclass


def _str(data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return str(value)
    return ""


@dataclass(slots=True)
class VoiceState:
    muted: bool = False
    deafened: bool = False
    speaking: bool = False
    hand_raised: bool = False


@dataclass(slots=True)
class RoomPermissions:
    is_speaker: bool = False
    is_mod: bool = False
    is_creator: bool = False
    asked_to_speak: bool = False

    @classmethod
    def from_payload(cls, data: Mapping[str, Any] | None, *, is_creator: bool = False) -> RoomPermissions:
        data = data or {}
        return cls(
            is_speaker=bool(data.get("isSpeaker", False)),
            is_mod=bool(data.get("isMod", False)),
            is_creator=is_creator,
            asked_to_speak=bool(data.get("askedToSpeak", False)),
        )


@dataclass(slots=True)
class User:
    id: str
    username: str = ""
    display_name: str = ""
    avatar_url: str = ""
    banner_url: str = ""
    bio: str = ""
    bot_owner_id: str | None = None
    num_followers: int = 0
    num_following: int = 0

    @property
    def is_bot(self) -> bool:
        return self.bot_owner_id is not None

    @staticmethod
    def _fields_from_payload(data: Mapping[str, Any]) -> dict[str, Any]:
        bot_owner = data.get("botOwnerId")
        return {
            "id": _str(data, "id", "userId"),
            "username": _str(data, "username"),
            "display_name": _str(data, "displayName"),
            "avatar_url": _str(data, "avatarUrl"),
            "banner_url": _str(data, "bannerUrl"),
            "bio": _str(data, "bio"),
            "bot_owner_id": str(bot_owner) if bot_owner else None,
            "num_followers": int(data.get("numFollowers") or 0),
            "num_following": int(data.get("numFollowing") or 0),
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> User:
        return cls(**cls._fields_from_payload(data))


@dataclass(slots=True)
class ActiveUser(User):
    """A user inside a joined room. `room_id` is a lookup key, not ownership."""

    room_id: str = ""
    voice: VoiceState = field(default_factory=VoiceState)
    permissions: RoomPermissions = field(default_factory=RoomPermissions)

    @classmethod
    def from_room_payload(cls, data: Mapping[str, Any], *, room_id: str, creator_id: str = "") -> ActiveUser:
        fields = cls._fields_from_payload(data)
        permissions = RoomPermissions.from_payload(
            data.get("roomPermissions"),
            is_creator=bool(creator_id) and fields["id"] == creator_id,
        )
        return cls(**fields, room_id=room_id, permissions=permissions)


@dataclass(slots=True)
class Room:
    id: str
    name: str = ""
    description: str = ""
    is_private: bool = False
    creator_id: str = ""
    num_people_inside: int = 0

    @property
    def privacy(self) -> str:
        return "private" if self.is_private else "public"

    @staticmethod
    def _fields_from_payload(data: Mapping[str, Any]) -> dict[str, Any]:
        if "isPrivate" in data:
            is_private = bool(data.get("isPrivate"))
        else:
            is_private = str(data.get("privacy") or "").lower() == "private"
        return {
            "id": _str(data, "id", "roomId"),
            "name": _str(data, "name"),
            "description": _str(data, "description"),
            "is_private": is_private,
            "creator_id": _str(data, "creatorId"),
            "num_people_inside": int(data.get("numPeopleInside") or 0),
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Room:
        return cls(**cls._fields_from_payload(data))


@dataclass(slots=True)
class ActiveRoom(Room):
    """A room the session is, or recently was, a member of."""

    users: dict[str, ActiveUser] = field(default_factory=dict)
    self_user_id: str | None = None

    @classmethod
    def from_join_payload(cls, data: Mapping[str, Any], *, self_user_id: str | None = None) -> ActiveRoom:
        room_data = data.get("room") or {}
        room = cls(**cls._fields_from_payload(room_data), self_user_id=self_user_id)
        for user_data in data.get("users") or []:
            room.add_user(ActiveUser.from_room_payload(user_data, room_id=room.id, creator_id=room.creator_id))
        return room

    @property
    def self_user(self) -> ActiveUser | None:
        if self.self_user_id is None:
            return None
        return self.users.get(self.self_user_id)

    def add_user(self, user: ActiveUser) -> ActiveUser:
        """Insert or supersede the entry for `user.id`."""
        user.room_id = self.id
        self.users[user.id] = user
        return user

    def get_user(self, user_id: str | None) -> ActiveUser | None:
        if user_id is None:
            return None
        return self.users.get(str(user_id))

    def remove_user(self, user_id: str | None) -> ActiveUser | None:
        if user_id is None:
            return None
        return self.users.pop(str(user_id), None)


@dataclass(slots=True)
class ChatMessage:
    id: str
    user_id: str = ""
    tokens: list[dict[str, Any]] = field(default_factory=list)
    username: str = ""
    display_name: str = ""
    avatar_url: str = ""
    sent_at: str = ""
    is_whisper: bool = False
    author: ActiveUser | None = None

    @property
    def content(self) -> str:
        return "".join(str(token.get("value", "")) for token in self.tokens)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], *, author: ActiveUser | None = None) -> ChatMessage:
        tokens = data.get("tokens")
        return cls(
            id=_str(data, "id"),
            user_id=_str(data, "userId"),
            tokens=list(tokens) if isinstance(tokens, list) else [],
            username=_str(data, "username"),
            display_name=_str(data, "displayName"),
            avatar_url=_str(data, "avatarUrl"),
            sent_at=_str(data, "sentAt"),
            is_whisper=bool(data.get("isWhisper", False)),
            author=author,
        )


@dataclass(slots=True)
class VoiceDataCache:
    """Opaque voice-transport negotiation payloads, accumulated across packets."""

    recv_transport_options: Any = None
    send_transport_options: Any = None
    router_rtp_capabilities: Any = None

    _WIRE_KEYS = (
        ("recvTransportOptions", "recv_transport_options"),
        ("sendTransportOptions", "send_transport_options"),
        ("routerRtpCapabilities", "router_rtp_capabilities"),
    )

    def merge(self, data: Mapping[str, Any], *, wire_keys: tuple[str, ...] | None = None) -> None:
        for wire_key, attr in self._WIRE_KEYS:
            if wire_keys is not None and wire_key not in wire_keys:
                continue
            value = data.get(wire_key)
            if value:
                setattr(self, attr, value)

    def clear(self) -> None:
        self.recv_transport_options = None
        self.send_transport_options = None
        self.router_rtp_capabilities = None

    def as_dict(self) -> dict[str, Any]:
        return {wire_key: getattr(self, attr) for wire_key, attr in self._WIRE_KEYS if getattr(self, attr)}


__all__ = [
    "VoiceState",
    "RoomPermissions",
    "User",
    "ActiveUser",
    "Room",
    "ActiveRoom",
    "ChatMessage",
    "VoiceDataCache",
]
