"""Client-side mirror of known rooms and the current room."""

from __future__ import annotations

import logging
from typing import Any
from collections.abc import Mapping

from roomwire.state.models import Room, ActiveRoom
from roomwire.handlers.voice import reconcile_from_packet

logger = logging.getLogger(__name__)


class RoomMirror:
    """Rooms keyed by id plus a pointer to the room the session is in.

    An ActiveRoom always supersedes whatever was stored under its id. A plain
    Room listing refreshes the summary fields of an ActiveRoom in place
    instead of replacing its member list.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}
        self._current_room_id: str | None = None
        self._last_join: tuple[Mapping[str, Any], ActiveRoom] | None = None

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    @property
    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    @property
    def current_room(self) -> ActiveRoom | None:
        return self.get_active_room(self._current_room_id)

    def set_current_room(self, room_id: str | None) -> None:
        self._current_room_id = room_id

    def add_room(self, room: Room) -> Room:
        existing = self._rooms.get(room.id)
        if isinstance(existing, ActiveRoom) and not isinstance(room, ActiveRoom):
            existing.name = room.name
            existing.description = room.description
            existing.is_private = room.is_private
            existing.creator_id = room.creator_id or existing.creator_id
            existing.num_people_inside = room.num_people_inside
            return existing
        self._rooms[room.id] = room
        return room

    def get_room(self, room_id: str | None) -> Room | None:
        if room_id is None:
            return None
        return self._rooms.get(str(room_id))

    def get_active_room(self, room_id: str | None) -> ActiveRoom | None:
        room = self.get_room(room_id)
        return room if isinstance(room, ActiveRoom) else None

    def remove_room(self, room_id: str) -> Room | None:
        if room_id == self._current_room_id:
            self._current_room_id = None
        return self._rooms.pop(room_id, None)

    def join(self, data: Mapping[str, Any], *, self_user_id: str | None = None) -> ActiveRoom:
        """Build an ActiveRoom from a join payload and make it current."""
        room = ActiveRoom.from_join_payload(data, self_user_id=self_user_id)
        reconcile_from_packet(room, data)
        self.add_room(room)
        self._current_room_id = room.id
        self._last_join = (data, room)
        logger.debug("joined room %s with %s user(s)", room.id, len(room.users))
        return room

    def built_from(self, data: Mapping[str, Any]) -> ActiveRoom | None:
        """The room the latest `join()` built from this exact payload object, if still stored."""
        if self._last_join is None or self._last_join[0] is not data:
            return None
        room = self._last_join[1]
        return room if self._rooms.get(room.id) is room else None

    def clear(self) -> None:
        self._rooms.clear()
        self._current_room_id = None
        self._last_join = None


__all__ = ["RoomMirror"]
