"""Names of the events emitted by the client."""

from __future__ import annotations

EVENT_READY = "ready"
EVENT_DISCONNECT = "disconnect"
EVENT_ERROR = "error"
EVENT_WARNING = "warning"
EVENT_RAW_PACKET = "raw_packet"

EVENT_NEW_TOKENS = "new_tokens"
EVENT_JOINED_ROOM = "joined_room"
EVENT_USER_JOIN_ROOM = "user_join_room"
EVENT_USER_LEFT_ROOM = "user_left_room"
EVENT_ACTIVE_SPEAKER_CHANGE = "active_speaker_change"
EVENT_MUTE_CHANGE = "mute_change"
EVENT_DEAFEN_CHANGE = "deafen_change"
EVENT_NEW_CHAT_MSG = "new_chat_msg"
EVENT_MSG_DELETED = "msg_deleted"
EVENT_JOINED_AS_PEER = "joined_as_peer"
EVENT_JOINED_AS_SPEAKER = "joined_as_speaker"
EVENT_BECAME_SPEAKER = "became_speaker"
EVENT_HAND_RAISED = "hand_raised"
EVENT_SPEAKER_ADDED = "speaker_added"
EVENT_SPEAKER_REMOVED = "speaker_removed"
EVENT_LEFT_ROOM = "left_room"
EVENT_MOD_CHANGE = "mod_change"
EVENT_CREATOR_CHANGE = "creator_change"

__all__ = [
    "EVENT_READY",
    "EVENT_DISCONNECT",
    "EVENT_ERROR",
    "EVENT_WARNING",
    "EVENT_RAW_PACKET",
    "EVENT_NEW_TOKENS",
    "EVENT_JOINED_ROOM",
    "EVENT_USER_JOIN_ROOM",
    "EVENT_USER_LEFT_ROOM",
    "EVENT_ACTIVE_SPEAKER_CHANGE",
    "EVENT_MUTE_CHANGE",
    "EVENT_DEAFEN_CHANGE",
    "EVENT_NEW_CHAT_MSG",
    "EVENT_MSG_DELETED",
    "EVENT_JOINED_AS_PEER",
    "EVENT_JOINED_AS_SPEAKER",
    "EVENT_BECAME_SPEAKER",
    "EVENT_HAND_RAISED",
    "EVENT_SPEAKER_ADDED",
    "EVENT_SPEAKER_REMOVED",
    "EVENT_LEFT_ROOM",
    "EVENT_MOD_CHANGE",
    "EVENT_CREATOR_CHANGE",
]
