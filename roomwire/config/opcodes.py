"""Operation codes carried in the `op` field of every envelope."""

from __future__ import annotations

# Outbound requests
OP_AUTH = "auth:request"
OP_TOP_ROOMS = "room:get_top"
OP_JOIN_ROOM = "join_room_and_get_info"
OP_CREATE_ROOM = "room:create"
OP_CREATE_BOT = "user:create_bot"
OP_SET_ROLE = "room:set_role"
OP_SEND_CHAT_MSG = "chat:send_msg"
OP_SET_SPEAKING = "room:set_active_speaker"
OP_SET_AUTH = "room:set_auth"
OP_GET_PROFILE = "user:get_info"
OP_EDIT_PROFILE = "user:update"

# Inbound broadcasts and replies
OP_AUTH_REPLY = "auth:request:reply"
OP_NEW_TOKENS = "new-tokens"
OP_FETCH_DONE = "fetch_done"
OP_USER_JOIN_ROOM = "new_user_join_room"
OP_USER_LEFT_ROOM = "user_left_room"
OP_ACTIVE_SPEAKER_CHANGE = "active_speaker_change"
OP_MUTE_CHANGED = "mute_changed"
OP_DEAFEN_CHANGED = "deafen_changed"
OP_NEW_CHAT_MSG = "new_chat_msg"
OP_MSG_DELETED = "message_deleted"
OP_JOINED_PEER = "you-joined-as-peer"
OP_JOINED_SPEAKER = "you-joined-as-speaker"
OP_NOW_SPEAKER = "you-are-now-a-speaker"
OP_HAND_RAISED = "hand_raised"
OP_SPEAKER_ADDED = "speaker_added"
OP_SPEAKER_REMOVED = "speaker_removed"
OP_LEFT_ROOM = "you_left_room"
OP_MOD_CHANGED = "mod_changed"
OP_NEW_CREATOR = "new_room_creator"

INBOUND_OPS = frozenset(
    {
        OP_AUTH_REPLY,
        OP_NEW_TOKENS,
        OP_FETCH_DONE,
        OP_USER_JOIN_ROOM,
        OP_USER_LEFT_ROOM,
        OP_ACTIVE_SPEAKER_CHANGE,
        OP_MUTE_CHANGED,
        OP_DEAFEN_CHANGED,
        OP_NEW_CHAT_MSG,
        OP_MSG_DELETED,
        OP_JOINED_PEER,
        OP_JOINED_SPEAKER,
        OP_NOW_SPEAKER,
        OP_HAND_RAISED,
        OP_SPEAKER_ADDED,
        OP_SPEAKER_REMOVED,
        OP_LEFT_ROOM,
        OP_MOD_CHANGED,
        OP_NEW_CREATOR,
    }
)

__all__ = [
    "OP_AUTH",
    "OP_TOP_ROOMS",
    "OP_JOIN_ROOM",
    "OP_CREATE_ROOM",
    "OP_CREATE_BOT",
    "OP_SET_ROLE",
    "OP_SEND_CHAT_MSG",
    "OP_SET_SPEAKING",
    "OP_SET_AUTH",
    "OP_GET_PROFILE",
    "OP_EDIT_PROFILE",
    "OP_AUTH_REPLY",
    "OP_NEW_TOKENS",
    "OP_FETCH_DONE",
    "OP_USER_JOIN_ROOM",
    "OP_USER_LEFT_ROOM",
    "OP_ACTIVE_SPEAKER_CHANGE",
    "OP_MUTE_CHANGED",
    "OP_DEAFEN_CHANGED",
    "OP_NEW_CHAT_MSG",
    "OP_MSG_DELETED",
    "OP_JOINED_PEER",
    "OP_JOINED_SPEAKER",
    "OP_NOW_SPEAKER",
    "OP_HAND_RAISED",
    "OP_SPEAKER_ADDED",
    "OP_SPEAKER_REMOVED",
    "OP_LEFT_ROOM",
    "OP_MOD_CHANGED",
    "OP_NEW_CREATOR",
    "INBOUND_OPS",
]
