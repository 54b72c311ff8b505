from __future__ import annotations

import logging
from typing import Any

import orjson
import pytest

from roomwire.config import events as ev
from roomwire.config import opcodes as ops
from roomwire.state.models import User, VoiceState, VoiceDataCache
from roomwire.state.errors import ServerError
from roomwire.state.session import Session, TokenPair
from roomwire.state.settings import ClientSettings
from roomwire.handlers.events import EventBus
from roomwire.handlers.mirror import RoomMirror
from roomwire.handlers.context import DispatchContext
from roomwire.handlers.pending import PendingRequestTable
from roomwire.handlers.dispatch import HANDLERS, PacketDispatcher


class _Harness:
    def __init__(self, settings: ClientSettings | None = None) -> None:
        self.events = EventBus()
        self.session = Session(tokens=TokenPair(access_token="a", refresh_token="r"))
        self.session.user = User(id="me", username="me")
        self.authenticated: list[User] = []
        self.rejected: list[Exception] = []
        self.ctx = DispatchContext(
            mirror=RoomMirror(),
            session=self.session,
            voice_data=VoiceDataCache(),
            events=self.events,
            settings=settings or ClientSettings(),
            on_authenticated=self.authenticated.append,
            on_auth_rejected=self.rejected.append,
        )
        self.pending = PendingRequestTable(timeout_s=1.0)
        self.dispatcher = PacketDispatcher(self.ctx, self.pending)

    def record(self, event: str) -> list[tuple[Any, ...]]:
        seen: list[tuple[Any, ...]] = []
        self.events.on(event, lambda *args: seen.append(args))
        return seen

    def feed(self, op: str, data: dict[str, Any] | None = None, **extra: Any) -> None:
        frame = {"op": op, "d": data or {}, **extra}
        self.dispatcher.dispatch_raw(_dumps(frame))

    def join(self, room_id: str = "A", *user_ids: str, creator: str = "me") -> None:
        users = [{"id": uid, "username": uid} for uid in ("me", *user_ids)]
        self.feed(
            ops.OP_FETCH_DONE,
            {
                "room": {"id": room_id, "name": room_id, "creatorId": creator},
                "users": users,
                "activeSpeakerMap": {},
                "muteMap": {},
                "deafMap": {},
            },
        )


def _dumps(frame: dict[str, Any]) -> str:
    return orjson.dumps(frame).decode("utf-8")


def test_handler_table_covers_every_inbound_op() -> None:
    assert set(HANDLERS) == set(ops.INBOUND_OPS)


def test_raw_packet_observers_see_every_frame() -> None:
    h = _Harness()
    raw = h.record(ev.EVENT_RAW_PACKET)

    h.feed("something_unknown", {"x": 1})
    h.feed(ops.OP_NEW_TOKENS, {})

    assert [args[0]["op"] for args in raw] == ["something_unknown", ops.OP_NEW_TOKENS]


def test_custom_ops_are_reemitted_verbatim() -> None:
    h = _Harness()
    seen = h.record("@my_event")

    h.feed("@my_event", {"hello": "world"})

    assert seen == [({"hello": "world"},)]


def test_unknown_op_is_logged_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    h = _Harness(ClientSettings(log_unhandled_packets=True))
    with caplog.at_level(logging.INFO, logger="roomwire.handlers.dispatch"):
        h.feed("mystery_op", {})
    assert any("mystery_op" in record.getMessage() for record in caplog.records)


def test_malformed_frame_is_dropped_with_warning() -> None:
    h = _Harness()
    warnings = h.record(ev.EVENT_WARNING)

    assert h.dispatcher.dispatch_raw("{not json") is None
    assert len(warnings) == 1


def test_auth_reply_marks_session_authenticated() -> None:
    h = _Harness()
    h.session.user = None
    ready = h.record(ev.EVENT_READY)

    h.dispatcher.dispatch_raw(_dumps({"op": ops.OP_AUTH_REPLY, "p": {"id": "me", "username": "bot"}, "ref": "x"}))

    assert h.session.user is not None and h.session.user.username == "bot"
    assert [u.id for u in h.authenticated] == ["me"]
    assert len(ready) == 1


def test_auth_reply_error_is_rejected() -> None:
    h = _Harness()
    h.dispatcher.dispatch_raw(_dumps({"op": ops.OP_AUTH_REPLY, "e": "bad token"}))
    assert len(h.rejected) == 1
    assert h.authenticated == []


def test_new_tokens_are_written_into_session() -> None:
    h = _Harness()
    seen = h.record(ev.EVENT_NEW_TOKENS)

    h.feed(ops.OP_NEW_TOKENS, {"accessToken": "a2", "refreshToken": "r2"})

    assert h.session.tokens.access_token == "a2"
    assert h.session.tokens.refresh_token == "r2"
    assert len(seen) == 1


def test_join_then_user_join_leaves_one_default_user() -> None:
    h = _Harness()
    joined = h.record(ev.EVENT_JOINED_ROOM)
    user_joins = h.record(ev.EVENT_USER_JOIN_ROOM)

    h.join("A")
    h.feed(ops.OP_USER_JOIN_ROOM, {"roomId": "A", "user": {"id": "U", "username": "u"}})
    h.feed(ops.OP_USER_JOIN_ROOM, {"roomId": "A", "user": {"id": "U", "username": "u"}})

    room = h.ctx.mirror.get_active_room("A")
    assert room is not None
    assert len(joined) == 1 and joined[0][0] is room
    assert h.ctx.mirror.current_room is room
    assert [uid for uid in room.users if uid == "U"] == ["U"]
    assert room.users["U"].voice == VoiceState()
    assert len(user_joins) == 1
    user, event_room = user_joins[0]
    assert user.id == "U" and event_room is room


def test_user_join_for_unknown_room_is_ignored() -> None:
    h = _Harness()
    seen = h.record(ev.EVENT_USER_JOIN_ROOM)
    h.feed(ops.OP_USER_JOIN_ROOM, {"roomId": "nope", "user": {"id": "U"}})
    assert seen == []


def test_user_left_emits_only_for_present_users() -> None:
    h = _Harness()
    h.join("A", "U")
    left = h.record(ev.EVENT_USER_LEFT_ROOM)

    h.feed(ops.OP_USER_LEFT_ROOM, {"roomId": "A", "userId": "U"})
    h.feed(ops.OP_USER_LEFT_ROOM, {"roomId": "A", "userId": "U"})

    assert len(left) == 1
    assert "U" not in h.ctx.mirror.get_active_room("A").users


def test_active_speaker_map_emits_per_real_change() -> None:
    h = _Harness()
    h.join("A", "U", "V")
    changes = h.record(ev.EVENT_ACTIVE_SPEAKER_CHANGE)

    h.feed(ops.OP_ACTIVE_SPEAKER_CHANGE, {"roomId": "A", "activeSpeakerMap": {"U": True}})
    h.feed(ops.OP_ACTIVE_SPEAKER_CHANGE, {"roomId": "A", "activeSpeakerMap": {"U": True}})
    h.feed(ops.OP_ACTIVE_SPEAKER_CHANGE, {"roomId": "A", "activeSpeakerMap": {"V": True}})
    h.feed(ops.OP_ACTIVE_SPEAKER_CHANGE, {"roomId": "A", "activeSpeakerMap": {"U": False}})

    assert [(user.id, speaking) for user, _room, speaking in changes] == [("U", True), ("V", True), ("U", False)]


def test_partial_speaker_map_leaves_other_users_untouched() -> None:
    h = _Harness()
    h.join("A", "U", "V", "W")
    room = h.ctx.mirror.get_active_room("A")
    room.users["V"].voice.speaking = True
    room.users["W"].voice.muted = True
    speaking = h.record(ev.EVENT_ACTIVE_SPEAKER_CHANGE)
    mutes = h.record(ev.EVENT_MUTE_CHANGE)

    h.feed(ops.OP_ACTIVE_SPEAKER_CHANGE, {"roomId": "A", "activeSpeakerMap": {"U": True}, "muteMap": {"U": False}})

    assert [(user.id, value) for user, _room, value in speaking] == [("U", True)]
    assert mutes == []
    assert room.users["V"].voice.speaking is True
    assert room.users["W"].voice.muted is True


def test_explicit_mute_toggle_is_idempotent() -> None:
    h = _Harness()
    h.join("A", "U")
    mutes = h.record(ev.EVENT_MUTE_CHANGE)
    deafens = h.record(ev.EVENT_DEAFEN_CHANGE)

    h.feed(ops.OP_MUTE_CHANGED, {"roomId": "A", "userId": "U", "value": True})
    h.feed(ops.OP_MUTE_CHANGED, {"roomId": "A", "userId": "U", "value": True})
    h.feed(ops.OP_DEAFEN_CHANGED, {"roomId": "A", "userId": "U", "value": True})

    assert [(u.id, value) for u, _room, value in mutes] == [("U", True)]
    assert [(u.id, value) for u, _room, value in deafens] == [("U", True)]


def test_hand_raise_and_speaker_promotion() -> None:
    h = _Harness()
    h.join("A", "U")
    hands = h.record(ev.EVENT_HAND_RAISED)
    added = h.record(ev.EVENT_SPEAKER_ADDED)
    removed = h.record(ev.EVENT_SPEAKER_REMOVED)
    user = h.ctx.mirror.get_active_room("A").users["U"]

    h.feed(ops.OP_HAND_RAISED, {"roomId": "A", "userId": "U"})
    h.feed(ops.OP_HAND_RAISED, {"roomId": "A", "userId": "U"})
    assert len(hands) == 1
    assert user.voice.hand_raised and user.permissions.asked_to_speak

    h.feed(ops.OP_SPEAKER_ADDED, {"roomId": "A", "userId": "U"})
    h.feed(ops.OP_SPEAKER_ADDED, {"roomId": "A", "userId": "U"})
    assert len(added) == 1
    assert user.permissions.is_speaker
    assert not user.voice.hand_raised and not user.permissions.asked_to_speak

    h.feed(ops.OP_SPEAKER_REMOVED, {"roomId": "A", "userId": "U"})
    h.feed(ops.OP_SPEAKER_REMOVED, {"roomId": "A", "userId": "U"})
    assert len(removed) == 1
    assert not user.permissions.is_speaker


def test_mod_and_creator_changes() -> None:
    h = _Harness()
    h.join("A", "U")
    mods = h.record(ev.EVENT_MOD_CHANGE)
    creators = h.record(ev.EVENT_CREATOR_CHANGE)
    room = h.ctx.mirror.get_active_room("A")

    h.feed(ops.OP_MOD_CHANGED, {"roomId": "A", "userId": "U", "isMod": True})
    h.feed(ops.OP_MOD_CHANGED, {"roomId": "A", "userId": "U", "isMod": True})
    h.feed(ops.OP_NEW_CREATOR, {"roomId": "A", "userId": "U"})
    h.feed(ops.OP_NEW_CREATOR, {"roomId": "A", "userId": "U"})

    assert [(u.id, is_mod) for u, _room, is_mod in mods] == [("U", True)]
    assert len(creators) == 1
    assert room.creator_id == "U"
    assert room.users["U"].permissions.is_creator
    assert not room.users["me"].permissions.is_creator


def test_voice_transport_payloads_accumulate() -> None:
    h = _Harness()
    h.join("A")
    peers = h.record(ev.EVENT_JOINED_AS_PEER)
    speakers = h.record(ev.EVENT_BECAME_SPEAKER)

    h.feed(ops.OP_JOINED_PEER, {"roomId": "A", "recvTransportOptions": {"id": "recv"}, "routerRtpCapabilities": {"c": 1}})
    h.feed(ops.OP_NOW_SPEAKER, {"roomId": "A", "sendTransportOptions": {"id": "send"}})

    cache = h.ctx.voice_data
    assert cache.as_dict() == {
        "recvTransportOptions": {"id": "recv"},
        "sendTransportOptions": {"id": "send"},
        "routerRtpCapabilities": {"c": 1},
    }
    assert len(peers) == 1 and len(speakers) == 1
    assert h.ctx.mirror.get_active_room("A").self_user.permissions.is_speaker


def test_voice_transport_for_unknown_room_is_ignored() -> None:
    h = _Harness()
    h.join("A")
    peers = h.record(ev.EVENT_JOINED_AS_PEER)
    speakers = h.record(ev.EVENT_JOINED_AS_SPEAKER)

    h.feed(ops.OP_JOINED_PEER, {"roomId": "elsewhere", "recvTransportOptions": {"id": "recv"}})
    h.feed(ops.OP_JOINED_SPEAKER, {"roomId": "elsewhere", "sendTransportOptions": {"id": "send"}})

    assert peers == [] and speakers == []
    assert h.ctx.voice_data.as_dict() == {}


def test_left_room_clears_current_room() -> None:
    h = _Harness()
    h.join("A")
    left = h.record(ev.EVENT_LEFT_ROOM)

    h.feed(ops.OP_LEFT_ROOM, {"roomId": "A", "kicked": True})

    assert h.ctx.mirror.current_room is None
    assert left[0][1] is True


def test_chat_message_and_deletion_resolve_users() -> None:
    h = _Harness()
    h.join("A", "U")
    messages = h.record(ev.EVENT_NEW_CHAT_MSG)
    deletions = h.record(ev.EVENT_MSG_DELETED)

    h.feed(
        ops.OP_NEW_CHAT_MSG,
        {"roomId": "A", "msg": {"id": "m1", "userId": "U", "tokens": [{"type": "text", "value": "hi"}]}},
    )
    h.feed(ops.OP_MSG_DELETED, {"messageId": "m1", "deleterId": "me"})

    msg, _room = messages[0]
    assert msg.content == "hi"
    assert msg.author is not None and msg.author.id == "U"
    assert deletions[0][0] == "m1"
    assert deletions[0][1].id == "me"


def test_message_deleted_without_current_room_has_no_deleter() -> None:
    h = _Harness()
    deletions = h.record(ev.EVENT_MSG_DELETED)
    h.feed(ops.OP_MSG_DELETED, {"messageId": "m1", "deleterId": "me"})
    assert deletions == [("m1", None)]


@pytest.mark.asyncio
async def test_replies_settle_by_ref_and_fetch_id() -> None:
    h = _Harness()
    by_ref = h.pending.register("r1")
    by_fetch = h.pending.register("f1")

    h.dispatcher.dispatch_raw(_dumps({"op": "room:get_top:reply", "p": {"rooms": []}, "ref": "r1"}))
    h.dispatcher.dispatch_raw(_dumps({"op": "fetch_done", "d": {"ok": 1}, "fetchId": "f1"}))

    assert await by_ref == {"rooms": []}
    assert await by_fetch == {"ok": 1}


@pytest.mark.asyncio
async def test_reply_error_fails_the_request() -> None:
    h = _Harness()
    future = h.pending.register("r1")

    h.dispatcher.dispatch_raw(_dumps({"op": "x:reply", "e": {"message": "denied"}, "ref": "r1"}))

    with pytest.raises(ServerError) as excinfo:
        await future
    assert str(excinfo.value) == "denied"
    assert excinfo.value.error == {"message": "denied"}


@pytest.mark.asyncio
async def test_failing_handler_still_settles_pending() -> None:
    h = _Harness()

    def boom(_ctx: DispatchContext, _packet: object) -> None:
        raise RuntimeError("boom")

    dispatcher = PacketDispatcher(h.ctx, h.pending, handlers={ops.OP_NEW_TOKENS: boom})
    future = h.pending.register("r1")
    dispatcher.dispatch_raw(_dumps({"op": ops.OP_NEW_TOKENS, "p": {"v": 1}, "ref": "r1"}))

    assert await future == {"v": 1}
