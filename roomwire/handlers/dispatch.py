"""Inbound packet dispatch.

Each inbound op has one handler in `HANDLERS`. Handlers update the mirror
and emit an event only when something actually changed, so replayed or
duplicated broadcasts are harmless. Correlation happens after the handler,
independently of whether the op was recognized.
"""

from __future__ import annotations

import logging
from typing import Any
from collections.abc import Callable

from roomwire.config import events as ev
from roomwire.config import opcodes as ops
from roomwire.state.models import User, ActiveRoom, ActiveUser, ChatMessage
from roomwire.state.errors import ServerError, InvalidPacket, AuthenticationFailure
from roomwire.state.packets import Packet
from roomwire.config.websocket import CUSTOM_OP_PREFIX

from .voice import VoiceObservation, VoiceStateChanges, reconcile_from_packet, reconcile_voice_states
from .parser import parse_server_message
from .context import DispatchContext
from .pending import PendingRequestTable

logger = logging.getLogger(__name__)

Handler = Callable[[DispatchContext, Packet], None]


def _room_for(ctx: DispatchContext, packet: Packet) -> ActiveRoom | None:
    return ctx.mirror.get_active_room(packet.data.get("roomId"))


def _user_for(ctx: DispatchContext, packet: Packet) -> tuple[ActiveRoom | None, ActiveUser | None]:
    room = _room_for(ctx, packet)
    if room is None:
        return None, None
    return room, room.get_user(packet.data.get("userId"))


def _emit_voice_changes(ctx: DispatchContext, room: ActiveRoom, changes: VoiceStateChanges) -> None:
    for user in changes.speaking:
        ctx.events.emit(ev.EVENT_ACTIVE_SPEAKER_CHANGE, user, room, user.voice.speaking)
    for user in changes.muted:
        ctx.events.emit(ev.EVENT_MUTE_CHANGE, user, room, user.voice.muted)
    for user in changes.deafened:
        ctx.events.emit(ev.EVENT_DEAFEN_CHANGE, user, room, user.voice.deafened)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def handle_auth_reply(ctx: DispatchContext, packet: Packet) -> None:
    if packet.has_error:
        ctx.on_auth_rejected(AuthenticationFailure(message=f"authentication rejected: {packet.e}"))
        return
    payload = packet.p if isinstance(packet.p, dict) else packet.data
    user_data = payload.get("user") if isinstance(payload.get("user"), dict) else payload
    if not user_data.get("id"):
        ctx.on_auth_rejected(AuthenticationFailure(message="authentication reply carried no user"))
        return
    user = User.from_payload(user_data)
    ctx.session.user = user
    ctx.on_authenticated(user)
    ctx.events.emit(ev.EVENT_READY, user)


def handle_new_tokens(ctx: DispatchContext, packet: Packet) -> None:
    data = packet.data
    access, refresh = data.get("accessToken"), data.get("refreshToken")
    if access and refresh:
        ctx.session.tokens.access_token = str(access)
        ctx.session.tokens.refresh_token = str(refresh)
    ctx.events.emit(ev.EVENT_NEW_TOKENS, data)


# ---------------------------------------------------------------------------
# Room membership
# ---------------------------------------------------------------------------


def handle_fetch_done(ctx: DispatchContext, packet: Packet) -> None:
    data = packet.data
    if not isinstance(data.get("room"), dict) or not isinstance(data.get("activeSpeakerMap"), dict):
        return
    self_id = ctx.session.user.id if ctx.session.user else None
    room = ctx.mirror.join(data, self_user_id=self_id)
    ctx.events.emit(ev.EVENT_JOINED_ROOM, room)


def handle_user_join_room(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    user_data = packet.data.get("user")
    if room is None or not isinstance(user_data, dict):
        return
    user = ActiveUser.from_room_payload(user_data, room_id=room.id, creator_id=room.creator_id)
    if not user.id:
        return
    existing = room.get_user(user.id)
    if existing is not None:
        user.voice = existing.voice
    room.add_user(user)

    changes = reconcile_from_packet(room, packet.data)
    _emit_voice_changes(ctx, room, changes.without(user.id))
    if existing is None:
        ctx.events.emit(ev.EVENT_USER_JOIN_ROOM, user, room)


def handle_user_left_room(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    if room is None:
        return
    user = room.remove_user(packet.data.get("userId"))
    _emit_voice_changes(ctx, room, reconcile_from_packet(room, packet.data))
    if user is not None:
        ctx.events.emit(ev.EVENT_USER_LEFT_ROOM, user, room)


def handle_left_room(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    if room is None:
        return
    if ctx.mirror.current_room is room:
        ctx.mirror.set_current_room(None)
    ctx.events.emit(ev.EVENT_LEFT_ROOM, room, bool(packet.data.get("kicked")))


# ---------------------------------------------------------------------------
# Voice state
# ---------------------------------------------------------------------------


def handle_active_speaker_change(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    if room is None:
        return
    _emit_voice_changes(ctx, room, reconcile_from_packet(room, packet.data))


def _toggle_handler(attr: str) -> Handler:
    def handle(ctx: DispatchContext, packet: Packet) -> None:
        room, user = _user_for(ctx, packet)
        if room is None or user is None:
            return
        observed = VoiceObservation(**{attr: bool(packet.data.get("value"))})
        _emit_voice_changes(ctx, room, reconcile_voice_states(room, {user.id: observed}))

    handle.__name__ = f"handle_{attr}_changed"
    return handle


handle_mute_changed = _toggle_handler("muted")
handle_deafen_changed = _toggle_handler("deafened")


def handle_joined_as_peer(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    if room is None:
        return
    ctx.voice_data.merge(packet.data, wire_keys=("recvTransportOptions", "routerRtpCapabilities"))
    ctx.events.emit(ev.EVENT_JOINED_AS_PEER, room, ctx.voice_data)


def handle_joined_as_speaker(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    if room is None:
        return
    ctx.voice_data.merge(packet.data)
    ctx.events.emit(ev.EVENT_JOINED_AS_SPEAKER, room, ctx.voice_data)


def handle_now_speaker(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    ctx.voice_data.merge(packet.data, wire_keys=("sendTransportOptions",))
    if room is not None and room.self_user is not None:
        room.self_user.permissions.is_speaker = True
    ctx.events.emit(ev.EVENT_BECAME_SPEAKER, room, ctx.voice_data)


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


def handle_hand_raised(ctx: DispatchContext, packet: Packet) -> None:
    room, user = _user_for(ctx, packet)
    if room is None or user is None:
        return
    changed = not (user.voice.hand_raised and user.permissions.asked_to_speak)
    user.voice.hand_raised = True
    user.permissions.asked_to_speak = True
    _emit_voice_changes(ctx, room, reconcile_from_packet(room, packet.data))
    if changed:
        ctx.events.emit(ev.EVENT_HAND_RAISED, user, room)


def handle_speaker_added(ctx: DispatchContext, packet: Packet) -> None:
    room, user = _user_for(ctx, packet)
    if room is None or user is None:
        return
    changed = not user.permissions.is_speaker
    user.permissions.is_speaker = True
    user.permissions.asked_to_speak = False
    user.voice.hand_raised = False
    _emit_voice_changes(ctx, room, reconcile_from_packet(room, packet.data))
    if changed:
        ctx.events.emit(ev.EVENT_SPEAKER_ADDED, user, room)


def handle_speaker_removed(ctx: DispatchContext, packet: Packet) -> None:
    room, user = _user_for(ctx, packet)
    if room is None or user is None:
        return
    changed = user.permissions.is_speaker
    user.permissions.is_speaker = False
    _emit_voice_changes(ctx, room, reconcile_from_packet(room, packet.data))
    if changed:
        ctx.events.emit(ev.EVENT_SPEAKER_REMOVED, user, room)


def handle_mod_changed(ctx: DispatchContext, packet: Packet) -> None:
    room, user = _user_for(ctx, packet)
    if room is None or user is None:
        return
    is_mod = bool(packet.data.get("isMod"))
    if user.permissions.is_mod == is_mod:
        return
    user.permissions.is_mod = is_mod
    ctx.events.emit(ev.EVENT_MOD_CHANGE, user, room, is_mod)


def handle_new_creator(ctx: DispatchContext, packet: Packet) -> None:
    room = _room_for(ctx, packet)
    new_id = packet.data.get("userId")
    if room is None or new_id is None or room.creator_id == str(new_id):
        return
    room.creator_id = str(new_id)
    for user in room.users.values():
        user.permissions.is_creator = user.id == room.creator_id
    ctx.events.emit(ev.EVENT_CREATOR_CHANGE, room.get_user(room.creator_id), room)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


def handle_new_chat_msg(ctx: DispatchContext, packet: Packet) -> None:
    msg = packet.data.get("msg")
    if not isinstance(msg, dict):
        return
    room = _room_for(ctx, packet) or ctx.mirror.current_room
    author = room.get_user(msg.get("userId")) if room is not None else None
    ctx.events.emit(ev.EVENT_NEW_CHAT_MSG, ChatMessage.from_payload(msg, author=author), room)


def handle_msg_deleted(ctx: DispatchContext, packet: Packet) -> None:
    room = ctx.mirror.current_room
    deleter = room.get_user(packet.data.get("deleterId")) if room is not None else None
    ctx.events.emit(ev.EVENT_MSG_DELETED, packet.data.get("messageId"), deleter)


HANDLERS: dict[str, Handler] = {
    ops.OP_AUTH_REPLY: handle_auth_reply,
    ops.OP_NEW_TOKENS: handle_new_tokens,
    ops.OP_FETCH_DONE: handle_fetch_done,
    ops.OP_USER_JOIN_ROOM: handle_user_join_room,
    ops.OP_USER_LEFT_ROOM: handle_user_left_room,
    ops.OP_ACTIVE_SPEAKER_CHANGE: handle_active_speaker_change,
    ops.OP_MUTE_CHANGED: handle_mute_changed,
    ops.OP_DEAFEN_CHANGED: handle_deafen_changed,
    ops.OP_NEW_CHAT_MSG: handle_new_chat_msg,
    ops.OP_MSG_DELETED: handle_msg_deleted,
    ops.OP_JOINED_PEER: handle_joined_as_peer,
    ops.OP_JOINED_SPEAKER: handle_joined_as_speaker,
    ops.OP_NOW_SPEAKER: handle_now_speaker,
    ops.OP_HAND_RAISED: handle_hand_raised,
    ops.OP_SPEAKER_ADDED: handle_speaker_added,
    ops.OP_SPEAKER_REMOVED: handle_speaker_removed,
    ops.OP_LEFT_ROOM: handle_left_room,
    ops.OP_MOD_CHANGED: handle_mod_changed,
    ops.OP_NEW_CREATOR: handle_new_creator,
}


class PacketDispatcher:
    """Routes decoded packets to handlers and settles matching pending requests."""

    def __init__(
        self,
        context: DispatchContext,
        pending: PendingRequestTable,
        handlers: dict[str, Handler] | None = None,
    ) -> None:
        self._ctx = context
        self._pending = pending
        self._handlers = HANDLERS if handlers is None else handlers

    @property
    def context(self) -> DispatchContext:
        return self._ctx

    def dispatch_raw(self, raw: str | bytes) -> Packet | None:
        try:
            packet = parse_server_message(raw)
        except InvalidPacket as exc:
            logger.warning("dropping malformed frame: %s", exc)
            self._ctx.events.emit(ev.EVENT_WARNING, str(exc))
            return None
        self.dispatch(packet)
        return packet

    def dispatch(self, packet: Packet) -> None:
        self._ctx.events.emit(ev.EVENT_RAW_PACKET, packet.raw)

        handler = self._handlers.get(packet.op)
        if handler is not None:
            try:
                handler(self._ctx, packet)
            except Exception:
                logger.exception("handler for op=%s failed", packet.op)
        elif packet.op.startswith(CUSTOM_OP_PREFIX):
            self._ctx.events.emit(packet.op, packet.d if packet.d is not None else packet.p)
        elif self._ctx.settings.log_unhandled_packets:
            logger.info("unhandled packet op=%s: %s", packet.op, packet.raw)
        else:
            logger.debug("unhandled packet op=%s", packet.op)

        self._settle_pending(packet)

    def _settle_pending(self, packet: Packet) -> None:
        for ref, legacy in ((packet.ref, False), (packet.fetch_id, True)):
            if ref is None or ref not in self._pending:
                continue
            if packet.has_error:
                self._pending.reject(ref, ServerError(message=_error_text(packet.e), ref=ref, error=packet.e))
            else:
                self._pending.resolve(ref, packet.reply_payload(legacy=legacy))


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


__all__ = ["HANDLERS", "Handler", "PacketDispatcher"]
