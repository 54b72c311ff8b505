from __future__ import annotations

import uuid

import orjson
import pytest

from roomwire.state.errors import InvalidPacket
from roomwire.handlers.parser import parse_server_message
from roomwire.handlers.envelope import new_ref, build_envelope, encode_envelope, build_legacy_envelope


def test_parse_current_envelope() -> None:
    packet = parse_server_message('{"op": "auth:request:reply", "p": {"id": "u1"}, "ref": "r1"}')
    assert packet.op == "auth:request:reply"
    assert packet.p == {"id": "u1"}
    assert packet.ref == "r1"
    assert packet.fetch_id is None
    assert packet.data == {"id": "u1"}
    assert not packet.has_error


def test_parse_legacy_envelope_with_numeric_fetch_id() -> None:
    packet = parse_server_message(b'{"op": "fetch_done", "d": {"room": {}}, "fetchId": 7}')
    assert packet.fetch_id == "7"
    assert packet.reply_payload(legacy=True) == {"room": {}}


def test_reply_payload_falls_back_across_envelopes() -> None:
    packet = parse_server_message('{"op": "x", "d": {"a": 1}, "ref": "r"}')
    assert packet.reply_payload(legacy=False) == {"a": 1}


def test_error_field_is_kept() -> None:
    packet = parse_server_message('{"op": "x", "e": "denied", "ref": "r"}')
    assert packet.has_error
    assert packet.e == "denied"


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        '"ping"',
        '{"p": {}}',
        '{"op": ""}',
        '{"op": 5}',
    ],
)
def test_parse_rejects_malformed_frames(raw: str) -> None:
    with pytest.raises(InvalidPacket):
        parse_server_message(raw)


def test_current_envelope_shape() -> None:
    envelope = build_envelope("room:get_top", {"cursor": 0}, "ref-1")
    assert envelope == {"op": "room:get_top", "p": {"cursor": 0}, "version": "0.2.0", "ref": "ref-1"}


def test_legacy_envelope_shape() -> None:
    envelope = build_legacy_envelope("join_room_and_get_info", {"roomId": "r"}, "ref-2")
    assert envelope == {"op": "join_room_and_get_info", "d": {"roomId": "r"}, "fetchId": "ref-2"}


def test_encode_envelope_is_compact_json() -> None:
    text = encode_envelope(build_envelope("x", None, "r"))
    assert isinstance(text, str)
    assert orjson.loads(text) == {"op": "x", "p": None, "version": "0.2.0", "ref": "r"}


def test_new_ref_is_uuid4() -> None:
    assert uuid.UUID(new_ref()).version == 4
