"""Inbound frame parsing/validation for both envelope generations."""

from __future__ import annotations

from typing import Any

import orjson

from roomwire.state.packets import Packet
from roomwire.state.errors import InvalidPacket
from roomwire.config.websocket import (
    WS_KEY_OP,
    WS_KEY_REF,
    WS_KEY_ERROR,
    WS_KEY_PAYLOAD,
    WS_KEY_LEGACY_REF,
    WS_KEY_LEGACY_PAYLOAD,
)


def _optional_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_server_message(raw: str | bytes) -> Packet:
    try:
        msg = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise InvalidPacket(message=f"invalid JSON: {exc}", raw=str(raw)[:200]) from exc

    if not isinstance(msg, dict):
        raise InvalidPacket(message="message must be a JSON object", raw=str(raw)[:200])

    op = msg.get(WS_KEY_OP)
    if not isinstance(op, str) or not op.strip():
        raise InvalidPacket(message="message missing non-empty 'op'", raw=str(raw)[:200])

    return Packet(
        op=op.strip(),
        p=msg.get(WS_KEY_PAYLOAD),
        d=msg.get(WS_KEY_LEGACY_PAYLOAD),
        ref=_optional_id(msg.get(WS_KEY_REF)),
        fetch_id=_optional_id(msg.get(WS_KEY_LEGACY_REF)),
        e=msg.get(WS_KEY_ERROR),
        raw=msg,
    )


__all__ = ["parse_server_message"]
