"""Outbound envelope builders.

Both generations stay on the wire: only some server operations accept the
current `{op, p, version, ref}` shape, the rest still expect the legacy
`{op, d, fetchId}` one.
"""

from __future__ import annotations

import uuid
from typing import Any

import orjson

from roomwire.config.websocket import (
    WS_KEY_OP,
    WS_KEY_REF,
    WS_KEY_PAYLOAD,
    WS_KEY_VERSION,
    PROTOCOL_VERSION,
    WS_KEY_LEGACY_REF,
    WS_KEY_LEGACY_PAYLOAD,
)


def new_ref() -> str:
    return str(uuid.uuid4())


def build_envelope(op: str, payload: Any, ref: str) -> dict[str, Any]:
    return {
        WS_KEY_OP: op,
        WS_KEY_PAYLOAD: payload,
        WS_KEY_VERSION: PROTOCOL_VERSION,
        WS_KEY_REF: ref,
    }


def build_legacy_envelope(op: str, payload: Any, ref: str) -> dict[str, Any]:
    return {
        WS_KEY_OP: op,
        WS_KEY_LEGACY_PAYLOAD: payload,
        WS_KEY_LEGACY_REF: ref,
    }


def encode_envelope(envelope: dict[str, Any]) -> str:
    return orjson.dumps(envelope).decode("utf-8")


__all__ = ["new_ref", "build_envelope", "build_legacy_envelope", "encode_envelope"]
