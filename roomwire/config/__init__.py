"""Configuration module exports (env names, defaults and protocol constants only)."""

from .websocket import (
    PING_FRAME,
    PONG_FRAME,
    PROTOCOL_VERSION,
    MAX_PING_INTERVAL_MS,
)

__all__ = [
    "PING_FRAME",
    "PONG_FRAME",
    "PROTOCOL_VERSION",
    "MAX_PING_INTERVAL_MS",
]
