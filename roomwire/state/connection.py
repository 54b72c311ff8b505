"""Connection state machine states."""

from __future__ import annotations

from enum import Enum


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    RECONNECT_WAIT = "reconnect_wait"


__all__ = ["ConnectionState"]
