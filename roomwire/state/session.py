"""Per-client session state (dataclasses only)."""

from __future__ import annotations

from typing import Any
from collections.abc import Mapping
from dataclasses import dataclass

from roomwire.config.websocket import RECONNECT_FLOOR_MS

from .models import User
from .connection import ConnectionState


@dataclass(slots=True)
class TokenPair:
    access_token: str = ""
    refresh_token: str = ""
    api_key: str = ""

    @property
    def needs_exchange(self) -> bool:
        """True when only a raw API key is known and session tokens must be fetched."""
        return bool(self.api_key) and not (self.access_token and self.refresh_token)

    @classmethod
    def coerce(cls, token: str | Mapping[str, Any] | TokenPair) -> TokenPair:
        if isinstance(token, TokenPair):
            return token
        if isinstance(token, str):
            if not token.strip():
                raise ValueError("token must not be empty")
            return cls(api_key=token.strip())
        if isinstance(token, Mapping):
            access = token.get("accessToken") or token.get("access_token") or ""
            refresh = token.get("refreshToken") or token.get("refresh_token") or ""
            api_key = token.get("apiKey") or token.get("api_key") or token.get("token") or ""
            pair = cls(access_token=str(access), refresh_token=str(refresh), api_key=str(api_key))
            if not (pair.api_key or (pair.access_token and pair.refresh_token)):
                raise ValueError("token mapping needs an API key or both access and refresh tokens")
            return pair
        raise TypeError(f"unsupported token type: {type(token).__name__}")


@dataclass(slots=True)
class Session:
    tokens: TokenPair
    state: ConnectionState = ConnectionState.IDLE
    user: User | None = None
    reconnect_interval_ms: int = RECONNECT_FLOOR_MS
    connect_attempts: int = 0
    latency_ms: float | None = None

    @property
    def connecting(self) -> bool:
        return self.state in (ConnectionState.CONNECTING, ConnectionState.AUTHENTICATING)

    @property
    def ready(self) -> bool:
        return self.state is ConnectionState.READY

    def reset(self) -> None:
        """Drop transient connection fields; backoff and attempts survive."""
        self.state = ConnectionState.IDLE
        self.latency_ms = None

    def hard_reset(self) -> None:
        self.reset()
        self.reconnect_interval_ms = RECONNECT_FLOOR_MS
        self.connect_attempts = 0


__all__ = ["Session", "TokenPair"]
