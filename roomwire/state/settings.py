"""Client settings (dataclasses only)."""

from __future__ import annotations

from dataclasses import dataclass

from roomwire.config.http import DEFAULT_API_URL, DEFAULT_HTTP_TIMEOUT_S
from roomwire.config.websocket import (
    DEFAULT_SOCKET_URL,
    DEFAULT_AUTO_RECONNECT,
    DEFAULT_PING_INTERVAL_MS,
    DEFAULT_CALLBACK_TIMEOUT_MS,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_LOG_UNHANDLED_PACKETS,
    DEFAULT_RECONNECT_ON_AUTH_FAILURE,
)


@dataclass(frozen=True, slots=True)
class ClientSettings:
    socket_url: str = DEFAULT_SOCKET_URL
    api_url: str = DEFAULT_API_URL
    auto_reconnect: bool = DEFAULT_AUTO_RECONNECT
    reconnect_on_auth_failure: bool = DEFAULT_RECONNECT_ON_AUTH_FAILURE
    connection_timeout_ms: int = DEFAULT_CONNECTION_TIMEOUT_MS
    callback_timeout_ms: int = DEFAULT_CALLBACK_TIMEOUT_MS
    log_unhandled_packets: bool = DEFAULT_LOG_UNHANDLED_PACKETS
    ping_interval_ms: int = DEFAULT_PING_INTERVAL_MS
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S

    @property
    def connection_timeout_s(self) -> float:
        return self.connection_timeout_ms / 1000.0

    @property
    def callback_timeout_s(self) -> float:
        return self.callback_timeout_ms / 1000.0

    @property
    def ping_interval_s(self) -> float:
        return self.ping_interval_ms / 1000.0


__all__ = ["ClientSettings"]
