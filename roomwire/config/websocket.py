"""WebSocket protocol configuration and constants."""

from __future__ import annotations

# Envelope keys (current)
WS_KEY_OP = "op"
WS_KEY_PAYLOAD = "p"
WS_KEY_VERSION = "version"
WS_KEY_REF = "ref"
WS_KEY_ERROR = "e"

# Envelope keys (legacy)
WS_KEY_LEGACY_PAYLOAD = "d"
WS_KEY_LEGACY_REF = "fetchId"

PROTOCOL_VERSION = "0.2.0"

# Control frames travel outside the JSON envelope.
PING_FRAME = "ping"
PONG_FRAME = "pong"

# Ops with this prefix are application-defined and re-emitted verbatim.
CUSTOM_OP_PREFIX = "@"

# Close codes
WS_CLOSE_NORMAL_CODE = 1000
WS_CLOSE_ABNORMAL_CODE = 1006
WS_CLOSE_INVALID_AUTH_CODE = 4001
WS_CLOSE_SUPERSEDED_CODE = 4003

# Reconnect backoff (milliseconds)
RECONNECT_FLOOR_MS = 1000
RECONNECT_CAP_MS = 60000
RECONNECT_JITTER_MIN = 1.0
RECONNECT_JITTER_SPAN = 2.0

# Pings slower than this get the socket dropped server-side.
MAX_PING_INTERVAL_MS = 8000
MIN_PING_INTERVAL_MS = 100

WS_MAX_MESSAGE_BYTES = 2**22

ENV_SOCKET_URL = "ROOMWIRE_SOCKET_URL"
ENV_AUTO_RECONNECT = "ROOMWIRE_AUTO_RECONNECT"
ENV_RECONNECT_ON_AUTH_FAILURE = "ROOMWIRE_RECONNECT_ON_AUTH_FAILURE"
ENV_CONNECTION_TIMEOUT_MS = "ROOMWIRE_CONNECTION_TIMEOUT_MS"
ENV_CALLBACK_TIMEOUT_MS = "ROOMWIRE_CALLBACK_TIMEOUT_MS"
ENV_LOG_UNHANDLED_PACKETS = "ROOMWIRE_LOG_UNHANDLED_PACKETS"
ENV_PING_INTERVAL_MS = "ROOMWIRE_PING_INTERVAL_MS"

DEFAULT_SOCKET_URL = "wss://api.dogehouse.tv/socket"
DEFAULT_AUTO_RECONNECT = True
DEFAULT_RECONNECT_ON_AUTH_FAILURE = False
DEFAULT_CONNECTION_TIMEOUT_MS = 30000
DEFAULT_CALLBACK_TIMEOUT_MS = 2000
DEFAULT_LOG_UNHANDLED_PACKETS = False
DEFAULT_PING_INTERVAL_MS = 8000

__all__ = [
    "WS_KEY_OP",
    "WS_KEY_PAYLOAD",
    "WS_KEY_VERSION",
    "WS_KEY_REF",
    "WS_KEY_ERROR",
    "WS_KEY_LEGACY_PAYLOAD",
    "WS_KEY_LEGACY_REF",
    "PROTOCOL_VERSION",
    "PING_FRAME",
    "PONG_FRAME",
    "CUSTOM_OP_PREFIX",
    "WS_CLOSE_NORMAL_CODE",
    "WS_CLOSE_ABNORMAL_CODE",
    "WS_CLOSE_INVALID_AUTH_CODE",
    "WS_CLOSE_SUPERSEDED_CODE",
    "RECONNECT_FLOOR_MS",
    "RECONNECT_CAP_MS",
    "RECONNECT_JITTER_MIN",
    "RECONNECT_JITTER_SPAN",
    "MAX_PING_INTERVAL_MS",
    "MIN_PING_INTERVAL_MS",
    "WS_MAX_MESSAGE_BYTES",
    "ENV_SOCKET_URL",
    "ENV_AUTO_RECONNECT",
    "ENV_RECONNECT_ON_AUTH_FAILURE",
    "ENV_CONNECTION_TIMEOUT_MS",
    "ENV_CALLBACK_TIMEOUT_MS",
    "ENV_LOG_UNHANDLED_PACKETS",
    "ENV_PING_INTERVAL_MS",
    "DEFAULT_SOCKET_URL",
    "DEFAULT_AUTO_RECONNECT",
    "DEFAULT_RECONNECT_ON_AUTH_FAILURE",
    "DEFAULT_CONNECTION_TIMEOUT_MS",
    "DEFAULT_CALLBACK_TIMEOUT_MS",
    "DEFAULT_LOG_UNHANDLED_PACKETS",
    "DEFAULT_PING_INTERVAL_MS",
]
