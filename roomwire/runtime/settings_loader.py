"""Environment parsing for client settings."""

from __future__ import annotations

import os
import logging
from typing import Any
from dataclasses import fields

from roomwire.config.secrets import get_api_key, get_access_token, get_refresh_token
from roomwire.state.session import TokenPair
from roomwire.state.settings import ClientSettings
from roomwire.config.http import ENV_API_URL, DEFAULT_API_URL, ENV_HTTP_TIMEOUT_S, DEFAULT_HTTP_TIMEOUT_S
from roomwire.config.websocket import (
    ENV_SOCKET_URL,
    ENV_AUTO_RECONNECT,
    DEFAULT_SOCKET_URL,
    ENV_PING_INTERVAL_MS,
    MAX_PING_INTERVAL_MS,
    MIN_PING_INTERVAL_MS,
    DEFAULT_AUTO_RECONNECT,
    ENV_CALLBACK_TIMEOUT_MS,
    DEFAULT_PING_INTERVAL_MS,
    ENV_CONNECTION_TIMEOUT_MS,
    ENV_LOG_UNHANDLED_PACKETS,
    DEFAULT_CALLBACK_TIMEOUT_MS,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_LOG_UNHANDLED_PACKETS,
    ENV_RECONNECT_ON_AUTH_FAILURE,
    DEFAULT_RECONNECT_ON_AUTH_FAILURE,
)

logger = logging.getLogger(__name__)


def _str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _clamp_ping_interval_ms(value: int) -> int:
    if value > MAX_PING_INTERVAL_MS:
        logger.warning(
            "ping interval %sms exceeds %sms; the server drops slower clients, clamping",
            value,
            MAX_PING_INTERVAL_MS,
        )
        return MAX_PING_INTERVAL_MS
    return max(MIN_PING_INTERVAL_MS, value)


def _positive(name: str, value: int | float) -> int | float:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_settings(**overrides: Any) -> ClientSettings:
    """Build settings from the environment; keyword overrides win over env vars."""
    unknown = set(overrides) - {f.name for f in fields(ClientSettings)}
    if unknown:
        raise TypeError(f"unknown client settings: {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {
        "socket_url": _str_env(ENV_SOCKET_URL, DEFAULT_SOCKET_URL),
        "api_url": _str_env(ENV_API_URL, DEFAULT_API_URL),
        "auto_reconnect": _bool_env(ENV_AUTO_RECONNECT, DEFAULT_AUTO_RECONNECT),
        "reconnect_on_auth_failure": _bool_env(ENV_RECONNECT_ON_AUTH_FAILURE, DEFAULT_RECONNECT_ON_AUTH_FAILURE),
        "connection_timeout_ms": _int_env(ENV_CONNECTION_TIMEOUT_MS, DEFAULT_CONNECTION_TIMEOUT_MS),
        "callback_timeout_ms": _int_env(ENV_CALLBACK_TIMEOUT_MS, DEFAULT_CALLBACK_TIMEOUT_MS),
        "log_unhandled_packets": _bool_env(ENV_LOG_UNHANDLED_PACKETS, DEFAULT_LOG_UNHANDLED_PACKETS),
        "ping_interval_ms": _int_env(ENV_PING_INTERVAL_MS, DEFAULT_PING_INTERVAL_MS),
        "http_timeout_s": _float_env(ENV_HTTP_TIMEOUT_S, DEFAULT_HTTP_TIMEOUT_S),
    }
    values.update(overrides)

    values["ping_interval_ms"] = _clamp_ping_interval_ms(int(values["ping_interval_ms"]))
    for name in ("connection_timeout_ms", "callback_timeout_ms", "http_timeout_s"):
        values[name] = _positive(name, values[name])
    values["api_url"] = str(values["api_url"]).rstrip("/")

    return ClientSettings(**values)


def load_tokens() -> TokenPair:
    """Credentials from the environment: session tokens first, then an API key."""
    pair = TokenPair(access_token=get_access_token(), refresh_token=get_refresh_token(), api_key=get_api_key())
    if not (pair.api_key or (pair.access_token and pair.refresh_token)):
        raise ValueError("no credentials: set ROOMWIRE_API_KEY or both ROOMWIRE_ACCESS_TOKEN and ROOMWIRE_REFRESH_TOKEN")
    return pair


__all__ = ["load_settings", "load_tokens"]
