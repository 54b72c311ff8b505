"""HTTP bootstrap configuration (API key -> session tokens)."""

from __future__ import annotations

BOT_AUTH_PATH = "/bot/auth"

ENV_API_URL = "ROOMWIRE_API_URL"
ENV_HTTP_TIMEOUT_S = "ROOMWIRE_HTTP_TIMEOUT_S"

DEFAULT_API_URL = "https://api.dogehouse.tv"
DEFAULT_HTTP_TIMEOUT_S = 10.0

__all__ = [
    "BOT_AUTH_PATH",
    "ENV_API_URL",
    "ENV_HTTP_TIMEOUT_S",
    "DEFAULT_API_URL",
    "DEFAULT_HTTP_TIMEOUT_S",
]
