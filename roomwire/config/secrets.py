"""Secrets and authentication configuration."""

from __future__ import annotations

import os

ENV_API_KEY = "ROOMWIRE_API_KEY"
ENV_ACCESS_TOKEN = "ROOMWIRE_ACCESS_TOKEN"
ENV_REFRESH_TOKEN = "ROOMWIRE_REFRESH_TOKEN"


def get_api_key() -> str:
    return (os.getenv(ENV_API_KEY) or "").strip()


def get_access_token() -> str:
    return (os.getenv(ENV_ACCESS_TOKEN) or "").strip()


def get_refresh_token() -> str:
    return (os.getenv(ENV_REFRESH_TOKEN) or "").strip()


__all__ = [
    "ENV_API_KEY",
    "ENV_ACCESS_TOKEN",
    "ENV_REFRESH_TOKEN",
    "get_api_key",
    "get_access_token",
    "get_refresh_token",
]
