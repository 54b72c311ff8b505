"""Logging initialization."""

from __future__ import annotations

import os
import logging

from roomwire.config.logging import LOG_LEVEL, LOG_FORMAT, ENV_SHOW_WIRE_LOGS


def configure_logging() -> None:
    # websockets and httpx log every frame/request at DEBUG. Keep them tame unless explicitly enabled.
    if (os.getenv(ENV_SHOW_WIRE_LOGS) or "").strip().lower() not in {"1", "true", "yes"}:
        logging.getLogger("websockets").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


__all__ = ["configure_logging"]
