"""Reconnect backoff schedule."""

from __future__ import annotations

import random
from collections.abc import Callable

from roomwire.config.websocket import (
    RECONNECT_CAP_MS,
    RECONNECT_FLOOR_MS,
    RECONNECT_JITTER_MIN,
    RECONNECT_JITTER_SPAN,
)


def next_reconnect_interval(current_ms: int, *, rng: Callable[[], float] = random.random) -> int:
    """Grow `current_ms` by a random factor in [1, 3), capped."""
    current_ms = max(int(current_ms), RECONNECT_FLOOR_MS)
    factor = RECONNECT_JITTER_MIN + rng() * RECONNECT_JITTER_SPAN
    return min(int(round(current_ms * factor)), RECONNECT_CAP_MS)


__all__ = ["next_reconnect_interval"]
