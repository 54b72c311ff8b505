"""Shared test doubles.

- fakes.py: in-memory WebSocket and connector used in place of `websockets.connect`
"""

from __future__ import annotations

from .fakes import FakeConnector, FakeWebSocket, settle

__all__ = ["FakeConnector", "FakeWebSocket", "settle"]
