"""Decoded inbound envelope (dataclasses only)."""

from __future__ import annotations

from typing import Any
from dataclasses import field, dataclass


@dataclass(frozen=True, slots=True)
class Packet:
    """One inbound JSON frame.

    `p` comes from the current envelope and `d` from the legacy one; a reply may
    carry either id field (`ref` or `fetchId`) regardless of how the request
    was sent.
    """

    op: str
    p: Any = None
    d: Any = None
    ref: str | None = None
    fetch_id: str | None = None
    e: Any = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def data(self) -> dict[str, Any]:
        """Broadcast body: legacy `d` first, then `p`, always a dict."""
        for candidate in (self.d, self.p):
            if isinstance(candidate, dict):
                return candidate
        return {}

    @property
    def has_error(self) -> bool:
        return self.e is not None

    def reply_payload(self, *, legacy: bool) -> Any:
        if legacy:
            return self.d if self.d is not None else self.p
        return self.p if self.p is not None else self.d


__all__ = ["Packet"]
