"""Error types (dataclasses only).

Connection-level errors are emitted on the client's ``error`` event; only the
request path (timeouts, server-reported errors, aborted or unsendable
requests) raises them to the caller.
"""

from __future__ import annotations

from typing import Any
from dataclasses import dataclass


@dataclass(eq=False)
class RoomwireError(Exception):
    """Base class for every error raised or emitted by the client."""

    message: str = ""

    def __post_init__(self) -> None:
        self.args = (str(self),)

    def __str__(self) -> str:
        return self.message or type(self).__name__


@dataclass(eq=False)
class AuthenticationFailure(RoomwireError):
    """The bootstrap exchange failed or the server closed with 4001."""

    close_code: int | None = None


@dataclass(eq=False)
class ConnectionTimeout(RoomwireError):
    """No authentication reply arrived within the connection timeout."""


@dataclass(eq=False)
class HeartbeatTimeout(RoomwireError):
    """No pong arrived between two scheduled pings."""


@dataclass(eq=False)
class AbnormalClosure(RoomwireError):
    """The socket closed uncleanly (1006 or any other unexpected code)."""

    close_code: int | None = None


@dataclass(eq=False)
class SessionSuperseded(RoomwireError):
    """The server killed this socket because another one took over (4003)."""

    close_code: int | None = None


@dataclass(eq=False)
class ExistingConnection(RoomwireError):
    """connect() was called while a socket is open or an attempt is in flight."""


@dataclass(eq=False)
class RequestTimeout(RoomwireError):
    """No correlated reply arrived within the callback timeout."""

    ref: str = ""
    timeout_s: float = 0.0


@dataclass(eq=False)
class ServerError(RoomwireError):
    """The reply to a request carried an ``e`` field."""

    ref: str = ""
    error: Any = None


@dataclass(eq=False)
class RequestAborted(RoomwireError):
    """The socket went away while the request was still pending."""

    ref: str = ""
    reason: BaseException | None = None


@dataclass(eq=False)
class NotConnected(RoomwireError):
    """A request was issued without an open socket."""


@dataclass(eq=False)
class InvalidPacket(RoomwireError):
    """An inbound frame was not a valid JSON envelope."""

    raw: str = ""


@dataclass(eq=False)
class PermissionDenied(RoomwireError):
    """A local precondition for a request was not met."""


__all__ = [
    "RoomwireError",
    "AuthenticationFailure",
    "ConnectionTimeout",
    "HeartbeatTimeout",
    "AbnormalClosure",
    "SessionSuperseded",
    "ExistingConnection",
    "RequestTimeout",
    "ServerError",
    "RequestAborted",
    "NotConnected",
    "InvalidPacket",
    "PermissionDenied",
]
