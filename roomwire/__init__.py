"""Asyncio client for the room/voice-chat WebSocket service."""

from .client import RoomClient
from .state.session import TokenPair
from .state.settings import ClientSettings
from .runtime.logging import configure_logging
from .runtime.settings_loader import load_settings
from .state.models import Room, User, ActiveRoom, ActiveUser, ChatMessage, VoiceDataCache
from .state.errors import (
    ServerError,
    RoomwireError,
    NotConnected,
    InvalidPacket,
    RequestAborted,
    RequestTimeout,
    AbnormalClosure,
    HeartbeatTimeout,
    PermissionDenied,
    ConnectionTimeout,
    SessionSuperseded,
    ExistingConnection,
    AuthenticationFailure,
)

__all__ = [
    "RoomClient",
    "ClientSettings",
    "TokenPair",
    "configure_logging",
    "load_settings",
    "Room",
    "User",
    "ActiveRoom",
    "ActiveUser",
    "ChatMessage",
    "VoiceDataCache",
    "RoomwireError",
    "AuthenticationFailure",
    "ConnectionTimeout",
    "HeartbeatTimeout",
    "AbnormalClosure",
    "SessionSuperseded",
    "RequestTimeout",
    "ExistingConnection",
    "ServerError",
    "RequestAborted",
    "NotConnected",
    "InvalidPacket",
    "PermissionDenied",
]
