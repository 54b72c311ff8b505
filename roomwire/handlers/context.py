"""State a packet handler can reach."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from roomwire.state.models import User, VoiceDataCache
from roomwire.state.errors import AuthenticationFailure
from roomwire.state.session import Session
from roomwire.state.settings import ClientSettings

from .events import EventBus
from .mirror import RoomMirror


@dataclass(slots=True)
class DispatchContext:
    mirror: RoomMirror
    session: Session
    voice_data: VoiceDataCache
    events: EventBus
    settings: ClientSettings
    on_authenticated: Callable[[User], None]
    on_auth_rejected: Callable[[AuthenticationFailure], None]


__all__ = ["DispatchContext"]
