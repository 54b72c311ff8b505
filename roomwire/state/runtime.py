"""Typed runtime state objects for dependency wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from roomwire.state.models import VoiceDataCache
    from roomwire.state.session import Session
    from roomwire.state.settings import ClientSettings
    from roomwire.handlers.events import EventBus
    from roomwire.handlers.mirror import RoomMirror
    from roomwire.handlers.pending import PendingRequestTable
    from roomwire.handlers.connection import ConnectionManager


@dataclass(slots=True)
class ClientDeps:
    settings: ClientSettings
    session: Session
    mirror: RoomMirror
    voice_data: VoiceDataCache
    pending: PendingRequestTable
    events: EventBus
    connection: ConnectionManager

    async def shutdown(self) -> None:
        try:
            await self.connection.close()
        except Exception:
            logger.exception("client shutdown failed")


__all__ = ["ClientDeps"]
