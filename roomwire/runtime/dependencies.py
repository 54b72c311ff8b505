"""Client dependency construction."""

from __future__ import annotations

import random
import logging
from collections.abc import Callable

from roomwire.state import ClientDeps
from roomwire.state.models import VoiceDataCache
from roomwire.state.session import Session, TokenPair
from roomwire.state.settings import ClientSettings
from roomwire.handlers.events import EventBus
from roomwire.handlers.mirror import RoomMirror
from roomwire.handlers.pending import PendingRequestTable
from roomwire.handlers.connection import ConnectFn, ExchangeFn, ConnectionManager

from .settings_loader import load_settings

logger = logging.getLogger(__name__)


def build_client_deps(
    tokens: TokenPair,
    settings: ClientSettings | None = None,
    *,
    connect_fn: ConnectFn | None = None,
    exchange_fn: ExchangeFn | None = None,
    rng: Callable[[], float] = random.random,
) -> ClientDeps:
    settings = settings or load_settings()
    session = Session(tokens=tokens)
    mirror = RoomMirror()
    voice_data = VoiceDataCache()
    pending = PendingRequestTable(timeout_s=settings.callback_timeout_s)
    events = EventBus()

    connection = ConnectionManager(
        settings=settings,
        session=session,
        mirror=mirror,
        voice_data=voice_data,
        pending=pending,
        events=events,
        connect_fn=connect_fn,
        exchange_fn=exchange_fn,
        rng=rng,
    )
    logger.debug("client deps built for %s", settings.socket_url)

    return ClientDeps(
        settings=settings,
        session=session,
        mirror=mirror,
        voice_data=voice_data,
        pending=pending,
        events=events,
        connection=connection,
    )


__all__ = ["ClientDeps", "build_client_deps"]
