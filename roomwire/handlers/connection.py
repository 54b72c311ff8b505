"""Socket lifecycle: connect, authenticate, heartbeat, reconnect."""

from __future__ import annotations

import random
import asyncio
import logging
import contextlib
from typing import Any, Literal
from collections.abc import Callable, Coroutine, Awaitable

import websockets
from websockets.exceptions import ConnectionClosed

from roomwire.config.events import EVENT_ERROR, EVENT_WARNING, EVENT_DISCONNECT
from roomwire.config.opcodes import OP_AUTH
from roomwire.state.models import User, VoiceDataCache
from roomwire.state.errors import (
    RoomwireError,
    AbnormalClosure,
    ConnectionTimeout,
    SessionSuperseded,
    ExistingConnection,
    AuthenticationFailure,
)
from roomwire.state.session import Session
from roomwire.state.settings import ClientSettings
from roomwire.state.connection import ConnectionState
from roomwire.config.websocket import (
    PING_FRAME,
    PONG_FRAME,
    RECONNECT_FLOOR_MS,
    WS_MAX_MESSAGE_BYTES,
    WS_CLOSE_NORMAL_CODE,
    WS_CLOSE_ABNORMAL_CODE,
    WS_CLOSE_SUPERSEDED_CODE,
    WS_CLOSE_INVALID_AUTH_CODE,
)

from .events import EventBus
from .mirror import RoomMirror
from .backoff import next_reconnect_interval
from .context import DispatchContext
from .pending import PendingRequestTable
from .dispatch import PacketDispatcher
from .envelope import new_ref, build_envelope, encode_envelope, build_legacy_envelope
from .bootstrap import exchange_api_key
from .heartbeat import Heartbeat

logger = logging.getLogger(__name__)

ReconnectMode = Literal["auto", "keep", "off"]
ConnectFn = Callable[..., Awaitable[Any]]
ExchangeFn = Callable[..., Awaitable[tuple[str, str]]]


def error_for_close_code(code: int | None) -> RoomwireError | None:
    """Map a socket close code to the error that caused it, if any."""
    if code == WS_CLOSE_NORMAL_CODE:
        return None
    if code == WS_CLOSE_INVALID_AUTH_CODE:
        return AuthenticationFailure(message="invalid authentication", close_code=code)
    if code == WS_CLOSE_SUPERSEDED_CODE:
        return SessionSuperseded(message="another client connected with the same account", close_code=code)
    if code == WS_CLOSE_ABNORMAL_CODE or code is None:
        return AbnormalClosure(message="connection lost (ping or network)", close_code=code)
    return AbnormalClosure(message=f"socket closed with code {code}", close_code=code)


class ConnectionManager:
    """Owns the single socket of a session and everything tied to its lifetime.

    At most one socket is attached at a time. Connection-level failures are
    logged and emitted as `error` events, never raised to the caller; the
    disconnect path decides whether to schedule a reconnect.
    """

    def __init__(
        self,
        *,
        settings: ClientSettings,
        session: Session,
        mirror: RoomMirror,
        voice_data: VoiceDataCache,
        pending: PendingRequestTable,
        events: EventBus,
        connect_fn: ConnectFn | None = None,
        exchange_fn: ExchangeFn | None = None,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._settings = settings
        self._session = session
        self._voice_data = voice_data
        self._pending = pending
        self._events = events
        self._connect_fn = connect_fn or websockets.connect
        self._exchange_fn = exchange_fn or exchange_api_key
        self._rng = rng

        self._ws: Any | None = None
        self._attempt = 0
        self._reader_task: asyncio.Task | None = None
        self._connect_timer: asyncio.TimerHandle | None = None
        self._reconnect_timer: asyncio.TimerHandle | None = None
        self._background_tasks: set[asyncio.Task] = set()
        self._ready = asyncio.Event()
        self._heartbeat = Heartbeat(
            self._send_ping,
            self._on_heartbeat_timeout,
            interval_s=settings.ping_interval_s,
        )
        self._dispatcher = PacketDispatcher(
            DispatchContext(
                mirror=mirror,
                session=session,
                voice_data=voice_data,
                events=events,
                settings=settings,
                on_authenticated=self._on_authenticated,
                on_auth_rejected=self._on_auth_rejected,
            ),
            pending,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def dispatcher(self) -> PacketDispatcher:
        return self._dispatcher

    @property
    def heartbeat(self) -> Heartbeat:
        return self._heartbeat

    @property
    def ready(self) -> asyncio.Event:
        return self._ready

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    @property
    def reconnect_scheduled(self) -> bool:
        return self._reconnect_timer is not None

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._ws is not None or self._session.connecting:
            self._emit_error(ExistingConnection(message="existing connection detected"))
            return

        self._cancel_reconnect_timer()
        self._attempt += 1
        attempt = self._attempt
        self._session.connect_attempts += 1
        self._session.state = ConnectionState.CONNECTING
        self._start_connect_timer()
        logger.info(
            "connecting to %s (attempt %s)",
            self._settings.socket_url,
            self._session.connect_attempts,
        )

        tokens = self._session.tokens
        if tokens.needs_exchange:
            try:
                access, refresh = await self._exchange_fn(
                    tokens.api_key,
                    api_url=self._settings.api_url,
                    timeout_s=self._settings.http_timeout_s,
                )
            except RoomwireError as exc:
                if self._attempt_live(attempt):
                    await self.disconnect(mode="auto", error=exc)
                return
            tokens.access_token, tokens.refresh_token = access, refresh

        if not self._attempt_live(attempt):
            return

        try:
            ws = await self._connect_fn(self._settings.socket_url, **self._ws_options())
        except Exception as exc:
            if self._attempt_live(attempt):
                error = AbnormalClosure(message=f"failed to open socket: {exc}")
                await self.disconnect(mode="auto", error=error)
            return

        if not self._attempt_live(attempt):
            # attempt was abandoned while the handshake was in flight
            with contextlib.suppress(Exception):
                await ws.close()
            return

        self._ws = ws
        self._session.state = ConnectionState.AUTHENTICATING
        self._reader_task = asyncio.create_task(self._receive_loop(ws))
        await self._send_auth()

    def _attempt_live(self, attempt: int) -> bool:
        return attempt == self._attempt and self._session.state is ConnectionState.CONNECTING

    def _ws_options(self) -> dict[str, Any]:
        return {
            "max_size": WS_MAX_MESSAGE_BYTES,
            "ping_interval": None,
            "open_timeout": self._settings.connection_timeout_s,
        }

    async def _send_auth(self) -> None:
        tokens = self._session.tokens
        await self.send_envelope(
            OP_AUTH,
            {
                "accessToken": tokens.access_token,
                "refreshToken": tokens.refresh_token,
                "deafened": False,
                "muted": False,
                "reconnectToVoice": False,
            },
        )

    def _on_authenticated(self, user: User) -> None:
        self._cancel_connect_timer()
        self._session.connect_attempts = 0
        self._session.reconnect_interval_ms = RECONNECT_FLOOR_MS
        self._session.state = ConnectionState.READY
        self._heartbeat.start()
        self._ready.set()
        logger.info("authenticated as %s (%s)", user.username or "?", user.id)

    def _on_auth_rejected(self, error: AuthenticationFailure) -> None:
        self._spawn(self.disconnect(mode="auto", error=error))

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send_envelope(
        self,
        op: str,
        payload: Any,
        *,
        ref: str | None = None,
        legacy: bool = False,
    ) -> str | None:
        """Encode and send one frame. Returns the ref, or None if nothing was sent."""
        ws = self._ws
        if ws is None:
            return None
        ref = ref or new_ref()
        envelope = build_legacy_envelope(op, payload, ref) if legacy else build_envelope(op, payload, ref)
        text = encode_envelope(envelope)
        try:
            await ws.send(text)
        except Exception:
            logger.debug("send failed for op=%s", op, exc_info=True)
            return None
        logger.debug("sent %s", text)
        return ref

    async def _send_ping(self) -> None:
        ws = self._ws
        if ws is not None:
            await ws.send(PING_FRAME)

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    async def _receive_loop(self, ws: Any) -> None:
        error: RoomwireError | None = None
        try:
            async for raw in ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                if raw == PONG_FRAME:
                    self._session.latency_ms = self._heartbeat.ack()
                    continue
                self._dispatcher.dispatch_raw(raw)
        except ConnectionClosed:
            pass
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("socket receive failed", exc_info=True)
            error = AbnormalClosure(message=f"socket error: {exc}")

        if self._ws is not ws:
            return

        code = getattr(ws, "close_code", None)
        if error is None:
            if code:
                logger.warning("socket closed with code %s", code)
                self._events.emit(EVENT_WARNING, f"socket closed with code {code}")
            error = error_for_close_code(code)
        await self.disconnect(mode="auto", error=error)

    # ------------------------------------------------------------------
    # Disconnect / reconnect
    # ------------------------------------------------------------------

    async def disconnect(self, *, mode: ReconnectMode = "off", error: BaseException | None = None) -> None:
        """Detach the socket and reset per-connection state.

        `auto` schedules a reconnect when enabled, `off` also resets the
        backoff, `keep` leaves reconnection state alone.
        """
        ws, self._ws = self._ws, None
        reader, self._reader_task = self._reader_task, None

        self._cancel_connect_timer()
        await self._heartbeat.stop()
        self._pending.abort_all(error)
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()

        self._session.reset()
        self._voice_data.clear()
        self._ready.clear()

        if error is not None:
            logger.warning("disconnected: %s", error)
            self._emit_error(error)

        reconnect_allowed = self._reconnect_allowed(error)
        if mode == "auto" and self._settings.auto_reconnect and reconnect_allowed:
            self._schedule_reconnect()
        elif mode == "off" or (mode == "auto" and not reconnect_allowed):
            self._cancel_reconnect_timer()
            self._session.hard_reset()

        if ws is not None:
            try:
                await ws.close(code=WS_CLOSE_NORMAL_CODE)
            except Exception as exc:
                logger.warning("socket close failed: %s", exc)
                self._emit_error(exc)
            self._events.emit(EVENT_DISCONNECT, error)

    async def close(self) -> None:
        """Disconnect for good and wait out background work."""
        await self.disconnect(mode="off")
        current = asyncio.current_task()
        tasks = [task for task in self._background_tasks if task is not current]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(Exception, asyncio.CancelledError):
                await task

    def _reconnect_allowed(self, error: BaseException | None) -> bool:
        if isinstance(error, AuthenticationFailure):
            return self._settings.reconnect_on_auth_failure
        return True

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect_timer()
        delay_ms = self._session.reconnect_interval_ms
        self._session.state = ConnectionState.RECONNECT_WAIT
        logger.info(
            "queueing reconnect in %sms (attempt %s)",
            delay_ms,
            self._session.connect_attempts + 1,
        )
        loop = asyncio.get_running_loop()
        self._reconnect_timer = loop.call_later(delay_ms / 1000.0, self._fire_reconnect)
        self._session.reconnect_interval_ms = next_reconnect_interval(delay_ms, rng=self._rng)

    def _fire_reconnect(self) -> None:
        self._reconnect_timer = None
        self._spawn(self.connect())

    def _cancel_reconnect_timer(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _start_connect_timer(self) -> None:
        self._cancel_connect_timer()
        loop = asyncio.get_running_loop()
        self._connect_timer = loop.call_later(self._settings.connection_timeout_s, self._on_connect_timeout)

    def _cancel_connect_timer(self) -> None:
        if self._connect_timer is not None:
            self._connect_timer.cancel()
            self._connect_timer = None

    def _on_connect_timeout(self) -> None:
        self._connect_timer = None
        if self._session.connecting:
            self._spawn(self.disconnect(mode="auto", error=ConnectionTimeout(message="connection timeout")))

    def _on_heartbeat_timeout(self, error: RoomwireError) -> None:
        self._spawn(self.disconnect(mode="auto", error=error))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit_error(self, error: BaseException) -> None:
        self._events.emit(EVENT_ERROR, error)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("connection background task failed", exc_info=exc)


__all__ = ["ConnectionManager", "ReconnectMode", "error_for_close_code"]
