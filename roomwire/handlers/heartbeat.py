"""Application-level ping/pong heartbeat for one socket session."""

from __future__ import annotations

import time
import asyncio
import logging
import contextlib
from collections.abc import Callable, Awaitable

from roomwire.state.errors import HeartbeatTimeout

logger = logging.getLogger(__name__)


class Heartbeat:
    """Sends `ping` every interval and expects a `pong` before the next one.

    A missed acknowledgement calls `on_timeout` once and ends the loop; the
    owner decides how to tear the connection down.
    """

    def __init__(
        self,
        send_ping: Callable[[], Awaitable[None]],
        on_timeout: Callable[[HeartbeatTimeout], None],
        *,
        interval_s: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._send_ping = send_ping
        self._on_timeout = on_timeout
        self._interval_s = float(interval_s)
        self._clock = clock
        self._awaiting_ack = False
        self._last_sent: float | None = None
        self._last_received: float | None = None
        self._latency_ms: float | None = None
        self._task: asyncio.Task | None = None

    @property
    def awaiting_ack(self) -> bool:
        return self._awaiting_ack

    @property
    def latency_ms(self) -> float | None:
        return self._latency_ms

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task  # type: ignore[return-value]
        self._awaiting_ack = False
        self._task = asyncio.create_task(self._heartbeat_loop())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._awaiting_ack = False
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(Exception, asyncio.CancelledError):
            await task

    def ack(self) -> float | None:
        """Record a `pong`; returns the round-trip latency in milliseconds."""
        now = self._clock()
        self._last_received = now
        self._awaiting_ack = False
        if self._last_sent is not None:
            self._latency_ms = (now - self._last_sent) * 1000.0
        return self._latency_ms

    async def _heartbeat_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval_s)
                if self._awaiting_ack:
                    logger.warning("no pong since last ping; connection presumed lost")
                    self._on_timeout(
                        HeartbeatTimeout(message="server didn't acknowledge previous ping, possible lost connection")
                    )
                    return
                self._awaiting_ack = True
                self._last_sent = self._clock()
                await self._send_ping()
        except asyncio.CancelledError:
            return
        except Exception:
            logger.debug("heartbeat loop exiting due to unexpected error", exc_info=True)


__all__ = ["Heartbeat"]
