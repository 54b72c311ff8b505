"""Correlation of outbound request ids with their asynchronous replies."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from dataclasses import dataclass

from roomwire.state.errors import RequestAborted, RequestTimeout

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Registration:
    future: asyncio.Future
    timer: asyncio.TimerHandle | None = None


class PendingRequestTable:
    """Futures keyed by correlation id, each guarded by its own expiry timer.

    Several registrations may share one id; a reply settles all of them at
    once and cancels all of their timers. A future settles at most once, so a
    reply arriving after the timeout is ignored.
    """

    def __init__(self, *, timeout_s: float) -> None:
        self._timeout_s = float(timeout_s)
        self._entries: dict[str, list[_Registration]] = {}

    def __contains__(self, ref: object) -> bool:
        return ref in self._entries

    def __len__(self) -> int:
        return sum(len(regs) for regs in self._entries.values())

    def register(self, ref: str) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        reg = _Registration(future=loop.create_future())
        reg.timer = loop.call_later(self._timeout_s, self._expire, ref, reg)
        self._entries.setdefault(ref, []).append(reg)
        return reg.future

    def resolve(self, ref: str, payload: Any) -> bool:
        regs = self._pop(ref)
        for reg in regs:
            if not reg.future.done():
                reg.future.set_result(payload)
        return bool(regs)

    def reject(self, ref: str, error: BaseException) -> bool:
        regs = self._pop(ref)
        for reg in regs:
            if not reg.future.done():
                reg.future.set_exception(error)
        return bool(regs)

    def discard(self, ref: str, future: asyncio.Future) -> None:
        """Forget one registration without settling the others sharing its id."""
        regs = self._entries.get(ref)
        if not regs:
            return
        for reg in list(regs):
            if reg.future is future:
                regs.remove(reg)
                if reg.timer is not None:
                    reg.timer.cancel()
                if not future.done():
                    future.cancel()
        if not regs:
            del self._entries[ref]

    def abort_all(self, reason: BaseException | None = None) -> int:
        """Cancel every timer and fail every pending future with RequestAborted."""
        refs = list(self._entries)
        for ref in refs:
            self.reject(ref, RequestAborted(message="connection closed before a reply arrived", ref=ref, reason=reason))
        if refs:
            logger.debug("aborted %s pending request id(s)", len(refs))
        return len(refs)

    def _pop(self, ref: str) -> list[_Registration]:
        regs = self._entries.pop(ref, [])
        for reg in regs:
            if reg.timer is not None:
                reg.timer.cancel()
        return regs

    def _expire(self, ref: str, reg: _Registration) -> None:
        regs = self._entries.get(ref)
        if regs and reg in regs:
            regs.remove(reg)
            if not regs:
                del self._entries[ref]
        if not reg.future.done():
            logger.debug("request %s timed out after %.3fs", ref, self._timeout_s)
            reg.future.set_exception(
                RequestTimeout(message="reply timed out", ref=ref, timeout_s=self._timeout_s)
            )


__all__ = ["PendingRequestTable"]
