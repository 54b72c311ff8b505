"""Listener registry for client events."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any
from collections import defaultdict
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventBus:
    """Named events with sync or async listeners.

    Listener failures are logged and never interrupt the emitter. Coroutine
    results are scheduled as tasks on the running loop and a strong reference
    is kept until they finish.
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)
        self._background_tasks: set[asyncio.Task] = set()

    def on(self, event: str, fn: Listener | None = None) -> Any:
        """Register `fn` for `event`; without `fn`, return a decorator."""
        if fn is None:

            def decorator(func: Listener) -> Listener:
                self._listeners[event].append(func)
                return func

            return decorator
        self._listeners[event].append(fn)
        return fn

    def once(self, event: str, fn: Listener | None = None) -> Any:
        if fn is None:
            return lambda func: self.once(event, func)

        def wrapper(*args: Any) -> Any:
            self.off(event, wrapper)
            return fn(*args)

        wrapper.__wrapped__ = fn  # type: ignore[attr-defined]
        self._listeners[event].append(wrapper)
        return fn

    def off(self, event: str, fn: Listener | None = None) -> None:
        """Remove one listener, or every listener for `event` when `fn` is None."""
        if fn is None:
            self._listeners.pop(event, None)
            return
        listeners = self._listeners.get(event)
        if not listeners:
            return
        for listener in listeners:
            if listener == fn or getattr(listener, "__wrapped__", None) == fn:
                listeners.remove(listener)
                break

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for `event`. Returns False if nobody listened."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                result = listener(*args)
            except Exception:
                logger.exception("listener for %r failed", event)
                continue
            if inspect.isawaitable(result):
                self._fire_task(event, result)
        return bool(listeners)

    def _fire_task(self, event: str, awaitable: Any) -> None:
        try:
            task = asyncio.ensure_future(awaitable)
        except RuntimeError:
            logger.warning("async listener for %r dropped: no running event loop", event)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        self._background_tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("async listener failed", exc_info=exc)


__all__ = ["EventBus", "Listener"]
