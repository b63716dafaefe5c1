"""
repforge.services.notifications — Transition Event Hub
=======================================================

Progression services publish :class:`LevelUpEvent` and
:class:`ArchetypeChangeEvent` objects here after the write that caused them
has committed.  An external announcer registers callbacks per event type;
this package never renders or delivers messages itself.

Callbacks may be plain functions (called inline on the publishing thread)
or coroutine functions (scheduled on the registered event loop).  A failing
listener is logged and never propagates into the write path.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class TransitionEvent(Protocol):
    event_type: str

    def to_dict(self) -> dict[str, Any]: ...


class NotificationHub:
    """Fan-out of transition events to registered callbacks."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._lock = threading.Lock()
        self._callbacks: dict[str, list[Callable[[Any], Any]]] = defaultdict(list)
        self._loop = loop

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def register_callback(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        """Register *callback* for events whose ``event_type`` matches.

        Use ``"*"`` to receive every event.
        """
        with self._lock:
            self._callbacks[event_type].append(callback)
        logger.info("Registered notification callback for '%s'", event_type)

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def publish(self, event: TransitionEvent) -> int:
        """Deliver *event* to its listeners.  Returns the number invoked."""
        with self._lock:
            listeners = [*self._callbacks.get(event.event_type, ()), *self._callbacks.get("*", ())]

        if not listeners:
            logger.debug("No listener for event type '%s'", event.event_type)
            return 0

        for callback in listeners:
            try:
                if inspect.iscoroutinefunction(callback):
                    self._schedule(callback, event)
                else:
                    callback(event)
            except Exception:
                logger.exception(
                    "Notification listener failed for '%s' (%r)", event.event_type, callback,
                )
        return len(listeners)

    def publish_all(self, events: list[TransitionEvent]) -> None:
        for event in events:
            self.publish(event)

    def _schedule(self, callback: Callable[[Any], Any], event: TransitionEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning(
                "Cannot dispatch event '%s': no event loop available", event.event_type,
            )
            return
        asyncio.run_coroutine_threadsafe(callback(event), loop)
