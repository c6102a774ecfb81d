# smallstate/runtime/notifications.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from typing import Callable, Deque, Generic, Hashable, List, Optional, Tuple, TypeVar

from smallstate.core.tracing import TraceLogger

S = TypeVar("S", bound=Hashable)

StateChangeCallback = Callable[[S], None]

_log = logging.getLogger(__name__)


class ChangeNotifier(Generic[S]):
    """
    Delivers state change notifications to subscribers outside the stack
    frame of the transition that produced them.

    With an asyncio loop running in the calling thread, delivery is queued
    with ``loop.call_soon``. Otherwise notifications wait in a pending queue
    until :meth:`drain` is called, which the machine does once its dispatch
    marker has been released.
    """

    def __init__(self, logger: Optional[TraceLogger] = None) -> None:
        """
        :param logger: Receives subscriber failures; the module logger is used without one.
        """
        self._logger = logger
        self._subscribers: List[StateChangeCallback] = []
        self._pending: Deque[Tuple[StateChangeCallback, S]] = deque()
        self._lock = threading.Lock()

    def subscribe(self, callback: StateChangeCallback) -> Callable[[], None]:
        """
        Register ``callback`` and return a function that unregisters it.
        """
        if not callable(callback):
            raise TypeError(f"State change callback must be callable, got {callback!r}")
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: StateChangeCallback) -> None:
        """Remove a subscriber; unknown callbacks are ignored."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    @property
    def subscribers(self) -> Tuple[StateChangeCallback, ...]:
        return tuple(self._subscribers)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def schedule(self, state: S) -> None:
        """
        Queue one delivery of ``state`` per current subscriber.
        """
        loop = _running_loop()
        for callback in list(self._subscribers):
            if loop is not None:
                loop.call_soon(callback, state)
            else:
                with self._lock:
                    self._pending.append((callback, state))

    def drain(self) -> None:
        """
        Deliver queued notifications in order. A failing subscriber is
        logged at error level and does not stop the others; the dispatch that
        produced the notification has already completed.
        """
        while True:
            with self._lock:
                if not self._pending:
                    return
                callback, state = self._pending.popleft()
            try:
                callback(state)
            except Exception:
                logger = self._logger.logger if self._logger is not None else None
                (logger or _log).exception("State change subscriber %r failed for state %s", callback, state)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
