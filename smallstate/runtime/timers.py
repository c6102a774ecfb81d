# smallstate/runtime/timers.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import threading
from enum import Enum, auto
from typing import Callable, Optional, Set, Union

from smallstate.core.errors import TimerError

TimerCallback = Callable[[], None]


class TimerState(Enum):
    """Lifecycle of a single timer."""

    IDLE = auto()
    RUNNING = auto()
    CANCELLED = auto()
    EXPIRED = auto()


class _TimerBase:
    def __init__(self, name: str, callback: TimerCallback) -> None:
        self._name = name
        self._callback = callback
        self._state = TimerState.IDLE
        self._lock = threading.Lock()
        self._on_done: Optional[Callable[["AnyTimer"], None]] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is TimerState.RUNNING

    def _start(self, delay: float) -> None:
        with self._lock:
            if self._state is TimerState.RUNNING:
                raise TimerError(f"Timer {self._name} is already running")
            if delay < 0:
                raise TimerError(f"Timer {self._name} needs a non-negative delay", {"delay": delay})
            self._state = TimerState.RUNNING

    def _expire(self) -> None:
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            self._state = TimerState.EXPIRED
        try:
            self._callback()
        finally:
            if self._on_done is not None:
                self._on_done(self)

    def _mark_cancelled(self) -> bool:
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return False
            self._state = TimerState.CANCELLED
        if self._on_done is not None:
            self._on_done(self)
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, state={self._state.name})"


class Timer(_TimerBase):
    """
    One-shot timer backed by ``threading.Timer``. The callback runs on the
    timer's own thread.
    """

    def __init__(self, name: str, callback: TimerCallback) -> None:
        super().__init__(name, callback)
        self._thread: Optional[threading.Timer] = None

    def schedule(self, delay: float) -> None:
        """
        Start the countdown.

        :param delay: Seconds until the callback runs.
        :raises TimerError: If the timer is already running or the delay is negative.
        """
        self._start(delay)
        self._thread = threading.Timer(delay, self._expire)
        self._thread.daemon = True
        self._thread.start()

    def cancel(self) -> bool:
        """
        Stop a running timer. Returns False if it had already expired or was
        never started.
        """
        if not self._mark_cancelled():
            return False
        if self._thread is not None:
            self._thread.cancel()
        return True


class AsyncTimer(_TimerBase):
    """
    One-shot timer scheduled on an asyncio loop with ``call_later``. The
    callback runs on the loop's thread.
    """

    def __init__(
        self,
        name: str,
        callback: TimerCallback,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__(name, callback)
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    def schedule(self, delay: float) -> None:
        """
        :param delay: Seconds until the callback runs.
        :raises TimerError: If the timer is already running or the delay is negative.
        """
        self._start(delay)
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._expire)

    def cancel(self) -> bool:
        if not self._mark_cancelled():
            return False
        if self._handle is not None:
            self._handle.cancel()
        return True


AnyTimer = Union[Timer, AsyncTimer]


class TimerManager:
    """
    Creates timers and keeps track of the ones still running so they can all
    be cancelled together. An :class:`AsyncTimer` is used when an event loop
    is running in the calling thread, a thread backed :class:`Timer` otherwise.
    """

    def __init__(self) -> None:
        self._active: Set[AnyTimer] = set()
        self._lock = threading.Lock()

    def start(self, name: str, delay: float, callback: TimerCallback) -> AnyTimer:
        timer = self.create(name, callback)
        with self._lock:
            self._active.add(timer)
        try:
            timer.schedule(delay)
        except Exception:
            self._forget(timer)
            raise
        return timer

    def create(self, name: str, callback: TimerCallback) -> AnyTimer:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer: AnyTimer = Timer(name, callback)
        else:
            timer = AsyncTimer(name, callback, loop)
        timer._on_done = self._forget
        return timer

    def cancel_all(self) -> int:
        """
        Cancel every running timer and return how many were cancelled.
        """
        with self._lock:
            timers = list(self._active)
        return sum(1 for timer in timers if timer.cancel())

    @property
    def active(self) -> int:
        with self._lock:
            return len(self._active)

    def _forget(self, timer: AnyTimer) -> None:
        with self._lock:
            self._active.discard(timer)
