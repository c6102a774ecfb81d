# smallstate/runtime/concurrency.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from smallstate.core.errors import AsyncError


class DispatchGuard:
    """
    Records which trigger is currently being dispatched and by which thread.

    A second dispatch from the holding thread is a synchronous reentrant
    call and raises ``AsyncError``. A dispatch from any other thread, such as
    a timer thread, waits until the current one has finished.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._in_flight: Optional[Any] = None

    @property
    def busy(self) -> bool:
        return self._owner is not None

    @property
    def in_flight(self) -> Optional[Any]:
        return self._in_flight

    def held_by_current_thread(self) -> bool:
        return self._owner == threading.get_ident()

    def acquire(self, label: Any) -> None:
        """
        Mark ``label`` as in flight, waiting for a dispatch running on
        another thread to finish first.

        :raises AsyncError: If the calling thread is already dispatching.
        """
        if self.held_by_current_thread():
            raise AsyncError(self._in_flight, label)
        self._lock.acquire()
        self._owner = threading.get_ident()
        self._in_flight = label

    def release(self) -> None:
        self._owner = None
        self._in_flight = None
        self._lock.release()

    @contextmanager
    def hold(self, label: Any) -> Iterator[None]:
        """
        Context manager form of acquire/release. The marker is cleared whether
        the body succeeds or raises.
        """
        self.acquire(label)
        try:
            yield
        finally:
            self.release()
