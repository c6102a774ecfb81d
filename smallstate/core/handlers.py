# smallstate/core/handlers.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from smallstate.core.tracing import TraceLogger


@dataclass(frozen=True)
class Handler:
    """
    An entry or exit callback tagged with the name used in trace output.
    """

    callback: Callable[[], None]
    name: str

    def __call__(self) -> None:
        self.callback()


class HandlerChain:
    """
    Ordered list of handlers run on every entry into or exit from a state.
    """

    def __init__(self, kind: str) -> None:
        """
        :param kind: ``entry`` or ``exit``; used for default handler names.
        """
        self._kind = kind
        self._handlers: List[Handler] = []

    def add(self, callback: Callable[[], None], name: Optional[str] = None) -> Handler:
        if not callable(callback):
            raise TypeError(f"{self._kind} handler must be callable, got {callback!r}")
        handler = Handler(callback, name or f"{self._kind} handler #{len(self._handlers) + 1}")
        self._handlers.append(handler)
        return handler

    def run(self, state: object, logger: TraceLogger) -> None:
        """
        Invoke every handler in registration order. The first exception stops
        the chain and propagates unchanged.
        """
        for handler in self._handlers:
            logger.log("State %s: running %s handler %s", state, self._kind, handler.name)
            handler()

    def snapshot(self) -> Tuple[Handler, ...]:
        return tuple(self._handlers)

    def __iter__(self) -> Iterator[Handler]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._handlers)
