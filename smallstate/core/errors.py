# smallstate/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Dict, Hashable, Optional


class StateMachineError(Exception):
    """
    Base exception class for errors raised by the state machine engine.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.details: Dict[str, Any] = details or {}
        if self.details:
            message = f"{message} (details: {self.details})"
        super().__init__(message)


class ConfigurationError(StateMachineError):
    """
    Raised when a state's declarative setup violates an invariant, e.g. a
    duplicate transition or a trigger that is both ignored and permitted.
    """


class UnconfiguredStateError(StateMachineError):
    """
    Raised when a transition table is needed for a state that was never configured.
    """

    def __init__(self, state: Hashable, role: str = "State") -> None:
        self.state = state
        self.role = role
        super().__init__(f"{role} {state} has not been configured.")


class UnknownTriggerError(StateMachineError):
    """
    Raised when a trigger has neither transitions nor an ignore rule in the current state.
    """

    def __init__(self, state: Hashable, trigger: Hashable) -> None:
        self.state = state
        self.trigger = trigger
        super().__init__(f"No target state for trigger {trigger} from state {state}")


class AsyncError(StateMachineError):
    """
    Raised when fire() or reset() is called while another dispatch is in
    progress, typically from inside an entry or exit handler.
    """

    def __init__(self, in_flight: Any, requested: Any) -> None:
        self.in_flight = in_flight
        self.requested = requested
        super().__init__(
            f"fire() is already running for {in_flight}, cannot process {requested}. "
            "This probably means that a state change was triggered from an entry or exit handler. "
            "Schedule the call instead, e.g. with loop.call_soon() or from a state change subscriber."
        )


class TimerError(StateMachineError):
    """
    Raised when a timer is scheduled incorrectly.
    """
