"""smallstate: embeddable flat finite state machine engine

Callers declare states, the triggers that move between them, optional
guards, entry/exit handlers and timed auto-transitions. The engine resolves
triggers, enforces configuration invariants and notifies subscribers of
state changes.

Cross-cutting Concerns:
    Concurrency:
        - One fire() or reset() in flight per machine; reentrant calls from a
          handler raise AsyncError, calls from other threads wait their turn
        - Change notifications are delivered after the dispatch completes

    Error Handling:
        - All errors derive from StateMachineError
        - Handler and guard exceptions propagate unchanged
        - Subscriber exceptions are logged at error level and not propagated

    Logging:
        - Trace output through the standard logging module, off unless a logger is given
"""

import logging

from smallstate.core.errors import (
    AsyncError,
    ConfigurationError,
    StateMachineError,
    TimerError,
    UnconfiguredStateError,
    UnknownTriggerError,
)
from smallstate.core.handlers import Handler
from smallstate.core.state_machine import MachineOptions, MachineStatus, StateMachine
from smallstate.core.states import StateConfiguration
from smallstate.core.tracing import TRACE, TraceLogger
from smallstate.core.transitions import Transition, TransitionResult
from smallstate.runtime.auto_transitions import AutoTransition

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "StateMachine",
    "MachineOptions",
    "MachineStatus",
    "StateConfiguration",
    "Transition",
    "TransitionResult",
    "Handler",
    "AutoTransition",
    "TraceLogger",
    "TRACE",
    "StateMachineError",
    "ConfigurationError",
    "UnconfiguredStateError",
    "UnknownTriggerError",
    "AsyncError",
    "TimerError",
]
