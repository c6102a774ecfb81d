# smallstate/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from smallstate.core.errors import AsyncError, UnconfiguredStateError
from smallstate.core.states import StateConfiguration
from smallstate.core.tracing import LoggerLike, TraceLogger
from smallstate.core.transitions import Transition
from smallstate.runtime.auto_transitions import AutoTransition, AutoTransitions
from smallstate.runtime.concurrency import DispatchGuard
from smallstate.runtime.notifications import ChangeNotifier

S = TypeVar("S", bound=Hashable)
T = TypeVar("T", bound=Hashable)

TransitionMap = Dict[Hashable, Dict[Hashable, List[Transition]]]


class MachineStatus(Enum):
    """Whether a fire() or reset() is currently being processed."""

    IDLE = auto()
    DISPATCHING = auto()


class _Reset:
    def __repr__(self) -> str:
        return "reset()"


RESET = _Reset()


@dataclass(frozen=True)
class MachineOptions:
    """
    Construction-time settings.

    :param ignore_unconfigured_triggers: Treat triggers unknown to the current
        state as no-ops instead of raising ``UnknownTriggerError``.
    :param logger: Receives trace output; ``None`` disables it.
    :param log_level: Level all trace output is emitted at.
    """

    ignore_unconfigured_triggers: bool = False
    logger: Optional[LoggerLike] = None
    log_level: str = "trace"


class StateMachine(Generic[S, T]):
    """
    Flat finite state machine driven by :meth:`fire`.

    States and triggers are any hashable values (strings, ints, enum members).
    Every state the machine can be in must be configured with
    :meth:`configure` before it is entered or left. At most one fire() or
    reset() is processed at a time; calling either from an entry or exit
    handler raises ``AsyncError``, while calls from other threads (timer
    threads included) wait for the running dispatch to finish. State change
    subscribers are notified after the dispatch has finished and may call
    fire() freely; an exception raised by a subscriber is logged, not
    propagated.
    """

    def __init__(self, initial_state: S, options: Optional[MachineOptions] = None, **kwargs) -> None:
        """
        :param initial_state: State the machine starts in and resets to.
        :param options: Settings; keyword arguments with the same names may
            be passed instead.
        """
        if options is None:
            options = MachineOptions(**kwargs)
        elif kwargs:
            raise TypeError("Pass either options or keyword settings, not both")
        self._options = options
        self._trace = TraceLogger(options.logger, options.log_level)
        self._initial_state = initial_state
        self._current_state = initial_state
        self._tables: Dict[S, StateConfiguration] = {}
        self._guard = DispatchGuard()
        self._notifier: ChangeNotifier[S] = ChangeNotifier(self._trace)
        self._auto = AutoTransitions(self._dispatch, self._trace)

    @property
    def options(self) -> MachineOptions:
        return self._options

    @property
    def current_state(self) -> S:
        return self._current_state

    @property
    def initial_state(self) -> S:
        return self._initial_state

    @property
    def status(self) -> MachineStatus:
        return MachineStatus.DISPATCHING if self._guard.busy else MachineStatus.IDLE

    @property
    def in_flight(self) -> Optional[T]:
        """The trigger currently being processed, if any."""
        return self._guard.in_flight

    @property
    def log_level(self) -> str:
        return self._trace.level

    @log_level.setter
    def log_level(self, level: str) -> None:
        self._trace.level = level

    @property
    def configured_states(self) -> List[S]:
        return list(self._tables)

    @property
    def transition_map(self) -> TransitionMap:
        """
        Snapshot of state -> trigger -> transitions for every configured
        state. Mutating it does not affect the machine.
        """
        return {state: table.transitions for state, table in self._tables.items()}

    @property
    def auto_transitions(self) -> List[AutoTransition]:
        return self._auto.rules

    def configure(self, state: S) -> StateConfiguration:
        """
        Return the transition table for ``state``, creating it on first use.
        """
        table = self._tables.get(state)
        if table is None:
            table = StateConfiguration(state, self._trace)
            self._tables[state] = table
        return table

    def on_state_change(self, callback: Callable[[S], None]) -> Callable[[], None]:
        """
        Call ``callback(new_state)`` once per transition that changes the
        state. Self-transitions are not reported.

        :return: A function removing the subscription.
        """
        return self._notifier.subscribe(callback)

    def remove_state_change(self, callback: Callable[[S], None]) -> None:
        self._notifier.unsubscribe(callback)

    def fire(self, trigger: T) -> None:
        """
        Process ``trigger`` from the current state.

        :raises AsyncError: If called from a handler while this thread is
            already dispatching. A dispatch on another thread is waited for.
        :raises UnconfiguredStateError: If the current or target state was never configured.
        :raises UnknownTriggerError: If the trigger is neither permitted nor ignored.
        """
        self._dispatch(trigger)

    def _dispatch(self, trigger: T, due: Optional[Callable[[], bool]] = None) -> None:
        try:
            with self._guard.hold(trigger):
                if due is not None and not due():
                    self._trace.log("Trigger %s dropped, its timer was disarmed", trigger)
                    return
                source = self._table_for(self._current_state, "State")
                result = source.resolve(trigger, self._options.ignore_unconfigured_triggers)
                if result.ignore_transition:
                    self._trace.log("Trigger %s ignored in state %s", trigger, self._current_state)
                    return
                self._trace.log("Trigger %s: %s -> %s", trigger, self._current_state, result.target_state)
                self._transition(source, result.target_state)
        finally:
            self._drain()

    def reset(self) -> None:
        """
        Return to the initial state, running exit and entry handlers as for a
        transition. Guards are not consulted. Does nothing when already in
        the initial state.
        """
        try:
            with self._guard.hold(RESET):
                if self._current_state == self._initial_state:
                    return
                self._trace.log("Resetting %s -> %s", self._current_state, self._initial_state)
                source = self._table_for(self._current_state, "State")
                self._transition(source, self._initial_state)
        finally:
            self._drain()

    def add_auto_transition(self, from_state: S, to_state: S, trigger: T, delay_millis: float) -> AutoTransition:
        """
        Fire ``trigger`` ``delay_millis`` milliseconds after each entry into
        ``from_state``. Leaving ``from_state`` earlier disarms the pending
        timer.
        """
        return self._auto.add(self.configure(from_state), to_state, trigger, delay_millis)

    def remove_auto_transition(self, rule: AutoTransition) -> None:
        self._auto.remove(rule)

    def stop_all_auto_transitions(self) -> None:
        """
        Cancel every pending auto-transition timer. Rules remain registered
        and arm again on the next entry into their state.
        """
        self._auto.stop_all()

    def close(self) -> None:
        """Cancel all timers owned by this machine."""
        self._auto.stop_all()

    def __enter__(self) -> "StateMachine[S, T]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _table_for(self, state: S, role: str) -> StateConfiguration:
        table = self._tables.get(state)
        if table is None:
            raise UnconfiguredStateError(state, role)
        return table

    def _transition(self, source: StateConfiguration, target_state: S) -> None:
        """
        Exit the source, move the current-state pointer, enter the target.
        If entry fails the pointer is restored and timers armed by the
        target's entry chain are cancelled; exit is not undone.
        """
        target = self._table_for(target_state, "Target state")
        previous = self._current_state

        source.exit()
        self._current_state = target_state
        try:
            target.enter()
        except AsyncError:
            # A handler tried to fire; the move itself stands.
            self._notify_if_changed(previous, target_state)
            raise
        except Exception:
            self._trace.log("Entry into %s failed, restoring %s", target_state, previous)
            self._current_state = previous
            if target_state != previous:
                self._auto.disarm_state(target_state)
            raise
        self._notify_if_changed(previous, target_state)

    def _notify_if_changed(self, previous: S, target_state: S) -> None:
        if target_state != previous:
            self._notifier.schedule(target_state)

    def _drain(self) -> None:
        # A rejected reentrant call must not deliver inside the outer dispatch.
        if not self._guard.held_by_current_thread():
            self._notifier.drain()

    def __repr__(self) -> str:
        return f"StateMachine(current={self._current_state!r}, initial={self._initial_state!r})"
