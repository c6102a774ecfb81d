# smallstate/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Callable, Dict, FrozenSet, Hashable, List, Optional, Set, Tuple

from smallstate.core.errors import ConfigurationError, UnknownTriggerError
from smallstate.core.handlers import Handler, HandlerChain
from smallstate.core.tracing import TraceLogger
from smallstate.core.transitions import Guard, Transition, TransitionResult, first_applicable


class StateConfiguration:
    """
    Transition table for a single state: the permitted and ignored triggers
    plus the entry and exit handler chains.

    Configuration methods return ``self`` so calls can be chained::

        machine.configure("idle").permit("start", "running").on_exit(stop_idle_timer)
    """

    def __init__(self, state: Hashable, logger: Optional[TraceLogger] = None) -> None:
        """
        :param state: The state this table describes.
        :param logger: Trace logger; defaults to one that drops every message.
        """
        self._state = state
        self._logger = logger or TraceLogger()
        self._transitions: Dict[Hashable, List[Transition]] = {}
        self._ignored: Set[Hashable] = set()
        self._entry = HandlerChain("entry")
        self._exit = HandlerChain("exit")

    @property
    def state(self) -> Hashable:
        return self._state

    @property
    def transitions(self) -> Dict[Hashable, List[Transition]]:
        """
        Copy of the trigger -> transitions mapping in insertion order.
        """
        return {trigger: list(transitions) for trigger, transitions in self._transitions.items()}

    @property
    def ignored_triggers(self) -> FrozenSet[Hashable]:
        return frozenset(self._ignored)

    @property
    def entry_handlers(self) -> Tuple[Handler, ...]:
        return self._entry.snapshot()

    @property
    def exit_handlers(self) -> Tuple[Handler, ...]:
        return self._exit.snapshot()

    def permit(
        self,
        trigger: Hashable,
        target_state: Hashable,
        guard: Optional[Guard] = None,
        description: Optional[str] = None,
    ) -> "StateConfiguration":
        """
        Allow ``trigger`` to move to ``target_state``. Several guarded
        transitions may share a trigger; the first passing guard wins, in the
        order they were added.

        :raises ConfigurationError: If the trigger is ignored, already has a
            guardless transition, or has a transition to the same target with
            the same guard object.
        """
        if trigger in self._ignored:
            raise ConfigurationError(
                f"Trigger {trigger} is already ignored in state {self._state}, cannot permit it."
            )
        if guard is not None and not callable(guard):
            raise TypeError(f"Guard for trigger {trigger} must be callable, got {guard!r}")

        existing = self._transitions.get(trigger)
        if existing is not None:
            self._ensure_no_duplicate(trigger, target_state, guard, existing)

        self._transitions.setdefault(trigger, []).append(Transition(target_state, guard, description))
        return self

    def ignore(self, trigger: Hashable) -> "StateConfiguration":
        """
        Mark ``trigger`` as a no-op in this state.

        :raises ConfigurationError: If the trigger is already permitted or ignored.
        """
        if trigger in self._transitions:
            raise ConfigurationError(
                f"Trigger {trigger} is already configured, cannot ignore it in state {self._state}."
            )
        if trigger in self._ignored:
            raise ConfigurationError(f"Trigger {trigger} is already ignored in state {self._state}.")
        self._ignored.add(trigger)
        return self

    def on_entry(self, handler: Callable[[], None], name: Optional[str] = None) -> "StateConfiguration":
        """
        Add a callback run every time the state is entered through a
        transition or reset. It does not run for the initial state at
        construction. The machine already reports the new state as current.
        """
        self._entry.add(handler, name)
        return self

    def on_exit(self, handler: Callable[[], None], name: Optional[str] = None) -> "StateConfiguration":
        """Add a callback run when leaving the state, before the next state is entered."""
        self._exit.add(handler, name)
        return self

    def resolve(self, trigger: Hashable, ignore_unconfigured: bool = False) -> TransitionResult:
        """
        Work out what firing ``trigger`` in this state would do.

        :param trigger: The trigger being fired.
        :param ignore_unconfigured: Treat unknown triggers as ignored instead of failing.
        :return: The target state, or this state with ``ignore_transition`` set.
        :raises UnknownTriggerError: If the trigger is unknown and not ignored.
        """
        if trigger in self._ignored:
            return TransitionResult(self._state, True)

        transitions = self._transitions.get(trigger)
        if transitions is None:
            if ignore_unconfigured:
                return TransitionResult(self._state, True)
            raise UnknownTriggerError(self._state, trigger)

        transition = first_applicable(transitions)
        if transition is None:
            return TransitionResult(self._state, True)
        return TransitionResult(transition.target_state, False)

    def enter(self) -> None:
        self._logger.log("Entering state %s ...", self._state)
        self._entry.run(self._state, self._logger)
        self._logger.log("Entered state %s", self._state)

    def exit(self) -> None:
        self._logger.log("Exiting state %s ...", self._state)
        self._exit.run(self._state, self._logger)
        self._logger.log("Exited state %s", self._state)

    def _ensure_no_duplicate(
        self,
        trigger: Hashable,
        target_state: Hashable,
        guard: Optional[Guard],
        existing: List[Transition],
    ) -> None:
        if any(t.guard is None for t in existing):
            raise ConfigurationError(
                f"State {self._state} already has a transition without guard on trigger {trigger}. "
                f"A further transition to {target_state} would never execute."
            )
        if any(t.target_state == target_state and t.has_same_guard(guard) for t in existing):
            raise ConfigurationError(
                f"State {self._state}: transition with trigger {trigger} to state {target_state} "
                "already exists with this guard."
            )

    def __repr__(self) -> str:
        return f"StateConfiguration({self._state!r}, triggers={list(self._transitions)!r})"
