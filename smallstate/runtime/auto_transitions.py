# smallstate/runtime/auto_transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Hashable, List, Optional

from smallstate.core.errors import ConfigurationError
from smallstate.core.states import StateConfiguration
from smallstate.core.tracing import TraceLogger
from smallstate.runtime.timers import AnyTimer, TimerManager

DueCheck = Callable[[], bool]


@dataclass(eq=False)
class AutoTransition:
    """
    Rule firing ``trigger`` ``delay_millis`` after every entry into
    ``from_state``. ``to_state`` documents the expected destination; the
    actual target is whatever ``trigger`` resolves to at expiry.
    """

    from_state: Hashable
    to_state: Hashable
    trigger: Hashable
    delay_millis: float
    removed: bool = field(default=False, init=False)
    _timer: Optional[AnyTimer] = field(default=None, init=False, repr=False)
    _generation: int = field(default=0, init=False, repr=False)

    @property
    def armed(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def label(self) -> str:
        return f"auto-transition {self.from_state} -[{self.trigger}]-> {self.to_state} after {self.delay_millis}ms"


class AutoTransitions:
    """
    Owns the auto-transition rules of one machine and the timers they arm.
    Nothing outside the owning machine holds or cancels these timers.
    """

    def __init__(self, fire: Callable[[Hashable, DueCheck], None], logger: TraceLogger) -> None:
        """
        :param fire: Dispatches a trigger on the owning machine once
            ``due()``, evaluated while the dispatch is held, returns True.
        :param logger: Trace logger shared with the machine.
        """
        self._fire = fire
        self._logger = logger
        self._timers = TimerManager()
        self._rules: List[AutoTransition] = []

    @property
    def rules(self) -> List[AutoTransition]:
        return list(self._rules)

    @property
    def armed(self) -> int:
        return self._timers.active

    def add(
        self,
        table: StateConfiguration,
        to_state: Hashable,
        trigger: Hashable,
        delay_millis: float,
    ) -> AutoTransition:
        """
        Register a rule on ``table``: its entry chain arms the timer, its exit
        chain disarms a timer that has not fired yet.

        :raises ConfigurationError: If ``delay_millis`` is negative.
        """
        if delay_millis < 0:
            raise ConfigurationError(
                f"Auto-transition delay must not be negative, got {delay_millis}",
                {"state": table.state, "trigger": trigger},
            )
        rule = AutoTransition(table.state, to_state, trigger, delay_millis)
        table.on_entry(lambda: self._arm(rule), name=f"arm {rule.label}")
        table.on_exit(lambda: self._disarm(rule), name=f"disarm {rule.label}")
        self._rules.append(rule)
        return rule

    def remove(self, rule: AutoTransition) -> None:
        """
        Delete ``rule`` permanently. Its handlers stay in the chains but do nothing.
        """
        rule.removed = True
        self._disarm(rule)
        if rule in self._rules:
            self._rules.remove(rule)

    def stop_all(self) -> int:
        """
        Cancel every pending timer. Rules stay registered and re-arm on the
        next entry into their state.
        """
        cancelled = self._timers.cancel_all()
        for rule in self._rules:
            rule._timer = None
            rule._generation += 1
        if cancelled:
            self._logger.log("Cancelled %d pending auto-transition(s)", cancelled)
        return cancelled

    def disarm_state(self, state: Hashable) -> None:
        """
        Cancel pending timers of every rule on ``state``. Used when entry into
        ``state`` failed and the machine never settled there.
        """
        for rule in self._rules:
            if rule.from_state == state:
                self._disarm(rule)

    def _arm(self, rule: AutoTransition) -> None:
        if rule.removed:
            return
        self._disarm(rule)
        self._logger.log("Arming %s", rule.label)
        generation = rule._generation
        rule._timer = self._timers.start(rule.label, rule.delay_millis / 1000.0, lambda: self._expire(rule, generation))

    def _disarm(self, rule: AutoTransition) -> None:
        timer, rule._timer = rule._timer, None
        rule._generation += 1
        if timer is not None and timer.cancel():
            self._logger.log("Disarmed %s", rule.label)

    def _expire(self, rule: AutoTransition, generation: int) -> None:
        if rule._generation == generation:
            rule._timer = None
        self._logger.log("Firing %s", rule.label)

        # A timer thread may wait for a dispatch that leaves from_state.
        def due() -> bool:
            return not rule.removed and rule._generation == generation

        try:
            self._fire(rule.trigger, due)
        except Exception as e:
            self._logger.error("%s failed: %s", rule.label, e)
            raise
