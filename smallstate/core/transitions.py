# smallstate/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Hashable, List, Optional

Guard = Callable[[], bool]


@dataclass(frozen=True)
class Transition:
    """
    A permitted move to ``target_state``, optionally gated by a zero-argument
    guard. Transitions without a guard always apply.
    """

    target_state: Hashable
    guard: Optional[Guard] = None
    description: Optional[str] = None

    def applies(self) -> bool:
        """
        Evaluate the guard. Exceptions raised by the guard propagate.
        """
        if self.guard is None:
            return True
        return bool(self.guard())

    def has_same_guard(self, guard: Optional[Guard]) -> bool:
        """Guards are compared by identity, never by behaviour."""
        return self.guard is guard


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of resolving a trigger: the state to move to, or the current
    state with ``ignore_transition`` set when nothing applies.
    """

    target_state: Hashable
    ignore_transition: bool


def first_applicable(transitions: List[Transition]) -> Optional[Transition]:
    """
    Return the first transition whose guard passes, in insertion order.
    """
    for transition in transitions:
        if transition.applies():
            return transition
    return None
