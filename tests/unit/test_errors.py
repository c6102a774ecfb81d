# tests/unit/test_errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from smallstate.core.errors import (
    AsyncError,
    ConfigurationError,
    StateMachineError,
    TimerError,
    UnconfiguredStateError,
    UnknownTriggerError,
)


@pytest.mark.parametrize(
    "error_cls",
    [ConfigurationError, UnconfiguredStateError, UnknownTriggerError, AsyncError, TimerError],
)
def test_error_inheritance(error_cls) -> None:
    """Every engine error can be caught as StateMachineError."""
    assert issubclass(error_cls, StateMachineError)


def test_details_rendering() -> None:
    error = StateMachineError("bad setup", {"state": "A"})
    assert str(error) == "bad setup (details: {'state': 'A'})"
    assert error.details == {"state": "A"}

    error = StateMachineError("bad setup")
    assert str(error) == "bad setup"
    assert error.details == {}


def test_unconfigured_state_error_attributes() -> None:
    error = UnconfiguredStateError(0)
    assert error.state == 0
    assert str(error) == "State 0 has not been configured."

    error = UnconfiguredStateError("B", "Target state")
    assert "Target state B has not been configured" in str(error)


def test_unknown_trigger_error_attributes() -> None:
    error = UnknownTriggerError("A", "go")
    assert error.state == "A"
    assert error.trigger == "go"
    assert "No target state for trigger go from state A" in str(error)


def test_async_error_names_both_triggers() -> None:
    error = AsyncError("bake", "shredder")
    assert error.in_flight == "bake"
    assert error.requested == "shredder"
    assert "bake" in str(error)
    assert "shredder" in str(error)
