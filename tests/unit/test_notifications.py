# tests/unit/test_notifications.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
import logging
from unittest.mock import Mock

import pytest

from smallstate.core.tracing import TraceLogger
from smallstate.runtime.notifications import ChangeNotifier


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


def test_queued_until_drained(notifier) -> None:
    seen = []
    notifier.subscribe(seen.append)

    notifier.schedule("B")
    notifier.schedule("A")
    assert seen == []
    assert notifier.pending == 2

    notifier.drain()
    assert seen == ["B", "A"]
    assert notifier.pending == 0


def test_one_delivery_per_subscriber(notifier) -> None:
    first, second = Mock(), Mock()
    notifier.subscribe(first)
    notifier.subscribe(second)

    notifier.schedule("B")
    notifier.drain()

    first.assert_called_once_with("B")
    second.assert_called_once_with("B")


def test_failing_subscriber_is_logged_and_rest_delivered(mock_logger) -> None:
    notifier = ChangeNotifier(TraceLogger(mock_logger))
    later = Mock()
    notifier.subscribe(Mock(side_effect=RuntimeError("subscriber failed")))
    notifier.subscribe(later)
    notifier.schedule("B")

    notifier.drain()

    later.assert_called_once_with("B")
    assert notifier.pending == 0
    mock_logger.exception.assert_called_once()
    assert "failed for state" in mock_logger.exception.call_args[0][0]


def test_failing_subscriber_without_logger_uses_module_log(notifier, caplog) -> None:
    notifier.subscribe(Mock(side_effect=RuntimeError("subscriber failed")))
    notifier.schedule("B")

    with caplog.at_level(logging.ERROR, logger="smallstate.runtime.notifications"):
        notifier.drain()

    assert any(record.levelno == logging.ERROR for record in caplog.records)
    assert notifier.pending == 0


def test_unsubscribe(notifier) -> None:
    callback = Mock()
    remove = notifier.subscribe(callback)
    assert notifier.subscribers == (callback,)

    remove()
    remove()
    notifier.schedule("B")
    notifier.drain()

    callback.assert_not_called()
    assert notifier.subscribers == ()


def test_subscriber_must_be_callable(notifier) -> None:
    with pytest.raises(TypeError):
        notifier.subscribe("not callable")


@pytest.mark.asyncio
async def test_deferred_to_next_loop_iteration(notifier) -> None:
    seen = []
    notifier.subscribe(seen.append)

    notifier.schedule("B")
    assert seen == []
    assert notifier.pending == 0

    await asyncio.sleep(0)
    assert seen == ["B"]


@pytest.mark.asyncio
async def test_machine_notifies_on_next_tick(machine, changes) -> None:
    machine.fire("go")
    assert changes == []
    assert machine.current_state == "B"

    await asyncio.sleep(0)
    assert changes == ["B"]


@pytest.mark.asyncio
async def test_subscriber_fires_from_loop_callback(machine) -> None:
    seen = []

    def bounce(state):
        seen.append(state)
        if state == "B":
            machine.fire("back")

    machine.on_state_change(bounce)
    machine.fire("go")
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert seen == ["B", "A"]
    assert machine.current_state == "A"
