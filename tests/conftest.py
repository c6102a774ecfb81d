# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging
from typing import List
from unittest.mock import Mock

import pytest

from smallstate import StateMachine


@pytest.fixture
def machine() -> StateMachine:
    """A -[go]-> B -[back]-> A, both states configured."""
    sm = StateMachine("A")
    sm.configure("A").permit("go", "B")
    sm.configure("B").permit("back", "A")
    yield sm
    sm.close()


@pytest.fixture
def changes(machine: StateMachine) -> List[str]:
    """Records every state change notification of ``machine``."""
    seen: List[str] = []
    machine.on_state_change(seen.append)
    return seen


@pytest.fixture
def mock_logger() -> Mock:
    return Mock(spec=logging.Logger)
