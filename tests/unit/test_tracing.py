# tests/unit/test_tracing.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging

import pytest

from smallstate.core.errors import ConfigurationError
from smallstate.core.tracing import TRACE, TraceLogger


def test_trace_level_is_registered() -> None:
    assert logging.getLevelName(TRACE) == "TRACE"


def test_logs_at_trace_by_default(mock_logger) -> None:
    log = TraceLogger(mock_logger)

    log.log("Test %s", 1)

    assert log.level == "trace"
    mock_logger.log.assert_called_once_with(TRACE, "Test %s", 1)


def test_logs_at_configured_level(mock_logger) -> None:
    log = TraceLogger(mock_logger, "debug")

    log.log("Test")

    mock_logger.log.assert_called_once_with(logging.DEBUG, "Test")


def test_changes_log_level(mock_logger) -> None:
    log = TraceLogger(mock_logger)

    log.level = "warn"
    log.log("Test")

    assert log.level == "warn"
    mock_logger.log.assert_called_once_with(logging.WARNING, "Test")


def test_without_logger_nothing_happens() -> None:
    log = TraceLogger()
    log.log("dropped")
    log.error("dropped too")
    assert log.logger is None


def test_unknown_level_rejected(mock_logger) -> None:
    with pytest.raises(ConfigurationError, match="Unknown log level"):
        TraceLogger(mock_logger, "verbose")

    log = TraceLogger(mock_logger)
    with pytest.raises(ConfigurationError):
        log.level = "fatal"
    assert log.level == "trace"


def test_records_reach_standard_logging(caplog) -> None:
    logger = logging.getLogger("tests.smallstate.tracing")
    caplog.set_level(TRACE, logger=logger.name)

    TraceLogger(logger).log("Entering state %s ...", "A")

    assert caplog.records[-1].levelno == TRACE
    assert caplog.records[-1].getMessage() == "Entering state A ..."
