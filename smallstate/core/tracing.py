# smallstate/core/tracing.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from smallstate.core.errors import ConfigurationError

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

LOG_LEVELS: Dict[str, int] = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class TraceLogger:
    """
    Thin wrapper around an optional ``logging.Logger`` that emits every
    diagnostic message at one configurable level. Without a logger all
    messages are dropped.
    """

    def __init__(self, logger: Optional[LoggerLike] = None, level: str = "trace") -> None:
        """
        :param logger: Logger (or adapter) receiving messages, or None to disable output.
        :param level: One of ``trace``, ``debug``, ``info``, ``warn``, ``error``.
        :raises ConfigurationError: If the level name is unknown.
        """
        self._logger = logger
        self._level = _level_number(level)
        self._level_name = level

    @property
    def logger(self) -> Optional[LoggerLike]:
        return self._logger

    @property
    def level(self) -> str:
        return self._level_name

    @level.setter
    def level(self, level: str) -> None:
        self._level = _level_number(level)
        self._level_name = level

    def log(self, message: str, *args) -> None:
        """
        Forward a message at the configured level. Arguments are formatted
        lazily by ``logging``.
        """
        if self._logger is not None:
            self._logger.log(self._level, message, *args)

    def error(self, message: str, *args) -> None:
        """Emit at error level regardless of the configured level."""
        if self._logger is not None:
            self._logger.error(message, *args)


def _level_number(level: str) -> int:
    try:
        return LOG_LEVELS[level]
    except KeyError:
        raise ConfigurationError(f"Unknown log level {level!r}", {"allowed": sorted(LOG_LEVELS)}) from None
