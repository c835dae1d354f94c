"""
Severity levels and the print/send decision
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

from .exceptions import ConfigurationError


class LogLevel(IntEnum):
    """Ordered severities; thresholds compare with ``level >= threshold``"""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    # Threshold only: no record is ever emitted at this level
    DISABLE = 4

    @property
    def text(self) -> str:
        """Value written into the record's ``level`` field"""
        return _LEVEL_TEXT[self]


_LEVEL_TEXT = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
    LogLevel.DISABLE: "disable",
}

_LEVEL_ALIASES = {
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "warn": LogLevel.WARN,
    "warning": LogLevel.WARN,
    "error": LogLevel.ERROR,
    "critical": LogLevel.ERROR,
    "fatal": LogLevel.ERROR,
    "disable": LogLevel.DISABLE,
    "disabled": LogLevel.DISABLE,
    "off": LogLevel.DISABLE,
    "none": LogLevel.DISABLE,
}


def parse_level(value: Union[str, int, LogLevel]) -> LogLevel:
    """Convert a level name, ordinal or LogLevel into a LogLevel"""
    if isinstance(value, LogLevel):
        return value
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid log level: {value!r}")
    if isinstance(value, int):
        try:
            return LogLevel(value)
        except ValueError:
            raise ConfigurationError(f"Invalid log level: {value!r}") from None
    if isinstance(value, str):
        level = _LEVEL_ALIASES.get(value.strip().lower())
        if level is not None:
            return level
    raise ConfigurationError(f"Invalid log level: {value!r}")


def from_python_level(levelno: int) -> LogLevel:
    """Map a standard library logging level number onto a LogLevel"""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


@dataclass(frozen=True)
class LevelDecision:
    """Outcome of the level policy for a single record"""

    print: bool
    send: bool

    @property
    def any(self) -> bool:
        return self.print or self.send


def decide(level: LogLevel, config: Any) -> LevelDecision:
    """Decide whether a record at ``level`` is printed and/or sent.

    The two outcomes are independent: ``config`` only needs ``print_level``
    and ``send_level`` attributes.
    """
    return LevelDecision(
        print=level >= config.print_level,
        send=level >= config.send_level,
    )
