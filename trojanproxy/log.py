"""Process-wide logging front end with a replaceable logger."""

from __future__ import annotations

import sys
from enum import IntEnum


class LogLevel(IntEnum):
    """How much to log: ALL logs everything, OFF nothing."""

    ALL = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4
    OFF = 5


class EmptyLogger:
    """Discards every message, counting what it drops; fatal calls still exit."""

    def __init__(self) -> None:
        self.level = LogLevel.ALL
        self.output = None
        self.dropped = 0

    def _drop(self) -> None:
        self.dropped += 1

    def set_log_level(self, level) -> None:
        self.level = LogLevel(int(level))

    def set_output(self, writer) -> None:
        self.output = writer

    def fatal(self, *args) -> None:
        self._drop()
        sys.exit(1)

    def fatalf(self, fmt, *args) -> None:
        self._drop()
        sys.exit(1)

    def error(self, *args) -> None:
        self._drop()

    def errorf(self, fmt, *args) -> None:
        self._drop()

    def warn(self, *args) -> None:
        self._drop()

    def warnf(self, fmt, *args) -> None:
        self._drop()

    def info(self, *args) -> None:
        self._drop()

    def infof(self, fmt, *args) -> None:
        self._drop()

    def debug(self, *args) -> None:
        self._drop()

    def debugf(self, fmt, *args) -> None:
        self._drop()

    def trace(self, *args) -> None:
        self._drop()

    def tracef(self, fmt, *args) -> None:
        self._drop()


_logger = EmptyLogger()


def register_logger(logger) -> None:
    """Install ``logger`` as the process-wide logger."""
    global _logger
    _logger = logger


def set_log_level(level) -> None:
    _logger.set_log_level(level)


def set_output(writer) -> None:
    _logger.set_output(writer)


def fatal(*args) -> None:
    _logger.fatal(*args)


def fatalf(fmt, *args) -> None:
    _logger.fatalf(fmt, *args)


def error(*args) -> None:
    _logger.error(*args)


def errorf(fmt, *args) -> None:
    _logger.errorf(fmt, *args)


def warn(*args) -> None:
    _logger.warn(*args)


def warnf(fmt, *args) -> None:
    _logger.warnf(fmt, *args)


def info(*args) -> None:
    _logger.info(*args)


def infof(fmt, *args) -> None:
    _logger.infof(fmt, *args)


def debug(*args) -> None:
    _logger.debug(*args)


def debugf(fmt, *args) -> None:
    _logger.debugf(fmt, *args)


def trace(*args) -> None:
    _logger.trace(*args)


def tracef(fmt, *args) -> None:
    _logger.tracef(fmt, *args)