"""Minimal logger writing timestamped lines to standard error."""

from __future__ import annotations

import sys
import time

from .log import LogLevel


def _sprintln(args) -> str:
    return " ".join(str(arg) for arg in args) + "\n"


def _sprintf(fmt: str, args) -> str:
    fmt = str(fmt).replace("%v", "%s")
    if not args:
        return fmt
    try:
        return fmt % tuple(args)
    except (TypeError, ValueError):
        return " ".join([fmt, *(str(arg) for arg in args)])


def _print(message: str) -> None:
    stamp = time.strftime("%Y/%m/%d %H:%M:%S")
    if not message.endswith("\n"):
        message += "\n"
    sys.stderr.write(f"{stamp} {message}")
    sys.stderr.flush()


class SimpleLogger:
    """Level-filtered logger; its output cannot be redirected."""

    def __init__(self) -> None:
        self._level = int(LogLevel.ALL)
        self.requested_output = None

    def set_log_level(self, level) -> None:
        self._level = int(level)

    def set_output(self, writer) -> None:
        """Remember the requested writer; output still goes to standard error."""
        self.requested_output = writer

    def fatal(self, *args) -> None:
        if self._level <= LogLevel.FATAL:
            _print(_sprintln(args))
        sys.exit(1)

    def fatalf(self, fmt, *args) -> None:
        if self._level <= LogLevel.FATAL:
            _print(_sprintf(fmt, args))
        sys.exit(1)

    def error(self, *args) -> None:
        if self._level <= LogLevel.ERROR:
            _print(_sprintln(args))

    def errorf(self, fmt, *args) -> None:
        if self._level <= LogLevel.ERROR:
            _print(_sprintf(fmt, args))

    def warn(self, *args) -> None:
        if self._level <= LogLevel.WARN:
            _print(_sprintln(args))

    def warnf(self, fmt, *args) -> None:
        if self._level <= LogLevel.WARN:
            _print(_sprintf(fmt, args))

    def info(self, *args) -> None:
        if self._level <= LogLevel.INFO:
            _print(_sprintln(args))

    def infof(self, fmt, *args) -> None:
        if self._level <= LogLevel.INFO:
            _print(_sprintf(fmt, args))

    def debug(self, *args) -> None:
        if self._level <= LogLevel.ALL:
            _print(_sprintln(args))

    def debugf(self, fmt, *args) -> None:
        if self._level <= LogLevel.ALL:
            _print(_sprintf(fmt, args))

    def trace(self, *args) -> None:
        if self._level <= LogLevel.ALL:
            _print(_sprintln(args))

    def tracef(self, fmt, *args) -> None:
        if self._level <= LogLevel.ALL:
            _print(_sprintf(fmt, args))