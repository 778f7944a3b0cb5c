"""Colourful line logger with level filtering, timestamps and caller info."""

from __future__ import annotations

import inspect
import io
import os
import sys
import threading
import time
from dataclasses import dataclass

from .. import log
from . import colorful
from .colorful import ColorBuffer


@dataclass(frozen=True)
class Prefix:
    """Plain and coloured forms of a level tag, and whether to show the caller."""

    plain: bytes
    color: bytes
    file: bool = False


_PLAIN_FATAL = b"[FATAL] "
_PLAIN_ERROR = b"[ERROR] "
_PLAIN_WARN = b"[WARN]  "
_PLAIN_INFO = b"[INFO]  "
_PLAIN_DEBUG = b"[DEBUG] "
_PLAIN_TRACE = b"[TRACE] "

FATAL_PREFIX = Prefix(_PLAIN_FATAL, colorful.red(_PLAIN_FATAL), True)
ERROR_PREFIX = Prefix(_PLAIN_ERROR, colorful.red(_PLAIN_ERROR), True)
WARN_PREFIX = Prefix(_PLAIN_WARN, colorful.orange(_PLAIN_WARN))
INFO_PREFIX = Prefix(_PLAIN_INFO, colorful.green(_PLAIN_INFO))
DEBUG_PREFIX = Prefix(_PLAIN_DEBUG, colorful.purple(_PLAIN_DEBUG), True)
TRACE_PREFIX = Prefix(_PLAIN_TRACE, colorful.cyan(_PLAIN_TRACE))


def _is_terminal(writer) -> bool:
    try:
        return os.isatty(writer.fileno())
    except (AttributeError, OSError, ValueError):
        return False


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


def _emit(writer, payload: bytes) -> None:
    if isinstance(writer, io.TextIOBase):
        writer.write(payload.decode("utf-8", "replace"))
    else:
        writer.write(payload)
    flush = getattr(writer, "flush", None)
    if flush is not None:
        flush()


class ColorLogger:
    """Writes one line per message, optionally coloured and timestamped."""

    def __init__(self, out=None) -> None:
        self._lock = threading.Lock()
        self._out = out
        self._color = _is_terminal(out if out is not None else sys.stdout)
        self._debug = False
        self._timestamp = True
        self._quiet = False
        self._buf = ColorBuffer()
        self._level = int(log.LogLevel.ALL)

    @property
    def _target(self):
        return self._out if self._out is not None else sys.stdout

    def set_log_level(self, level) -> None:
        with self._lock:
            self._level = int(level)

    def set_output(self, writer) -> None:
        """Send output to ``writer``; colour only if it is a terminal."""
        with self._lock:
            self._color = _is_terminal(writer)
            self._out = writer

    def with_color(self) -> "ColorLogger":
        with self._lock:
            self._color = True
        return self

    def without_color(self) -> "ColorLogger":
        with self._lock:
            self._color = False
        return self

    def with_debug(self) -> "ColorLogger":
        with self._lock:
            self._debug = True
        return self

    def without_debug(self) -> "ColorLogger":
        with self._lock:
            self._debug = False
        return self

    def is_debug(self) -> bool:
        with self._lock:
            return self._debug

    def with_timestamp(self) -> "ColorLogger":
        with self._lock:
            self._timestamp = True
        return self

    def without_timestamp(self) -> "ColorLogger":
        with self._lock:
            self._timestamp = False
        return self

    def quiet(self) -> "ColorLogger":
        with self._lock:
            self._quiet = True
        return self

    def no_quiet(self) -> "ColorLogger":
        with self._lock:
            self._quiet = False
        return self

    def is_quiet(self) -> bool:
        with self._lock:
            return self._quiet

    def output(self, depth: int, prefix: Prefix, data: str) -> None:
        """Format and write one message; ``depth`` selects the reported caller."""
        if self.is_quiet():
            return
        now = time.localtime()
        file_name = func_name = ""
        line = 0
        if prefix.file:
            frame = inspect.currentframe()
            for _ in range(depth + 2):
                frame = frame.f_back if frame is not None else None
            if frame is None:
                file_name, func_name, line = "<unknown file>", "<unknown function>", 0
            else:
                code = frame.f_code
                file_name = os.path.basename(code.co_filename)
                qualname = getattr(code, "co_qualname", code.co_name)
                module_name = os.path.splitext(file_name)[0]
                func_name = f"{module_name}.{qualname}"
                line = frame.f_lineno
            del frame

        with self._lock:
            buf = self._buf
            buf.reset()
            buf.append_bytes(prefix.color if self._color else prefix.plain)
            if self._timestamp:
                if self._color:
                    buf.blue()
                buf.append_int(now.tm_year, 4)
                buf.append_byte(b"/")
                buf.append_int(now.tm_mon, 2)
                buf.append_byte(b"/")
                buf.append_int(now.tm_mday, 2)
                buf.append_byte(b" ")
                buf.append_int(now.tm_hour, 2)
                buf.append_byte(b":")
                buf.append_int(now.tm_min, 2)
                buf.append_byte(b":")
                buf.append_int(now.tm_sec, 2)
                buf.append_byte(b" ")
                if self._color:
                    buf.off()
            if prefix.file:
                if self._color:
                    buf.orange()
                buf.append_bytes(func_name.encode("utf-8"))
                buf.append_byte(b":")
                buf.append_bytes(file_name.encode("utf-8"))
                buf.append_byte(b":")
                buf.append_int(line, 0)
                buf.append_byte(b" ")
                if self._color:
                    buf.off()
            buf.append_bytes(data.encode("utf-8"))
            if not data.endswith("\n"):
                buf.append_byte(b"\n")
            _emit(self._target, bytes(buf))

    def fatal(self, *args) -> None:
        if self._level <= log.LogLevel.FATAL:
            self.output(1, FATAL_PREFIX, _sprintln(args))
        sys.exit(1)

    def fatalf(self, fmt, *args) -> None:
        if self._level <= log.LogLevel.FATAL:
            self.output(1, FATAL_PREFIX, _sprintf(fmt, args))
        sys.exit(1)

    def error(self, *args) -> None:
        if self._level <= log.LogLevel.ERROR:
            self.output(1, ERROR_PREFIX, _sprintln(args))

    def errorf(self, fmt, *args) -> None:
        if self._level <= log.LogLevel.ERROR:
            self.output(1, ERROR_PREFIX, _sprintf(fmt, args))

    def warn(self, *args) -> None:
        if self._level <= log.LogLevel.WARN:
            self.output(1, WARN_PREFIX, _sprintln(args))

    def warnf(self, fmt, *args) -> None:
        if self._level <= log.LogLevel.WARN:
            self.output(1, WARN_PREFIX, _sprintf(fmt, args))

    def info(self, *args) -> None:
        if self._level <= log.LogLevel.INFO:
            self.output(1, INFO_PREFIX, _sprintln(args))

    def infof(self, fmt, *args) -> None:
        if self._level <= log.LogLevel.INFO:
            self.output(1, INFO_PREFIX, _sprintf(fmt, args))

    def debug(self, *args) -> None:
        if self._level == log.LogLevel.ALL:
            self.output(1, DEBUG_PREFIX, _sprintln(args))

    def debugf(self, fmt, *args) -> None:
        if self._level == log.LogLevel.ALL:
            self.output(1, DEBUG_PREFIX, _sprintf(fmt, args))

    def trace(self, *args) -> None:
        if self._level == log.LogLevel.ALL:
            self.output(1, TRACE_PREFIX, _sprintln(args))

    def tracef(self, fmt, *args) -> None:
        if self._level == log.LogLevel.ALL:
            self.output(1, TRACE_PREFIX, _sprintf(fmt, args))


log.register_logger(ColorLogger())