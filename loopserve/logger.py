"""Leveled logging with pluggable output and flush callbacks."""

from __future__ import annotations

import enum
import sys
from datetime import datetime
from typing import Any, Callable, Optional

from .log_stream import LogStream

WriteFunc = Callable[[str], Any]
FlushFunc = Callable[[], Any]

_write_cb: Optional[WriteFunc] = None
_flush_cb: Optional[FlushFunc] = None


class LogLevel(enum.IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    FATAL = 4


class FatalLogError(RuntimeError):
    """Raised after a FATAL record has been written and flushed."""


class LoggerControl:
    """Process-wide holder of the minimum level that gets written."""

    _instance: Optional["LoggerControl"] = None

    def __init__(self) -> None:
        self.level: LogLevel = LogLevel.INFO

    @classmethod
    def instance(cls) -> "LoggerControl":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance


def set_write_func(cb: Optional[WriteFunc]) -> None:
    """Route formatted records to ``cb``; ``None`` restores stdout."""
    global _write_cb
    _write_cb = cb


def set_flush_func(cb: Optional[FlushFunc]) -> None:
    """Use ``cb`` to flush output; ``None`` restores the stdout flush."""
    global _flush_cb
    _flush_cb = cb


def _level_name(level: int) -> str:
    try:
        return LogLevel(level).name
    except ValueError:
        return "UNKNOWN"


def format_message(
    level: int, file: str, line: int, msg: str, now: Optional[datetime] = None
) -> str:
    """Format one log record; the file is reduced to its last path component."""
    if now is None:
        now = datetime.now()
    filename = file.rpartition("/")[2]
    stamp = now.strftime("%Y-%m-%d %H:%M:%S")
    return f"[{stamp}] [{_level_name(level)}]\t[{filename}:{line}]\tmsg: {msg}\n"


def _default_write(data: str) -> None:
    sys.stdout.write(data)


def _default_flush() -> None:
    sys.stdout.flush()
    sys.stdout.write("\n")
    sys.stdout.flush()


class Logger:
    """One log record; written when the ``with`` block ends or on ``finish``."""

    def __init__(self, level: int, file: str, line: int) -> None:
        self.level = level
        self.file = file
        self.line = line
        self.stream = LogStream()
        self._finished = False

    def __enter__(self) -> LogStream:
        return self.stream

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.finish()
        return False

    def finish(self) -> None:
        """Filter, format and write the record; FATAL records raise afterwards."""
        if self._finished:
            return
        self._finished = True
        if self.level < LoggerControl.instance().level:
            self.stream.clear()
            return
        record = format_message(self.level, self.file, self.line, self.stream.getvalue())
        (_write_cb or _default_write)(record)
        if self.level == LogLevel.FATAL:
            (_flush_cb or _default_flush)()
            raise FatalLogError(f"fatal log record at {self.file}:{self.line}")


def _emit(level: int, message: Any, depth: int) -> None:
    if level < LoggerControl.instance().level:
        return
    frame = sys._getframe(depth + 1)
    with Logger(level, frame.f_code.co_filename, frame.f_lineno) as stream:
        stream << message


def log(level: int, message: Any) -> None:
    """Write ``message`` at ``level`` with the caller's file and line."""
    _emit(level, message, 1)


def debug(message: Any) -> None:
    _emit(LogLevel.DEBUG, message, 1)


def info(message: Any) -> None:
    _emit(LogLevel.INFO, message, 1)


def warning(message: Any) -> None:
    _emit(LogLevel.WARNING, message, 1)


def error(message: Any) -> None:
    _emit(LogLevel.ERROR, message, 1)


def fatal(message: Any) -> None:
    _emit(LogLevel.FATAL, message, 1)