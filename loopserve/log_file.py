"""Buffered log files with size, count and time based rolling."""

from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Optional, Union

BUFFER_SIZE = 64 * 1024

Data = Union[str, bytes]


def _as_bytes(data: Data) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def make_log_file_name(logdir: str, now: Optional[datetime] = None) -> str:
    """Return ``<logdir>/<Y-m-d H:M:S>.log`` for the given local time."""
    if now is None:
        now = datetime.now()
    return f"{logdir}/{now.strftime('%Y-%m-%d %H:%M:%S')}.log"


class FileUtility:
    """An append-mode file with a 64 KiB write buffer and a byte counter."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        self._file = open(filename, "ab", buffering=BUFFER_SIZE)
        self._written = 0

    def append(self, data: Data) -> None:
        payload = _as_bytes(data)
        if not payload:
            return
        self._written += self._file.write(payload)

    def flush(self) -> None:
        """Push buffered data to the file and reset the byte counter."""
        if not self._file.closed:
            self._file.flush()
            self._written = 0

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def written_bytes(self) -> int:
        """Bytes appended since the last flush."""
        return self._written

    def free_size(self) -> int:
        """Room left in the write buffer."""
        return max(0, BUFFER_SIZE - self._written)


class LogFile:
    """Appends records to a log file, rolling by size and write count."""

    def __init__(
        self, logdir: str, filesize: int, interval: int = 3, write_num: int = 1024
    ) -> None:
        self.logdir = logdir
        self.filesize = filesize
        self.flush_interval = interval
        self.write_num_limit = write_num
        self.count = 0
        self.filename: Optional[str] = None
        self._lock = threading.RLock()
        self._file: Optional[FileUtility] = None
        now = time.time()
        self._last_flush = now
        self._last_roll: Optional[float] = None
        self.roll_file()

    def append(self, data: Data) -> None:
        payload = _as_bytes(data)
        with self._lock:
            if self._file.free_size() < len(payload):
                self.flush()
            self._file.append(payload)
            self.count += 1

            if self._file.written_bytes() >= self.filesize:
                self.roll_file()
                return
            if self.count >= self.write_num_limit:
                self.roll_file()
                return

            now = time.time()
            if int(now - self._last_flush) > self.flush_interval:
                self._last_flush = now
                self.flush()

    def flush(self) -> None:
        with self._lock:
            self._file.flush()

    def roll_file(self) -> None:
        """Start a new file named after the current time.

        Nothing happens when the clock has not moved since the last roll.
        """
        with self._lock:
            now = time.time()
            if self._last_roll is not None and now <= self._last_roll:
                return
            filename = make_log_file_name(self.logdir, datetime.fromtimestamp(now))
            self.count = 0
            self._last_flush = now
            self._last_roll = now
            print(f"new file name: {filename}")
            if self._file is not None:
                self._file.close()
            self._file = FileUtility(filename)
            self.filename = filename

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()