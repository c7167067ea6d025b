"""Double-buffered asynchronous log writer backed by a rolling log file."""

from __future__ import annotations

import threading
from typing import Optional, Union

from .log_file import LogFile
from .logger import FatalLogError

Data = Union[str, bytes, bytearray]

BUFFER_CAPACITY = 4096
WAIT_SECONDS = 3.0


def _as_bytes(data: Data) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def is_fatal(data: Data) -> bool:
    """Return True when the record mentions "fatal" in any letter case."""
    text = data if isinstance(data, str) else bytes(data).decode("latin-1")
    return "fatal" in text.lower()


class FixedBuffer:
    """A byte buffer of fixed capacity that refuses writes that do not fit."""

    def __init__(self, size: int) -> None:
        self.capacity = size
        self._data = bytearray()

    def append(self, data: bytes) -> bool:
        """Append ``data`` if it fits; return whether it was stored."""
        if self.available() >= len(data):
            self._data += data
            return True
        return False

    def data(self) -> bytes:
        return bytes(self._data)

    def reset(self) -> None:
        self._data.clear()

    def available(self) -> int:
        return self.capacity - len(self._data)

    def __len__(self) -> int:
        return len(self._data)


class AsyncLogging:
    """Collects records in memory and writes them from a background thread.

    Records that do not fit into an empty buffer are dropped.
    """

    def __init__(
        self, logdir: str, filesize: int, interval: int = 3, write_num: int = 1024
    ) -> None:
        self._logfile = LogFile(logdir, filesize, interval, write_num)
        self._cond = threading.Condition()
        self._running = True
        self._active = FixedBuffer(BUFFER_CAPACITY)
        self._standby: Optional[FixedBuffer] = FixedBuffer(BUFFER_CAPACITY)
        self._pool: list[FixedBuffer] = []
        self._thread = threading.Thread(
            target=self._run, name="async-logging", daemon=True
        )
        self._thread.start()

    def append(self, data: Data) -> None:
        """Queue one record; a record mentioning "fatal" stops the writer and raises."""
        payload = _as_bytes(data)
        with self._cond:
            if self._active.available() > len(payload):
                self._active.append(payload)
            else:
                self._pool.append(self._active)
                if self._standby is not None:
                    self._active, self._standby = self._standby, None
                else:
                    self._active = FixedBuffer(BUFFER_CAPACITY)
                self._active.append(payload)
                self._cond.notify()

        if is_fatal(payload):
            self.stop()
            print("AsyncLogging.append encountered a fatal level message")
            raise FatalLogError("fatal record passed to the asynchronous log")

    def flush(self) -> None:
        self._logfile.flush()

    def stop(self) -> None:
        """Write out everything queued, end the writer thread and close the file."""
        with self._cond:
            self._running = False
            self._cond.notify()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()
        self._logfile.close()

    def __enter__(self) -> "AsyncLogging":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False

    @staticmethod
    def _reclaim(spare: Optional[FixedBuffer], pending: list[FixedBuffer]) -> FixedBuffer:
        if spare is not None:
            return spare
        buffer = pending.pop() if pending else FixedBuffer(BUFFER_CAPACITY)
        buffer.reset()
        return buffer

    def _run(self) -> None:
        spare_active: Optional[FixedBuffer] = FixedBuffer(BUFFER_CAPACITY)
        spare_standby: Optional[FixedBuffer] = FixedBuffer(BUFFER_CAPACITY)
        while True:
            with self._cond:
                if self._running:
                    self._cond.wait(timeout=WAIT_SECONDS)
                running = self._running
                if len(self._active):
                    self._pool.append(self._active)
                    self._active, spare_active = spare_active, None
                if self._standby is None:
                    self._standby, spare_standby = spare_standby, None
                pending, self._pool = self._pool, []

            for buffer in pending:
                self._logfile.append(buffer.data())

            spare_active = self._reclaim(spare_active, pending)
            spare_standby = self._reclaim(spare_standby, pending)
            self.flush()
            if not running:
                break